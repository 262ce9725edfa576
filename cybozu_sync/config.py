from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

load_dotenv()

DEFAULT_TIMEZONE = "Asia/Tokyo"


class ConfigError(Exception):
    pass


@dataclass
class Settings:
    cybozu_url: str
    username: str
    password: str
    calendar_id: str
    timezone: ZoneInfo
    google_client_secrets: str
    google_token_file: str
    storage_state_path: str = "storage_state.json"

    @property
    def export_url(self) -> str:
        return f"{self.cybozu_url}o/ag.cgi?page=PersonalScheduleExport"


# JSON config key -> Settings attribute
JSON_KEYS = {
    "cybozuUrl": "cybozu_url",
    "username": "username",
    "password": "password",
    "calendarId": "calendar_id",
    "timezone": "timezone",
    "googleClientSecrets": "google_client_secrets",
    "googleTokenFile": "google_token_file",
}


def get_timezone(tz_name: Optional[str] = None) -> ZoneInfo:
    tz_name = tz_name or os.getenv("TIMEZONE", DEFAULT_TIMEZONE)
    try:
        return ZoneInfo(tz_name)
    except Exception:
        logging.warning("Invalid TIMEZONE %s, falling back to %s", tz_name, DEFAULT_TIMEZONE)
        return ZoneInfo(DEFAULT_TIMEZONE)


def _with_trailing_slash(url: str) -> str:
    return url if not url or url.endswith("/") else url + "/"


def load_json_config(config_file: Optional[str] = None, config_json: Optional[str] = None) -> dict:
    if config_file:
        try:
            raw = Path(config_file).read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Cannot read config file {config_file}: {exc}") from exc
    elif config_json:
        raw = config_json
    else:
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Malformed JSON config: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError("JSON config must be an object")
    return data


def get_settings(overrides: Optional[dict] = None) -> Settings:
    values = {
        "cybozu_url": os.getenv("CYBOZU_URL", ""),
        "username": os.getenv("CYBOZU_USERNAME", ""),
        "password": os.getenv("CYBOZU_PASSWORD", ""),
        "calendar_id": os.getenv("CALENDAR_ID", "primary"),
        "timezone": None,
        "google_client_secrets": os.getenv("GOOGLE_CLIENT_SECRETS", "credentials.json"),
        "google_token_file": os.getenv("GOOGLE_TOKEN_FILE", "token.json"),
    }
    for key, value in (overrides or {}).items():
        attr = JSON_KEYS.get(key)
        if attr is None:
            logging.debug("Ignoring unknown config key %s", key)
            continue
        if not isinstance(value, str):
            raise ConfigError(f"Config value for {key} must be a string, got {value!r}")
        values[attr] = value

    values["timezone"] = get_timezone(values["timezone"])
    values["cybozu_url"] = _with_trailing_slash(values["cybozu_url"])
    settings = Settings(**values)
    if not settings.cybozu_url:
        logging.warning("CYBOZU_URL is not set")
    if not settings.username:
        logging.warning("CYBOZU_USERNAME is not set")
    if not settings.password:
        logging.warning("CYBOZU_PASSWORD is not set")
    return settings


def _one_year_later(day: date) -> date:
    try:
        return day.replace(year=day.year + 1)
    except ValueError:
        # Feb 29
        return day.replace(year=day.year + 1, day=day.day - 1)


def export_range(today: date) -> tuple[date, date]:
    return today, _one_year_later(today)


def sync_window(today: date, tz: ZoneInfo) -> tuple[datetime, datetime]:
    """Start of ``today`` through the same calendar day one year later."""
    time_min = datetime.combine(today, datetime.min.time(), tzinfo=tz)
    time_max = datetime.combine(_one_year_later(today), datetime.min.time(), tzinfo=tz)
    return time_min, time_max
