from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest

from cybozu_sync.models import Event, EventTime

TOKYO = ZoneInfo("Asia/Tokyo")

ENV_KEYS = [
    "CYBOZU_URL",
    "CYBOZU_USERNAME",
    "CYBOZU_PASSWORD",
    "CALENDAR_ID",
    "TIMEZONE",
    "GOOGLE_CLIENT_SECRETS",
    "GOOGLE_TOKEN_FILE",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment and .env values out of the tests."""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def tz():
    return TOKYO


def timed(summary, start, end, **kwargs):
    """Build a timed event from naive Tokyo datetimes."""
    return Event(
        start=EventTime.of_instant(start.replace(tzinfo=TOKYO)),
        end=EventTime.of_instant(end.replace(tzinfo=TOKYO)),
        summary=summary,
        **kwargs,
    )


def all_day(summary, start, end, **kwargs):
    return Event(start=EventTime.of_date(start), end=EventTime.of_date(end), summary=summary, **kwargs)


@pytest.fixture
def make_timed():
    return timed


@pytest.fixture
def make_all_day():
    return all_day


@pytest.fixture
def planning():
    return timed("[会議] Planning", datetime(2024, 1, 10, 14, 0), datetime(2024, 1, 10, 15, 0))


@pytest.fixture
def offsite():
    return all_day("Offsite", date(2024, 1, 10), date(2024, 1, 11))
