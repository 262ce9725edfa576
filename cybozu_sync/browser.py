from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Tuple

from playwright.sync_api import Browser, BrowserContext, Page, Playwright, sync_playwright

from .config import Settings

EXPORTS_DIR = Path("artifacts/exports")
SCREENSHOTS_DIR = Path("artifacts/screenshots")
EXPORT_ENCODING = "UTF-8"


def create_context(settings: Settings, headful: bool = False) -> Tuple[Playwright, Browser, BrowserContext]:
    playwright = sync_playwright().start()
    browser = playwright.chromium.launch(headless=not headful)
    storage_state = Path(settings.storage_state_path)
    context = browser.new_context(
        storage_state=str(storage_state) if storage_state.exists() else None,
        accept_downloads=True,
    )
    return playwright, browser, context


def login(page: Page, settings: Settings) -> None:
    page.goto(settings.cybozu_url, wait_until="domcontentloaded")
    if not page.query_selector("input[name='password']"):
        logging.info("Session restored from %s", settings.storage_state_path)
        return

    logging.info("Logging in to %s as %s", settings.cybozu_url, settings.username)
    page.fill("input[name='username']", settings.username)
    page.fill("input[name='password']", settings.password)
    page.wait_for_timeout(1000)
    page.click("form input[type=submit]")
    page.wait_for_load_state("domcontentloaded", timeout=30_000)

    if page.query_selector("input[name='password']"):
        raise RuntimeError("Login failed, still on the login form")


def _select_range(page: Page, start: date, end: date) -> None:
    for prefix, day in (("SetDate", start), ("EndDate", end)):
        page.select_option(f"select[name='{prefix}.Year']", str(day.year))
        page.select_option(f"select[name='{prefix}.Month']", str(day.month))
        page.select_option(f"select[name='{prefix}.Day']", str(day.day))
    page.select_option("select[name='oencoding']", EXPORT_ENCODING)


def download_export(page: Page, settings: Settings, start: date, end: date) -> str:
    page.goto(settings.export_url, wait_until="domcontentloaded")
    _select_range(page, start, end)

    with page.expect_download() as download_info:
        page.click(".vr_hotButton")
    download = download_info.value

    EXPORTS_DIR.mkdir(parents=True, exist_ok=True)
    export_path = EXPORTS_DIR / f"{start.isoformat()}_{end.isoformat()}.csv"
    download.save_as(str(export_path))
    logging.info("Saved schedule export to %s", export_path)
    return export_path.read_text(encoding="utf-8")


def fetch_schedule_csv(settings: Settings, start: date, end: date, headful: bool = False) -> str:
    logging.info("Fetching events from Cybozu %s - %s", start, end)
    playwright, browser, context = create_context(settings, headful=headful)
    page = context.new_page()
    try:
        login(page, settings)
        context.storage_state(path=settings.storage_state_path)
        return download_export(page, settings, start, end)
    except Exception:
        SCREENSHOTS_DIR.mkdir(parents=True, exist_ok=True)
        screenshot_path = SCREENSHOTS_DIR / f"export_{start.isoformat()}.png"
        try:
            page.screenshot(path=str(screenshot_path), full_page=True)
            logging.info("Saved screenshot to %s", screenshot_path)
        except Exception as shot_exc:
            logging.warning("Unable to capture screenshot: %s", shot_exc)
        raise
    finally:
        context.close()
        browser.close()
        playwright.stop()
