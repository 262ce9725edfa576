"""Tests for the Cybozu export download, driven with a mocked Playwright page."""
from datetime import date
from pathlib import Path
from unittest.mock import MagicMock, call

import pytest

from cybozu_sync.browser import download_export, login
from cybozu_sync.config import Settings


@pytest.fixture
def settings(tz):
    return Settings(
        cybozu_url="https://example.com/cbag/",
        username="taro",
        password="secret",
        calendar_id="primary",
        timezone=tz,
        google_client_secrets="credentials.json",
        google_token_file="token.json",
    )


class TestLogin:
    def test_fills_login_form(self, settings):
        page = MagicMock()
        page.query_selector.side_effect = [object(), None]

        login(page, settings)

        page.fill.assert_any_call("input[name='username']", "taro")
        page.fill.assert_any_call("input[name='password']", "secret")
        page.click.assert_called_once_with("form input[type=submit]")

    def test_restored_session_skips_form(self, settings):
        page = MagicMock()
        page.query_selector.return_value = None

        login(page, settings)

        page.fill.assert_not_called()

    def test_still_on_login_form_raises(self, settings):
        page = MagicMock()
        page.query_selector.return_value = object()

        with pytest.raises(RuntimeError):
            login(page, settings)


class TestDownloadExport:
    def test_selects_range_and_returns_csv(self, settings, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        page = MagicMock()
        download = page.expect_download.return_value.__enter__.return_value.value
        download.save_as.side_effect = lambda path: Path(path).write_text("a,b\n1,2\n", encoding="utf-8")

        text = download_export(page, settings, date(2024, 1, 10), date(2025, 1, 10))

        assert text == "a,b\n1,2\n"
        page.goto.assert_called_once_with(settings.export_url, wait_until="domcontentloaded")
        page.select_option.assert_has_calls(
            [
                call("select[name='SetDate.Year']", "2024"),
                call("select[name='SetDate.Month']", "1"),
                call("select[name='SetDate.Day']", "10"),
                call("select[name='EndDate.Year']", "2025"),
                call("select[name='EndDate.Month']", "1"),
                call("select[name='EndDate.Day']", "10"),
                call("select[name='oencoding']", "UTF-8"),
            ]
        )
        page.click.assert_called_once_with(".vr_hotButton")
        assert (tmp_path / "artifacts/exports/2024-01-10_2025-01-10.csv").exists()
