from __future__ import annotations

import argparse
import logging
from datetime import datetime

from cybozu_sync.browser import fetch_schedule_csv
from cybozu_sync.config import ConfigError, export_range, get_settings, load_json_config, sync_window
from cybozu_sync.gcal import CalendarStore, apply_plan, build_service
from cybozu_sync.normalizer import normalize_rows, read_schedule_csv
from cybozu_sync.reconcile import reconcile


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Move schedules from Cybozu to Google Calendar")
    parser.add_argument("-c", "--config", type=str, default=None, help="JSON config file")
    parser.add_argument("-j", "--json", type=str, default=None, help="Config as a JSON string instead of a file")
    parser.add_argument("-q", "--quiet", action="store_true", help="Hide progress messages")
    parser.add_argument("-s", "--show", action="store_true", help="Show the browser window")
    parser.add_argument("--dry-run", action="store_true", help="Show actions without modifying calendar")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    try:
        settings = get_settings(load_json_config(args.config, args.json))
    except ConfigError as exc:
        logging.error("%s", exc)
        return 1
    tz = settings.timezone

    today = datetime.now(tz).date()
    export_start, export_end = export_range(today)
    csv_text = fetch_schedule_csv(settings, export_start, export_end, headful=args.show)
    source_events = normalize_rows(read_schedule_csv(csv_text), tz)

    store = CalendarStore(build_service(settings.google_client_secrets, settings.google_token_file), settings.calendar_id)
    time_min, time_max = sync_window(today, tz)
    destination_events = store.list(time_min, time_max)

    plan = reconcile(source_events, destination_events)
    result = apply_plan(store, plan, dry_run=args.dry_run)

    logging.info("Done")
    return 0 if result.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
