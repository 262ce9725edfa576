from __future__ import annotations

import csv
import datetime as dt
import io
import logging
from typing import Iterable, List, Optional, Sequence
from zoneinfo import ZoneInfo

from .models import Event, EventTime, NormalizationFailure

START_DATE, START_TIME, END_DATE, END_TIME, CATEGORY, TITLE, DESCRIPTION, _RESERVED, LOCATION = range(9)
COLUMN_COUNT = 9

DATE_FORMATS = ("%Y/%m/%d", "%Y-%m-%d")
TIME_FORMATS = ("%H:%M:%S", "%H:%M")
END_OF_DAY = "23:59:59"

ALL_DAY = "all_day"
TIMED = "timed"

# (start time given, end time given) -> (output variant, end time used when both dates are equal)
TIME_RULES = {
    (False, False): (ALL_DAY, None),
    (True, False): (TIMED, END_OF_DAY),
    (False, True): (TIMED, None),
    (True, True): (TIMED, None),
}


def read_schedule_csv(text: str) -> List[List[str]]:
    return list(csv.reader(io.StringIO(text.lstrip("\ufeff"))))


def _parse_date(value: str) -> dt.date:
    for fmt in DATE_FORMATS:
        try:
            return dt.datetime.strptime(value.strip(), fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Cannot parse date '{value}'")


def _parse_time(value: str) -> dt.time:
    if not value:
        return dt.time()
    for fmt in TIME_FORMATS:
        try:
            return dt.datetime.strptime(value.strip(), fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Cannot parse time '{value}'")


def build_summary(category: str, title: str) -> str:
    if category:
        return f"[{category}] {title}"
    return title


def normalize_row(row: Sequence[str], tz: ZoneInfo, index: int = 0) -> Event:
    fields = list(row) + [""] * (COLUMN_COUNT - len(row))
    start_time, end_time = fields[START_TIME].strip(), fields[END_TIME].strip()
    variant, same_day_end = TIME_RULES[(bool(start_time), bool(end_time))]

    try:
        start_date = _parse_date(fields[START_DATE])
        end_date = _parse_date(fields[END_DATE])
        if start_date == end_date and same_day_end:
            end_time = same_day_end
        elif start_date > end_date:
            start_date, start_time, end_date, end_time = end_date, end_time, start_date, start_time
        start = dt.datetime.combine(start_date, _parse_time(start_time), tzinfo=tz)
        end = dt.datetime.combine(end_date, _parse_time(end_time), tzinfo=tz)
    except ValueError as exc:
        raise NormalizationFailure(index, row, str(exc)) from exc

    if variant == ALL_DAY:
        if start >= end:
            end = start + dt.timedelta(days=1)
        event_start, event_end = EventTime.of_date(start.date()), EventTime.of_date(end.date())
    else:
        event_start, event_end = EventTime.of_instant(start), EventTime.of_instant(end)

    return Event(
        start=event_start,
        end=event_end,
        summary=build_summary(fields[CATEGORY], fields[TITLE]),
        description=fields[DESCRIPTION],
        location=fields[LOCATION],
    )


def normalize_rows(rows: Iterable[Sequence[str]], tz: ZoneInfo, failures: Optional[list] = None) -> List[Event]:
    """Normalize every data row of an export; the first row is the header.

    Rows that fail are logged and dropped. When ``failures`` is given, each
    NormalizationFailure is appended to it as well.
    """
    events: List[Event] = []
    for index, row in enumerate(rows):
        if index == 0 or not any(row):
            continue
        try:
            events.append(normalize_row(row, tz, index=index))
        except NormalizationFailure as exc:
            logging.warning("Skipping row %d %r: %s", exc.index, exc.row, exc.reason)
            if failures is not None:
                failures.append(exc)
    logging.info("Normalized %d events", len(events))
    return events
