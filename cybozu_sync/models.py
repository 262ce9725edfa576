from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import List, Optional, Sequence


class NormalizationFailure(Exception):
    def __init__(self, index: int, row: Sequence[str], reason: str):
        super().__init__(f"row {index}: {reason}")
        self.index = index
        self.row = list(row)
        self.reason = reason


def _parse_instant(value: str) -> dt.datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = dt.datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed


@dataclass(frozen=True)
class EventTime:
    """Either a calendar date (all-day) or an exact, tz-aware instant."""

    date: Optional[dt.date] = None
    instant: Optional[dt.datetime] = None

    def __post_init__(self):
        if (self.date is None) == (self.instant is None):
            raise ValueError("EventTime needs exactly one of date or instant")

    @classmethod
    def of_date(cls, value: dt.date) -> EventTime:
        return cls(date=value)

    @classmethod
    def of_instant(cls, value: dt.datetime) -> EventTime:
        return cls(instant=value)

    @classmethod
    def from_gcal(cls, payload: dict) -> EventTime:
        if payload.get("date"):
            return cls(date=dt.date.fromisoformat(payload["date"]))
        if payload.get("dateTime"):
            return cls(instant=_parse_instant(payload["dateTime"]))
        raise ValueError(f"No date or dateTime in {payload!r}")

    @property
    def is_all_day(self) -> bool:
        return self.date is not None

    def same_moment(self, other: EventTime) -> bool:
        if self.is_all_day != other.is_all_day:
            return False
        if self.is_all_day:
            return self.date == other.date
        # compare in UTC; == across tzinfos is False inside a DST fold or gap
        return self.instant.astimezone(dt.timezone.utc) == other.instant.astimezone(dt.timezone.utc)

    def to_gcal(self) -> dict:
        if self.date is not None:
            return {"date": self.date.isoformat()}
        return {"dateTime": self.instant.isoformat()}

    def __str__(self) -> str:
        return self.date.isoformat() if self.date is not None else self.instant.isoformat()


@dataclass(frozen=True)
class Event:
    start: EventTime
    end: EventTime
    summary: str
    description: str = ""
    location: str = ""
    id: Optional[str] = None

    @property
    def is_all_day(self) -> bool:
        return self.start.is_all_day and self.end.is_all_day

    def to_gcal_body(self) -> dict:
        body = {
            "summary": self.summary,
            "start": self.start.to_gcal(),
            "end": self.end.to_gcal(),
        }
        if self.location:
            body["location"] = self.location
        if self.description:
            body["description"] = self.description
        return body

    @classmethod
    def from_gcal(cls, item: dict) -> Event:
        return cls(
            start=EventTime.from_gcal(item.get("start", {})),
            end=EventTime.from_gcal(item.get("end", {})),
            summary=item.get("summary", ""),
            description=item.get("description", ""),
            location=item.get("location", ""),
            id=item.get("id"),
        )


@dataclass
class SyncPlan:
    to_insert: List[Event] = field(default_factory=list)
    to_delete: List[Event] = field(default_factory=list)


@dataclass
class SyncResult:
    inserted: int = 0
    deleted: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors
