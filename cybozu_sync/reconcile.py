from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, List, Sequence, Set

from .models import Event, SyncPlan


def same_occurrence(a: Event, b: Event) -> bool:
    """True when both events denote the same calendar occurrence.

    Only the summary and the start/end moments are compared; description and
    location are ignored. An all-day event never matches a timed one.
    """
    return a.summary == b.summary and a.start.same_moment(b.start) and a.end.same_moment(b.end)


def _index_by_summary(events: Sequence[Event]) -> Dict[str, List[Event]]:
    index: Dict[str, List[Event]] = defaultdict(list)
    for event in events:
        index[event.summary].append(event)
    return index


def _matched_indices(events: Sequence[Event], others: Sequence[Event]) -> Set[int]:
    # buckets keep iteration order, so the first candidate still wins
    candidates = _index_by_summary(others)
    matched: Set[int] = set()
    for i, event in enumerate(events):
        if any(same_occurrence(event, other) for other in candidates.get(event.summary, ())):
            matched.add(i)
    return matched


def reconcile(source: Sequence[Event], destination: Sequence[Event]) -> SyncPlan:
    matched_source = _matched_indices(source, destination)
    matched_destination = _matched_indices(destination, source)

    plan = SyncPlan(
        to_insert=[e for i, e in enumerate(source) if i not in matched_source],
        to_delete=[e for i, e in enumerate(destination) if i not in matched_destination],
    )
    logging.info(
        "Reconciled %d source / %d destination events: %d to insert, %d to delete, %d unchanged",
        len(source),
        len(destination),
        len(plan.to_insert),
        len(plan.to_delete),
        len(matched_destination),
    )
    return plan
