"""Status transition extraction from an issue changelog."""

from __future__ import annotations

from collections.abc import Iterable

from jira_staging.core.models import HistoryEntry, StatusTransition


def _is_status_item(item: dict) -> bool:
    return item.get("field") == "status"


def extract_status_transitions(histories: Iterable[HistoryEntry]) -> list[StatusTransition]:
    """Flatten a changelog into time-ordered status transitions.

    Only ``status`` field changes are kept. Entries without a timestamp or
    without status changes are dropped. Transitions sharing a timestamp keep
    their changelog order. Each transition carries the timestamp of the one
    before it in ``previous_occurred_at``.

    Parameters
    ----------
    histories : Iterable[HistoryEntry]
        Changelog entries in any order.

    Returns
    -------
    list[StatusTransition]
        Transitions sorted by ``occurred_at``; empty when the issue never
        changed status.
    """
    flattened: list[tuple] = []
    for entry in histories:
        if entry.created is None:
            continue
        for item in entry.items:
            if _is_status_item(item):
                flattened.append((entry.created, item.get("fromString"), item.get("toString")))

    # sorted() is stable, ties keep changelog order
    flattened = sorted(flattened, key=lambda tup: tup[0])

    transitions: list[StatusTransition] = []
    previous = None
    for occurred_at, from_status, to_status in flattened:
        transitions.append(
            StatusTransition(
                from_status=from_status,
                to_status=to_status,
                occurred_at=occurred_at,
                previous_occurred_at=previous,
            )
        )
        previous = occurred_at
    return transitions
