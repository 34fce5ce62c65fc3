"""Mapping raw Jira issue JSON into IssueModel instances."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pandas as pd

from .exceptions import InvalidInputError
from .models import HistoryEntry, IssueModel


def parse_timestamp(value: Any) -> pd.Timestamp | None:
    """Parse a Jira timestamp, failing loudly on malformed values.

    Missing values (``None`` or empty string) map to ``None``. Naive values are
    assumed to be UTC so every parsed timestamp compares against the others.

    Examples
    --------
    >>> parse_timestamp("2024-01-02T10:00:00.000+0000").date().isoformat()
    '2024-01-02'
    >>> parse_timestamp(None) is None
    True
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        ts = pd.Timestamp(value)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"unparsable timestamp {value!r}") from exc
    if pd.isna(ts):
        raise InvalidInputError(f"unparsable timestamp {value!r}")
    if ts.tzinfo is None:
        ts = ts.tz_localize("UTC")
    return ts


def _name_of(node: Any) -> str | None:
    if isinstance(node, Mapping):
        return node.get("name") or node.get("displayName")
    return None


def map_history(raw: Mapping[str, Any]) -> HistoryEntry:
    return HistoryEntry(
        author=_name_of(raw.get("author")),
        created=parse_timestamp(raw.get("created")),
        items=[item for item in raw.get("items") or [] if isinstance(item, Mapping)],
    )


def map_issue(raw: Mapping[str, Any]) -> IssueModel:
    if not isinstance(raw, Mapping):
        raise InvalidInputError(f"issue payload must be a mapping, got {type(raw).__name__}")
    fields = raw.get("fields") or {}
    histories_raw = (raw.get("changelog") or {}).get("histories", []) or []
    return IssueModel(
        key=raw.get("key"),
        summary=fields.get("summary"),
        created=parse_timestamp(fields.get("created")),
        status=_name_of(fields.get("status")),
        issuetype=_name_of(fields.get("issuetype")),
        histories=[map_history(h) for h in histories_raw if isinstance(h, Mapping)],
    )
