"""Domain data models for Jira issues, status transitions, and workflows."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date

import pandas as pd

from .config import DONE_STATUS
from .exceptions import InvalidInputError

StageName = str


@dataclass(slots=True)
class HistoryEntry:
    author: str | None
    created: pd.Timestamp | None
    items: list[dict] = field(default_factory=list)


@dataclass(slots=True)
class IssueModel:
    key: str | None
    summary: str | None
    created: pd.Timestamp | None
    status: str | None
    issuetype: str | None
    histories: list[HistoryEntry] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class StatusTransition:
    """One status change, positioned in the issue's time-ordered sequence."""

    from_status: str | None
    to_status: str | None
    occurred_at: pd.Timestamp
    previous_occurred_at: pd.Timestamp | None = None


@dataclass(frozen=True, slots=True)
class StageDuration:
    did_happen: bool = False
    passed_business_days: int = 0


NOT_REACHED = StageDuration()


@dataclass(frozen=True, slots=True)
class Workflow:
    """Ordered workflow stages plus the subset treated as active.

    ``stages`` order is the contract for both output position and simulation
    order: forward simulation walks it front to back, backward simulation walks
    the active stages back to front.
    """

    stages: tuple[StageName, ...]
    active: frozenset[StageName] = frozenset()
    done: StageName = DONE_STATUS

    def __post_init__(self):
        counts = Counter(self.stages)
        duplicates = [s for s, n in counts.items() if n > 1]
        if duplicates:
            raise InvalidInputError(f"duplicate workflow stages: {', '.join(duplicates)}")
        unknown = sorted(s for s in self.active if s not in counts)
        if unknown:
            raise InvalidInputError(f"active statuses not in workflow: {', '.join(unknown)}")
        if self.done in self.active:
            raise InvalidInputError(f"terminal stage {self.done!r} cannot be active")
        # A workflow without the default terminal stage never finishes; a renamed one must exist
        if self.done != DONE_STATUS and self.done not in counts:
            raise InvalidInputError(f"terminal stage {self.done!r} not in workflow")

    @classmethod
    def from_definition(
        cls,
        stages: Mapping[str, object] | Sequence[str],
        active: Iterable[str] = (),
        done: str = DONE_STATUS,
    ) -> Workflow:
        # Mappings contribute their keys only, in insertion order
        return cls(stages=tuple(stages), active=frozenset(active), done=done)

    def is_active(self, stage: StageName) -> bool:
        return stage in self.active

    @property
    def active_stages(self) -> tuple[StageName, ...]:
        return tuple(s for s in self.stages if s in self.active)

    @property
    def inactive_stages(self) -> tuple[StageName, ...]:
        return tuple(s for s in self.stages if s not in self.active)


@dataclass(frozen=True, slots=True)
class StageDurations:
    """Per-active-stage durations plus the forward-simulation anchor date."""

    records: Mapping[StageName, StageDuration] = field(default_factory=dict)
    anchor: date | None = None

    def get(self, stage: StageName) -> StageDuration:
        return self.records.get(stage, NOT_REACHED)


@dataclass(frozen=True, slots=True)
class StageEntryDates:
    dates: Mapping[StageName, date] = field(default_factory=dict)

    def get(self, stage: StageName) -> date | None:
        return self.dates.get(stage)
