"""Per-stage business-day durations and entry dates derived from transitions."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date

import pandas as pd

from jira_staging.core.calendar import BusinessCalendar
from jira_staging.core.exceptions import InvalidInputError
from jira_staging.core.models import (
    StageDuration,
    StageDurations,
    StageEntryDates,
    StageName,
    StatusTransition,
    Workflow,
)

logger = logging.getLogger(__name__)


def truncate_to_day(ts: pd.Timestamp) -> date:
    """Drop the time of day, keeping the date as written in the timestamp's offset."""
    return ts.date()


def _closed_episodes(
    stage: StageName,
    transitions: Sequence[StatusTransition],
    created: pd.Timestamp | None,
) -> list[tuple[date, date]]:
    episodes: list[tuple[date, date]] = []
    for item in transitions:
        if item.from_status != stage:
            continue
        start = item.previous_occurred_at
        if start is None:
            # Issue created directly in this stage: its creation opens the episode
            if created is None:
                raise InvalidInputError(f"issue has no creation timestamp to start stage {stage!r}")
            start = created
        episodes.append((truncate_to_day(start), truncate_to_day(item.occurred_at)))
    return episodes


def accumulate_active_durations(
    transitions: Sequence[StatusTransition],
    workflow: Workflow,
    created: pd.Timestamp | None,
    calendar: BusinessCalendar,
) -> StageDurations:
    """Sum business days spent in each active stage.

    Parameters
    ----------
    transitions : Sequence[StatusTransition]
        Time-ordered transitions of one issue.
    workflow : Workflow
        Stage order and active subset.
    created : pd.Timestamp | None
        Issue creation timestamp; starts an episode that has no earlier
        transition.
    calendar : BusinessCalendar
        Business-day arithmetic.

    Returns
    -------
    StageDurations
        One record per active stage plus the anchor: the first episode start
        of the first active stage (in workflow order) that has any episode.
        When no active stage was ever left, an issue currently sitting in an
        active stage counts that stay as a zero-day episode, so work in
        progress still has an anchor.
    """
    episodes = {stage: _closed_episodes(stage, transitions, created) for stage in workflow.active_stages}
    if transitions and not any(episodes.values()):
        current = transitions[-1].to_status
        if current in episodes:
            opened = truncate_to_day(transitions[-1].occurred_at)
            episodes[current] = [(opened, opened)]

    records: dict[StageName, StageDuration] = {}
    anchor: date | None = None
    for stage in workflow.active_stages:
        stage_episodes = episodes[stage]
        if not stage_episodes:
            records[stage] = StageDuration()
            continue
        if anchor is None:
            anchor = stage_episodes[0][0]
        passed = sum(calendar.business_days_between(start, end) for start, end in stage_episodes)
        records[stage] = StageDuration(did_happen=True, passed_business_days=passed)
    logger.debug("Active stage durations: %s (anchor %s)", records, anchor)
    return StageDurations(records=records, anchor=anchor)


def extract_inactive_dates(
    transitions: Sequence[StatusTransition],
    workflow: Workflow,
) -> StageEntryDates:
    """Record the first entry date of every inactive stage.

    A stage no transition enters but which the issue started in (the origin
    of its earliest transition) takes the date of that earliest transition.
    """
    dates: dict[StageName, date] = {}
    initial_status = transitions[0].from_status if transitions else None
    for stage in workflow.inactive_stages:
        first = next((item for item in transitions if item.to_status == stage), None)
        if first is None and stage == initial_status:
            first = transitions[0]
        if first is not None:
            dates[stage] = truncate_to_day(first.occurred_at)
    return StageEntryDates(dates=dates)
