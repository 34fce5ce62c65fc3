"""Stage-date simulation: fold business-day durations into per-stage dates.

Two strategies share one output shape. An issue that reached the terminal stage
is anchored on that known date and walked backward through its active stages;
an issue still in flight is anchored where active work started and walked
forward. Both are folds whose state is the running cursor date.
"""

from __future__ import annotations

from datetime import date
from functools import reduce

from jira_staging.core.calendar import BusinessCalendar
from jira_staging.core.config import DATE_FORMAT
from jira_staging.core.models import StageDurations, StageEntryDates, StageName, Workflow


def format_stage_date(value: date | None) -> str:
    return value.strftime(DATE_FORMAT) if value is not None else ""


def simulate_backward(
    workflow: Workflow,
    durations: StageDurations,
    entry_dates: StageEntryDates,
    calendar: BusinessCalendar,
) -> list[str]:
    """Dates for an issue that reached the terminal stage.

    Starting from the terminal date, each active stage (last to first) that
    actually happened starts ``passed_business_days`` before the stage after it.
    Stages that never happened are left empty and do not move the cursor.
    """
    done_date = entry_dates.get(workflow.done)
    if done_date is None:
        raise ValueError(f"backward simulation needs a {workflow.done!r} date")

    def step(state: tuple[date, dict[StageName, date]], stage: StageName):
        cursor, simulated = state
        record = durations.get(stage)
        if not record.did_happen:
            return state
        cursor = calendar.subtract_business_days(cursor, record.passed_business_days)
        return cursor, {**simulated, stage: cursor}

    _, simulated = reduce(step, reversed(workflow.active_stages), (done_date, {}))
    return [
        format_stage_date(simulated.get(stage) if workflow.is_active(stage) else entry_dates.get(stage))
        for stage in workflow.stages
    ]


def simulate_forward(
    workflow: Workflow,
    durations: StageDurations,
    entry_dates: StageEntryDates,
    calendar: BusinessCalendar,
) -> list[str]:
    """Dates for an issue that has not reached the terminal stage.

    Inactive stages report their recorded entry date. Active stages are laid
    out from the anchor date, each starting when the previous one that
    happened ran out of business days.
    """

    def step(state: tuple[date | None, list[date | None]], stage: StageName):
        cursor, emitted = state
        if not workflow.is_active(stage):
            return cursor, [*emitted, entry_dates.get(stage)]
        record = durations.get(stage)
        if not record.did_happen or cursor is None:
            return cursor, [*emitted, None]
        return calendar.add_business_days(cursor, record.passed_business_days), [*emitted, cursor]

    _, emitted = reduce(step, workflow.stages, (durations.anchor, []))
    return [format_stage_date(value) for value in emitted]
