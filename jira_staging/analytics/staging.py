"""Staging dates: when an issue entered (or is projected to enter) each stage."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import pandas as pd

from jira_staging.analytics.metrics.simulation import simulate_backward, simulate_forward
from jira_staging.analytics.metrics.stage_durations import (
    accumulate_active_durations,
    extract_inactive_dates,
)
from jira_staging.analytics.metrics.transitions import extract_status_transitions
from jira_staging.core.calendar import DEFAULT_CALENDAR, BusinessCalendar
from jira_staging.core.config import INCOMPLETE_CHANGELOG_FLAG, STAGING_BASE_COLUMNS
from jira_staging.core.exceptions import InvalidInputError
from jira_staging.core.mappers import map_issue
from jira_staging.core.models import IssueModel, Workflow

logger = logging.getLogger(__name__)

WorkflowLike = Workflow | Mapping[str, object] | Sequence[str]


def resolve_workflow(workflow: WorkflowLike, active_statuses: Iterable[str] | None = None) -> Workflow:
    if isinstance(workflow, Workflow):
        if active_statuses is None:
            return workflow
        return Workflow(stages=workflow.stages, active=frozenset(active_statuses), done=workflow.done)
    return Workflow.from_definition(workflow, active_statuses or ())


def get_staging_dates(
    issue: IssueModel | Mapping[str, Any],
    workflow: WorkflowLike,
    active_statuses: Iterable[str] | None = None,
    *,
    calendar: BusinessCalendar | None = None,
) -> list[str]:
    """Compute one date string per workflow stage for a single issue.

    Parameters
    ----------
    issue : IssueModel | Mapping
        Mapped issue or raw Jira issue JSON (with ``changelog`` expanded).
    workflow : Workflow | Mapping | Sequence
        Ordered stage names. Mappings contribute their keys in order.
    active_statuses : Iterable[str] | None
        Stages whose business-day duration is tracked. Overrides the active
        set of a ``Workflow`` when given.
    calendar : BusinessCalendar | None
        Business-day calendar; Monday to Friday without holidays by default.

    Returns
    -------
    list[str]
        ``YYYY-MM-DD`` or ``""`` per stage, aligned with workflow order.

    Raises
    ------
    InvalidInputError
        An active status is not a workflow stage, stage names repeat, or a
        timestamp cannot be parsed.
    """
    flow = resolve_workflow(workflow, active_statuses)
    model = issue if isinstance(issue, IssueModel) else map_issue(issue)
    calendar = calendar or DEFAULT_CALENDAR

    transitions = extract_status_transitions(model.histories)
    durations = accumulate_active_durations(transitions, flow, model.created, calendar)
    entry_dates = extract_inactive_dates(transitions, flow)

    if entry_dates.get(flow.done) is not None:
        logger.debug("%s: %d transitions, simulating back from %s", model.key, len(transitions), flow.done)
        return simulate_backward(flow, durations, entry_dates, calendar)
    logger.debug("%s: %d transitions, simulating forward from %s", model.key, len(transitions), durations.anchor)
    return simulate_forward(flow, durations, entry_dates, calendar)


def is_changelog_incomplete(raw: Mapping[str, Any]) -> bool:
    changelog = raw.get("changelog")
    return isinstance(changelog, Mapping) and bool(changelog.get(INCOMPLETE_CHANGELOG_FLAG))


def _named(node: Any) -> str | None:
    return node.get("name") if isinstance(node, Mapping) else None


def build_staging_frame(
    issues: Iterable[Mapping[str, Any]],
    workflow: Workflow,
    *,
    calendar: BusinessCalendar | None = None,
) -> pd.DataFrame:
    """Build a table with one row per issue and one column per workflow stage.

    Issues that break the input contract, or whose changelog could not be
    fetched completely, keep their row with empty stage columns and the reason
    in ``error``; the rest of the batch is unaffected.

    Returns
    -------
    pd.DataFrame
        Columns: key, summary, issuetype, status, one per stage, error.
    """
    columns = [*STAGING_BASE_COLUMNS, *workflow.stages, "error"]
    empty_dates = [""] * len(workflow.stages)
    records: list[dict[str, object]] = []
    for raw in issues:
        if not isinstance(raw, Mapping):
            exc = InvalidInputError(f"issue payload must be a mapping, got {type(raw).__name__}")
            logger.warning("Skipping staging dates: %s", exc)
            records.append({**dict(zip(workflow.stages, empty_dates)), "error": str(exc)})
            continue
        fields = raw.get("fields") if isinstance(raw.get("fields"), Mapping) else {}
        row: dict[str, object] = {
            "key": raw.get("key"),
            "summary": fields.get("summary"),
            "issuetype": _named(fields.get("issuetype")),
            "status": _named(fields.get("status")),
            "error": "",
        }
        if is_changelog_incomplete(raw):
            logger.warning("Skipping staging dates for %s: incomplete changelog", raw.get("key"))
            dates = empty_dates
            row["error"] = "Incomplete changelog: full status history could not be fetched"
        else:
            try:
                dates = get_staging_dates(raw, workflow, calendar=calendar)
            except InvalidInputError as exc:
                logger.warning("Skipping staging dates for %s: %s", raw.get("key"), exc)
                dates = empty_dates
                row["error"] = str(exc)
        row.update(zip(workflow.stages, dates))
        records.append(row)

    if not records:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame(records, columns=columns)
