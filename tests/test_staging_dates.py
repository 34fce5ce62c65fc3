from collections import OrderedDict

import pytest

from jira_staging.analytics.staging import build_staging_frame, get_staging_dates
from jira_staging.core.calendar import BusinessCalendar
from jira_staging.core.exceptions import InvalidInputError
from jira_staging.core.mappers import map_issue
from jira_staging.core.models import Workflow

SIMPLE_STAGES = ["Backlog", "In Progress", "Done"]
FULL_STAGES = ["Backlog", "In Progress", "In Review", "Testing", "Done"]
FULL_ACTIVE = ["In Progress", "In Review", "Testing"]


def status_entry(created, from_status, to_status):
    return {"created": created, "items": [{"field": "status", "fromString": from_status, "toString": to_status}]}


def raw_issue(created, histories, key="OBS-1"):
    return {
        "key": key,
        "fields": {
            "created": created,
            "summary": f"Ticket {key}",
            "status": {"name": "In Progress"},
            "issuetype": {"name": "Task"},
        },
        "changelog": {"histories": histories},
    }


def _done_issue(key="OBS-1"):
    return raw_issue(
        "2024-01-01T09:00:00.000+0000",
        [
            status_entry("2024-01-08T15:00:00.000+0000", "In Progress", "Done"),
            status_entry("2024-01-02T10:00:00.000+0000", "Backlog", "In Progress"),
        ],
        key=key,
    )


def _testing_issue(done=True):
    histories = [
        status_entry("2024-01-08T10:00:00.000+0000", "Backlog", "In Progress"),
        status_entry("2024-01-10T10:00:00.000+0000", "In Progress", "Testing"),
    ]
    if done:
        histories.append(status_entry("2024-01-15T10:00:00.000+0000", "Testing", "Done"))
    return raw_issue("2024-01-05T09:00:00.000+0000", histories)


def test_done_issue_simulates_back_from_done():
    dates = get_staging_dates(_done_issue(), SIMPLE_STAGES, ["In Progress"])
    assert dates == ["2024-01-02", "2024-01-02", "2024-01-08"]


def test_in_flight_issue_simulates_forward_from_first_active_stage():
    issue = raw_issue(
        "2024-01-02T09:00:00.000+0000",
        [status_entry("2024-01-03T10:00:00.000+0000", "Backlog", "In Progress")],
    )
    assert get_staging_dates(issue, SIMPLE_STAGES, ["In Progress"]) == ["2024-01-03", "2024-01-03", ""]


def test_stage_without_episodes_is_empty_in_both_directions():
    done = get_staging_dates(_testing_issue(done=True), FULL_STAGES, FULL_ACTIVE)
    in_flight = get_staging_dates(_testing_issue(done=False), FULL_STAGES, FULL_ACTIVE)
    assert done == ["2024-01-08", "2024-01-08", "", "2024-01-10", "2024-01-15"]
    # Testing is not counted while In Progress has a closed episode anchoring the issue
    assert in_flight == ["2024-01-08", "2024-01-08", "", "", ""]


def test_inactive_dates_match_in_both_branches():
    done = get_staging_dates(_testing_issue(done=True), FULL_STAGES, FULL_ACTIVE)
    in_flight = get_staging_dates(_testing_issue(done=False), FULL_STAGES, FULL_ACTIVE)
    assert done[0] == in_flight[0] == "2024-01-08"


def test_output_is_deterministic_and_aligned():
    issue = _testing_issue()
    first = get_staging_dates(issue, FULL_STAGES, FULL_ACTIVE)
    second = get_staging_dates(issue, FULL_STAGES, FULL_ACTIVE)
    assert first == second
    assert len(first) == len(FULL_STAGES)


def test_no_history_gives_all_empty():
    issue = raw_issue("2024-01-02T09:00:00.000+0000", [])
    assert get_staging_dates(issue, FULL_STAGES, FULL_ACTIVE) == [""] * len(FULL_STAGES)


def test_issue_created_in_active_stage():
    issue = raw_issue(
        "2024-01-01T08:00:00.000+0000",
        [status_entry("2024-01-04T10:00:00.000+0000", "In Progress", "Done")],
    )
    assert get_staging_dates(issue, SIMPLE_STAGES, ["In Progress"]) == ["", "2024-01-01", "2024-01-04"]


def test_workflow_mapping_and_workflow_type_are_equivalent():
    stages = OrderedDict((name, {"wip": None}) for name in SIMPLE_STAGES)
    workflow = Workflow.from_definition(SIMPLE_STAGES, ["In Progress"])
    issue = _done_issue()
    assert get_staging_dates(issue, stages, ["In Progress"]) == get_staging_dates(issue, workflow)
    assert get_staging_dates(map_issue(issue), workflow) == get_staging_dates(issue, workflow)


def test_holiday_calendar_shifts_backward_dates():
    calendar = BusinessCalendar(holidays=["2024-01-03"])
    # Three business days in progress (Jan 2, 4, 5) still land on Jan 2
    assert get_staging_dates(_done_issue(), SIMPLE_STAGES, ["In Progress"], calendar=calendar) == [
        "2024-01-02",
        "2024-01-02",
        "2024-01-08",
    ]


def test_custom_terminal_stage():
    workflow = Workflow.from_definition(["Open", "Working", "Closed"], ["Working"], done="Closed")
    issue = raw_issue(
        "2024-01-01T09:00:00.000+0000",
        [
            status_entry("2024-01-02T10:00:00.000+0000", "Open", "Working"),
            status_entry("2024-01-05T10:00:00.000+0000", "Working", "Closed"),
        ],
    )
    assert get_staging_dates(issue, workflow) == ["2024-01-02", "2024-01-02", "2024-01-05"]


def test_unknown_active_status_is_rejected():
    with pytest.raises(InvalidInputError, match="Invalid input"):
        get_staging_dates(_done_issue(), SIMPLE_STAGES, ["In Progress", "Review"])


def test_duplicate_stage_is_rejected():
    with pytest.raises(InvalidInputError):
        get_staging_dates(_done_issue(), ["Backlog", "Done", "Done"], [])


def test_malformed_timestamp_is_rejected():
    issue = raw_issue(
        "2024-01-01T09:00:00.000+0000",
        [status_entry("yesterday-ish", "Backlog", "In Progress")],
    )
    with pytest.raises(InvalidInputError):
        get_staging_dates(issue, SIMPLE_STAGES, ["In Progress"])


def test_build_staging_frame_records_errors_per_issue():
    workflow = Workflow.from_definition(SIMPLE_STAGES, ["In Progress"])
    broken = raw_issue("not-a-date", [], key="OBS-2")
    df = build_staging_frame([_done_issue(), broken], workflow)
    assert list(df.columns) == ["key", "summary", "issuetype", "status", *SIMPLE_STAGES, "error"]
    good = df.set_index("key").loc["OBS-1"]
    assert good["In Progress"] == "2024-01-02"
    assert good["error"] == ""
    bad = df.set_index("key").loc["OBS-2"]
    assert bad["Done"] == ""
    assert "Invalid input" in bad["error"]


def test_build_staging_frame_empty():
    workflow = Workflow.from_definition(SIMPLE_STAGES, ["In Progress"])
    df = build_staging_frame([], workflow)
    assert df.empty
    assert "In Progress" in df.columns


def test_regressed_issue_keeps_observed_episode_date():
    stages = ["Backlog", "In Progress", "In Review", "Done"]
    issue = raw_issue(
        "2024-01-01T09:00:00.000+0000",
        [
            status_entry("2024-01-02T10:00:00.000+0000", "Backlog", "In Review"),
            status_entry("2024-01-03T10:00:00.000+0000", "In Review", "In Progress"),
        ],
    )
    assert get_staging_dates(issue, stages, ["In Progress", "In Review"]) == ["2024-01-02", "", "2024-01-02", ""]


def test_only_exact_status_field_counts():
    issue = raw_issue(
        "2024-01-01T09:00:00.000+0000",
        [
            {
                "created": "2024-01-02T10:00:00.000+0000",
                "items": [{"field": "Status", "fromString": "Backlog", "toString": "In Progress"}],
            }
        ],
    )
    assert get_staging_dates(issue, SIMPLE_STAGES, ["In Progress"]) == ["", "", ""]


def test_active_terminal_stage_is_rejected():
    with pytest.raises(InvalidInputError, match="cannot be active"):
        get_staging_dates(_done_issue(), SIMPLE_STAGES, ["In Progress", "Done"])


def test_renamed_terminal_stage_must_exist():
    with pytest.raises(InvalidInputError, match="not in workflow"):
        Workflow.from_definition(SIMPLE_STAGES, ["In Progress"], done="Closed")


def test_workflow_without_default_terminal_stage_simulates_forward():
    issue = _done_issue()
    assert get_staging_dates(issue, ["Backlog", "In Progress"], ["In Progress"]) == ["2024-01-02", "2024-01-02"]


def test_build_staging_frame_keeps_going_after_non_mapping_issue():
    workflow = Workflow.from_definition(SIMPLE_STAGES, ["In Progress"])
    df = build_staging_frame([["not", "an", "issue"], _done_issue()], workflow)
    assert len(df) == 2
    assert "Invalid input" in df.loc[0, "error"]
    assert list(df.loc[0, SIMPLE_STAGES]) == ["", "", ""]
    assert df.loc[1, "Done"] == "2024-01-08"


def test_build_staging_frame_flags_incomplete_changelog():
    workflow = Workflow.from_definition(SIMPLE_STAGES, ["In Progress"])
    issue = _done_issue()
    issue["changelog"]["incomplete"] = True
    df = build_staging_frame([issue], workflow)
    assert list(df.loc[0, SIMPLE_STAGES]) == ["", "", ""]
    assert df.loc[0, "error"].startswith("Incomplete changelog")
