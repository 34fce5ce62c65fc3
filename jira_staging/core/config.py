"""Central configuration, constants, and workflow defaults."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

# =============================================================================
# Jira Connection Settings
# =============================================================================
JIRA_DEFAULT_SERVER = "https://rubinobs.atlassian.net"
DEFAULT_PROJECT_KEY = "OBS"
DEFAULT_JQL = f"project = {DEFAULT_PROJECT_KEY} AND updated >= -30d ORDER BY created ASC"

# =============================================================================
# Workflow Configuration
# =============================================================================
# Stage order is both the display order and the simulation order.
DEFAULT_WORKFLOW_STAGES: Sequence[str] = (
    "Backlog",
    "To Do",
    "In Progress",
    "In Review",
    "Testing",
    "Done",
)

# Stages where business days spent inside matter more than the entry date
DEFAULT_ACTIVE_STATUSES: Sequence[str] = (
    "In Progress",
    "In Review",
    "Testing",
)

# Terminal stage: its presence selects backward simulation
DONE_STATUS = "Done"

# File read from the repository root when present
WORKFLOW_CONFIG_FILENAME = "workflow.yaml"

# =============================================================================
# Business Calendar
# =============================================================================
# numpy weekmask, Monday first
BUSINESS_WEEKMASK = "1111100"
DEFAULT_HOLIDAYS: Sequence[str] = ()

# Output format for every stage date
DATE_FORMAT = "%Y-%m-%d"

# =============================================================================
# Jira Fetch Settings
# =============================================================================
JIRA_FETCH_BASE_FIELDS = [
    "summary",
    "created",
    "status",
    "issuetype",
]

SEARCH_PAGE_SIZE = 100
SEARCH_CACHE_TTL_SECONDS = 300.0

# Search results embed at most this many changelog entries per issue;
# longer changelogs are re-fetched through the changelog endpoint.
CHANGELOG_PAGE_SIZE = 100

# Threads because jira client calls are I/O bound and synchronous
CHANGELOG_HYDRATION_MAX_WORKERS = 8
CHANGELOG_HYDRATION_MIN_PARALLEL = 4  # below this, stay sequential

# Leading columns of the staging-dates table; stage columns follow
STAGING_BASE_COLUMNS: Sequence[str] = (
    "key",
    "summary",
    "issuetype",
    "status",
)


@dataclass(slots=True)
class AppSettings:
    max_table_rows: int = 1000
    download_encoding: str = "utf-8"


SETTINGS = AppSettings()

# Set inside a raw issue's changelog when its full history could not be fetched
INCOMPLETE_CHANGELOG_FLAG = "incomplete"
