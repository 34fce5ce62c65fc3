"""StagingService: orchestrates fetching issues and evaluating their staging dates."""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any

import pandas as pd

from jira_staging.analytics.staging import build_staging_frame, get_staging_dates, is_changelog_incomplete

from .calendar import BusinessCalendar
from .config import (
    CHANGELOG_HYDRATION_MAX_WORKERS,
    CHANGELOG_HYDRATION_MIN_PARALLEL,
    INCOMPLETE_CHANGELOG_FLAG,
    JIRA_FETCH_BASE_FIELDS,
)
from .jira_client import JiraAPI
from .models import Workflow
from .workflow_config import load_workflow_settings

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int | None, int | None], None]


class StagingService:
    def __init__(
        self,
        api: JiraAPI,
        workflow: Workflow | None = None,
        calendar: BusinessCalendar | None = None,
    ):
        self.api = api
        if workflow is None or calendar is None:
            settings = load_workflow_settings()
            workflow = workflow or settings.workflow
            calendar = calendar or settings.calendar
        self.workflow = workflow
        self.calendar = calendar

    # ------------------ Fetch Methods ------------------
    def fetch_issues(self, jql: str, *, progress: ProgressCallback | None = None) -> list[dict[str, Any]]:
        if progress:
            progress("Querying issues", None, None)
        raw = self.api.search_issues(jql, fields=list(JIRA_FETCH_BASE_FIELDS), expand=["changelog"])
        self._inflate_truncated_changelogs(raw, progress=progress)
        return raw

    def fetch_and_evaluate(self, jql: str, *, progress: ProgressCallback | None = None) -> pd.DataFrame:
        raw = self.fetch_issues(jql, progress=progress)
        if progress:
            progress(f"Reconstructing stage dates for {len(raw)} issue(s)", None, None)
        return self.evaluate(raw)

    def evaluate(self, raw_issues: list[dict[str, Any]]) -> pd.DataFrame:
        return build_staging_frame(raw_issues, self.workflow, calendar=self.calendar)

    def issue_staging_dates(self, issue_key: str) -> list[str]:
        raw = self.api.fetch_issue_raw(issue_key)
        if self._inflate_truncated_changelogs([raw]):
            raise RuntimeError(f"Incomplete changelog for {issue_key}; staging dates would be wrong")
        return get_staging_dates(raw, self.workflow, calendar=self.calendar)

    # ------------------ Changelog hydration ------------------
    def _inflate_truncated_changelogs(
        self,
        raw_issues: list[dict[str, Any]],
        *,
        progress: ProgressCallback | None = None,
    ) -> list[str]:
        """Replace truncated embedded changelogs with the full history.

        Search results embed a single page of changelog entries but report the
        real size in ``changelog.total``. Only issues whose embedded page is
        shorter than that total are re-fetched. ``raw_issues`` is mutated in
        place; issues whose history could not be completed are flagged with
        ``changelog[INCOMPLETE_CHANGELOG_FLAG]`` and their keys returned.
        """
        work: list[dict[str, Any]] = []
        for issue in raw_issues:
            changelog = issue.get("changelog") or {}
            histories = changelog.get("histories") or []
            total = changelog.get("total")
            if isinstance(total, int) and total > len(histories):
                work.append(issue)
        if not work:
            return []

        label = "Loading complete status history"
        if progress:
            progress(label, 0, len(work))
        if len(work) < CHANGELOG_HYDRATION_MIN_PARALLEL:
            for idx, issue in enumerate(work, start=1):
                self._hydrate_single_issue(issue)
                if progress:
                    progress(label, idx, len(work))
        else:
            completed = 0
            with ThreadPoolExecutor(max_workers=CHANGELOG_HYDRATION_MAX_WORKERS) as pool:
                futures = {pool.submit(self._hydrate_single_issue, issue): issue for issue in work}
                for fut in as_completed(futures):
                    try:
                        fut.result()
                    except Exception as exc:
                        logger.warning("Changelog hydration task failed for %s: %s", futures[fut].get("key"), exc)
                        _mark_incomplete(futures[fut])
                    finally:
                        completed += 1
                        if progress:
                            progress(label, completed, len(work))

        failed = [str(issue.get("key")) for issue in work if is_changelog_incomplete(issue)]
        if failed:
            logger.warning("Incomplete changelog for %d issue(s): %s", len(failed), ", ".join(failed))
        return failed

    def _hydrate_single_issue(self, issue: dict[str, Any]) -> None:
        key = issue.get("key")
        changelog = issue.get("changelog") or {}
        existing = changelog.get("histories") or []
        total = changelog.get("total")
        if not key:
            _mark_incomplete(issue)
            return
        try:
            histories = self.api.fetch_changelog(key)
        except RuntimeError as exc:
            logger.warning("Failed to hydrate changelog of %s: %s", key, exc)
            _mark_incomplete(issue)
            return
        if len(histories) > len(existing):
            issue["changelog"] = {"histories": histories, "total": len(histories), "startAt": 0}
            logger.debug("Hydrated %s changelog: %s -> %s", key, len(existing), len(histories))
        if isinstance(total, int) and len(histories) < total:
            _mark_incomplete(issue)


def _mark_incomplete(issue: dict[str, Any]) -> None:
    changelog = issue.get("changelog")
    if not isinstance(changelog, dict):
        changelog = {}
        issue["changelog"] = changelog
    changelog[INCOMPLETE_CHANGELOG_FLAG] = True
