"""Jira API client wrapper (REST v3 enhanced search + changelog pagination)."""

from __future__ import annotations

import hashlib
import json
import time
from typing import Any

from jira import JIRA, JIRAError

from .config import CHANGELOG_PAGE_SIZE, SEARCH_CACHE_TTL_SECONDS, SEARCH_PAGE_SIZE


class JiraAPI:
    def __init__(self, server: str, email: str, token: str, cache_ttl: float = SEARCH_CACHE_TTL_SECONDS):
        self.server = server.rstrip("/")
        self.client = JIRA(
            basic_auth=(email, token), options={"server": self.server, "rest_api_version": "3"}
        )
        # {(hash): (timestamp, issues)}
        self._cache: dict[str, tuple[float, list]] = {}
        self._cache_ttl = cache_ttl

    def clear_cache(self) -> None:
        """Reset the in-memory search cache."""
        cache = getattr(self, "_cache", None)
        if isinstance(cache, dict):
            cache.clear()

    def _cache_key(self, jql: str, fields, expand, page_size: int) -> str:
        payload = {"jql": jql, "fields": fields, "expand": expand, "page_size": page_size}
        return hashlib.sha256(json.dumps(payload, sort_keys=True).encode()).hexdigest()

    def _get_json(self, url: str, params: dict[str, Any]) -> dict[str, Any]:
        session = getattr(self.client, "_session", None)
        if session is None:
            raise RuntimeError("JIRA session unavailable")
        resp = session.get(url, params=params)
        if resp.status_code >= 400:
            raise RuntimeError(f"Jira request failed {resp.status_code}: {resp.text[:200]}")
        return resp.json()

    def search_issues(
        self,
        jql: str,
        fields: list[str] | None = None,
        expand: list[str] | None = None,
        page_size: int = SEARCH_PAGE_SIZE,
    ) -> list[dict[str, Any]]:
        """Run a JQL search, following ``nextPageToken`` until the last page."""
        key = self._cache_key(jql, fields, expand, page_size)
        now = time.time()
        cached = self._cache.get(key)
        if cached and (now - cached[0]) < self._cache_ttl:
            return cached[1]
        url = f"{self.server}/rest/api/3/search/jql"
        params: dict[str, Any] = {"jql": jql, "maxResults": page_size}
        if fields:
            params["fields"] = ",".join(fields)
        if expand:
            params["expand"] = ",".join(expand)
        out: list[dict[str, Any]] = []
        token = None
        while True:
            qp = dict(params)
            if token:
                qp["nextPageToken"] = token
            data = self._get_json(url, qp)
            out.extend(data.get("issues", []))
            token = data.get("nextPageToken")
            if not token or data.get("isLast") is True:
                break
        self._cache[key] = (now, out)
        return out

    def fetch_changelog(self, issue_key: str, page_size: int = CHANGELOG_PAGE_SIZE) -> list[dict[str, Any]]:
        """Fetch every changelog entry of an issue (offset pagination)."""
        url = f"{self.server}/rest/api/3/issue/{issue_key}/changelog"
        histories: list[dict[str, Any]] = []
        start_at = 0
        while True:
            data = self._get_json(url, {"startAt": start_at, "maxResults": page_size})
            values = data.get("values") or []
            histories.extend(values)
            start_at += len(values)
            if not values or data.get("isLast") is True or start_at >= int(data.get("total") or 0):
                break
        return histories

    def fetch_issue_raw(self, issue_key: str) -> dict[str, Any]:
        try:
            issue = self.client.issue(issue_key, expand="changelog")
        except JIRAError as exc:  # pragma: no cover - network error path
            raise RuntimeError(f"Failed to fetch issue {issue_key}: {exc}") from exc
        if hasattr(issue, "raw"):
            return issue.raw
        if isinstance(issue, dict):
            return issue
        raise RuntimeError(f"Unexpected issue payload type for {issue_key}: {type(issue)!r}")
