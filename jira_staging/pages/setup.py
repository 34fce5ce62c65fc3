"""Connection setup page: collect Jira credentials and initialize StagingService."""

from __future__ import annotations

import logging

import streamlit as st

from jira_staging.app import register_page
from jira_staging.core.config import JIRA_DEFAULT_SERVER, SEARCH_CACHE_TTL_SECONDS
from jira_staging.core.exceptions import InvalidInputError
from jira_staging.core.jira_client import JiraAPI
from jira_staging.core.service import StagingService

logger = logging.getLogger(__name__)


def jira_secrets() -> tuple[str | None, str | None, str | None]:
    """Read credentials from a ``[jira]`` secrets section, falling back to top-level keys."""
    section = st.secrets.get("jira", {})
    server = section.get("JIRA_SERVER") or st.secrets.get("JIRA_SERVER")
    email = section.get("JIRA_EMAIL") or st.secrets.get("JIRA_EMAIL")
    token = (
        section.get("JIRA_API_TOKEN")
        or st.secrets.get("JIRA_API_TOKEN")
        or section.get("JIRA_TOKEN")
        or st.secrets.get("JIRA_TOKEN")
    )
    return server, email, token


def connect(server: str, email: str, token: str, cache_ttl: float = SEARCH_CACHE_TTL_SECONDS) -> StagingService:
    service = StagingService(JiraAPI(server, email, token, cache_ttl=cache_ttl))
    st.session_state["jira_server"] = server
    st.session_state["jira_email"] = email
    st.session_state["staging_service"] = service
    return service


@register_page("Setup / Connection")
def setup_page():
    st.title("Jira Connection Setup")
    st.caption("Enter credentials (use secrets manager in production).")

    secret_server, secret_email, secret_token = jira_secrets()
    server = st.text_input(
        "Jira Server URL",
        value=st.session_state.get("jira_server") or secret_server or JIRA_DEFAULT_SERVER,
    )
    email = st.text_input(
        "Email / Username",
        value=st.session_state.get("jira_email") or secret_email or "",
    )
    token = st.text_input("API Token", type="password", value=secret_token or "")
    ttl = st.number_input(
        "Search cache TTL (seconds)",
        min_value=60,
        max_value=3600,
        value=int(SEARCH_CACHE_TTL_SECONDS),
    )

    if st.button("Initialize Connection", type="primary"):
        if not (server and email and token):
            st.error("All fields required.")
            return
        try:
            connect(server, email, token, cache_ttl=float(ttl))
            st.success("Connection initialized.")
        except InvalidInputError as exc:
            logger.error("Workflow configuration rejected: %s", exc)
            st.error(f"Workflow configuration is invalid: {exc}")
        except Exception as exc:  # pragma: no cover
            logger.error("Failed to initialize Jira client: %s", exc)
            st.error(f"Failed to initialize Jira client: {exc}")

    service: StagingService | None = st.session_state.get("staging_service")
    if service is not None:
        st.info(f"Connected. Workflow: {' → '.join(service.workflow.stages)}")
