"""Staging dates page.

Runs a JQL query, reconstructs each issue's stage dates, and shows them as a
table, a timeline, and a CSV download.
"""

from __future__ import annotations

import logging

import pandas as pd
import streamlit as st

from jira_staging.app import register_page
from jira_staging.core.config import DEFAULT_JQL, SETTINGS
from jira_staging.core.service import StagingService
from jira_staging.visual.charts import stage_timeline
from jira_staging.visual.progress import ProgressReporter
from jira_staging.visual.tables import prepare_staging_table

logger = logging.getLogger(__name__)


@register_page("Staging Dates")
def staging_page():
    st.title("Staging Dates")
    st.caption(
        "When each ticket entered every workflow stage. Active stages are laid out "
        "from business days spent in them."
    )
    service: StagingService | None = st.session_state.get("staging_service")
    if service is None:
        st.warning("Initialize connection on Setup page first.")
        return

    workflow = service.workflow
    st.caption(
        f"Active stages: {', '.join(workflow.active_stages) or 'none'} · terminal stage: {workflow.done}"
    )
    jql = st.text_input("JQL", value=st.session_state.get("staging_jql") or DEFAULT_JQL)

    if st.button("Compute Staging Dates", type="primary"):
        st.session_state["staging_jql"] = jql
        reporter = ProgressReporter("Fetching issues")
        try:
            df = service.fetch_and_evaluate(jql, progress=reporter.callback)
        except RuntimeError as exc:
            logger.error("Jira API error fetching staging data: %s", exc)
            reporter.error(f"Failed to fetch issues: {exc}")
            return
        st.session_state["staging_df"] = df
        reporter.complete(f"Computed stage dates for {len(df)} ticket(s).")

    df: pd.DataFrame = st.session_state.get("staging_df", pd.DataFrame())
    if df.empty:
        st.info("No staging dates computed yet.")
        return

    failed = int(df["error"].astype(bool).sum()) if "error" in df.columns else 0
    if failed:
        st.warning(f"{failed} ticket(s) had unusable data; see the error column.")

    server = st.session_state.get("jira_server", "")
    table, display_cols, cfg = prepare_staging_table(df, server, workflow.stages)
    st.dataframe(
        table[display_cols].head(SETTINGS.max_table_rows),
        hide_index=True,
        column_config=cfg,
    )
    csv = df.to_csv(index=False).encode(SETTINGS.download_encoding)
    st.download_button(
        "Download Staging CSV",
        data=csv,
        file_name="jira_staging_dates.csv",
        mime="text/csv",
    )

    chart, _events = stage_timeline(df.head(SETTINGS.max_table_rows), workflow.stages)
    st.markdown("---")
    if chart is None:
        st.info("No stage dates to plot.")
    else:
        st.altair_chart(chart, use_container_width=True)
