"""Reusable table helpers for Streamlit rendering."""

from __future__ import annotations

from collections.abc import Sequence

import pandas as pd
import streamlit as st

from jira_staging.core.config import STAGING_BASE_COLUMNS


def add_ticket_link(df: pd.DataFrame, server: str, key_col: str = "key", label: str = "Ticket"):
    if df.empty or key_col not in df.columns:
        return df, {}
    out = df.copy()
    base = server.rstrip("/")
    out[label] = out[key_col].astype(str).apply(lambda k: f"{base}/browse/{k}" if k and k != "nan" else "")
    cfg = {
        label: st.column_config.LinkColumn(
            label,
            display_text=r"browse/(.*)$",
            help="Open in Jira",
            width="medium",
        )
    }
    return out, cfg


def prepare_staging_table(
    df: pd.DataFrame,
    server: str,
    stages: Sequence[str],
) -> tuple[pd.DataFrame, list[str], dict[str, object]]:
    """Link tickets and order columns: ticket, base columns, stages, then errors if any."""
    if df.empty:
        return df, [], {}

    table, cfg = add_ticket_link(df, server)
    display_cols = ["Ticket"] if "Ticket" in table.columns else []
    display_cols += [c for c in STAGING_BASE_COLUMNS if c in table.columns and c != "key"]
    display_cols += [s for s in stages if s in table.columns]
    if "error" in table.columns and table["error"].astype(bool).any():
        display_cols.append("error")
    return table, display_cols, cfg
