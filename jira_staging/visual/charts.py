"""Chart builders (Altair) for stage timelines."""

from __future__ import annotations

from collections.abc import Sequence

import altair as alt
import pandas as pd


def stage_events(df: pd.DataFrame, stages: Sequence[str]) -> pd.DataFrame:
    """Reshape a staging-dates table to one row per (issue, reached stage)."""
    stage_cols = [s for s in stages if s in df.columns]
    if df.empty or not stage_cols:
        return pd.DataFrame(columns=["key", "summary", "stage", "date", "stage_order"])
    base = df.copy()
    if "summary" not in base.columns:
        base["summary"] = ""
    events = base.melt(
        id_vars=["key", "summary"],
        value_vars=stage_cols,
        var_name="stage",
        value_name="date",
    )
    events["date"] = pd.to_datetime(events["date"], errors="coerce")
    events = events.dropna(subset=["date"])
    order = {stage: idx for idx, stage in enumerate(stages)}
    events["stage_order"] = events["stage"].map(order)
    return events.sort_values(["key", "stage_order"]).reset_index(drop=True)


def stage_timeline(df: pd.DataFrame, stages: Sequence[str]):
    events = stage_events(df, stages)
    if events.empty:
        return None, events

    lines = (
        alt.Chart(events)
        .mark_line(color="#9e9e9e", opacity=0.6)
        .encode(
            x=alt.X("date:T", title="Date"),
            y=alt.Y("key:N", title="Ticket", sort=None),
            detail="key:N",
            order="stage_order:Q",
        )
    )
    points = (
        alt.Chart(events)
        .mark_circle(opacity=0.85, size=80)
        .encode(
            x="date:T",
            y=alt.Y("key:N", sort=None),
            color=alt.Color("stage:N", title="Stage", sort=list(stages)),
            tooltip=[
                alt.Tooltip("key:N", title="Ticket"),
                alt.Tooltip("summary:N", title="Summary"),
                alt.Tooltip("stage:N", title="Stage"),
                alt.Tooltip("date:T", title="Date"),
            ],
        )
    )
    return (lines + points).properties(height=max(200, 22 * events["key"].nunique())), events
