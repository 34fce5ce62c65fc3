"""Progress reporting for Streamlit pages, driven by service progress callbacks."""

from __future__ import annotations

import streamlit as st


class ProgressReporter:
    """Status box with a progress bar; ``callback`` plugs into StagingService."""

    def __init__(self, title: str):
        self._status = st.status(title, expanded=True)
        self._bar = self._status.progress(0.0)
        self._done = False

    def callback(self, message: str, current: int | None = None, total: int | None = None) -> None:
        if self._done:
            return
        self._status.write(message)
        if current is not None and total:
            self._bar.progress(min(max(current / total, 0.0), 1.0))

    def complete(self, message: str) -> None:
        if self._done:
            return
        self._bar.progress(1.0)
        self._status.update(label=message, state="complete", expanded=False)
        self._done = True

    def error(self, message: str) -> None:
        if self._done:
            return
        self._status.update(label=message, state="error", expanded=True)
        self._done = True
