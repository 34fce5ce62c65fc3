"""Convenience launcher for the Streamlit app.

Usage:
  streamlit run run_dashboard.py

Automatically imports every module in ``jira_staging/pages`` so each page
decorated with ``@register_page`` registers itself without manual edits here.
"""

import logging
from importlib import import_module
from pathlib import Path

import streamlit as st

from jira_staging.app import main

st.set_page_config(layout="wide")
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("jira_staging")


def _auto_init_staging_service():
    """Initialize the service from Streamlit secrets if available."""
    if "staging_service" in st.session_state:
        return
    from jira_staging.pages.setup import connect, jira_secrets

    server, email, token = jira_secrets()
    if not (server and email and token):
        st.sidebar.warning("Jira secrets not found. Please use the Setup page.")
        return
    try:
        connect(server, email, token)
        st.sidebar.success("Jira connection successful!")
    except Exception as e:
        logger.error("Jira connection from secrets failed: %s", e)
        st.sidebar.error(f"Jira connection failed: {e}")
        st.session_state.pop("staging_service", None)


PAGES_DIR = Path(__file__).parent / "jira_staging" / "pages"
for py in sorted(PAGES_DIR.glob("[!_]*.py")):
    mod_name = f"jira_staging.pages.{py.stem}"
    try:
        import_module(mod_name)
    except Exception as e:  # pragma: no cover - defensive
        logger.error("Failed importing page %s: %s", mod_name, e)

_auto_init_staging_service()

if __name__ == "__main__":
    main()
