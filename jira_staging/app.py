"""Application entry point: page registry and router."""

from __future__ import annotations

import streamlit as st

PAGES = {}

PREFERRED_ORDER = [
    "Staging Dates",
    "Setup / Connection",
]


def register_page(label):
    def decorator(func):
        PAGES[label] = func
        return func

    return decorator


def main():
    st.sidebar.title("Jira Staging Dates")
    if not PAGES:
        st.write("No pages registered yet.")
        return
    ordered = [name for name in PREFERRED_ORDER if name in PAGES]
    ordered += sorted(name for name in PAGES if name not in PREFERRED_ORDER)
    # Without a connection the only useful page is setup
    if "Setup / Connection" in ordered and "staging_service" not in st.session_state:
        default = ordered.index("Setup / Connection")
    else:
        default = 0
    page = st.sidebar.selectbox("Page", ordered, index=default)
    PAGES[page]()


if __name__ == "__main__":
    main()
