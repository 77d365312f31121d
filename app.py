"""Streamlit entry point for the Safar application."""
from __future__ import annotations

import logging
from typing import Sequence

import streamlit as st
from dotenv import load_dotenv

from safar.ui import (
    ensure_plan_state,
    render_itinerary_tab,
    render_plan_tab,
    render_profile_tab,
    save_trip_to_profile,
)


_TAB_ORDER: Sequence[str] = ("Plan", "Itinerary", "My trips")


def configure() -> None:
    """Configure logging, Streamlit settings and load environment variables."""

    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    st.set_page_config(page_title="Safar", layout="wide")


def render() -> None:
    """Render the Safar multi-tab shell."""

    ensure_plan_state()

    st.title("🧭 Safar")
    st.caption("Budget-friendly student trips, planned in seconds.")

    tab_containers = st.tabs(list(_TAB_ORDER))
    tab_lookup = {label: container for label, container in zip(_TAB_ORDER, tab_containers)}

    render_plan_tab(tab_lookup["Plan"])
    render_itinerary_tab(tab_lookup["Itinerary"], save_trip=save_trip_to_profile)
    render_profile_tab(tab_lookup["My trips"])


if __name__ == "__main__":
    configure()
    render()
