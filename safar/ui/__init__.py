"""Safar Streamlit UI helpers."""

from __future__ import annotations

from .map import render_map
from .plan import RESULT_KEY, ensure_plan_state, render_itinerary_tab, render_plan_tab
from .profile import PROFILE_STORE_KEY, render_profile_tab, save_trip_to_profile

__all__ = [
    "PROFILE_STORE_KEY",
    "RESULT_KEY",
    "ensure_plan_state",
    "render_itinerary_tab",
    "render_map",
    "render_plan_tab",
    "render_profile_tab",
    "save_trip_to_profile",
]
