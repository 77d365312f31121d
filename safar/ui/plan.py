"""Preference form and generated itinerary view."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, Dict, Optional

import streamlit as st

from safar.config import get_settings
from safar.core.exporters import itinerary_to_pdf, pdf_filename
from safar.errors import PipelineError, describe_error
from safar.markers import budget_summary
from safar.prompts import BUDGET_BANDS
from safar.schemas import DayPlan, Itinerary, load_preferences
from safar.ui.map import render_map
from safar.workflows.trip_pipeline import PipelineResult, run_trip_pipeline

_LOGGER = logging.getLogger(__name__)

RESULT_KEY = "_pipeline_result"
_IN_FLIGHT_KEY = "_pipeline_in_flight"
_PIPELINE_ERROR_KEY = "_pipeline_error"

INTEREST_OPTIONS = ("nature", "beaches", "food", "shopping", "adventure", "temples", "photography")
TRAVEL_MODES = {
    "bus": "Bus: most affordable",
    "train": "Train: comfortable & scenic",
    "flight": "Flight: fastest option",
    "mixed": "Mixed: best combination",
}
BUDGET_LABELS = {"low": "Budget", "medium": "Standard", "high": "Comfort"}


def ensure_plan_state() -> None:
    st.session_state.setdefault(RESULT_KEY, None)
    st.session_state.setdefault(_IN_FLIGHT_KEY, False)
    st.session_state.setdefault(_PIPELINE_ERROR_KEY, None)


def _handle_submit(values: Dict[str, Any]) -> bool:
    if st.session_state.get(_IN_FLIGHT_KEY):
        st.info("An itinerary is already being generated.")
        return False

    try:
        preferences = load_preferences(values)
    except PipelineError as exc:
        _LOGGER.info("Rejected preferences: %s", exc)
        st.warning("Check your trip details: destination, starting city, dates and at least one interest.")
        return False

    st.session_state[_IN_FLIGHT_KEY] = True
    try:
        with st.spinner("Crafting your perfect itinerary…"):
            result = run_trip_pipeline(preferences)
    except PipelineError as exc:
        _LOGGER.warning("Trip pipeline failed: %s", exc)
        st.session_state[_PIPELINE_ERROR_KEY] = describe_error(exc)
        st.error(describe_error(exc))
        return False
    except Exception as exc:  # noqa: BLE001 - keep the app alive, log the details
        _LOGGER.exception("Trip pipeline failed unexpectedly")
        st.session_state[_PIPELINE_ERROR_KEY] = describe_error(exc)
        st.error(describe_error(exc))
        return False
    finally:
        st.session_state[_IN_FLIGHT_KEY] = False

    st.session_state[_PIPELINE_ERROR_KEY] = None
    st.session_state[RESULT_KEY] = result
    st.success("Itinerary ready! Open the Itinerary tab for details.")
    return True


def render_plan_tab(container) -> None:
    """Render the trip preference form inside the provided container."""

    today = date.today()
    with container:
        st.subheader("Plan your trip")
        with st.form("preferences"):
            destination = st.text_input("Where do you want to go?", placeholder="Goa")
            starting_city = st.text_input("Starting from", placeholder="Mumbai")
            col_start, col_end = st.columns(2)
            start_date = col_start.date_input("Start date", value=today + timedelta(days=7))
            end_date = col_end.date_input("End date", value=today + timedelta(days=9))
            budget_level = st.radio(
                "Budget",
                list(BUDGET_LABELS),
                index=1,
                horizontal=True,
                format_func=lambda level: f"{BUDGET_LABELS[level]} ({BUDGET_BANDS[level]})",
            )
            interests = st.multiselect(
                "Interests", list(INTEREST_OPTIONS), format_func=str.capitalize
            )
            travel_mode = st.radio(
                "Travel mode",
                list(TRAVEL_MODES),
                index=1,
                horizontal=True,
                format_func=TRAVEL_MODES.get,
            )
            submitted = st.form_submit_button(
                "Generate itinerary",
                disabled=bool(st.session_state.get(_IN_FLIGHT_KEY)),
            )

        if submitted:
            _handle_submit(
                {
                    "destination": destination,
                    "startingCity": starting_city,
                    "startDate": start_date,
                    "endDate": end_date,
                    "budgetLevel": budget_level,
                    "interests": interests,
                    "travelMode": travel_mode,
                }
            )
        elif st.session_state.get(_PIPELINE_ERROR_KEY):
            st.error(st.session_state[_PIPELINE_ERROR_KEY])


def _render_day(day: DayPlan) -> None:
    label = f"Day {day.day}"
    if day.date:
        label += f" · {day.date.strftime('%a %d %b')}"
    with st.expander(label, expanded=day.day == 1):
        for activity in day.activities:
            cost = f"₹{activity.cost:,.0f}" if activity.cost else "Free"
            st.markdown(f"**{activity.time} {activity.name}** · {activity.location} · {cost}")
            if activity.description:
                st.caption(activity.description)
        for meal in day.meals:
            st.markdown(f"🍽 {meal.type.capitalize()}: {meal.name} at {meal.place} (₹{meal.estimated_cost:,.0f})")
        if day.accommodation:
            stay = day.accommodation
            st.markdown(f"🛏 {stay.name} ({stay.type}) · {stay.location} · ₹{stay.cost:,.0f}")
        for tip in day.tips:
            st.caption(f"💡 {tip}")


def _render_budget(itinerary: Itinerary) -> None:
    summary = budget_summary(itinerary)
    st.markdown("#### Budget")
    columns = st.columns(3)
    for index, key in enumerate(("travel", "accommodation", "food", "activities", "miscellaneous", "total")):
        columns[index % 3].metric(key.capitalize(), f"₹{summary[key]:,.0f}")


def render_itinerary_tab(container, *, save_trip: Optional[Any] = None) -> None:
    """Render the most recent pipeline result."""

    result: Optional[PipelineResult] = st.session_state.get(RESULT_KEY)
    with container:
        if result is None:
            st.info("Generate an itinerary from the Plan tab to see it here.")
            return

        itinerary = result.itinerary
        st.subheader(itinerary.title)
        if itinerary.best_time_to_visit:
            st.caption(f"Best time to visit: {itinerary.best_time_to_visit}")

        for day in itinerary.days:
            _render_day(day)

        _render_budget(itinerary)

        if itinerary.travel_routes:
            st.markdown("#### Getting there")
            for route in itinerary.travel_routes:
                st.markdown(
                    f"{route.from_} → {route.to} by {route.mode} · {route.duration} · ₹{route.estimated_cost:,.0f}"
                )
                if route.recommendation:
                    st.caption(route.recommendation)

        if itinerary.money_tips:
            st.markdown("#### Money tips")
            for tip in itinerary.money_tips:
                st.markdown(f"- {tip}")

        st.markdown("#### Map")
        render_map(result.markers)

        col_pdf, col_save = st.columns(2)
        col_pdf.download_button(
            "Download PDF",
            data=itinerary_to_pdf(itinerary),
            file_name=pdf_filename(itinerary),
            mime="application/pdf",
        )
        if save_trip is not None and col_save.button("Save trip"):
            save_trip(result.preferences, itinerary, owner_id=get_settings().user_id)


__all__ = ["RESULT_KEY", "ensure_plan_state", "render_itinerary_tab", "render_plan_tab"]
