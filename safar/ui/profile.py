"""Saved trips tab backed by Supabase or an in-memory store."""

from __future__ import annotations

import logging
from typing import Optional

import streamlit as st

from safar.config import get_settings
from safar.core.exporters import itinerary_to_pdf, pdf_filename
from safar.core.trip_store import TripRecord, TripStore, get_trip_store
from safar.errors import PersistenceFailure, describe_error
from safar.schemas import Itinerary, TravelPreferences
from safar.workflows.trip_pipeline import save_generated_trip

_LOGGER = logging.getLogger(__name__)

PROFILE_STORE_KEY = "_profile_store"
PROFILE_STATUS_KEY = "_profile_status"


def _resolve_store() -> TripStore:
    store = st.session_state.get(PROFILE_STORE_KEY)
    if store is None:
        store = get_trip_store(get_settings())
        st.session_state[PROFILE_STORE_KEY] = store
    return store


def save_trip_to_profile(
    preferences: TravelPreferences, itinerary: Itinerary, *, owner_id: str
) -> Optional[TripRecord]:
    """Save the trip; failures are reported without discarding the itinerary."""

    try:
        record = save_generated_trip(_resolve_store(), preferences, itinerary, owner_id=owner_id)
    except PersistenceFailure as exc:
        st.error(describe_error(exc))
        return None
    st.success("Trip saved to your profile!")
    return record


def _render_saved_trip(store: TripStore, trip_id: str) -> None:
    try:
        record = store.load(trip_id)
    except PersistenceFailure as exc:
        _LOGGER.warning("Could not load trip %s: %s", trip_id, exc)
        st.error(describe_error(exc))
        return
    itinerary = record.itinerary
    if itinerary is None:
        return
    st.caption(
        f"From {record.starting_city or 'unknown'} · {record.budget_level} budget · {record.travel_mode} · "
        f"{', '.join(record.interests) or 'no interests recorded'}"
    )
    for day in itinerary.days:
        names = ", ".join(activity.name for activity in day.activities) or "Free day"
        st.markdown(f"**Day {day.day}:** {names}")
    st.download_button(
        "Download PDF",
        data=itinerary_to_pdf(itinerary),
        file_name=pdf_filename(itinerary),
        mime="application/pdf",
        key=f"pdf-{trip_id}",
    )


def render_profile_tab(container) -> None:
    """List saved trips, most recent first."""

    settings = get_settings()
    store = _resolve_store()
    with container:
        st.subheader("My trips")
        try:
            trips = store.list(settings.user_id)
        except PersistenceFailure as exc:
            _LOGGER.warning("Could not list trips: %s", exc)
            st.error(describe_error(exc))
            return

        if not trips:
            st.info("No saved trips yet. Generate an itinerary and save it.")
            return

        for trip in trips:
            dates = ""
            if trip.start_date and trip.end_date:
                dates = f" · {trip.start_date:%d %b} to {trip.end_date:%d %b %Y}"
            with st.expander(f"{trip.title}{dates}"):
                _render_saved_trip(store, trip.id)
                if st.button("Delete trip", key=f"delete-{trip.id}"):
                    try:
                        deleted = store.delete(trip.id)
                    except PersistenceFailure as exc:
                        st.error(describe_error(exc))
                    else:
                        st.session_state[PROFILE_STATUS_KEY] = "Trip deleted" if deleted else "Trip was already gone"
                        st.rerun()

        status = st.session_state.pop(PROFILE_STATUS_KEY, None)
        if status:
            st.toast(status)


__all__ = ["PROFILE_STORE_KEY", "render_profile_tab", "save_trip_to_profile"]
