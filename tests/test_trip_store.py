"""Tests for trip records and the trip stores."""

from __future__ import annotations

import json
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest
import requests

from safar.config import Settings
from safar.core.supabase_api import SupabaseClient, SupabaseError
from safar.core.trip_store import (
    InMemoryTripStore,
    SupabaseTripStore,
    build_trip_record,
    get_trip_store,
    trip_from_row,
    trip_record_to_row,
)
from safar.errors import PersistenceFailure, TripNotFound
from safar.schemas import Itinerary, TravelPreferences


NOW = datetime(2025, 1, 10, 12, 0, tzinfo=timezone.utc)


def test_record_keeps_preference_fields(preferences: TravelPreferences, itinerary: Itinerary) -> None:
    record = build_trip_record(preferences, itinerary, owner_id="user-1", created_at=NOW)

    assert record.user_id == "user-1"
    assert record.title == itinerary.title
    assert record.starting_city == "Mumbai"
    assert record.start_date == date(2025, 1, 1)
    assert record.interests == ["beaches", "food"]
    assert record.preferences() == preferences


def test_row_round_trip_preserves_itinerary(preferences: TravelPreferences, itinerary: Itinerary) -> None:
    record = build_trip_record(preferences, itinerary, owner_id="user-1", trip_id="t-1", created_at=NOW)

    row = trip_record_to_row(record)
    json.dumps(row)

    assert trip_from_row(row) == record


def test_in_memory_store_lists_newest_first(preferences: TravelPreferences, itinerary: Itinerary) -> None:
    store = InMemoryTripStore()
    older = build_trip_record(preferences, itinerary, owner_id="user-1", trip_id="old", created_at=NOW)
    newer = build_trip_record(
        preferences, itinerary, owner_id="user-1", trip_id="new", created_at=NOW + timedelta(hours=1)
    )
    other = build_trip_record(preferences, itinerary, owner_id="user-2", trip_id="other", created_at=NOW)

    for record in (older, newer, other):
        store.save(record)

    assert [trip.id for trip in store.list("user-1")] == ["new", "old"]
    assert [trip.id for trip in store.list("user-2")] == ["other"]
    assert store.list("nobody") == []


def test_in_memory_store_load_and_delete(preferences: TravelPreferences, itinerary: Itinerary) -> None:
    store = InMemoryTripStore()
    trip_id = store.save(build_trip_record(preferences, itinerary, owner_id="user-1", created_at=NOW))

    assert store.load(trip_id).itinerary == itinerary
    assert store.delete(trip_id) is True
    assert store.delete(trip_id) is False
    with pytest.raises(TripNotFound):
        store.load(trip_id)


def test_legacy_row_is_repaired() -> None:
    row = {
        "id": "legacy",
        "user_id": "user-1",
        "created_at": "2024-11-02T08:00:00Z",
        "title": "Old trip",
        "destination": "Jaipur",
        "start_date": "2024-11-10",
        "end_date": "2024-11-11",
        "itinerary": {
            "title": "Old trip",
            "destination": "Jaipur",
            "days": [{"day": 1}, {"day": 2, "activities": [{"name": "Amber Fort", "cost": "₹200"}]}],
            "budgetBreakdown": {"travel": 500, "total": 99},
        },
    }

    record = trip_from_row(row)

    assert record.budget_level == "medium"
    assert record.starting_city == ""
    assert record.interests == []
    assert record.travel_mode == "train"
    assert record.created_at == datetime(2024, 11, 2, 8, 0, tzinfo=timezone.utc)
    itinerary = record.itinerary
    assert itinerary is not None
    assert [day.date for day in itinerary.days] == [date(2024, 11, 10), date(2024, 11, 11)]
    assert itinerary.days[1].activities[0].cost == 200
    assert itinerary.budget_breakdown.total == 500


def test_row_without_itinerary_is_a_persistence_failure() -> None:
    with pytest.raises(PersistenceFailure):
        trip_from_row({"id": "broken", "itinerary": None})


def test_row_with_unreadable_itinerary_is_a_persistence_failure() -> None:
    with pytest.raises(PersistenceFailure):
        trip_from_row({"id": "broken", "itinerary": {"destination": "Goa"}})


def test_get_trip_store_falls_back_to_memory() -> None:
    assert isinstance(get_trip_store(Settings()), InMemoryTripStore)


def test_get_trip_store_uses_supabase_when_configured() -> None:
    settings = Settings(
        supabase_url="https://project.supabase.co",
        supabase_anon_key="anon",
        supabase_access_token="token",
    )

    assert isinstance(get_trip_store(settings), SupabaseTripStore)


class _FakeResponse:
    def __init__(self, status_code: int, payload: Any = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = "" if payload is None else json.dumps(payload)

    def json(self) -> Any:
        return self._payload


class _FakeSession:
    def __init__(self, responses: List[_FakeResponse]) -> None:
        self.headers: Dict[str, str] = {}
        self.calls: List[Dict[str, Any]] = []
        self._responses = list(responses)
        self.error: Optional[Exception] = None

    def request(self, method: str, url: str, **kwargs: Any) -> _FakeResponse:
        self.calls.append({"method": method, "url": url, **kwargs})
        if self.error is not None:
            raise self.error
        return self._responses.pop(0)


def _supabase_store(session: _FakeSession) -> SupabaseTripStore:
    client = SupabaseClient("https://project.supabase.co/", "anon", "token", http_session=session)
    return SupabaseTripStore(client)


def test_supabase_save_posts_row(preferences: TravelPreferences, itinerary: Itinerary) -> None:
    session = _FakeSession([_FakeResponse(201, [{"id": "server-id"}])])
    record = build_trip_record(preferences, itinerary, owner_id="user-1", trip_id="local-id", created_at=NOW)

    trip_id = _supabase_store(session).save(record)

    assert trip_id == "server-id"
    call = session.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == "https://project.supabase.co/rest/v1/trips"
    assert call["headers"]["Prefer"] == "return=representation"
    assert call["headers"]["Authorization"] == "Bearer token"
    assert call["json"][0]["itinerary"]["title"] == itinerary.title


def test_supabase_list_orders_by_creation(preferences: TravelPreferences) -> None:
    session = _FakeSession(
        [
            _FakeResponse(
                200,
                [
                    {"id": "b", "title": "Goa", "destination": "Goa", "created_at": "2025-01-02T00:00:00+00:00"},
                    {"id": "a", "title": "", "destination": "Pune", "start_date": "2025-01-01"},
                ],
            )
        ]
    )

    trips = _supabase_store(session).list("user-1")

    assert [trip.id for trip in trips] == ["b", "a"]
    assert trips[1].title == "Pune"
    assert trips[1].start_date == date(2025, 1, 1)
    params = session.calls[0]["params"]
    assert params["user_id"] == "eq.user-1"
    assert params["order"] == "created_at.desc"


def test_supabase_load_missing_trip() -> None:
    session = _FakeSession([_FakeResponse(200, [])])

    with pytest.raises(TripNotFound):
        _supabase_store(session).load("missing")


def test_supabase_delete_reports_whether_a_row_went_away() -> None:
    session = _FakeSession([_FakeResponse(200, [{"id": "t-1"}]), _FakeResponse(200, [])])
    store = _supabase_store(session)

    assert store.delete("t-1") is True
    assert store.delete("t-1") is False
    assert session.calls[0]["method"] == "DELETE"
    assert session.calls[0]["params"] == {"id": "eq.t-1"}


def test_supabase_http_error_is_persistence_failure() -> None:
    session = _FakeSession([_FakeResponse(500, {"message": "boom"})])

    with pytest.raises(PersistenceFailure):
        _supabase_store(session).list("user-1")


def test_supabase_network_error_is_persistence_failure() -> None:
    session = _FakeSession([])
    session.error = requests.ConnectionError("offline")

    with pytest.raises(SupabaseError):
        _supabase_store(session).list("user-1")


def test_supabase_delete_requires_filters() -> None:
    client = SupabaseClient("https://project.supabase.co", "anon", "token", http_session=_FakeSession([]))

    with pytest.raises(SupabaseError):
        client.delete("trips", filters={})
