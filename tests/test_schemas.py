"""Unit tests for schema helpers and validators."""

from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from safar.errors import InputInvalid
from safar.schemas import (
    BudgetBreakdown,
    Coordinates,
    DayPlan,
    Itinerary,
    MapMarker,
    TravelPreferences,
    load_preferences,
    unwrap_payload,
)


PREFERENCES = {
    "destination": " Goa ",
    "startingCity": "Mumbai",
    "startDate": "2025-01-01",
    "endDate": "2025-01-03",
    "budgetLevel": "LOW",
    "interests": ["Beaches", "beaches", " ", "food"],
    "travelMode": "Bus",
}


def test_preferences_are_normalised() -> None:
    preferences = TravelPreferences.model_validate(PREFERENCES)

    assert preferences.destination == "Goa"
    assert preferences.budget_level == "low"
    assert preferences.travel_mode == "bus"
    assert preferences.interests == ["Beaches", "food"]
    assert preferences.trip_length_days == 3


def test_preferences_accept_field_names() -> None:
    preferences = TravelPreferences(
        destination="Jaipur",
        starting_city="Delhi",
        start_date=date(2025, 3, 1),
        end_date=date(2025, 3, 1),
        budget_level="medium",
        interests="forts, food",
        travel_mode="train",
    )

    assert preferences.interests == ["forts", "food"]
    assert preferences.trip_length_days == 1


@pytest.mark.parametrize(
    "overrides",
    [
        {"destination": "  "},
        {"startDate": "2025-01-05"},
        {"budgetLevel": "luxury"},
        {"travelMode": "boat"},
        {"interests": []},
        {"endDate": "someday"},
    ],
)
def test_invalid_preferences_raise_input_invalid(overrides: dict) -> None:
    with pytest.raises(InputInvalid) as excinfo:
        load_preferences({**PREFERENCES, **overrides})

    assert excinfo.value.user_message


def test_load_preferences_returns_existing_instance() -> None:
    preferences = TravelPreferences.model_validate(PREFERENCES)

    assert load_preferences(preferences) is preferences


def test_coordinates_reject_out_of_range_values() -> None:
    with pytest.raises(ValidationError):
        Coordinates(lat=91, lng=0)
    with pytest.raises(ValidationError):
        Coordinates(lat=float("nan"), lng=0)


def test_budget_breakdown_total_tracks_parts() -> None:
    breakdown = BudgetBreakdown(travel=10.5, food="20", total=1)

    assert breakdown.total == 30.5
    assert breakdown.accommodation == 0


def test_day_spend_sums_costs() -> None:
    day = DayPlan.model_validate(
        {
            "activities": [{"name": "Fort", "cost": 200}, {"name": "Walk"}],
            "meals": [{"type": "lunch", "estimatedCost": "150"}],
            "accommodation": {"name": "Hostel", "type": "hostel", "cost": 600},
        }
    )

    assert day.spend() == 950


def test_unwrap_payload_leaves_itinerary_shaped_data_alone() -> None:
    payload = {"title": "Goa", "trip": {"title": "other"}}

    assert unwrap_payload(payload) is payload
    assert unwrap_payload(["not", "a", "mapping"]) == ["not", "a", "mapping"]


def test_unwrap_payload_prefers_known_wrapper_keys() -> None:
    inner = {"title": "Goa", "days": []}

    assert unwrap_payload({"status": "ok", "result": inner}) == inner


def test_itinerary_to_json_uses_wire_names() -> None:
    itinerary = Itinerary.model_validate(
        {
            "title": "Goa",
            "destination": "Goa",
            "days": [{"day": 1, "meals": [{"type": "lunch", "estimatedCost": 100}]}],
            "travelRoutes": [{"from": "Mumbai", "to": "Goa", "mode": "bus"}],
        }
    )

    data = itinerary.to_json()

    assert set(data) >= {"budgetBreakdown", "moneyTips", "bestTimeToVisit", "travelRoutes"}
    assert data["travelRoutes"][0]["from"] == "Mumbai"
    assert data["days"][0]["meals"][0]["estimatedCost"] == 100
    assert Itinerary.model_validate(data) == itinerary


def test_itinerary_activities_iterates_with_positions() -> None:
    itinerary = Itinerary.model_validate(
        {
            "title": "Goa",
            "destination": "Goa",
            "days": [
                {"activities": [{"name": "A"}, {"name": "B"}]},
                {"activities": [{"name": "C"}]},
            ],
        }
    )

    assert [(day.day, index, activity.name) for day, index, activity in itinerary.activities()] == [
        (1, 0, "A"),
        (1, 1, "B"),
        (2, 0, "C"),
    ]


def test_map_marker_requires_known_type() -> None:
    with pytest.raises(ValidationError):
        MapMarker(id="x", name="x", type="museum", coordinates={"lat": 1, "lng": 2})
