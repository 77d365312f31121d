"""Tests for the itinerary prompt builder."""

from __future__ import annotations

import json

import pytest

from safar.config import Settings
from safar.errors import InputInvalid
from safar.prompts import PROMPT_VERSION, SYSTEM_PROMPT, build_generation_request, itinerary_shape
from safar.schemas import TravelPreferences


PREFERENCES = {
    "destination": "Goa",
    "startingCity": "Mumbai",
    "startDate": "2025-01-01",
    "endDate": "2025-01-03",
    "budgetLevel": "low",
    "interests": ["beaches", "food"],
    "travelMode": "bus",
}


def test_request_is_deterministic_without_nonce() -> None:
    first = build_generation_request(PREFERENCES, settings=Settings())
    second = build_generation_request(PREFERENCES, settings=Settings())

    assert first == second
    assert first.system_prompt == SYSTEM_PROMPT
    assert first.prompt_version == PROMPT_VERSION
    assert first.force_json is True
    assert first.nonce is None


def test_request_uses_generation_settings() -> None:
    request = build_generation_request(PREFERENCES, settings=Settings(temperature=0.2, max_tokens=1500))

    assert request.temperature == 0.2
    assert request.max_tokens == 1500


def test_default_generation_settings() -> None:
    request = build_generation_request(PREFERENCES, settings=Settings())

    assert request.temperature == 0.7
    assert request.max_tokens == 4000


def test_user_prompt_carries_trip_details() -> None:
    prompt = build_generation_request(PREFERENCES, settings=Settings()).user_prompt

    assert "- From: Mumbai" in prompt
    assert "- To: Goa" in prompt
    assert "2025-01-01 to 2025-01-03 (3 days)" in prompt
    assert "- Budget Level: low (₹1,000-3,000/day)" in prompt
    assert "- Interests: beaches, food" in prompt
    assert "- Preferred Travel: bus" in prompt
    assert 'exactly 3 entries in "days"' in prompt
    assert "breakfast, lunch, dinner, snack" in prompt
    assert "hostel, hotel, homestay, airbnb" in prompt
    assert "bus, train, flight, mixed" in prompt


def test_nonce_is_appended_only_when_supplied() -> None:
    plain = build_generation_request(PREFERENCES, settings=Settings())
    salted = build_generation_request(PREFERENCES, settings=Settings(), nonce="abc123")

    assert salted.user_prompt == plain.user_prompt + "\n\nRequest id: abc123"
    assert salted.nonce == "abc123"
    assert salted.system_prompt == plain.system_prompt


def test_invalid_preferences_are_rejected_before_any_call() -> None:
    with pytest.raises(InputInvalid):
        build_generation_request({**PREFERENCES, "endDate": "2024-12-31"}, settings=Settings())


def test_itinerary_shape_lists_every_wire_field() -> None:
    preferences = TravelPreferences.model_validate(PREFERENCES)
    shape = itinerary_shape(preferences)

    assert set(shape) == {
        "title",
        "destination",
        "startDate",
        "endDate",
        "bestTimeToVisit",
        "days",
        "budgetBreakdown",
        "moneyTips",
        "travelRoutes",
    }
    day = shape["days"][0]
    assert set(day) == {"day", "date", "activities", "meals", "accommodation", "tips"}
    assert shape["travelRoutes"][0]["from"] == "Mumbai"
    json.dumps(shape)


def test_shape_is_embedded_as_json() -> None:
    prompt = build_generation_request(PREFERENCES, settings=Settings()).user_prompt

    assert '"budgetBreakdown": {' in prompt
    assert '"estimatedCost": 100' in prompt


def test_shape_coordinates_are_not_numeric_placeholders() -> None:
    preferences = TravelPreferences.model_validate(PREFERENCES)
    day = itinerary_shape(preferences)["days"][0]

    for coordinates in (day["activities"][0]["coordinates"], day["accommodation"]["coordinates"]):
        assert set(coordinates) == {"lat", "lng"}
        assert all(isinstance(value, str) for value in coordinates.values())

    prompt = build_generation_request(PREFERENCES, settings=Settings()).user_prompt
    assert '"lat": 0.0' not in prompt
