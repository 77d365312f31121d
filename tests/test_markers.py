"""Tests for map markers and budget views derived from an itinerary."""

from __future__ import annotations

import pytest

from safar.markers import DEFAULT_CENTER, budget_summary, build_map_markers, day_spend, marker_center
from safar.schemas import Itinerary


def test_one_day_markers() -> None:
    itinerary = Itinerary.model_validate(
        {
            "title": "Goa",
            "destination": "Goa",
            "days": [
                {
                    "day": 1,
                    "activities": [
                        {"name": "Breakfast walk"},
                        {"name": "Baga Beach", "coordinates": {"lat": 15.55, "lng": 73.75}},
                    ],
                    "accommodation": {
                        "name": "Zostel",
                        "location": "Anjuna",
                        "coordinates": {"lat": 15.57, "lng": 73.74},
                    },
                }
            ],
        }
    )

    markers = build_map_markers(itinerary)

    assert [(marker.id, marker.type, marker.name) for marker in markers] == [
        ("attraction-1-1", "attraction", "Baga Beach"),
        ("hotel-1", "hotel", "Zostel"),
    ]
    assert markers[1].description == "Anjuna"


def test_sample_itinerary_markers(itinerary: Itinerary) -> None:
    markers = build_map_markers(itinerary)

    assert [marker.id for marker in markers] == [
        "attraction-1-0",
        "attraction-1-1",
        "hotel-1",
        "attraction-2-0",
        "hotel-2",
    ]
    assert len({marker.id for marker in markers}) == len(markers)


def test_markers_are_deterministic(itinerary: Itinerary) -> None:
    assert build_map_markers(itinerary) == build_map_markers(itinerary)


def test_unnamed_entries_get_placeholder_names() -> None:
    itinerary = Itinerary.model_validate(
        {
            "title": "Goa",
            "destination": "Goa",
            "days": [
                {
                    "activities": [{"coordinates": {"lat": 1, "lng": 2}}],
                    "accommodation": {"coordinates": {"lat": 1, "lng": 2}},
                }
            ],
        }
    )

    assert [marker.name for marker in build_map_markers(itinerary)] == ["Activity", "Hotel"]


def test_marker_center_defaults_to_new_delhi() -> None:
    assert marker_center([]) == DEFAULT_CENTER


def test_marker_center_averages(itinerary: Itinerary) -> None:
    center = marker_center(build_map_markers(itinerary))

    assert 15.4 < center.lat < 15.6
    assert 73.7 < center.lng < 74.0


def test_budget_summary(itinerary: Itinerary) -> None:
    summary = budget_summary(itinerary)

    assert summary["total"] == 4550
    assert summary["travel"] == 1200
    assert summary["planned_daily_spend"] == pytest.approx(2090)


def test_day_spend(itinerary: Itinerary) -> None:
    assert day_spend(itinerary) == [(1, 1100.0), (2, 730.0), (3, 260.0)]
