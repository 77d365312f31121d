"""Offline-friendly substitute for a generation provider."""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from safar.core.llm import ProviderOutcome
from safar.prompts import GenerationRequest


def _activity(
    time: str,
    name: str,
    location: str,
    cost: float,
    duration: str,
    coordinates: Optional[Dict[str, Any]],
    description: str,
) -> Dict[str, Any]:
    activity: Dict[str, Any] = {
        "time": time,
        "name": name,
        "description": description,
        "location": location,
        "cost": cost,
        "duration": duration,
    }
    if coordinates is not None:
        activity["coordinates"] = coordinates
    return activity


_HOSTEL = {
    "name": "Zostel Goa",
    "type": "hostel",
    "cost": 650,
    "location": "Anjuna",
    "coordinates": {"lat": 15.5736, "lng": 73.7407},
}

SAMPLE_ITINERARY: Dict[str, Any] = {
    "title": "Sun, Sand and Spice: Goa on a Student Budget",
    "destination": "Goa",
    "bestTimeToVisit": "November to February",
    "days": [
        {
            "day": 1,
            "activities": [
                _activity(
                    "10:00",
                    "Baga Beach",
                    "Baga",
                    0,
                    "3 hours",
                    {"lat": 15.5553, "lng": 73.7517},
                    "Settle in with a swim and a walk along the shore.",
                ),
                _activity(
                    "17:30",
                    "Sunset at Fort Aguada",
                    "Candolim",
                    50,
                    "2 hours",
                    {"lat": 15.4925, "lng": 73.7735},
                    "Seventeenth century Portuguese fort with sea views.",
                ),
            ],
            "meals": [
                {"type": "lunch", "name": "Fish thali", "place": "Britto's", "estimatedCost": 250},
                {"type": "dinner", "name": "Goan sausage pao", "place": "Anjuna stalls", "estimatedCost": 150},
            ],
            "accommodation": _HOSTEL,
            "tips": ["Rent a scooter for around ₹300/day instead of taking taxis."],
        },
        {
            "day": 2,
            "activities": [
                _activity(
                    "09:30",
                    "Basilica of Bom Jesus",
                    "Old Goa",
                    0,
                    "1.5 hours",
                    {"lat": 15.5009, "lng": 73.9116},
                    "UNESCO listed baroque church.",
                ),
                _activity(
                    "14:00",
                    "Fontainhas heritage walk",
                    "Panaji",
                    0,
                    "2 hours",
                    {"lat": "NaN", "lng": 73.8311},
                    "Colourful Latin quarter lanes.",
                ),
            ],
            "meals": [
                {"type": "breakfast", "name": "Poi and bhaji", "place": "Cafe Bhonsle", "estimatedCost": 80},
            ],
            "accommodation": _HOSTEL,
            "tips": ["Buses between Panaji and Old Goa cost under ₹30."],
        },
        {
            "day": 3,
            "activities": [
                _activity(
                    "08:00",
                    "Anjuna flea market",
                    "Anjuna",
                    200,
                    "3 hours",
                    None,
                    "Wednesday market for souvenirs; bargain hard.",
                ),
            ],
            "meals": [{"type": "snack", "name": "Bebinca", "place": "Market stall", "estimatedCost": 60}],
            "tips": [],
        },
    ],
    "budgetBreakdown": {
        "travel": 1200,
        "accommodation": 1300,
        "food": 1500,
        "activities": 250,
        "miscellaneous": 300,
        "total": 4000,
    },
    "moneyTips": ["Carry a refillable bottle; most hostels have free filtered water."],
    "travelRoutes": [
        {
            "from": "Mumbai",
            "to": "Goa",
            "mode": "bus",
            "duration": "12 hours",
            "estimatedCost": 900,
            "recommendation": "Book overnight sleeper buses on redBus",
        }
    ],
}


def sample_response_text(payload: Optional[Mapping[str, Any]] = None) -> str:
    """Provider style text: prose around a fenced JSON block."""

    body = json.dumps(payload if payload is not None else SAMPLE_ITINERARY, indent=2, ensure_ascii=False)
    return f"Here is your itinerary!\n\n```json\n{body}\n```\n\nHave a great trip."


@dataclass
class StubProvider:
    """Returns canned text or a fixed outcome without touching the network."""

    raw_text: Optional[str] = None
    outcome: Optional[ProviderOutcome] = None
    name: str = "stub"
    calls: List[GenerationRequest] = field(default_factory=list)

    def generate(self, request: GenerationRequest) -> ProviderOutcome:
        self.calls.append(request)
        if self.outcome is not None:
            return self.outcome
        text = self.raw_text if self.raw_text is not None else sample_response_text(copy.deepcopy(SAMPLE_ITINERARY))
        return ProviderOutcome.success(self.name, text)


__all__ = ["SAMPLE_ITINERARY", "StubProvider", "sample_response_text"]
