"""Builds the provider-agnostic generation request for an itinerary."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional, get_args

from pydantic import BaseModel

from safar.config import Settings
from safar.schemas import ACCOMMODATION_TYPES, MEAL_TYPES, TravelMode, TravelPreferences, load_preferences


PROMPT_VERSION = "itinerary.v1"

BUDGET_BANDS: Mapping[str, str] = {
    "low": "₹1,000-3,000/day",
    "medium": "₹3,000-7,000/day",
    "high": "₹7,000+/day",
}

# Never numeric: a copied placeholder must not validate as coordinates.
COORDINATES_HINT: Mapping[str, str] = {
    "lat": "latitude in decimal degrees",
    "lng": "longitude in decimal degrees",
}

SYSTEM_PROMPT = (
    "You are an expert travel planner specializing in budget-friendly student travel in India.\n"
    "Create detailed, practical travel itineraries that maximize experiences while minimizing costs.\n"
    "Always provide specific recommendations with estimated costs in INR (₹).\n"
    "Focus on student-friendly options like hostels, local food, and free attractions.\n"
    "Include exact location coordinates for mapping when possible.\n"
    "Respond with a single JSON object and nothing else: no prose, no markdown fences."
)


@dataclass(frozen=True)
class GenerationRequest:
    """Everything a provider needs to produce one itinerary."""

    system_prompt: str
    user_prompt: str
    temperature: float
    max_tokens: int
    force_json: bool = True
    prompt_version: str = PROMPT_VERSION
    nonce: Optional[str] = None


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    return value


def format_prompt_data(data: Any) -> str:
    """Render arbitrary python data for inclusion in an LLM prompt."""

    return json.dumps(data, indent=2, ensure_ascii=False, default=_json_default)


def itinerary_shape(preferences: TravelPreferences) -> Dict[str, Any]:
    """The exact JSON object the provider must return."""

    start = preferences.start_date.isoformat()
    return {
        "title": "Trip title",
        "destination": preferences.destination,
        "startDate": start,
        "endDate": preferences.end_date.isoformat(),
        "bestTimeToVisit": "Best months to visit",
        "days": [
            {
                "day": 1,
                "date": start,
                "activities": [
                    {
                        "time": "09:00",
                        "name": "Activity name",
                        "description": "What to do",
                        "location": "Place name",
                        "cost": 0,
                        "duration": "2 hours",
                        "coordinates": dict(COORDINATES_HINT),
                    }
                ],
                "meals": [
                    {
                        "type": " | ".join(MEAL_TYPES),
                        "name": "Meal recommendation",
                        "place": "Restaurant/cafe name",
                        "estimatedCost": 100,
                        "recommendation": "Try their special dish",
                    }
                ],
                "accommodation": {
                    "name": "Hostel/Hotel name",
                    "type": " | ".join(ACCOMMODATION_TYPES),
                    "cost": 500,
                    "location": "Area name",
                    "coordinates": dict(COORDINATES_HINT),
                },
                "tips": ["Local tip for the day"],
            }
        ],
        "budgetBreakdown": {
            "travel": 0,
            "accommodation": 0,
            "food": 0,
            "activities": 0,
            "miscellaneous": 0,
            "total": 0,
        },
        "moneyTips": ["Student money-saving tips"],
        "travelRoutes": [
            {
                "from": preferences.starting_city,
                "to": preferences.destination,
                "mode": preferences.travel_mode,
                "duration": "Duration",
                "estimatedCost": 0,
                "recommendation": "Best booking platform",
            }
        ],
    }


def build_user_prompt(preferences: TravelPreferences) -> str:
    days = preferences.trip_length_days
    return (
        "Create a detailed travel itinerary for a student trip:\n"
        "\n"
        "TRIP DETAILS:\n"
        f"- From: {preferences.starting_city}\n"
        f"- To: {preferences.destination}\n"
        f"- Dates: {preferences.start_date.isoformat()} to {preferences.end_date.isoformat()} "
        f"({days} day{'s' if days != 1 else ''})\n"
        f"- Budget Level: {preferences.budget_level} ({BUDGET_BANDS[preferences.budget_level]})\n"
        f"- Interests: {', '.join(preferences.interests)}\n"
        f"- Preferred Travel: {preferences.travel_mode}\n"
        "\n"
        "Respond with exactly one JSON object in the following structure:\n"
        f"{format_prompt_data(itinerary_shape(preferences))}\n"
        "\n"
        "Rules:\n"
        f"- Include exactly {days} entries in \"days\", numbered from 1, one per calendar date.\n"
        f"- Meal \"type\" must be one of: {', '.join(MEAL_TYPES)}.\n"
        f"- Accommodation \"type\" must be one of: {', '.join(ACCOMMODATION_TYPES)}.\n"
        f"- Route \"mode\" must be one of: {', '.join(get_args(TravelMode))}.\n"
        "- All costs are plain numbers in INR; budgetBreakdown.total is the sum of the other fields.\n"
        "- Use real latitude/longitude for coordinates, or omit the coordinates field.\n"
        f"- Include coordinates for major attractions in {preferences.destination}.\n"
        "- Output only the JSON object. Do not add explanations or markdown."
    )


def build_generation_request(
    preferences: TravelPreferences | Mapping[str, Any],
    *,
    settings: Optional[Settings] = None,
    nonce: Optional[str] = None,
) -> GenerationRequest:
    """Return the :class:`GenerationRequest` for ``preferences``.

    The result depends only on the preferences and the settings; ``nonce`` is
    appended on its own line and only when supplied, to defeat provider side
    caching without changing the instructions.
    """

    validated = load_preferences(preferences)
    settings = settings or Settings()
    user_prompt = build_user_prompt(validated)
    if nonce:
        user_prompt += f"\n\nRequest id: {nonce}"
    return GenerationRequest(
        system_prompt=SYSTEM_PROMPT,
        user_prompt=user_prompt,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
        force_json=True,
        prompt_version=PROMPT_VERSION,
        nonce=nonce,
    )


__all__ = [
    "BUDGET_BANDS",
    "GenerationRequest",
    "PROMPT_VERSION",
    "SYSTEM_PROMPT",
    "build_generation_request",
    "build_user_prompt",
    "format_prompt_data",
    "itinerary_shape",
]
