from __future__ import annotations

import copy

import pytest

from safar.core.provider_stub import SAMPLE_ITINERARY
from safar.schemas import Itinerary, TravelPreferences
from safar.validation import validate_itinerary_data


GOA_PREFERENCES = {
    "destination": "Goa",
    "startingCity": "Mumbai",
    "startDate": "2025-01-01",
    "endDate": "2025-01-03",
    "budgetLevel": "low",
    "interests": ["beaches", "food"],
    "travelMode": "bus",
}


@pytest.fixture
def preferences() -> TravelPreferences:
    return TravelPreferences.model_validate(GOA_PREFERENCES)


@pytest.fixture
def itinerary(preferences: TravelPreferences) -> Itinerary:
    return validate_itinerary_data(copy.deepcopy(SAMPLE_ITINERARY), preferences=preferences)
