"""Turn an extracted payload into a validated :class:`Itinerary`.

Structural problems are terminal: the payload is not JSON, or ``title``,
``destination`` or ``days`` is missing or of the wrong kind. Everything else
is repaired by the schema validators in :mod:`safar.schemas` (defaults for
optional fields, recomputed budget totals, inherited day dates, dropped
unusable coordinates).
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional

from pydantic import ValidationError

from safar.errors import ItineraryValidationError
from safar.schemas import Itinerary, TravelPreferences, unwrap_payload


_LOGGER = logging.getLogger(__name__)

_REQUIRED_FIELDS = (("title", str), ("destination", str), ("days", list))


def _check_required(data: object) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ItineraryValidationError.missing_field("title")
    for name, kind in _REQUIRED_FIELDS:
        value = data.get(name)
        if not isinstance(value, kind):
            raise ItineraryValidationError.missing_field(name)
    if not data["title"].strip():
        raise ItineraryValidationError.missing_field("title")
    return data


def validate_itinerary_data(
    data: object,
    *,
    preferences: Optional[TravelPreferences] = None,
) -> Itinerary:
    """Validate an already decoded payload, repairing optional fields."""

    payload = _check_required(unwrap_payload(data))
    context = {"preferences": preferences} if preferences is not None else None
    try:
        itinerary = Itinerary.model_validate(payload, context=context)
    except ValidationError as exc:
        errors = exc.errors()
        location = errors[0]["loc"] if errors else ()
        field = ".".join(str(part) for part in location) or "itinerary"
        _LOGGER.warning("Itinerary payload failed schema validation at %s", field)
        raise ItineraryValidationError.missing_field(field) from exc

    if preferences is not None and len(itinerary.days) != preferences.trip_length_days:
        _LOGGER.warning(
            "Itinerary for %s has %d days but the trip spans %d",
            itinerary.destination,
            len(itinerary.days),
            preferences.trip_length_days,
        )
    return itinerary


def parse_itinerary(payload: str, *, preferences: Optional[TravelPreferences] = None) -> Itinerary:
    """Parse extracted JSON text into an :class:`Itinerary`."""

    try:
        data = json.loads(payload)
    except (TypeError, ValueError) as exc:
        raise ItineraryValidationError.not_json(str(exc)) from exc
    return validate_itinerary_data(data, preferences=preferences)


__all__ = ["parse_itinerary", "validate_itinerary_data"]
