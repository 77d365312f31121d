"""Data schemas for the Safar application."""

from __future__ import annotations

import math
import re
from datetime import date, datetime, timedelta
from typing import Annotated, Any, Dict, Iterator, List, Literal, Mapping, Optional, Tuple

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PositiveInt,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)

from safar.errors import InputInvalid


BudgetLevel = Literal["low", "medium", "high"]
TravelMode = Literal["bus", "train", "flight", "mixed"]
MealType = Literal["breakfast", "lunch", "dinner", "snack"]
AccommodationType = Literal["hostel", "hotel", "homestay", "airbnb"]
MarkerType = Literal["attraction", "restaurant", "hotel", "transport"]

MEAL_TYPES: Tuple[str, ...] = ("breakfast", "lunch", "dinner", "snack")
ACCOMMODATION_TYPES: Tuple[str, ...] = ("hostel", "hotel", "homestay", "airbnb")
BUDGET_CATEGORIES: Tuple[str, ...] = ("travel", "accommodation", "food", "activities", "miscellaneous")

WRAPPER_KEYS: Tuple[str, ...] = ("itinerary", "trip", "data", "result")

_MONEY_NOISE = re.compile(r"(?i)(inr|rs\.?|₹|,|\s)")

# ``DayPlan`` has a field called ``date``.
_Date = date


def _coerce_date(value: object) -> Optional[date]:
    """Normalise loose LLM date representations to real dates."""

    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        candidate = value.strip()
        if not candidate:
            return None
        try:
            return date.fromisoformat(candidate.split("T")[0])
        except ValueError:
            return None
    return None


def _coerce_number(value: object) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        cleaned = _MONEY_NOISE.sub("", value)
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def _coerce_money(value: object) -> float:
    number = _coerce_number(value)
    if number is None or number < 0:
        return 0.0
    return number


def _coerce_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return ""


def _coerce_optional_text(value: object) -> Optional[str]:
    text = _coerce_text(value)
    return text or None


def _coerce_text_list(value: object) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if not isinstance(value, (list, tuple)):
        return []
    items: List[str] = []
    for item in value:
        text = _coerce_text(item)
        if text:
            items.append(text)
    return items


def _only_objects(value: object) -> object:
    if value is None:
        return []
    if isinstance(value, (Mapping, BaseModel)):
        return [value]
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, (Mapping, BaseModel))]


def _object_or_none(value: object) -> object:
    if isinstance(value, (Mapping, BaseModel)):
        return value
    return None


def _object_or_empty(value: object) -> object:
    if isinstance(value, (Mapping, BaseModel)):
        return value
    return {}


def _coerce_coordinates(value: object) -> Optional[Dict[str, float]]:
    """Return a clean ``{lat, lng}`` mapping or ``None`` when unusable."""

    if isinstance(value, Coordinates):
        return {"lat": value.lat, "lng": value.lng}
    if not isinstance(value, Mapping):
        return None
    lat = _coerce_number(value.get("lat", value.get("latitude")))
    lng = _coerce_number(value.get("lng", value.get("lon", value.get("longitude"))))
    if lat is None or lng is None:
        return None
    if not (-90.0 <= lat <= 90.0) or not (-180.0 <= lng <= 180.0):
        return None
    return {"lat": lat, "lng": lng}


def _choice(allowed: Tuple[str, ...], fallback: str):
    def _coerce(value: object) -> str:
        if isinstance(value, str) and value.strip().lower() in allowed:
            return value.strip().lower()
        return fallback

    return _coerce


def _as_mapping(value: object) -> Optional[Dict[str, Any]]:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    if isinstance(value, Mapping):
        return dict(value)
    return None


def _prefer_aliases(model: type[BaseModel], payload: Dict[str, Any]) -> Dict[str, Any]:
    """Rename python field names to their JSON aliases so repairs see one spelling."""

    for name, info in model.model_fields.items():
        alias = info.alias
        if alias and alias != name and name in payload and alias not in payload:
            payload[alias] = payload.pop(name)
    return payload


Text = Annotated[str, BeforeValidator(_coerce_text)]
OptionalText = Annotated[Optional[str], BeforeValidator(_coerce_optional_text)]
TextList = Annotated[List[str], BeforeValidator(_coerce_text_list)]
Money = Annotated[float, BeforeValidator(_coerce_money)]


class _Model(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class Coordinates(_Model):
    """A finite latitude/longitude pair."""

    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)

    model_config = ConfigDict(populate_by_name=True, frozen=True, allow_inf_nan=False)


MaybeCoordinates = Annotated[Optional[Coordinates], BeforeValidator(_coerce_coordinates)]


class TravelPreferences(_Model):
    """Validated trip preferences captured from the traveller."""

    destination: str
    starting_city: str = Field(alias="startingCity")
    start_date: date = Field(alias="startDate")
    end_date: date = Field(alias="endDate")
    budget_level: BudgetLevel = Field(alias="budgetLevel")
    interests: List[str]
    travel_mode: TravelMode = Field(alias="travelMode")

    model_config = ConfigDict(populate_by_name=True, frozen=True, str_strip_whitespace=True)

    @field_validator("budget_level", "travel_mode", mode="before")
    @classmethod
    def _lowercase_choice(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("destination", "starting_city")
    @classmethod
    def _require_text(cls, value: str) -> str:
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("interests", mode="before")
    @classmethod
    def _normalise_interests(cls, value: object) -> object:
        if isinstance(value, str):
            value = [part for part in re.split(r"[\n,]+", value)]
        if isinstance(value, (set, frozenset)):
            value = sorted(value)
        if not isinstance(value, (list, tuple)):
            return value
        interests: List[str] = []
        seen = set()
        for item in value:
            if not isinstance(item, str):
                continue
            cleaned = item.strip()
            if cleaned and cleaned.lower() not in seen:
                seen.add(cleaned.lower())
                interests.append(cleaned)
        return interests

    @field_validator("interests")
    @classmethod
    def _require_interests(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("pick at least one interest")
        return value

    @model_validator(mode="after")
    def _check_date_order(self) -> "TravelPreferences":
        if self.start_date > self.end_date:
            raise ValueError("startDate must not be after endDate")
        return self

    @property
    def trip_length_days(self) -> int:
        return (self.end_date - self.start_date).days + 1


def load_preferences(value: TravelPreferences | Mapping[str, Any]) -> TravelPreferences:
    """Return validated preferences or raise :class:`InputInvalid`."""

    if isinstance(value, TravelPreferences):
        return value
    try:
        return TravelPreferences.model_validate(value)
    except ValidationError as exc:
        raise InputInvalid(f"Invalid travel preferences: {exc}") from exc


class Activity(_Model):
    """A sightseeing or experience stop within a day."""

    time: Text = ""
    name: Text = ""
    description: Text = ""
    location: Text = ""
    cost: Money = 0.0
    duration: Text = ""
    coordinates: MaybeCoordinates = None


class Meal(_Model):
    type: Annotated[MealType, BeforeValidator(_choice(MEAL_TYPES, "snack"))] = "snack"
    name: Text = ""
    place: Text = ""
    estimated_cost: Money = Field(default=0.0, alias="estimatedCost")
    recommendation: OptionalText = None


class Accommodation(_Model):
    name: Text = ""
    type: Annotated[AccommodationType, BeforeValidator(_choice(ACCOMMODATION_TYPES, "hotel"))] = "hotel"
    cost: Money = 0.0
    location: Text = ""
    coordinates: MaybeCoordinates = None


class TravelRoute(_Model):
    from_: Text = Field(default="", alias="from")
    to: Text = ""
    mode: Text = ""
    duration: Text = ""
    estimated_cost: Money = Field(default=0.0, alias="estimatedCost")
    recommendation: Text = ""


class BudgetBreakdown(_Model):
    """Estimated trip spend per category; ``total`` is always the sum of the parts."""

    travel: Money = 0.0
    accommodation: Money = 0.0
    food: Money = 0.0
    activities: Money = 0.0
    miscellaneous: Money = 0.0
    total: float = 0.0

    @model_validator(mode="before")
    @classmethod
    def _recompute_total(cls, data: object) -> object:
        """Providers frequently return totals that disagree with their parts."""

        if not isinstance(data, Mapping):
            return data
        payload = dict(data)
        parts = [_coerce_money(payload.get(key)) for key in BUDGET_CATEGORIES]
        for key, amount in zip(BUDGET_CATEGORIES, parts):
            payload[key] = amount
        payload["total"] = round(sum(parts), 2)
        return payload


class DayPlan(_Model):
    """Plan for a single day of travel."""

    day: PositiveInt = 1
    date: Optional[_Date] = None
    activities: Annotated[List[Activity], BeforeValidator(_only_objects)] = Field(default_factory=list)
    meals: Annotated[List[Meal], BeforeValidator(_only_objects)] = Field(default_factory=list)
    accommodation: Annotated[Optional[Accommodation], BeforeValidator(_object_or_none)] = None
    tips: TextList = Field(default_factory=list)

    @field_validator("date", mode="before")
    @classmethod
    def _coerce_day_date(cls, value: object) -> object:
        return _coerce_date(value)

    @field_validator("day", mode="before")
    @classmethod
    def _coerce_day_number(cls, value: object) -> object:
        number = _coerce_number(value)
        if number is None or number < 1:
            return 1
        return int(number)

    def spend(self) -> float:
        """Sum of activity, meal and accommodation costs for the day."""

        total = sum(activity.cost for activity in self.activities)
        total += sum(meal.estimated_cost for meal in self.meals)
        if self.accommodation:
            total += self.accommodation.cost
        return total


def unwrap_payload(data: object) -> object:
    """Remove one enclosing wrapper object the provider may have added."""

    if not isinstance(data, Mapping):
        return data
    if "days" in data or "title" in data:
        return data
    if len(data) == 1:
        (nested,) = data.values()
        if isinstance(nested, Mapping):
            return nested
    for key in WRAPPER_KEYS:
        nested = data.get(key)
        if isinstance(nested, Mapping):
            return nested
    return data


def _day_number(entry: Mapping[str, Any]) -> Optional[int]:
    number = _coerce_number(entry.get("day"))
    if number is None or number < 1:
        return None
    return int(number)


def _repair_days(days: List[object], start: Optional[date]) -> List[Dict[str, Any]]:
    """Renumber days 1..N in order and backfill missing dates from ``start``."""

    numbered: List[Tuple[int, int, Dict[str, Any]]] = []
    for position, raw in enumerate(days, start=1):
        entry = _as_mapping(raw)
        if entry is None:
            continue
        number = _day_number(entry)
        numbered.append((number if number is not None else position, position, entry))
    numbered.sort(key=lambda item: (item[0], item[1]))

    repaired: List[Dict[str, Any]] = []
    for index, (_, _, entry) in enumerate(numbered, start=1):
        entry["day"] = index
        if _coerce_date(entry.get("date")) is None:
            entry["date"] = start + timedelta(days=index - 1) if start else None
        repaired.append(entry)
    return repaired


class Itinerary(_Model):
    """Structured multi-day trip plan."""

    title: str
    destination: str
    start_date: Optional[date] = Field(default=None, alias="startDate")
    end_date: Optional[date] = Field(default=None, alias="endDate")
    days: List[DayPlan]
    budget_breakdown: Annotated[BudgetBreakdown, BeforeValidator(_object_or_empty)] = Field(
        default_factory=BudgetBreakdown,
        alias="budgetBreakdown",
    )
    money_tips: TextList = Field(default_factory=list, alias="moneyTips")
    best_time_to_visit: Text = Field(default="", alias="bestTimeToVisit")
    travel_routes: Annotated[List[TravelRoute], BeforeValidator(_only_objects)] = Field(
        default_factory=list,
        alias="travelRoutes",
    )

    @model_validator(mode="before")
    @classmethod
    def _repair_llm_payload(cls, data: object, info: ValidationInfo) -> object:
        """Unwrap envelopes, inherit trip dates and renumber days."""

        data = unwrap_payload(data)
        if not isinstance(data, Mapping):
            return data

        payload = _prefer_aliases(cls, dict(data))
        context = info.context or {}
        preferences = context.get("preferences")

        start = _coerce_date(payload.get("startDate"))
        end = _coerce_date(payload.get("endDate"))
        # Missing day dates count from the requested start, not the provider's.
        first_day = start
        if isinstance(preferences, TravelPreferences):
            first_day = preferences.start_date
            start = start or preferences.start_date
            end = end or preferences.end_date
        payload["startDate"] = start
        payload["endDate"] = end

        days = payload.get("days")
        if isinstance(days, (list, tuple)):
            payload["days"] = _repair_days(list(days), first_day)
        return payload

    def activities(self) -> Iterator[Tuple[DayPlan, int, Activity]]:
        """Yield each activity with its day and position within that day."""

        for day in self.days:
            for index, activity in enumerate(day.activities):
                yield day, index, activity

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class MapMarker(_Model):
    id: str
    name: str
    type: MarkerType
    coordinates: Coordinates
    description: Optional[str] = None


__all__ = [
    "Accommodation",
    "Activity",
    "BudgetBreakdown",
    "Coordinates",
    "DayPlan",
    "Itinerary",
    "MapMarker",
    "Meal",
    "TravelPreferences",
    "TravelRoute",
    "load_preferences",
    "unwrap_payload",
]
