"""Persistence helpers for storing generated trips."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Mapping, MutableMapping, Optional, Protocol

from safar.config import Settings
from safar.core.supabase_api import SupabaseClient
from safar.errors import ItineraryValidationError, PersistenceFailure, TripNotFound
from safar.schemas import Itinerary, TravelPreferences, load_preferences
from safar.validation import validate_itinerary_data


_LOGGER = logging.getLogger(__name__)

TRIPS_TABLE = "trips"
_SUMMARY_COLUMNS = "id,user_id,title,destination,start_date,end_date,created_at"


@dataclass(frozen=True, slots=True)
class TripRecord:
    """A saved trip: the preference fields plus the itinerary they produced."""

    id: str
    user_id: str
    created_at: datetime
    title: str
    destination: str
    starting_city: str
    start_date: Optional[date]
    end_date: Optional[date]
    budget_level: str
    interests: List[str] = field(default_factory=list)
    travel_mode: str = "train"
    itinerary: Optional[Itinerary] = None

    def preferences(self) -> TravelPreferences:
        """Rebuild the originating preferences; raises ``InputInvalid`` for legacy rows."""

        return load_preferences(
            {
                "destination": self.destination,
                "startingCity": self.starting_city,
                "startDate": self.start_date,
                "endDate": self.end_date,
                "budgetLevel": self.budget_level,
                "interests": self.interests,
                "travelMode": self.travel_mode,
            }
        )


@dataclass(frozen=True, slots=True)
class TripSummary:
    id: str
    title: str
    destination: str
    start_date: Optional[date]
    end_date: Optional[date]
    created_at: Optional[datetime]


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.split("T")[0])
        except ValueError:
            return None
    return None


def _parse_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            cleaned = value.replace("Z", "+00:00")
            return datetime.fromisoformat(cleaned)
        except ValueError:
            return None
    return None


def build_trip_record(
    preferences: TravelPreferences,
    itinerary: Itinerary,
    *,
    owner_id: str,
    trip_id: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> TripRecord:
    """Combine preferences and a validated itinerary into a storable record."""

    return TripRecord(
        id=trip_id or str(uuid.uuid4()),
        user_id=owner_id,
        created_at=created_at or datetime.now(timezone.utc),
        title=itinerary.title,
        destination=itinerary.destination or preferences.destination,
        starting_city=preferences.starting_city,
        start_date=itinerary.start_date or preferences.start_date,
        end_date=itinerary.end_date or preferences.end_date,
        budget_level=preferences.budget_level,
        interests=list(preferences.interests),
        travel_mode=preferences.travel_mode,
        itinerary=itinerary,
    )


def trip_record_to_row(record: TripRecord) -> Dict[str, Any]:
    """Flatten a record into the ``trips`` table row shape."""

    return {
        "id": record.id,
        "user_id": record.user_id,
        "created_at": record.created_at.isoformat(),
        "title": record.title,
        "destination": record.destination,
        "starting_city": record.starting_city,
        "start_date": record.start_date.isoformat() if record.start_date else None,
        "end_date": record.end_date.isoformat() if record.end_date else None,
        "budget_level": record.budget_level,
        "interests": list(record.interests),
        "travel_mode": record.travel_mode,
        "itinerary": record.itinerary.to_json() if record.itinerary else None,
    }


def _load_itinerary(row: Mapping[str, Any]) -> Itinerary:
    payload = row.get("itinerary")
    if not isinstance(payload, Mapping):
        raise PersistenceFailure(f"Trip {row.get('id')} has no stored itinerary")
    data: Dict[str, Any] = dict(payload)
    # Rows saved before the itinerary carried its own dates keep them on the row.
    for key, column in (("startDate", "start_date"), ("endDate", "end_date")):
        if not data.get(key) and row.get(column):
            data[key] = row.get(column)
    try:
        return validate_itinerary_data(data)
    except ItineraryValidationError as exc:
        raise PersistenceFailure(f"Trip {row.get('id')} has an unreadable itinerary: {exc}") from exc


def trip_from_row(row: Mapping[str, Any]) -> TripRecord:
    """Rebuild a record, repairing itineraries saved by older schema versions."""

    itinerary = _load_itinerary(row)
    interests = row.get("interests")
    return TripRecord(
        id=str(row.get("id")),
        user_id=str(row.get("user_id") or ""),
        created_at=_parse_datetime(row.get("created_at")) or datetime.now(timezone.utc),
        title=str(row.get("title") or itinerary.title),
        destination=str(row.get("destination") or itinerary.destination),
        starting_city=str(row.get("starting_city") or ""),
        start_date=_parse_date(row.get("start_date")) or itinerary.start_date,
        end_date=_parse_date(row.get("end_date")) or itinerary.end_date,
        budget_level=str(row.get("budget_level") or "medium"),
        interests=[str(item) for item in interests] if isinstance(interests, list) else [],
        travel_mode=str(row.get("travel_mode") or "train"),
        itinerary=itinerary,
    )


def summary_from_row(row: Mapping[str, Any]) -> TripSummary:
    return TripSummary(
        id=str(row.get("id")),
        title=str(row.get("title") or row.get("destination") or "Trip"),
        destination=str(row.get("destination") or ""),
        start_date=_parse_date(row.get("start_date")),
        end_date=_parse_date(row.get("end_date")),
        created_at=_parse_datetime(row.get("created_at")),
    )


class TripStore(Protocol):
    def save(self, record: TripRecord) -> str:
        ...

    def list(self, owner_id: str) -> List[TripSummary]:
        ...

    def delete(self, trip_id: str) -> bool:
        ...

    def load(self, trip_id: str) -> TripRecord:
        ...


class InMemoryTripStore:
    """Fallback store used when Supabase is not configured."""

    def __init__(self) -> None:
        self._rows: MutableMapping[str, Dict[str, Any]] = {}

    def save(self, record: TripRecord) -> str:
        self._rows[record.id] = trip_record_to_row(record)
        return record.id

    def list(self, owner_id: str) -> List[TripSummary]:
        rows = [row for row in self._rows.values() if row.get("user_id") == owner_id]
        summaries = [summary_from_row(row) for row in rows]
        epoch = datetime.min.replace(tzinfo=timezone.utc)
        return sorted(summaries, key=lambda trip: trip.created_at or epoch, reverse=True)

    def delete(self, trip_id: str) -> bool:
        return self._rows.pop(trip_id, None) is not None

    def load(self, trip_id: str) -> TripRecord:
        row = self._rows.get(trip_id)
        if row is None:
            raise TripNotFound(f"Trip {trip_id} not found")
        return trip_from_row(row)


class SupabaseTripStore:
    """Supabase-backed implementation of trip persistence."""

    def __init__(self, client: SupabaseClient) -> None:
        self._client = client

    def save(self, record: TripRecord) -> str:
        rows = self._client.insert(TRIPS_TABLE, [trip_record_to_row(record)])
        if rows and rows[0].get("id"):
            return str(rows[0]["id"])
        return record.id

    def list(self, owner_id: str) -> List[TripSummary]:
        rows = self._client.select(
            TRIPS_TABLE,
            filters={"user_id": f"eq.{owner_id}"},
            select=_SUMMARY_COLUMNS,
            order="created_at.desc",
        )
        return [summary_from_row(row) for row in rows]

    def delete(self, trip_id: str) -> bool:
        removed = self._client.delete(TRIPS_TABLE, filters={"id": f"eq.{trip_id}"})
        return bool(removed)

    def load(self, trip_id: str) -> TripRecord:
        rows = self._client.select(TRIPS_TABLE, filters={"id": f"eq.{trip_id}"}, select="*", limit=1)
        if not rows:
            raise TripNotFound(f"Trip {trip_id} not found")
        return trip_from_row(rows[0])


def get_trip_store(settings: Settings) -> TripStore:
    """Supabase when fully configured, otherwise a process-local store."""

    client = SupabaseClient.from_settings(settings)
    if client is None:
        _LOGGER.info("Supabase is not configured; trips are kept in memory")
        return InMemoryTripStore()
    return SupabaseTripStore(client)


__all__ = [
    "InMemoryTripStore",
    "SupabaseTripStore",
    "TripRecord",
    "TripStore",
    "TripSummary",
    "build_trip_record",
    "get_trip_store",
    "summary_from_row",
    "trip_from_row",
    "trip_record_to_row",
]
