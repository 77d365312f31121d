"""Orchestrates the end-to-end flow for generating a trip itinerary."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional

from safar.config import Settings, get_settings
from safar.core.llm import GenerationProvider, get_provider, raise_for_outcome
from safar.core.trip_store import TripRecord, TripStore, build_trip_record
from safar.errors import ExtractionFailed, ItineraryValidationError, PersistenceFailure
from safar.extraction import extract_json_payload
from safar.markers import build_map_markers
from safar.prompts import build_generation_request
from safar.schemas import Itinerary, MapMarker, TravelPreferences, load_preferences
from safar.validation import parse_itinerary

_LOGGER = logging.getLogger(__name__)

# Failures worth another generation attempt when the caller opts in.
_RETRYABLE = (ExtractionFailed, ItineraryValidationError)


@dataclass(frozen=True)
class PipelineResult:
    """A validated itinerary and the markers derived from it."""

    preferences: TravelPreferences
    itinerary: Itinerary
    markers: List[MapMarker]
    attempts: int = 1


def _log_stage(stage: str, duration: float, prompt_version: str) -> None:
    _LOGGER.info(
        "%s stage completed in %.2fs [prompt_version=%s]",
        stage.capitalize(),
        duration,
        prompt_version,
    )


def _generate_once(
    preferences: TravelPreferences,
    provider: GenerationProvider,
    settings: Settings,
) -> Itinerary:
    start = time.perf_counter()
    request = build_generation_request(preferences, settings=settings)
    _log_stage("prompt", time.perf_counter() - start, request.prompt_version)

    start = time.perf_counter()
    outcome = provider.generate(request)
    if not outcome.ok:
        _LOGGER.warning(
            "Provider %s failed with %s (status=%s): %s",
            outcome.provider,
            outcome.kind.value,
            outcome.status_code,
            outcome.detail,
        )
    raw_text = raise_for_outcome(outcome)
    _log_stage("provider", time.perf_counter() - start, request.prompt_version)

    start = time.perf_counter()
    payload = extract_json_payload(raw_text)
    itinerary = parse_itinerary(payload, preferences=preferences)
    if not itinerary.days:
        raise ItineraryValidationError.missing_field("days")
    _log_stage("validation", time.perf_counter() - start, request.prompt_version)
    return itinerary


def run_trip_pipeline(
    preferences: TravelPreferences | Mapping[str, Any],
    *,
    provider: Optional[GenerationProvider] = None,
    settings: Optional[Settings] = None,
    max_attempts: int = 1,
) -> PipelineResult:
    """Generate, validate and enrich an itinerary for ``preferences``.

    Raises a :class:`~safar.errors.PipelineError` subclass on failure. With the
    default ``max_attempts=1`` nothing is retried; larger values re-run the
    whole request only when the answer could not be extracted or validated.
    Provider errors such as rate limiting are never retried here.
    """

    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    validated = load_preferences(preferences)
    settings = settings or get_settings()
    provider = provider or get_provider(settings)

    pipeline_start = time.perf_counter()
    _LOGGER.info("Starting trip pipeline for destination: %s via %s", validated.destination, provider.name)

    attempt = 1
    while True:
        try:
            itinerary = _generate_once(validated, provider, settings)
            break
        except _RETRYABLE as exc:
            if attempt >= max_attempts:
                raise
            _LOGGER.warning("Attempt %d of %d failed: %s", attempt, max_attempts, exc)
            attempt += 1

    markers = build_map_markers(itinerary)
    _LOGGER.info(
        "Trip pipeline completed in %.2fs with %d days and %d markers",
        time.perf_counter() - pipeline_start,
        len(itinerary.days),
        len(markers),
    )
    return PipelineResult(preferences=validated, itinerary=itinerary, markers=markers, attempts=attempt)


def save_generated_trip(
    store: TripStore,
    preferences: TravelPreferences,
    itinerary: Itinerary,
    *,
    owner_id: str,
) -> TripRecord:
    """Persist a generated itinerary; storage errors surface as ``PersistenceFailure``."""

    record = build_trip_record(preferences, itinerary, owner_id=owner_id)
    try:
        trip_id = store.save(record)
    except PersistenceFailure:
        _LOGGER.exception("Saving trip for %s failed", owner_id)
        raise
    except Exception as exc:  # noqa: BLE001 - store backends raise their own errors
        _LOGGER.exception("Saving trip for %s failed", owner_id)
        raise PersistenceFailure(f"Could not save trip: {exc}") from exc
    _LOGGER.info("Saved trip %s for %s", trip_id, owner_id)
    if trip_id != record.id:
        record = build_trip_record(
            preferences,
            itinerary,
            owner_id=owner_id,
            trip_id=trip_id,
            created_at=record.created_at,
        )
    return record


__all__ = ["PipelineResult", "run_trip_pipeline", "save_generated_trip"]
