"""Error taxonomy shared by the generation pipeline and trip persistence."""

from __future__ import annotations

from enum import Enum
from typing import Optional


GENERATION_FAILED_MESSAGE = "We couldn't generate your itinerary. Please try again."
RATE_LIMITED_MESSAGE = "Too many requests right now. Please try again in a moment."
QUOTA_EXHAUSTED_MESSAGE = "The itinerary service is temporarily unavailable. Please try again later."
PERSISTENCE_FAILED_MESSAGE = "Your itinerary is still here, but saving it failed. Please try again."


class SafarError(RuntimeError):
    """Base class for every error raised by Safar."""

    user_message: str = GENERATION_FAILED_MESSAGE


class PipelineError(SafarError):
    """Terminal failure of a single itinerary generation run."""


class InputInvalid(PipelineError):
    """The travel preferences violate their invariants."""


class RateLimited(PipelineError):
    """The generation provider asked us to slow down."""

    user_message = RATE_LIMITED_MESSAGE


class QuotaExhausted(PipelineError):
    """The generation provider has no remaining credits for this service."""

    user_message = QUOTA_EXHAUSTED_MESSAGE


class TransportError(PipelineError):
    """Network failure, timeout or unexpected HTTP status from the provider."""


class MalformedEnvelope(PipelineError):
    """The provider answered 2xx but without the generated text we expect."""


class ExtractionFailed(PipelineError):
    """No candidate JSON payload could be isolated from the provider text."""


class ValidationKind(str, Enum):
    NOT_JSON = "not_json"
    MISSING_FIELD = "missing_field"


class ItineraryValidationError(PipelineError):
    """The extracted payload cannot be turned into an itinerary."""

    def __init__(self, kind: ValidationKind, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.field = field

    @classmethod
    def not_json(cls, detail: str) -> "ItineraryValidationError":
        return cls(ValidationKind.NOT_JSON, f"Payload is not valid JSON: {detail}")

    @classmethod
    def missing_field(cls, field: str) -> "ItineraryValidationError":
        return cls(
            ValidationKind.MISSING_FIELD,
            f"Itinerary is missing required field '{field}'",
            field=field,
        )


class PersistenceFailure(SafarError):
    """Saving, listing, loading or deleting a trip record failed."""

    user_message = PERSISTENCE_FAILED_MESSAGE


class TripNotFound(PersistenceFailure):
    """The requested trip record does not exist."""

    user_message = "That trip could not be found. It may have been deleted."


def describe_error(exc: BaseException) -> str:
    """Return the message to show travellers for ``exc``."""

    if isinstance(exc, SafarError):
        return exc.user_message
    return GENERATION_FAILED_MESSAGE


__all__ = [
    "ExtractionFailed",
    "InputInvalid",
    "ItineraryValidationError",
    "MalformedEnvelope",
    "PersistenceFailure",
    "PipelineError",
    "QuotaExhausted",
    "RateLimited",
    "SafarError",
    "TransportError",
    "TripNotFound",
    "ValidationKind",
    "describe_error",
]
