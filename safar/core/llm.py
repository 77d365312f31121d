"""Generation provider adapters.

Each provider performs exactly one HTTP call per request and reports the result
as a :class:`ProviderOutcome`. Providers never retry and never raise for
provider or transport failures; :func:`raise_for_outcome` turns an outcome into
the matching pipeline error for callers that prefer exceptions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, MutableMapping, Optional, Protocol

import httpx

from safar.config import Settings, get_settings
from safar.errors import MalformedEnvelope, QuotaExhausted, RateLimited, TransportError
from safar.prompts import GenerationRequest


_LOGGER = logging.getLogger(__name__)

_DETAIL_BODY_LIMIT = 200
_QUOTA_CODES = {
    "insufficient_quota",
    "quota_exceeded",
    "credits_exhausted",
    "billing_hard_limit_reached",
    "resource_exhausted",
}


class OutcomeKind(str, Enum):
    OK = "ok"
    RATE_LIMITED = "rate_limited"
    QUOTA_EXHAUSTED = "quota_exhausted"
    TRANSPORT_ERROR = "transport_error"
    MALFORMED_ENVELOPE = "malformed_envelope"


@dataclass(frozen=True)
class ProviderOutcome:
    """Result of a single provider call; exactly one kind per call."""

    kind: OutcomeKind
    provider: str
    raw_text: Optional[str] = None
    detail: Optional[str] = None
    status_code: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.OK

    @classmethod
    def success(cls, provider: str, raw_text: str, *, status_code: Optional[int] = None) -> "ProviderOutcome":
        return cls(OutcomeKind.OK, provider, raw_text=raw_text, status_code=status_code)

    @classmethod
    def rate_limited(cls, provider: str, *, status_code: Optional[int] = 429) -> "ProviderOutcome":
        return cls(OutcomeKind.RATE_LIMITED, provider, detail="rate limit exceeded", status_code=status_code)

    @classmethod
    def quota_exhausted(cls, provider: str, *, status_code: Optional[int] = 402) -> "ProviderOutcome":
        return cls(OutcomeKind.QUOTA_EXHAUSTED, provider, detail="quota exhausted", status_code=status_code)

    @classmethod
    def transport_error(
        cls, provider: str, detail: str, *, status_code: Optional[int] = None
    ) -> "ProviderOutcome":
        return cls(OutcomeKind.TRANSPORT_ERROR, provider, detail=detail, status_code=status_code)

    @classmethod
    def malformed_envelope(
        cls, provider: str, detail: str, *, status_code: Optional[int] = None
    ) -> "ProviderOutcome":
        return cls(OutcomeKind.MALFORMED_ENVELOPE, provider, detail=detail, status_code=status_code)


class GenerationProvider(Protocol):
    """Anything that can turn a :class:`GenerationRequest` into an outcome."""

    name: str

    def generate(self, request: GenerationRequest) -> ProviderOutcome:
        ...


def redact_secret(text: str, secret: Optional[str]) -> str:
    """Replace every occurrence of ``secret`` in ``text``."""

    if secret and secret in text:
        return text.replace(secret, "***")
    return text


def _truncate(text: str) -> str:
    text = text.strip()
    if len(text) <= _DETAIL_BODY_LIMIT:
        return text
    return text[:_DETAIL_BODY_LIMIT] + "…"


def _signals_quota(response: httpx.Response) -> bool:
    try:
        body = response.json()
    except ValueError:
        return False
    if not isinstance(body, Mapping):
        return False
    error = body.get("error")
    if isinstance(error, Mapping):
        for key in ("code", "type", "status"):
            value = error.get(key)
            if isinstance(value, str) and value.lower() in _QUOTA_CODES:
                return True
        message = error.get("message")
        if isinstance(message, str) and "exceeded your current quota" in message.lower():
            return True
    return False


def _clean_dict(payload: MutableMapping[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


def call_provider(
    *,
    provider: str,
    url: str,
    headers: Mapping[str, str],
    payload: Mapping[str, Any],
    timeout: float,
    extract_text: Callable[[Mapping[str, Any]], str],
    secret: Optional[str] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> ProviderOutcome:
    """POST ``payload`` once and classify whatever comes back."""

    try:
        with httpx.Client(timeout=timeout, transport=transport) as client:
            response = client.post(url, json=dict(payload), headers=dict(headers))
    except httpx.TimeoutException:
        return ProviderOutcome.transport_error(provider, f"{provider} did not respond within {timeout:g}s")
    except httpx.HTTPError as exc:
        detail = redact_secret(f"{provider} request failed: {exc.__class__.__name__}: {exc}", secret)
        return ProviderOutcome.transport_error(provider, detail)

    status = response.status_code
    if status == 402 or (400 <= status < 500 and _signals_quota(response)):
        return ProviderOutcome.quota_exhausted(provider, status_code=status)
    if status == 429:
        return ProviderOutcome.rate_limited(provider, status_code=status)
    if not response.is_success:
        detail = redact_secret(f"{provider} returned HTTP {status}: {_truncate(response.text)}", secret)
        return ProviderOutcome.transport_error(provider, detail, status_code=status)

    try:
        envelope = response.json()
    except ValueError:
        return ProviderOutcome.malformed_envelope(
            provider, f"{provider} returned a non-JSON body", status_code=status
        )
    if not isinstance(envelope, Mapping):
        return ProviderOutcome.malformed_envelope(
            provider, f"{provider} returned a JSON {type(envelope).__name__}", status_code=status
        )

    try:
        text = extract_text(envelope)
    except (AttributeError, KeyError, IndexError, TypeError, ValueError) as exc:
        detail = redact_secret(f"{provider} response is missing generated text: {exc}", secret)
        return ProviderOutcome.malformed_envelope(provider, detail, status_code=status)
    if not text or not text.strip():
        return ProviderOutcome.malformed_envelope(
            provider, f"{provider} returned empty generated text", status_code=status
        )
    return ProviderOutcome.success(provider, text, status_code=status)


def _join_text_parts(parts: Any) -> str:
    if isinstance(parts, str):
        return parts
    if not isinstance(parts, list):
        raise TypeError(f"unexpected content of type {type(parts).__name__}")
    texts: List[str] = []
    for part in parts:
        if isinstance(part, Mapping) and isinstance(part.get("text"), str):
            texts.append(part["text"])
    if not texts:
        raise ValueError("content has no text parts")
    return "".join(texts)


def _first_object(items: Any, what: str) -> Mapping[str, Any]:
    if not items or not isinstance(items, list):
        raise ValueError(f"response did not contain any {what}")
    first = items[0]
    if not isinstance(first, Mapping):
        raise ValueError(f"first entry of {what} is a {type(first).__name__}, not an object")
    return first


def _missing_key_outcome(provider: str) -> ProviderOutcome:
    _LOGGER.error("No API key configured for provider %s", provider)
    return ProviderOutcome.transport_error(provider, f"no API key configured for {provider}")


@dataclass
class ChatCompletionsProvider:
    """OpenAI compatible ``/chat/completions`` endpoint (AI gateway, OpenAI)."""

    name: str
    base_url: str
    model: str
    api_key: Optional[str] = None
    timeout: float = 60.0
    supports_json_mode: bool = True
    transport: Optional[httpx.BaseTransport] = None

    def __repr__(self) -> str:
        return f"ChatCompletionsProvider(name={self.name!r}, model={self.model!r})"

    def build_payload(self, request: GenerationRequest) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": request.system_prompt},
                {"role": "user", "content": request.user_prompt},
            ],
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
            "response_format": (
                {"type": "json_object"} if request.force_json and self.supports_json_mode else None
            ),
        }
        return _clean_dict(payload)

    @staticmethod
    def extract_content(response: Mapping[str, Any]) -> str:
        """Extract the assistant message content from a chat completion response."""

        message = _first_object(response.get("choices"), "choices").get("message") or {}
        if not isinstance(message, Mapping):
            raise ValueError("choice message is not an object")
        content = message.get("content")
        if content is None:
            raise ValueError("response did not contain content")
        return _join_text_parts(content)

    def generate(self, request: GenerationRequest) -> ProviderOutcome:
        if not self.api_key:
            return _missing_key_outcome(self.name)
        _LOGGER.debug(
            "Calling %s chat completion model %s [prompt_version=%s]",
            self.name,
            self.model,
            request.prompt_version,
        )
        return call_provider(
            provider=self.name,
            url=f"{self.base_url.rstrip('/')}/chat/completions",
            headers={"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"},
            payload=self.build_payload(request),
            timeout=self.timeout,
            extract_text=self.extract_content,
            secret=self.api_key,
            transport=self.transport,
        )


@dataclass
class GeminiProvider:
    """Google Generative Language ``generateContent`` endpoint."""

    base_url: str
    model: str
    api_key: Optional[str] = None
    timeout: float = 60.0
    transport: Optional[httpx.BaseTransport] = None
    name: str = "gemini"

    def __repr__(self) -> str:
        return f"GeminiProvider(model={self.model!r})"

    def build_payload(self, request: GenerationRequest) -> Dict[str, Any]:
        generation_config = _clean_dict(
            {
                "temperature": request.temperature,
                "maxOutputTokens": request.max_tokens,
                "responseMimeType": "application/json" if request.force_json else None,
            }
        )
        return {
            "systemInstruction": {"parts": [{"text": request.system_prompt}]},
            "contents": [{"role": "user", "parts": [{"text": request.user_prompt}]}],
            "generationConfig": generation_config,
        }

    @staticmethod
    def extract_content(response: Mapping[str, Any]) -> str:
        content = _first_object(response.get("candidates"), "candidates").get("content") or {}
        if not isinstance(content, Mapping):
            raise ValueError("candidate content is not an object")
        return _join_text_parts(content.get("parts"))

    def generate(self, request: GenerationRequest) -> ProviderOutcome:
        if not self.api_key:
            return _missing_key_outcome(self.name)
        _LOGGER.debug(
            "Calling gemini model %s [prompt_version=%s]", self.model, request.prompt_version
        )
        return call_provider(
            provider=self.name,
            url=f"{self.base_url.rstrip('/')}/models/{self.model}:generateContent",
            headers={"x-goog-api-key": self.api_key, "Content-Type": "application/json"},
            payload=self.build_payload(request),
            timeout=self.timeout,
            extract_text=self.extract_content,
            secret=self.api_key,
            transport=self.transport,
        )


def _gateway(settings: Settings) -> GenerationProvider:
    return ChatCompletionsProvider(
        name="gateway",
        base_url=settings.base_url,
        model=settings.model,
        api_key=settings.api_key,
        timeout=settings.timeout,
        supports_json_mode=False,
    )


def _openai(settings: Settings) -> GenerationProvider:
    return ChatCompletionsProvider(
        name="openai",
        base_url=settings.base_url,
        model=settings.model,
        api_key=settings.api_key,
        timeout=settings.timeout,
    )


def _gemini(settings: Settings) -> GenerationProvider:
    return GeminiProvider(
        base_url=settings.base_url,
        model=settings.model,
        api_key=settings.api_key,
        timeout=settings.timeout,
    )


def _stub(settings: Settings) -> GenerationProvider:
    from safar.core.provider_stub import StubProvider

    return StubProvider()


PROVIDER_FACTORIES: Dict[str, Callable[[Settings], GenerationProvider]] = {
    "gateway": _gateway,
    "openai": _openai,
    "gemini": _gemini,
    "stub": _stub,
}


def get_provider(settings: Optional[Settings] = None) -> GenerationProvider:
    """Return the provider selected by ``settings.provider``."""

    settings = settings or get_settings()
    try:
        factory = PROVIDER_FACTORIES[settings.provider]
    except KeyError as exc:
        raise RuntimeError(f"No provider registered under {settings.provider!r}") from exc
    return factory(settings)


def raise_for_outcome(outcome: ProviderOutcome) -> str:
    """Return the generated text or raise the pipeline error for ``outcome``."""

    if outcome.kind is OutcomeKind.OK and outcome.raw_text is not None:
        return outcome.raw_text
    if outcome.kind is OutcomeKind.RATE_LIMITED:
        raise RateLimited(f"{outcome.provider} rate limit exceeded")
    if outcome.kind is OutcomeKind.QUOTA_EXHAUSTED:
        raise QuotaExhausted(f"{outcome.provider} quota exhausted")
    if outcome.kind is OutcomeKind.MALFORMED_ENVELOPE:
        raise MalformedEnvelope(outcome.detail or f"{outcome.provider} returned a malformed envelope")
    raise TransportError(outcome.detail or f"{outcome.provider} request failed")


__all__ = [
    "ChatCompletionsProvider",
    "GeminiProvider",
    "GenerationProvider",
    "OutcomeKind",
    "PROVIDER_FACTORIES",
    "ProviderOutcome",
    "call_provider",
    "get_provider",
    "raise_for_outcome",
    "redact_secret",
]
