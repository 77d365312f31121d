"""Process-wide settings read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, Optional


DEFAULT_PROVIDER = "gateway"
DEFAULT_TIMEOUT = 60.0
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 4000

_PROVIDER_DEFAULTS: Dict[str, Dict[str, str]] = {
    "gateway": {
        "base_url": "https://ai.gateway.lovable.dev/v1",
        "model": "google/gemini-3-flash-preview",
        "key_env": "LOVABLE_API_KEY",
    },
    "openai": {
        "base_url": "https://api.openai.com/v1",
        "model": "gpt-4o-mini",
        "key_env": "OPENAI_API_KEY",
    },
    "gemini": {
        "base_url": "https://generativelanguage.googleapis.com/v1beta",
        "model": "gemini-2.0-flash",
        "key_env": "GEMINI_API_KEY",
    },
    "stub": {
        "base_url": "",
        "model": "stub",
        "key_env": "",
    },
}


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number, got {raw!r}") from exc


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    """Immutable configuration for the provider and the trip store."""

    provider: str = DEFAULT_PROVIDER
    model: str = _PROVIDER_DEFAULTS[DEFAULT_PROVIDER]["model"]
    base_url: str = _PROVIDER_DEFAULTS[DEFAULT_PROVIDER]["base_url"]
    api_key: Optional[str] = field(default=None, repr=False)
    timeout: float = DEFAULT_TIMEOUT
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = field(default=None, repr=False)
    supabase_access_token: Optional[str] = field(default=None, repr=False)
    user_id: str = "local-user"

    def __post_init__(self) -> None:
        if self.provider not in _PROVIDER_DEFAULTS:
            known = ", ".join(sorted(_PROVIDER_DEFAULTS))
            raise RuntimeError(f"Unknown SAFAR_PROVIDER {self.provider!r}; expected one of {known}")
        if self.timeout <= 0:
            raise RuntimeError("SAFAR_TIMEOUT must be a positive number of seconds")

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key and self.supabase_access_token)

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from ``SAFAR_*`` and provider specific variables."""

        provider = (os.getenv("SAFAR_PROVIDER") or DEFAULT_PROVIDER).strip().lower()
        defaults = _PROVIDER_DEFAULTS.get(provider, _PROVIDER_DEFAULTS[DEFAULT_PROVIDER])
        api_key = os.getenv("SAFAR_API_KEY")
        if not api_key and defaults["key_env"]:
            api_key = os.getenv(defaults["key_env"])
        return cls(
            provider=provider,
            model=os.getenv("SAFAR_MODEL") or defaults["model"],
            base_url=os.getenv("SAFAR_BASE_URL") or defaults["base_url"],
            api_key=api_key or None,
            timeout=_float_env("SAFAR_TIMEOUT", DEFAULT_TIMEOUT),
            temperature=_float_env("SAFAR_TEMPERATURE", DEFAULT_TEMPERATURE),
            max_tokens=_int_env("SAFAR_MAX_TOKENS", DEFAULT_MAX_TOKENS),
            supabase_url=os.getenv("SUPABASE_URL") or None,
            supabase_anon_key=os.getenv("SUPABASE_ANON_KEY") or None,
            supabase_access_token=os.getenv("SUPABASE_ACCESS_TOKEN") or None,
            user_id=os.getenv("SAFAR_USER_ID") or "local-user",
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the settings loaded once for this process."""

    return Settings.from_env()


__all__ = ["Settings", "get_settings"]
