"""Thin client for the Supabase PostgREST endpoint that stores trips."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

import requests

from safar.config import Settings
from safar.errors import PersistenceFailure


_LOGGER = logging.getLogger(__name__)

_REQUEST_TIMEOUT = 30
_RETURN_ROWS = {"Prefer": "return=representation"}


class SupabaseError(PersistenceFailure):
    """A PostgREST call failed or returned an error status."""


def _as_rows(result: Any) -> List[Dict[str, Any]]:
    if isinstance(result, list):
        return [row for row in result if isinstance(row, dict)]
    return []


class SupabaseClient:
    """Table level access authenticated with a fixed user access token."""

    def __init__(
        self,
        url: str,
        anon_key: str,
        access_token: str,
        *,
        http_session: Optional[requests.Session] = None,
    ) -> None:
        self._rest_root = f"{url.rstrip('/')}/rest/v1"
        self._anon_key = anon_key
        self._access_token = access_token
        self._session = http_session or requests.Session()

    @property
    def rest_root(self) -> str:
        return self._rest_root

    @classmethod
    def from_settings(cls, settings: Settings) -> Optional["SupabaseClient"]:
        """Return a client, or ``None`` unless URL, anon key and access token are all set."""

        if not settings.supabase_configured:
            return None
        return cls(
            settings.supabase_url or "",
            settings.supabase_anon_key or "",
            settings.supabase_access_token or "",
        )

    def _headers(self, extra: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        headers = {
            "apikey": self._anon_key,
            "Authorization": f"Bearer {self._access_token}",
            "Content-Type": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    def _send(
        self,
        method: str,
        table: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        body: Optional[Any] = None,
        prefer: Optional[Mapping[str, str]] = None,
    ) -> Any:
        url = f"{self._rest_root}/{table}"
        try:
            response = self._session.request(
                method,
                url,
                params=dict(params or {}),
                json=body,
                headers=self._headers(prefer),
                timeout=_REQUEST_TIMEOUT,
            )
        except requests.RequestException as exc:
            raise SupabaseError(f"{method} {table} failed: {exc.__class__.__name__}") from exc

        if response.status_code >= 400:
            _LOGGER.warning("Supabase %s %s returned %s", method, table, response.status_code)
            raise SupabaseError(f"{method} {table} returned {response.status_code}: {response.text[:200]}")
        if not response.text:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise SupabaseError(f"{method} {table} returned a non-JSON body") from exc

    def select(
        self,
        table: str,
        *,
        filters: Optional[Mapping[str, Any]] = None,
        select: str = "*",
        order: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {**(filters or {}), "select": select}
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = limit
        return _as_rows(self._send("GET", table, params=params))

    def insert(self, table: str, rows: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        """Insert ``rows`` and return them as stored."""

        body = [dict(row) for row in rows]
        if not body:
            return []
        return _as_rows(self._send("POST", table, body=body, prefer=_RETURN_ROWS))

    def delete(self, table: str, *, filters: Mapping[str, Any]) -> List[Dict[str, Any]]:
        """Delete matching rows and return the rows that were removed."""

        if not filters:
            raise SupabaseError(f"Refusing to delete from {table} without filters")
        return _as_rows(self._send("DELETE", table, params=filters, prefer=_RETURN_ROWS))


__all__ = ["SupabaseClient", "SupabaseError"]
