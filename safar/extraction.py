"""Isolate the JSON payload inside a provider's free-form answer.

Providers wrap structured output inconsistently: sometimes bare, sometimes in
a fenced markdown block, sometimes with prose before and after. Rules, first
match wins:

1. the content of the first fenced block labelled ``json``;
2. otherwise the content of the first fenced block of any kind;
3. otherwise the whole text.

The result is trimmed. Nothing here parses JSON.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from safar.errors import ExtractionFailed


_LOGGER = logging.getLogger(__name__)

_JSON_FENCE = re.compile(r"```[ \t]*json\b(.*?)```", re.IGNORECASE | re.DOTALL)
_ANY_FENCE = re.compile(r"```(?:[\w+.-]*[ \t]*\n)?(.*?)```", re.DOTALL)
_UNTERMINATED_FENCE = re.compile(r"^```[\w+.-]*[ \t]*\n?")


def extract_json_payload(raw_text: Optional[str]) -> str:
    """Return the candidate JSON substring of ``raw_text``."""

    if not raw_text or not raw_text.strip():
        raise ExtractionFailed("Provider returned no text to extract an itinerary from")

    match = _JSON_FENCE.search(raw_text) or _ANY_FENCE.search(raw_text)
    if match:
        candidate = match.group(1)
    else:
        # Truncated answers can open a fence and never close it.
        candidate = _UNTERMINATED_FENCE.sub("", raw_text.strip(), count=1)

    candidate = candidate.strip()
    if not candidate:
        raise ExtractionFailed("Provider text contained an empty code block")
    _LOGGER.debug("Extracted %d characters of candidate JSON", len(candidate))
    return candidate


__all__ = ["extract_json_payload"]
