"""Usage: run ordered regex rules against text and return the first captured value."""

from __future__ import annotations

import logging
import re
from functools import lru_cache
from typing import Sequence

from invoice_engine.services.rules.text_normalize import collapse_whitespace

logger = logging.getLogger(__name__)

FIELD_FLAGS = re.IGNORECASE | re.DOTALL | re.MULTILINE
LINE_FLAGS = re.IGNORECASE | re.MULTILINE


@lru_cache(maxsize=2048)
def compile_pattern(pattern: str | None, flags: int = FIELD_FLAGS) -> re.Pattern[str] | None:
    """Compile a configured rule; a malformed rule is logged once and yields None."""

    if pattern is None or not pattern.strip():
        return None
    try:
        return re.compile(pattern, flags)
    except re.error as exc:
        logger.warning("Invalid regex pattern skipped: %r (%s)", pattern, exc)
        return None


def match_first(
    text: str,
    patterns: Sequence[str],
    *,
    normalized_fallback: bool = True,
    label: str | None = None,
) -> str | None:
    """Return the first non-blank capture produced by ``patterns`` in list order.

    Each rule is tried against ``text`` as given and then against a
    whitespace-collapsed copy before the next rule is considered.
    """

    compiled = [regex for regex in (compile_pattern(p) for p in patterns) if regex is not None]
    if not compiled:
        return None

    candidates = [text]
    if normalized_fallback:
        normalized = collapse_whitespace(text)
        if normalized != text:
            candidates.append(normalized)

    for regex in compiled:
        for candidate in candidates:
            value = _capture(regex, candidate)
            if value:
                logger.debug("Pattern matched field=%s rule=%r value=%r", label, regex.pattern, value)
                return value
    return None


def matches_any(text: str, patterns: Sequence[str], *, flags: int = LINE_FLAGS) -> bool:
    for pattern in patterns:
        regex = compile_pattern(pattern, flags)
        if regex is not None and regex.search(text):
            return True
    return False


def _capture(regex: re.Pattern[str], text: str) -> str | None:
    match = regex.search(text)
    if not match or not regex.groups:
        return None
    raw = match.group(1)
    if raw is None:
        return None
    return clean_capture(raw) or None


def clean_capture(raw: str) -> str:
    """Drop thousands separators and squeeze whitespace out of a captured value."""

    return collapse_whitespace(raw.replace(",", ""))
