"""Usage: convert captured strings into typed row values."""

from __future__ import annotations

import logging
import re
from typing import Mapping

from invoice_engine.schemas.extraction import FieldValue
from invoice_engine.schemas.tenant import FieldType

logger = logging.getLogger(__name__)

_INTEGER_CLEAN_RE = re.compile(r"[^\d-]")
_REAL_CLEAN_RE = re.compile(r"[^\d\.-]")


def parse_value(raw: str | None, field_type: FieldType) -> FieldValue | None:
    """Parse ``raw`` as ``field_type``; unparseable input returns None instead of raising."""

    if raw is None:
        return None
    value_str = str(raw).strip()
    if not value_str:
        return None

    if field_type is FieldType.TEXT or field_type is FieldType.DATE:
        # dates stay as captured, no format normalization
        return value_str
    if field_type is FieldType.INTEGER:
        return _parse_integer(value_str)
    if field_type is FieldType.REAL:
        return _parse_real(value_str)
    raise ValueError(f"Unknown field type: {field_type}")


def _parse_integer(value: str) -> int | None:
    cleaned = _INTEGER_CLEAN_RE.sub("", value)
    if not cleaned:
        return None
    try:
        return int(cleaned)
    except ValueError:
        logger.debug("Failed to parse %r as integer", value)
        return None


def _parse_real(value: str) -> float | None:
    cleaned = _REAL_CLEAN_RE.sub("", value)
    if cleaned in {"", ".", "-", "-.", ".-"}:
        return None
    try:
        return float(cleaned)
    except ValueError:
        logger.debug("Failed to parse %r as real", value)
        return None


def apply_code_mapping(value: FieldValue, table: Mapping[str, str] | None) -> FieldValue:
    """Replace a coded value (e.g. a city code) by its canonical display name."""

    if not table or not isinstance(value, str):
        return value
    return table.get(value.strip().upper(), value)
