"""Usage: evaluate a block's field definitions against one span of text."""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

from invoice_engine.schemas.extraction import ExtractedRow, FieldValue
from invoice_engine.schemas.tenant import FieldDefinition
from invoice_engine.services.rules.pattern_matcher import match_first
from invoice_engine.services.rules.value_parser import apply_code_mapping, parse_value

logger = logging.getLogger(__name__)

CodeTables = Mapping[str, Mapping[str, str]]


def extract_field(
    text: str,
    field_def: FieldDefinition,
    code_tables: CodeTables | None = None,
) -> FieldValue | None:
    raw = match_first(text, field_def.patterns, label=field_def.field_name)
    if raw is None:
        return None
    parsed = parse_value(raw, field_def.field_type)
    if parsed is None:
        logger.debug("Field %s captured %r but could not be parsed", field_def.field_name, raw)
        return None
    if field_def.mapping_type and code_tables:
        parsed = apply_code_mapping(parsed, code_tables.get(field_def.mapping_type))
    return parsed


def build_row(
    text: str,
    field_defs: Sequence[FieldDefinition],
    code_tables: CodeTables | None = None,
) -> ExtractedRow:
    """Fill a fresh row from ``text``; each matched field adds its weight to the score."""

    row = ExtractedRow()
    for field_def in field_defs:
        value = extract_field(text, field_def, code_tables)
        if value is None:
            continue
        row[field_def.field_name] = value
        row.score += field_def.weight
    return row


def missing_required(row: ExtractedRow, field_defs: Sequence[FieldDefinition]) -> list[str]:
    return [
        field_def.field_name
        for field_def in field_defs
        if field_def.required and field_def.field_name not in row
    ]
