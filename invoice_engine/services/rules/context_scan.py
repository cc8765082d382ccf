"""Usage: line scanner for blocks whose rows inherit context (city, date range, ...)."""

from __future__ import annotations

import logging
import re
from typing import Sequence

from invoice_engine.schemas.extraction import ExtractedRow, FieldValue
from invoice_engine.schemas.tenant import BlockConfig, FieldDefinition
from invoice_engine.services.rules.pattern_matcher import LINE_FLAGS, compile_pattern, matches_any
from invoice_engine.services.rules.row_builder import CodeTables, build_row, extract_field
from invoice_engine.services.rules.text_normalize import join_line

logger = logging.getLogger(__name__)

TOTAL_MARKERS = ("sub total", "sub-total", "subtotal", "grand total")
MIN_ROW_CHARS = 3

_HEADER_SPAN_RE = re.compile(
    r"\b(invoice|date|time|serial|s\.?no|sr\.?no|description)\b.*"
    r"\b(rate|amount|spots|duration|programme)\b"
)
_HEADER_START_RE = re.compile(r"^(date|sr\s*no|time|programme|description|rate|amount|spots|duration)")
_HEADER_MAX_LEN = 80
_PAGINATION_RE = re.compile(r"\bpage\s+\d+\s+of\s+\d+")
_BOILERPLATE_START_RE = re.compile(r"^(this|computer|system|generated|authorized|signatory)")
_FOOTER_MAX_LEN = 100


def is_header_line(text: str) -> bool:
    if len(text) >= _HEADER_MAX_LEN:
        return False
    lower = text.lower()
    return bool(_HEADER_SPAN_RE.search(lower) or _HEADER_START_RE.match(lower))


def is_footer_line(text: str) -> bool:
    lower = text.lower()
    if _PAGINATION_RE.search(lower):
        return True
    return len(text) < _FOOTER_MAX_LEN and bool(_BOILERPLATE_START_RE.match(lower))


def is_total_line(text: str) -> bool:
    lower = text.lower()
    return any(marker in lower for marker in TOTAL_MARKERS)


class ContextScanner:
    """Single pass over the lines of a block, carrying the active context and a row buffer.

    Context fields update the active context; a reset-on-match context field
    first flushes the pending row under the context it was read in. Data lines
    are buffered until the next row start (block start pattern, or a line a
    context-continuing field's pattern also matches) and then flushed as a row.
    """

    def __init__(
        self,
        block: BlockConfig,
        field_defs: Sequence[FieldDefinition],
        code_tables: CodeTables | None = None,
    ) -> None:
        self.block = block
        self.code_tables = code_tables or {}
        ordered = sorted(field_defs, key=lambda field_def: field_def.sort_order)
        self.context_fields = [field_def for field_def in ordered if field_def.is_context]
        self.data_fields = [field_def for field_def in ordered if not field_def.is_context]
        self.continuing_patterns = [
            pattern
            for field_def in self.context_fields
            if not field_def.context_reset_on_match
            for pattern in field_def.patterns
        ]
        self.start_re = compile_pattern(block.start_pattern, LINE_FLAGS)

    def scan(self, text: str) -> list[ExtractedRow]:
        context: dict[str, FieldValue] = {}
        rows: list[ExtractedRow] = []
        buffer = ""

        for line_no, line in enumerate(text.split("\n"), start=1):
            trimmed = line.strip()
            if not trimmed or is_total_line(trimmed):
                continue

            context_hit = self._match_context(trimmed)
            if context_hit is not None:
                field_def, value = context_hit
                if field_def.context_reset_on_match and buffer:
                    self._flush(buffer, context, rows, line_no)
                    buffer = ""
                context[field_def.field_name] = value
                logger.debug("Line %d: context %s=%r", line_no, field_def.field_name, value)
                continue

            is_row_start = self._is_row_start(trimmed)
            if is_row_start and buffer:
                self._flush(buffer, context, rows, line_no)
                buffer = ""

            if self.start_re is None or is_row_start or buffer:
                buffer = join_line(buffer, trimmed)

        if buffer:
            self._flush(buffer, context, rows, None)

        logger.debug(
            "Context scan of block %s finished with %d rows",
            self.block.block_name,
            len(rows),
        )
        return rows

    def _match_context(self, line: str) -> tuple[FieldDefinition, FieldValue] | None:
        for field_def in self.context_fields:
            value = extract_field(line, field_def, self.code_tables)
            if value is not None:
                return field_def, value
        return None

    def _is_row_start(self, line: str) -> bool:
        if self.start_re is not None and self.start_re.search(line):
            return True
        return matches_any(line, self.continuing_patterns)

    def _flush(
        self,
        buffer: str,
        context: dict[str, FieldValue],
        rows: list[ExtractedRow],
        line_no: int | None,
    ) -> None:
        text = buffer.strip()
        if len(text) < MIN_ROW_CHARS or is_header_line(text) or is_footer_line(text):
            logger.debug("Line %s: skipped non-data text %r", line_no, text[:40])
            return

        row = build_row(text, self.data_fields, self.code_tables)
        _derive_fct(row)
        row.update(context)

        has_data = len(row) > len(context) or "amount" in row
        if has_data and row.score >= self.block.min_score:
            rows.append(row)
            logger.debug("Line %s: row accepted score=%d %s", line_no, row.score, dict(row))
        else:
            logger.debug(
                "Line %s: row skipped score=%d min=%d text=%r",
                line_no,
                row.score,
                self.block.min_score,
                text[:60],
            )


def _derive_fct(row: ExtractedRow) -> None:
    """fct = spots x duration when the invoice does not print it."""

    if "fct" in row:
        return
    spots = row.get_number("spots")
    duration = row.get_number("duration")
    if spots is None or duration is None:
        return
    if spots > 0 and duration > 0:
        row["fct"] = int(spots) * int(duration)


def extract_with_context(
    text: str,
    block: BlockConfig,
    field_defs: Sequence[FieldDefinition],
    code_tables: CodeTables | None = None,
) -> list[ExtractedRow]:
    return ContextScanner(block, field_defs, code_tables).scan(text)
