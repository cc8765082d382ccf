"""Usage: split text into segments and extract one row per segment."""

from __future__ import annotations

import logging
from typing import Sequence

from invoice_engine.schemas.extraction import ExtractedRow
from invoice_engine.schemas.tenant import BlockConfig, BlockMode, FieldDefinition
from invoice_engine.services.rules.pattern_matcher import LINE_FLAGS, compile_pattern
from invoice_engine.services.rules.row_builder import CodeTables, build_row, missing_required
from invoice_engine.services.rules.text_normalize import iter_lines

logger = logging.getLogger(__name__)


def segment_text(text: str, block: BlockConfig) -> list[str]:
    """Cut ``text`` at every line matching the block start pattern."""

    if block.mode is BlockMode.GLOBAL:
        return [text]
    start_re = compile_pattern(block.start_pattern, LINE_FLAGS)
    if start_re is None:
        return [text]

    segments: list[str] = []
    buffer: list[str] = []
    for line in iter_lines(text):
        is_start = start_re.search(line) is not None
        if is_start and buffer:
            segments.append(" ".join(buffer))
            buffer = []
        buffer.append(line)
        if (
            block.max_segment_lines is not None
            and len(buffer) >= block.max_segment_lines
            and not is_start
        ):
            segments.append(" ".join(buffer))
            buffer = []

    if buffer:
        segments.append(" ".join(buffer))

    logger.debug(
        "Segmented block %s into %d segments using pattern %r",
        block.block_name,
        len(segments),
        block.start_pattern,
    )
    return segments


def extract_flat(
    text: str,
    block: BlockConfig,
    field_defs: Sequence[FieldDefinition],
    code_tables: CodeTables | None = None,
) -> list[ExtractedRow]:
    ordered = sorted(field_defs, key=lambda field_def: field_def.sort_order)
    rows: list[ExtractedRow] = []
    for segment in segment_text(text, block):
        row = build_row(segment, ordered, code_tables)
        missing = missing_required(row, ordered)
        if row.score < block.min_score or missing:
            logger.debug(
                "Segment dropped block=%s score=%d min=%d missing=%s",
                block.block_name,
                row.score,
                block.min_score,
                missing,
            )
            continue
        rows.append(row)
    return rows
