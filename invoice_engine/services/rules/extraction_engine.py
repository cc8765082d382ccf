"""Usage: run every configured block of a tenant over the document text."""

from __future__ import annotations

import logging

from invoice_engine.schemas.extraction import (
    ExtractedRow,
    ExtractionResult,
    ExtractionStatus,
    compute_completeness,
)
from invoice_engine.schemas.tenant import TenantProfile
from invoice_engine.services.config.cache import TenantConfigCache
from invoice_engine.services.rules.calculations import apply_calculations
from invoice_engine.services.rules.context_scan import extract_with_context
from invoice_engine.services.rules.flat_segmentation import extract_flat
from invoice_engine.services.rules.text_normalize import preprocess_text

logger = logging.getLogger(__name__)


class ExtractionEngine:
    """Configuration-driven block/row extraction shared by every tenant."""

    def __init__(self, config_cache: TenantConfigCache | None = None) -> None:
        self.config_cache = config_cache

    def extract(self, text: str, tenant: TenantProfile) -> ExtractionResult:
        prepared = preprocess_text(text)
        code_tables = self._code_tables(tenant)
        blocks: dict[str, list[ExtractedRow]] = {}
        warnings: list[str] = []

        for block in tenant.block_configs:
            field_defs = tenant.fields_for_block(block.block_name)
            if not field_defs:
                logger.warning(
                    "Block %s of tenant %s has no field definitions",
                    block.block_name,
                    tenant.key,
                )
                warnings.append(f"Block '{block.block_name}' has no field definitions")
                continue

            has_context = any(field_def.is_context for field_def in field_defs)
            if has_context:
                rows = extract_with_context(prepared, block, field_defs, code_tables)
            else:
                rows = extract_flat(prepared, block, field_defs, code_tables)

            calculations = tenant.calculations_for_block(block.block_name)
            if calculations:
                for row in rows:
                    apply_calculations(row, calculations)

            blocks[block.block_name] = rows
            if not rows:
                warnings.append(f"Block '{block.block_name}' produced no rows")
            logger.info(
                "Block %s extracted %d rows (hasContext=%s)",
                block.block_name,
                len(rows),
                has_context,
            )

        return ExtractionResult(
            status=ExtractionStatus.SUCCESS,
            tenant_key=tenant.key,
            tenant_name=tenant.display_name,
            blocks=blocks,
            completeness=compute_completeness(blocks),
            warnings=warnings,
        )

    def _code_tables(self, tenant: TenantProfile) -> dict[str, dict[str, str]]:
        mapping_types = {
            field_def.mapping_type for field_def in tenant.field_defs if field_def.mapping_type
        }
        tables: dict[str, dict[str, str]] = {}
        for mapping_type in sorted(mapping_types):
            if self.config_cache is not None:
                tables[mapping_type] = self.config_cache.code_mappings(tenant.key, mapping_type)
            else:
                tables[mapping_type] = tenant.code_table(mapping_type)
        return tables
