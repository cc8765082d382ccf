"""Usage: invoice extraction pipeline (text -> tenant classification -> rules)."""

from __future__ import annotations

import dataclasses
import logging
import time

from invoice_engine.schemas.extraction import ExtractionResult, ExtractionStatus
from invoice_engine.schemas.tenant import TenantProfile
from invoice_engine.services.amount.base import BaseAmountDecoder
from invoice_engine.services.config.cache import TenantConfigCache
from invoice_engine.services.rules.extraction_engine import ExtractionEngine
from invoice_engine.services.rules.tenant_classifier import TenantClassifier
from invoice_engine.services.text.base import BaseTextExtractor, TextExtractionError

logger = logging.getLogger(__name__)

EMPTY_TEXT_REASON = "Document contains no extractable text"
NO_TENANT_REASON = "Could not identify invoice type. No tenant matched."


class InvoiceExtractionPipeline:
    """Pipeline orchestrating text extraction, tenant classification and rule extraction."""

    def __init__(
        self,
        text_extractor: BaseTextExtractor,
        config_cache: TenantConfigCache,
        *,
        classifier: TenantClassifier | None = None,
        engine: ExtractionEngine | None = None,
        amount_decoder: BaseAmountDecoder | None = None,
    ) -> None:
        self.text_extractor = text_extractor
        self.config_cache = config_cache
        self.classifier = classifier or TenantClassifier(config_cache)
        self.engine = engine or ExtractionEngine(config_cache)
        self.amount_decoder = amount_decoder

    async def run(
        self,
        source: bytes,
        *,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> ExtractionResult:
        """Extract text from ``source`` and run the rules; never raises for per-document failures."""

        start_time = time.perf_counter()
        logger.info("Pipeline started for file: %s", filename)

        try:
            text = await self.text_extractor.extract_text(
                source,
                filename=filename,
                content_type=content_type,
            )
        except TextExtractionError as exc:
            logger.warning("Text extraction failed for %s: %s", filename, exc)
            return ExtractionResult.empty(f"{EMPTY_TEXT_REASON}: {exc}")

        text_duration = time.perf_counter() - start_time
        result = self.extract_from_text(text)

        if result.status is ExtractionStatus.SUCCESS:
            result = await self._attach_external_amount(
                result,
                source,
                filename=filename,
                content_type=content_type,
            )

        total_duration = time.perf_counter() - start_time
        logger.info(
            "Pipeline completed status=%s tenant=%s. Total: %.4fs (text: %.2fs)",
            result.status.value,
            result.tenant_key,
            total_duration,
            text_duration,
        )
        return result

    def extract_from_text(self, text: str | None) -> ExtractionResult:
        if not text or not text.strip():
            logger.warning("Rule extraction skipped: empty document text")
            return ExtractionResult.empty(EMPTY_TEXT_REASON)

        match = self.classifier.classify(text)
        if match is None:
            return ExtractionResult.error(NO_TENANT_REASON)

        tenant = match.tenant
        try:
            return self.engine.extract(text, tenant)
        except Exception as exc:
            logger.exception("Rule extraction failed for tenant %s", tenant.key)
            return ExtractionResult.error(
                f"Extraction failed: {exc}",
                tenant_key=tenant.key,
                tenant_name=tenant.display_name,
            )

    async def _attach_external_amount(
        self,
        result: ExtractionResult,
        source: bytes,
        *,
        filename: str | None,
        content_type: str | None,
    ) -> ExtractionResult:
        if self.amount_decoder is None or not self._wants_code_amount(result.tenant_key):
            return result
        try:
            amount = await self.amount_decoder.decode_amount(
                source,
                filename=filename,
                content_type=content_type,
            )
        except Exception as exc:
            logger.warning("Amount decode failed for %s: %s", filename, exc)
            return result
        if amount is None:
            return result
        logger.info("Amount decode succeeded: %s", amount)
        return dataclasses.replace(result, external_amount=amount)

    def _wants_code_amount(self, tenant_key: str | None) -> bool:
        tenant = self._find_tenant(tenant_key)
        return tenant is not None and any(block.qr_enabled for block in tenant.block_configs)

    def _find_tenant(self, tenant_key: str | None) -> TenantProfile | None:
        for tenant in self.config_cache.active_tenants():
            if tenant.key == tenant_key:
                return tenant
        return None
