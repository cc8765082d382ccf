from __future__ import annotations

import asyncio
import io
import logging

import pdfplumber

from invoice_engine.services.text.base import BaseTextExtractor, TextExtractionError

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPES = {"application/pdf", "application/x-pdf"}
TEXT_CONTENT_TYPES = {"text/plain"}


class DocumentTextExtractor(BaseTextExtractor):
    """Turn uploaded PDFs (via pdfplumber) or plain-text files into one text string."""

    def __init__(self, *, x_tolerance: float = 3, y_tolerance: float = 3) -> None:
        self.x_tolerance = x_tolerance
        self.y_tolerance = y_tolerance

    async def extract_text(
        self,
        source: bytes,
        *,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> str:
        if self._is_plain_text(filename, content_type):
            return self._decode_text(source)

        loop = asyncio.get_running_loop()
        text = await loop.run_in_executor(None, lambda: self._extract_pdf_text(source))
        logger.info("Extracted %d characters of text from %s", len(text), filename or "bytes")
        return text

    def _extract_pdf_text(self, source: bytes) -> str:
        pages: list[str] = []
        try:
            with pdfplumber.open(io.BytesIO(source)) as pdf:
                for page in pdf.pages:
                    page_text = page.extract_text(
                        x_tolerance=self.x_tolerance,
                        y_tolerance=self.y_tolerance,
                    )
                    pages.append(page_text or "")
        except Exception as exc:
            raise TextExtractionError(f"Unable to read PDF: {exc}") from exc
        return "\n".join(pages)

    @staticmethod
    def _is_plain_text(filename: str | None, content_type: str | None) -> bool:
        lowered = (content_type or "").lower().split(";")[0].strip()
        if lowered in TEXT_CONTENT_TYPES:
            return True
        if lowered in PDF_CONTENT_TYPES:
            return False
        return (filename or "").lower().endswith(".txt")

    @staticmethod
    def _decode_text(source: bytes) -> str:
        try:
            return source.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise TextExtractionError("Text upload is not valid UTF-8") from exc
