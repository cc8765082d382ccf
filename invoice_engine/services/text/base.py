from typing import Protocol, runtime_checkable


class TextExtractionError(Exception):
    """The document could not be turned into text."""


@runtime_checkable
class BaseTextExtractor(Protocol):
    async def extract_text(
        self,
        source: bytes,
        *,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> str:
        """Return the document text with lines in reading order."""
        ...
