from typing import Protocol, runtime_checkable


@runtime_checkable
class BaseAmountDecoder(Protocol):
    async def decode_amount(
        self,
        source: bytes,
        *,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> float | None:
        """Read the summary amount from a machine-readable code, or None when absent."""
        ...
