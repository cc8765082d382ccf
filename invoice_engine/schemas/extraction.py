"""Usage: runtime rows/results produced by one extraction call, plus their API envelope."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Union

from pydantic import BaseModel, Field

FieldValue = Union[str, int, float]


class ExtractionStatus(str, Enum):
    SUCCESS = "success"
    EMPTY = "empty"
    ERROR = "error"


class ExtractedRow(dict):
    """Ordered field-name -> value mapping; ``score`` is kept outside the mapping."""

    def __init__(self, *args: Any, score: int = 0, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.score = score

    def get_number(self, key: str) -> float | None:
        value = self.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        try:
            return float(value)
        except OverflowError:
            return None

    def __repr__(self) -> str:
        return f"ExtractedRow({dict.__repr__(self)}, score={self.score})"


@dataclass(frozen=True)
class ExtractionResult:
    status: ExtractionStatus
    tenant_key: str | None = None
    tenant_name: str | None = None
    blocks: dict[str, list[ExtractedRow]] = field(default_factory=dict)
    external_amount: float | None = None
    completeness: float = 0.0
    warnings: list[str] = field(default_factory=list)

    @classmethod
    def empty(cls, reason: str) -> "ExtractionResult":
        return cls(status=ExtractionStatus.EMPTY, warnings=[reason])

    @classmethod
    def error(
        cls,
        reason: str,
        *,
        tenant_key: str | None = None,
        tenant_name: str | None = None,
    ) -> "ExtractionResult":
        return cls(
            status=ExtractionStatus.ERROR,
            tenant_key=tenant_key,
            tenant_name=tenant_name,
            warnings=[reason],
        )


def compute_completeness(blocks: Mapping[str, list[ExtractedRow]]) -> float:
    """Share of non-null entries across every row, as a percentage.

    Rows never hold ``None`` values, so any extracted field yields 100.0.
    """

    total_fields = 0
    present_fields = 0
    for rows in blocks.values():
        for row in rows:
            for value in row.values():
                total_fields += 1
                if value is not None:
                    present_fields += 1
    if total_fields == 0:
        return 0.0
    return present_fields * 100.0 / total_fields


class RowPayload(BaseModel):
    score: int = Field(..., description="Sum of weights of the extracted fields")
    fields: dict[str, FieldValue] = Field(default_factory=dict)


class ExtractionResponse(BaseModel):
    """Standard envelope for invoice extraction results."""

    status: ExtractionStatus
    tenant_key: str | None = None
    tenant_name: str | None = None
    blocks: dict[str, list[RowPayload]] = Field(default_factory=dict)
    external_amount: float | None = Field(
        default=None,
        description="Summary amount supplied by the optional code decoder",
    )
    completeness: float = Field(default=0.0, ge=0, le=100)
    warnings: list[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: ExtractionResult) -> "ExtractionResponse":
        return cls(
            status=result.status,
            tenant_key=result.tenant_key,
            tenant_name=result.tenant_name,
            blocks={
                name: [RowPayload(score=row.score, fields=dict(row)) for row in rows]
                for name, rows in result.blocks.items()
            },
            external_amount=result.external_amount,
            completeness=result.completeness,
            warnings=list(result.warnings),
        )
