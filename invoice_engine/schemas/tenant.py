from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator


class TenantStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class FieldType(str, Enum):
    TEXT = "text"
    INTEGER = "integer"
    REAL = "real"
    DATE = "date"


class BlockMode(str, Enum):
    GLOBAL = "global"
    LINE_SPLIT = "line_split"


class CalculationKind(str, Enum):
    MULTIPLY = "multiply"
    ADD = "add"
    SUBTRACT = "subtract"
    DIVIDE = "divide"
    PERCENTAGE = "percentage"
    CUSTOM = "custom"


class ResultType(str, Enum):
    INTEGER = "integer"
    REAL = "real"


class IdentifierRule(BaseModel):
    """Pattern that votes for a tenant during classification."""

    pattern: str = Field(..., min_length=1)
    weight: int = Field(..., gt=0, description="Points added when the pattern is found")


class FieldDefinition(BaseModel):
    """How to locate and type one field inside a block."""

    block_name: str
    field_name: str
    field_type: FieldType = FieldType.TEXT
    patterns: list[str] = Field(
        default_factory=list,
        description="Ordered regex rules; the first non-blank capture wins",
    )
    weight: int = Field(default=0, ge=0)
    required: bool = False
    optional: bool = False
    sort_order: int = 0
    is_context: bool = False
    context_reset_on_match: bool = Field(
        default=False,
        description="Context field that opens a new scope and flushes the pending row",
    )
    mapping_type: str | None = Field(
        default=None,
        description="Code mapping table (e.g. CITY) used to normalize coded values",
    )

    @field_validator("mapping_type")
    @classmethod
    def _uppercase_mapping_type(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip().upper() or None


class BlockConfig(BaseModel):
    """Segmentation rule and acceptance threshold for one block."""

    block_name: str
    mode: BlockMode = BlockMode.GLOBAL
    start_pattern: str | None = None
    min_score: int = 0
    qr_enabled: bool = False
    max_segment_lines: int | None = Field(default=None, ge=1)


class FieldCalculation(BaseModel):
    """Derived field computed from other fields of the same row."""

    block_name: str
    target_field: str
    kind: CalculationKind
    source_fields: list[str] = Field(default_factory=list)
    formula: str | None = None
    result_type: ResultType = ResultType.REAL
    apply_only_if_missing: bool = True
    priority: int = 10

    @model_validator(mode="after")
    def _require_formula_for_custom(self) -> "FieldCalculation":
        if self.kind is CalculationKind.CUSTOM and not (self.formula or "").strip():
            raise ValueError(f"Custom calculation for {self.target_field} needs a formula")
        return self


class CodeMapping(BaseModel):
    mapping_type: str
    code: str
    display_name: str

    @field_validator("mapping_type", "code")
    @classmethod
    def _uppercase(cls, value: str) -> str:
        """Codes and table names are matched case-insensitively."""

        return value.strip().upper()


class TenantProfile(BaseModel):
    """Aggregate root holding every rule used to classify and parse one invoice family."""

    key: str
    display_name: str
    status: TenantStatus = TenantStatus.ACTIVE
    identifiers: list[IdentifierRule] = Field(default_factory=list)
    field_defs: list[FieldDefinition] = Field(default_factory=list)
    block_configs: list[BlockConfig] = Field(default_factory=list)
    calculations: list[FieldCalculation] = Field(default_factory=list)
    code_mappings: list[CodeMapping] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_unique_names(self) -> "TenantProfile":
        seen_fields: set[tuple[str, str]] = set()
        for field_def in self.field_defs:
            key = (field_def.block_name, field_def.field_name)
            if key in seen_fields:
                raise ValueError(
                    f"Duplicate field definition {field_def.block_name}.{field_def.field_name} "
                    f"for tenant {self.key}"
                )
            seen_fields.add(key)

        seen_blocks: set[str] = set()
        for block in self.block_configs:
            if block.block_name in seen_blocks:
                raise ValueError(f"Duplicate block config {block.block_name} for tenant {self.key}")
            seen_blocks.add(block.block_name)
        return self

    @property
    def is_active(self) -> bool:
        return self.status is TenantStatus.ACTIVE

    def fields_for_block(self, block_name: str) -> list[FieldDefinition]:
        return sorted(
            (field_def for field_def in self.field_defs if field_def.block_name == block_name),
            key=lambda field_def: field_def.sort_order,
        )

    def calculations_for_block(self, block_name: str) -> list[FieldCalculation]:
        return sorted(
            (calc for calc in self.calculations if calc.block_name == block_name),
            key=lambda calc: calc.priority,
        )

    def code_table(self, mapping_type: str) -> dict[str, str]:
        wanted = mapping_type.strip().upper()
        return {
            mapping.code: mapping.display_name
            for mapping in self.code_mappings
            if mapping.mapping_type == wanted
        }
