from __future__ import annotations

import pytest

from invoice_engine.schemas.extraction import ExtractedRow, ExtractionStatus, compute_completeness
from invoice_engine.schemas.tenant import BlockConfig, FieldDefinition, TenantProfile
from invoice_engine.services.config.cache import TenantConfigCache
from invoice_engine.services.rules.extraction_engine import ExtractionEngine


def test_tv_invoice_uses_flat_segmentation_and_calculations(
    config_cache: TenantConfigCache,
    tenants: dict[str, TenantProfile],
    tv_text: str,
) -> None:
    engine = ExtractionEngine(config_cache)

    result = engine.extract(tv_text, tenants["TV_STAR"])

    assert result.status is ExtractionStatus.SUCCESS
    assert result.tenant_key == "TV_STAR"
    assert result.tenant_name == "Star Network TV Invoice"
    assert list(result.blocks) == ["invoice", "summary"]

    first, second = result.blocks["invoice"]
    assert first["fct"] == 60
    assert first["amount_per_second"] == pytest.approx(50.0)
    assert second["fct"] == 20
    assert second["amount_per_second"] == pytest.approx(100.0)

    (summary,) = result.blocks["summary"]
    assert summary["total_amount"] == 5000.0
    assert summary["gst"] == 900.0
    assert summary["final_amount"] == pytest.approx(5900.0)
    assert result.completeness == 100.0
    assert result.warnings == []


def test_radio_invoice_uses_context_scan(
    config_cache: TenantConfigCache,
    tenants: dict[str, TenantProfile],
    radio_text: str,
) -> None:
    engine = ExtractionEngine(config_cache)

    result = engine.extract(radio_text, tenants["RADIO_CITY"])

    rows = result.blocks["invoice"]
    assert [row["cityName"] for row in rows] == ["Mumbai", "Mumbai", "Delhi"]
    assert rows[1]["gross_amount"] == pytest.approx(300 * 45.0)
    assert result.blocks["summary"][0]["grand_total"] == 8352.0


def test_engine_without_cache_reads_code_tables_from_profile(
    tenants: dict[str, TenantProfile],
    radio_text: str,
) -> None:
    result = ExtractionEngine().extract(radio_text, tenants["RADIO_CITY"])

    assert result.blocks["invoice"][-1]["cityName"] == "Delhi"


def test_blocks_without_rows_or_fields_are_reported() -> None:
    tenant = TenantProfile(
        key="EMPTY",
        display_name="Empty",
        block_configs=[
            BlockConfig(block_name="invoice", min_score=1),
            BlockConfig(block_name="orphan"),
        ],
        field_defs=[
            FieldDefinition(
                block_name="invoice",
                field_name="amount",
                patterns=[r"Amount (\d+)"],
                weight=1,
            )
        ],
    )

    result = ExtractionEngine().extract("nothing useful here", tenant)

    assert result.status is ExtractionStatus.SUCCESS
    assert result.blocks == {"invoice": []}
    assert result.completeness == 0.0
    assert result.warnings == [
        "Block 'invoice' produced no rows",
        "Block 'orphan' has no field definitions",
    ]


def test_completeness_counts_present_values() -> None:
    blocks = {
        "a": [ExtractedRow({"x": 1, "y": "z"}), ExtractedRow({"x": None})],
        "b": [],
    }

    assert compute_completeness(blocks) == pytest.approx(200 / 3)
    assert compute_completeness({}) == 0.0
    assert compute_completeness({"a": [ExtractedRow({"x": 1})]}) == 100.0
