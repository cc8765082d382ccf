from __future__ import annotations

import pytest

from invoice_engine.schemas.tenant import BlockConfig, BlockMode, FieldDefinition, FieldType
from invoice_engine.services.rules.context_scan import (
    extract_with_context,
    is_footer_line,
    is_header_line,
    is_total_line,
)


def _context(name: str, pattern: str, *, reset: bool, mapping_type: str | None = None) -> FieldDefinition:
    return FieldDefinition(
        block_name="invoice",
        field_name=name,
        patterns=[pattern],
        is_context=True,
        context_reset_on_match=reset,
        mapping_type=mapping_type,
    )


def _data(
    name: str,
    pattern: str,
    *,
    field_type: FieldType = FieldType.INTEGER,
    weight: int = 1,
    sort_order: int = 10,
) -> FieldDefinition:
    return FieldDefinition(
        block_name="invoice",
        field_name=name,
        field_type=field_type,
        patterns=[pattern],
        weight=weight,
        sort_order=sort_order,
    )


def _block(start_pattern: str | None = None, min_score: int = 0) -> BlockConfig:
    return BlockConfig(
        block_name="invoice",
        mode=BlockMode.LINE_SPLIT,
        start_pattern=start_pattern,
        min_score=min_score,
    )


def test_reset_context_flushes_rows_under_their_own_city() -> None:
    fields = [
        _context("city", r"^([A-Z]+)$", reset=True),
        _data("amount", r"(\d+)\.\d+$"),
    ]
    text = "\n".join(["MUMBAI", "07:00 100.50", "DELHI", "08:00 200.00"])

    rows = extract_with_context(text, _block(), fields)

    assert rows == [
        {"amount": 100, "city": "MUMBAI"},
        {"amount": 200, "city": "DELHI"},
    ]


def test_context_lines_are_never_rows() -> None:
    fields = [
        _context("city", r"^([A-Z]+)$", reset=True),
        _data("amount", r"(\d+)\.\d+$"),
    ]

    assert extract_with_context("MUMBAI\nDELHI", _block(), fields) == []


def test_total_header_and_footer_lines_are_skipped() -> None:
    fields = [
        _context("city", r"^([A-Z]+)$", reset=True),
        _data("amount", r"(\d+)\.\d+$"),
    ]
    text = "\n".join(
        [
            "MUMBAI",
            "Date Time Rate Amount",
            "(1) 07:00 100.50",
            "Sub Total 100.50",
            "Grand Total 100.50",
        ]
    )

    rows = extract_with_context(text, _block(start_pattern=r"^\(\d+\)"), fields)

    assert rows == [{"amount": 100, "city": "MUMBAI"}]


def test_lines_before_first_row_start_are_ignored() -> None:
    fields = [_data("amount", r"(\d+)\.\d+$")]
    text = "Statement for 99.00\n(1) 10:00 25.00"

    rows = extract_with_context(text, _block(start_pattern=r"^\(\d+\)"), fields)

    assert rows == [{"amount": 25}]


def test_continuation_lines_join_the_buffered_row() -> None:
    fields = [
        _data("band", r"^\(\d+\)\s*(\d{2}:\d{2})", field_type=FieldType.TEXT),
        _data("amount", r"Amt\s+([\d.]+)", field_type=FieldType.REAL),
    ]
    text = "(1) 07:00 spot\nAmt 12.50\n(2) 09:00 spot\nAmt 7.25"

    rows = extract_with_context(text, _block(start_pattern=r"^\(\d+\)"), fields)

    assert rows == [
        {"band": "07:00", "amount": 12.5},
        {"band": "09:00", "amount": 7.25},
    ]


def test_rows_below_min_score_are_dropped() -> None:
    fields = [
        _data("band", r"^\(\d+\)\s*(\d{2}:\d{2})", field_type=FieldType.TEXT, weight=1),
        _data("amount", r"([\d.]+)$", field_type=FieldType.REAL, weight=2),
    ]
    text = "(1) 07:00 12.50\n(2) 09:00 no amount"

    rows = extract_with_context(text, _block(start_pattern=r"^\(\d+\)", min_score=3), fields)

    assert len(rows) == 1
    assert rows[0].score == 3


def test_fct_is_derived_from_spots_and_duration() -> None:
    fields = [
        _data("spots", r"(\d+)\s+spots"),
        _data("duration", r"dur\s+(\d+)"),
    ]

    rows = extract_with_context("12 spots, dur 30", _block(), fields)

    assert rows == [{"spots": 12, "duration": 30, "fct": 360}]


def test_city_codes_are_mapped_to_display_names() -> None:
    fields = [
        _context("city", r"^([A-Z]{3})$", reset=True, mapping_type="city"),
        _data("amount", r"(\d+)\.\d+$"),
    ]
    tables = {"CITY": {"MUM": "Mumbai"}}

    rows = extract_with_context("MUM\n10:00 5.00\nHYD\n11:00 6.00", _block(), fields, tables)

    assert [row["city"] for row in rows] == ["Mumbai", "HYD"]


def test_radio_invoice_rows(tenants, radio_text: str) -> None:
    tenant = tenants["RADIO_CITY"]
    block = next(item for item in tenant.block_configs if item.block_name == "invoice")

    rows = extract_with_context(
        radio_text,
        block,
        tenant.fields_for_block("invoice"),
        {"CITY": tenant.code_table("CITY")},
    )

    assert [(row["cityName"], row["amount"]) for row in rows] == [
        ("Mumbai", 3289.5),
        ("Mumbai", 1350.0),
        ("Delhi", 3712.5),
    ]
    assert rows[0]["period"] == "01.03.2024 - 31.03.2024"
    assert rows[2]["period"] == "01.03.2024 - 15.03.2024"
    assert rows[0]["fct"] == 720
    assert rows[0]["rate"] == pytest.approx(73.1)


def test_continuing_context_updates_without_flushing_buffered_row() -> None:
    fields = [
        _context("period", r"^Period (\S+)$", reset=False),
        _data("amount", r"Amt (\d+)\.\d+"),
    ]
    text = "(1) 10:00\nPeriod MAR\nAmt 12.50"

    rows = extract_with_context(text, _block(start_pattern=r"^\(\d+\)"), fields)

    assert rows == [{"amount": 12, "period": "MAR"}]


def test_continuing_context_pattern_without_capture_starts_new_row() -> None:
    fields = [
        _context("city", r"^([A-Z]{3})$", reset=True),
        _context("slot", r"^Slot(\s*)\d+", reset=False),
        _data("amount", r"Amt (\d+)\.\d+"),
    ]
    text = "MUM\n(1) Amt 5.00\nSlot 7 Amt 6.00"

    rows = extract_with_context(text, _block(start_pattern=r"^\(\d+\)"), fields)

    assert rows == [
        {"amount": 5, "city": "MUM"},
        {"amount": 6, "city": "MUM"},
    ]


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("Date Time Programme Spots Rate Amount", True),
        ("Sr No Description Amount", True),
        ("Invoice summary with the final amount", True),
        ("(1) 07:00-11:00 30 24 720 73.10 3,289.50", False),
        ("Date " + "x" * 90, False),
    ],
)
def test_header_detection(line: str, expected: bool) -> None:
    assert is_header_line(line) is expected


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("Page 2 of 5", True),
        ("(3) 10:00 12.00 continued on Page 2 of 5", True),
        ("This is a computer generated invoice", True),
        ("Authorized Signatory", True),
        ("(1) 07:00-11:00 30 24 720 73.10 3,289.50", False),
    ],
)
def test_footer_detection(line: str, expected: bool) -> None:
    assert is_footer_line(line) is expected


def test_total_detection() -> None:
    assert is_total_line("SUB-TOTAL 100.00")
    assert is_total_line("Grand Total: 8,352.00")
    assert not is_total_line("Total Amount: 5,000.00")
