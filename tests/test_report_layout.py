from __future__ import annotations

from datetime import date
from decimal import Decimal

from receipt_spend.modules.expenses.domain import ExpenseRecord
from receipt_spend.modules.expenses.splits import SplitInput, apply_split
from receipt_spend.modules.ledger.catalog import Section
from receipt_spend.modules.reports.layout import build_report


def _record(
    merchant: str,
    amount: str,
    code: str,
    *,
    day: int = 1,
    description: str = "",
    location: str | None = None,
    splits: list[SplitInput] | None = None,
) -> ExpenseRecord:
    record = ExpenseRecord(
        date=date(2024, 3, day),
        merchant=merchant,
        amount=Decimal(amount),
        accounting_code=code,
        description=description,
        location=location,
        name="Ada Lovelace",
        department="Sales",
    )
    if splits:
        result = apply_split(record, splits)
        assert isinstance(result, ExpenseRecord)
        record = result
    return record


def test_same_section_split_stays_on_one_row():
    record = _record(
        "Hilton", "300", "6012-000", splits=[SplitInput(code="6010-000", amount=50)]
    )
    table = build_report([record])

    promotion = table.section(Section.PROMOTION)
    assert len(promotion.rows) == 1
    row = promotion.rows[0]
    assert row.amounts["6012-000"] == Decimal("250.00")
    assert row.amounts["6010-000"] == Decimal("50.00")
    assert row.amounts["6011-000"] is None
    assert row.total == Decimal("300.00")
    assert not row.split_fragment
    assert table.section(Section.OTHER).rows == ()
    assert table.grand_total == Decimal("300.00")


def test_cross_section_split_gets_its_own_row():
    record = _record(
        "Staples",
        "100",
        "6408-000",
        description="Event supplies",
        splits=[SplitInput(code="6010-000", amount=40)],
    )
    table = build_report([record])

    other_rows = table.section(Section.OTHER).rows
    promo_rows = table.section(Section.PROMOTION).rows
    assert len(other_rows) == 1
    assert len(promo_rows) == 1
    assert other_rows[0].amounts["6408-000"] == Decimal("60.00")
    assert promo_rows[0].amounts["6010-000"] == Decimal("40.00")
    assert promo_rows[0].split_fragment
    assert promo_rows[0].record_id == record.id
    assert promo_rows[0].description_text.endswith(
        "Split: $40.00 (40%) allocated to 6010-000"
    )
    assert table.grand_total == Decimal("100.00")


def test_fully_diverted_record_drops_empty_primary_row():
    record = _record(
        "Staples", "100", "6408-000", splits=[SplitInput(code="6010-000", amount=100)]
    )
    table = build_report([record])

    assert table.section(Section.OTHER).rows == ()
    assert len(table.section(Section.PROMOTION).rows) == 1


def test_fully_split_within_section_keeps_primary_row():
    record = _record(
        "Hilton", "100", "6012-000", splits=[SplitInput(code="6010-000", amount=100)]
    )
    table = build_report([record])

    rows = table.section(Section.PROMOTION).rows
    assert len(rows) == 1
    assert rows[0].amounts["6012-000"] is None
    assert rows[0].amounts["6010-000"] == Decimal("100.00")


def test_splits_to_same_column_are_summed():
    record = _record(
        "Hilton",
        "300",
        "6012-000",
        splits=[SplitInput(code="6010-000", amount=50), SplitInput(code="6010-000", amount=25)],
    )
    row = build_report([record]).section(Section.PROMOTION).rows[0]

    assert row.amounts["6010-000"] == Decimal("75.00")
    assert row.amounts["6012-000"] == Decimal("225.00")


def test_custom_code_lands_in_office_and_general():
    table = build_report([_record("Vendor", "12.50", "9999-999")])

    rows = table.section(Section.OTHER).rows
    assert len(rows) == 1
    assert rows[0].amounts["6408-000"] == Decimal("12.50")


def test_zero_amount_record_still_gets_a_row():
    table = build_report([_record("Free sample", "0", "6408-000")])

    rows = table.section(Section.OTHER).rows
    assert len(rows) == 1
    assert rows[0].amounts["6408-000"] == Decimal("0")


def test_description_text():
    record = _record(
        "Hilton",
        "300",
        "6012-000",
        description="Conference stay",
        location="Toronto",
        splits=[SplitInput(code="6010-000", amount=50)],
    )
    row = build_report([record]).section(Section.PROMOTION).rows[0]

    assert row.description_text == (
        "Hilton: Conference stay\n\n"
        "Location: Toronto\n\n"
        "Primary (6012-000): $250.00 (83%)\n"
        "6010-000: $50.00 (17%)"
    )


def test_description_without_splits_or_description():
    row = build_report([_record("Zoom", "15", "6404-000")]).section(Section.OTHER).rows[0]

    assert row.description_text == "Zoom"


def test_totals_and_order():
    records = [
        _record("Hilton", "300", "6012-000", day=1),
        _record("Zoom", "15.99", "6404-000", day=2),
        _record("Tim Hortons", "8.25", "6010-000", day=3),
        _record("Dell", "1200", "6408-000", day=4),
    ]
    table = build_report(records)

    promotion = table.section(Section.PROMOTION)
    other = table.section(Section.OTHER)
    assert [r.merchant for r in promotion.rows] == ["Hilton", "Tim Hortons"]
    assert [r.merchant for r in other.rows] == ["Zoom", "Dell"]
    assert promotion.column_totals["6012-000"] == Decimal("300.00")
    assert promotion.column_totals["other"] == Decimal("0")
    assert promotion.section_total == Decimal("308.25")
    assert other.section_total == Decimal("1215.99")
    assert table.grand_total == Decimal("1524.24")
    assert table.name == "Ada Lovelace"
    assert table.department == "Sales"


def test_explicit_header_overrides_record_values():
    table = build_report([_record("Zoom", "15", "6404-000")], name="Grace", department="Ops")

    assert table.name == "Grace"
    assert table.department == "Ops"


def test_empty_input():
    table = build_report([])

    assert all(s.rows == () for s in table.sections)
    assert table.grand_total == Decimal("0")
    assert table.name == ""


def test_layout_is_deterministic():
    records = [
        _record("Staples", "100", "6408-000", splits=[SplitInput(code="6010-000", amount=40)]),
        _record("Hilton", "300", "6012-000"),
    ]

    assert build_report(records) == build_report(records)
