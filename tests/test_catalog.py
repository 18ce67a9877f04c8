from __future__ import annotations

import pytest

from receipt_spend.modules.ledger import catalog
from receipt_spend.modules.ledger.catalog import AccountingCode, Section


def test_sections_keep_report_column_order():
    promotion = [c.code for c in catalog.list_by_section(Section.PROMOTION)]
    other = [c.code for c in catalog.list_by_section(Section.OTHER)]

    assert promotion == ["other", "6010-000", "6011-000", "6012-000"]
    assert other == ["6408-000", "6402-000", "6404-000", "7335-000", "6026-000"]


def test_selectable_codes_exclude_report_only_column():
    codes = [c.code for c in catalog.selectable_codes()]

    assert len(codes) == 8
    assert "other" not in codes


def test_lookup_known_and_unknown():
    travel = catalog.lookup("6012-000")
    assert travel is not None
    assert travel.category_name == "Travel"
    assert travel.section == Section.PROMOTION

    assert catalog.lookup("9999-999") is None
    assert catalog.lookup(None) is None


def test_unknown_codes_report_under_office_and_general():
    assert catalog.section_for("9999-999") == Section.OTHER
    assert catalog.report_column_for("9999-999").code == catalog.OFFICE_GENERAL
    assert catalog.report_column_for("other").code == catalog.OFFICE_GENERAL
    assert catalog.is_promotion("6011-000")
    assert not catalog.is_promotion("6026-000")


def test_duplicate_codes_are_rejected():
    entries = (
        AccountingCode("6010-000", "Food & Entertainment", Section.PROMOTION),
        AccountingCode("6010-000", "Meals", Section.PROMOTION),
    )

    with pytest.raises(RuntimeError, match="Duplicate"):
        catalog._index(entries)
