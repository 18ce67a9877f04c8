"""
Fixed G/L code catalog.

Column order inside each section is the column order of the rendered report.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


class Section(str, enum.Enum):
    PROMOTION = "PROMOTION"
    OTHER = "OTHER"


@dataclass(frozen=True)
class AccountingCode:
    code: str
    category_name: str
    section: Section
    selectable: bool = True


OFFICE_GENERAL = "6408-000"
MEMBERSHIP = "6402-000"
SUBSCRIPTIONS = "6404-000"
EDUCATION = "7335-000"
MILEAGE = "6026-000"
FOOD_ENTERTAINMENT = "6010-000"
SOCIAL = "6011-000"
TRAVEL = "6012-000"

# Report-only column; its key can never pass the NNNN-NNN format check.
PROMOTION_OTHER = "other"

DEFAULT_CODE = OFFICE_GENERAL

_CATALOG: tuple[AccountingCode, ...] = (
    AccountingCode(PROMOTION_OTHER, "Other", Section.PROMOTION, selectable=False),
    AccountingCode(FOOD_ENTERTAINMENT, "Food & Entertainment", Section.PROMOTION),
    AccountingCode(SOCIAL, "Social", Section.PROMOTION),
    AccountingCode(TRAVEL, "Travel", Section.PROMOTION),
    AccountingCode(OFFICE_GENERAL, "Office & General", Section.OTHER),
    AccountingCode(MEMBERSHIP, "Membership", Section.OTHER),
    AccountingCode(SUBSCRIPTIONS, "Subscriptions", Section.OTHER),
    AccountingCode(EDUCATION, "Education & Development", Section.OTHER),
    AccountingCode(MILEAGE, "Mileage/ETR", Section.OTHER),
)


def _index(entries: tuple[AccountingCode, ...]) -> dict[str, AccountingCode]:
    out: dict[str, AccountingCode] = {}
    for entry in entries:
        if entry.code in out:
            raise RuntimeError(f"Duplicate accounting code in catalog: {entry.code}")
        out[entry.code] = entry
    return out


_BY_CODE = _index(_CATALOG)

if _BY_CODE[DEFAULT_CODE].section != Section.OTHER:
    raise RuntimeError("Default accounting code must belong to the Other section")


def lookup(code: str | None) -> AccountingCode | None:
    if not code:
        return None
    return _BY_CODE.get(code.strip())


def list_by_section(section: Section) -> tuple[AccountingCode, ...]:
    return tuple(entry for entry in _CATALOG if entry.section == section)


def selectable_codes() -> tuple[AccountingCode, ...]:
    return tuple(entry for entry in _CATALOG if entry.selectable)


def is_promotion(code: str | None) -> bool:
    return section_for(code) == Section.PROMOTION


def section_for(code: str | None) -> Section:
    """Custom and unknown codes are reported under Other."""
    return report_column_for(code).section


def report_column_for(code: str | None) -> AccountingCode:
    """Column receiving an amount booked to `code`; unknown codes land on Office & General."""
    entry = lookup(code)
    if entry is None or not entry.selectable:
        return _BY_CODE[DEFAULT_CODE]
    return entry


def category_name(code: str | None) -> str:
    entry = lookup(code)
    return entry.category_name if entry else "Other"
