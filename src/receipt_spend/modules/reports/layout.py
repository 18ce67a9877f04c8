"""
Report layout: expense records -> renderer-agnostic table model.

Two sections (Promotion, Other), one column per catalog code. A record lands in
the section of its own code; split fragments that belong to the opposite
section become separate rows there. Nothing here knows about cells or styling.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from receipt_spend.modules.expenses.domain import ExpenseRecord, SplitAllocation, primary_allocation
from receipt_spend.modules.ledger import catalog
from receipt_spend.modules.ledger.catalog import AccountingCode, Section

ZERO = Decimal("0.00")

SECTION_TITLES: dict[Section, str] = {
    Section.PROMOTION: "PROMOTION EXPENSES",
    Section.OTHER: "OTHER EXPENSES",
}
SECTION_ORDER: tuple[Section, ...] = (Section.PROMOTION, Section.OTHER)


@dataclass(frozen=True)
class ReportRow:
    date: date
    merchant: str
    description_text: str
    amounts: dict[str, Decimal | None]
    record_id: uuid.UUID
    split_fragment: bool = False

    @property
    def total(self) -> Decimal:
        return sum((a for a in self.amounts.values() if a is not None), ZERO)


@dataclass(frozen=True)
class ReportSection:
    name: str
    section: Section
    codes: tuple[AccountingCode, ...]
    rows: tuple[ReportRow, ...]
    column_totals: dict[str, Decimal]
    section_total: Decimal


@dataclass(frozen=True)
class ReportTable:
    sections: tuple[ReportSection, ...]
    grand_total: Decimal
    name: str = ""
    department: str = ""

    def section(self, section: Section) -> ReportSection:
        for s in self.sections:
            if s.section == section:
                return s
        raise KeyError(section)


@dataclass
class _RowDraft:
    record: ExpenseRecord
    description_text: str
    amounts: dict[str, Decimal | None]
    split_fragment: bool = False
    touched: bool = field(default=False)

    def add(self, code: str, amount: Decimal) -> None:
        column = catalog.report_column_for(code).code
        current = self.amounts.get(column)
        self.amounts[column] = (current or ZERO) + amount
        self.touched = True

    def freeze(self) -> ReportRow:
        return ReportRow(
            date=self.record.date,
            merchant=self.record.merchant,
            description_text=self.description_text,
            amounts=dict(self.amounts),
            record_id=self.record.id,
            split_fragment=self.split_fragment,
        )


def _whole_percent(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _money(value: Decimal) -> str:
    return f"${value:,.2f}"


def _base_description(record: ExpenseRecord) -> str:
    text = f"{record.merchant}: {record.description}" if record.description else record.merchant
    if record.location:
        text = f"{text}\n\nLocation: {record.location}"
    return text


def describe_record(record: ExpenseRecord) -> str:
    text = _base_description(record)
    if not record.splits:
        return text

    lines: list[str] = []
    primary = primary_allocation(record)
    if primary > 0:
        pct = (primary / record.amount * 100) if record.amount > 0 else Decimal("0")
        lines.append(
            f"Primary ({record.accounting_code}): {_money(primary)} ({_whole_percent(pct)}%)"
        )
    for split in record.splits:
        lines.append(
            f"{split.accounting_code}: {_money(split.amount)} "
            f"({_whole_percent(split.percentage)}%)"
        )
    return text + "\n\n" + "\n".join(lines)


def describe_split_fragment(record: ExpenseRecord, split: SplitAllocation) -> str:
    return (
        f"{_base_description(record)}\n\n"
        f"Split: {_money(split.amount)} ({_whole_percent(split.percentage)}%) "
        f"allocated to {split.accounting_code}"
    )


def _empty_amounts(section: Section) -> dict[str, Decimal | None]:
    return {c.code: None for c in catalog.list_by_section(section)}


def _layout_record(record: ExpenseRecord) -> list[tuple[Section, _RowDraft]]:
    home = catalog.section_for(record.accounting_code)
    primary_row = _RowDraft(
        record=record,
        description_text=describe_record(record),
        amounts=_empty_amounts(home),
    )

    if not record.splits:
        primary_row.add(record.accounting_code, record.amount)
        return [(home, primary_row)]

    fragments: list[tuple[Section, _RowDraft]] = []
    primary = primary_allocation(record)
    if primary > 0:
        primary_row.add(record.accounting_code, primary)
    for split in record.splits:
        target = catalog.section_for(split.accounting_code)
        if target == home:
            primary_row.add(split.accounting_code, split.amount)
            continue
        fragment = _RowDraft(
            record=record,
            description_text=describe_split_fragment(record, split),
            amounts=_empty_amounts(target),
            split_fragment=True,
        )
        fragment.add(split.accounting_code, split.amount)
        fragments.append((target, fragment))

    # Only drop the primary row when every cent moved to the other section.
    if primary_row.touched or not fragments:
        return [(home, primary_row), *fragments]
    return fragments


def build_report(
    records: Sequence[ExpenseRecord],
    *,
    name: str | None = None,
    department: str | None = None,
) -> ReportTable:
    """
    Lay out `records` in the order given; callers sort upstream if they need to.

    Pure: the same input always yields an equal table.
    """
    rows_by_section: dict[Section, list[ReportRow]] = {s: [] for s in SECTION_ORDER}
    for record in records:
        for section, draft in _layout_record(record):
            rows_by_section[section].append(draft.freeze())

    sections: list[ReportSection] = []
    for section in SECTION_ORDER:
        codes = catalog.list_by_section(section)
        rows = tuple(rows_by_section[section])
        column_totals = {
            c.code: sum((r.amounts.get(c.code) or ZERO for r in rows), ZERO) for c in codes
        }
        sections.append(
            ReportSection(
                name=SECTION_TITLES[section],
                section=section,
                codes=codes,
                rows=rows,
                column_totals=column_totals,
                section_total=sum(column_totals.values(), ZERO),
            )
        )

    first = records[0] if records else None
    return ReportTable(
        sections=tuple(sections),
        grand_total=sum((s.section_total for s in sections), ZERO),
        name=name if name is not None else (first.name if first else ""),
        department=department if department is not None else (first.department if first else ""),
    )
