from __future__ import annotations

import uuid
import datetime as dt
from decimal import Decimal

from pydantic import BaseModel

from receipt_spend.modules.reports.layout import ReportTable


class ReportColumnOut(BaseModel):
    code: str
    category_name: str


class ReportRowOut(BaseModel):
    date: dt.date
    merchant: str
    description_text: str
    amounts: dict[str, Decimal | None]
    total: Decimal
    record_id: uuid.UUID
    split_fragment: bool


class ReportSectionOut(BaseModel):
    name: str
    section: str
    columns: list[ReportColumnOut]
    rows: list[ReportRowOut]
    column_totals: dict[str, Decimal]
    section_total: Decimal


class ReportTableOut(BaseModel):
    name: str
    department: str
    sections: list[ReportSectionOut]
    grand_total: Decimal

    @classmethod
    def from_table(cls, table: ReportTable) -> ReportTableOut:
        return cls(
            name=table.name,
            department=table.department,
            grand_total=table.grand_total,
            sections=[
                ReportSectionOut(
                    name=s.name,
                    section=s.section.value,
                    columns=[
                        ReportColumnOut(code=c.code, category_name=c.category_name)
                        for c in s.codes
                    ],
                    rows=[
                        ReportRowOut(
                            date=r.date,
                            merchant=r.merchant,
                            description_text=r.description_text,
                            amounts=r.amounts,
                            total=r.total,
                            record_id=r.record_id,
                            split_fragment=r.split_fragment,
                        )
                        for r in s.rows
                    ],
                    column_totals=s.column_totals,
                    section_total=s.section_total,
                )
                for s in table.sections
            ],
        )
