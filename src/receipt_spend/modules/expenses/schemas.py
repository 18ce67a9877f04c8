from __future__ import annotations

import uuid
import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, computed_field

from receipt_spend.modules.expenses.splits import SplitInput
from receipt_spend.modules.ledger import catalog


class ExpenseSplitOut(BaseModel):
    position: int
    gl_code: str
    amount: Decimal
    percentage: Decimal


class ExpenseOut(BaseModel):
    id: uuid.UUID
    session_id: uuid.UUID
    date: dt.date
    merchant: str
    amount: Decimal
    tax: Decimal
    gl_code: str
    description: str
    name: str
    department: str
    location: str | None
    kilometers: Decimal | None
    from_location: str | None
    to_location: str | None
    trip_purpose: str | None
    splits: list[ExpenseSplitOut]
    created_at: dt.datetime
    updated_at: dt.datetime

    @computed_field
    @property
    def category_name(self) -> str:
        return catalog.category_name(self.gl_code)

    @computed_field
    @property
    def section(self) -> str:
        return catalog.section_for(self.gl_code).value

    @computed_field
    @property
    def primary_allocation(self) -> Decimal:
        return self.amount - sum((s.amount for s in self.splits), Decimal("0.00"))


class SplitsIn(BaseModel):
    splits: list[SplitInput]
