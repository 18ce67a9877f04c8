from __future__ import annotations

import uuid
import datetime as dt
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from receipt_spend.core.models import Base, Timestamped, UUIDPrimaryKey


class Expense(UUIDPrimaryKey, Timestamped, Base):
    __tablename__ = "expenses_expense"

    session_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("sessions_report_session.id"), index=True
    )

    date: Mapped[dt.date] = mapped_column(Date, index=True)
    merchant: Mapped[str] = mapped_column(String(300))
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    tax: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0.00"))
    gl_code: Mapped[str] = mapped_column(String(20), index=True)
    description: Mapped[str] = mapped_column(Text, default="")

    name: Mapped[str] = mapped_column(String(200), default="")
    department: Mapped[str] = mapped_column(String(200), default="")
    location: Mapped[str | None] = mapped_column(String(300), nullable=True)

    kilometers: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    from_location: Mapped[str | None] = mapped_column(String(300), nullable=True)
    to_location: Mapped[str | None] = mapped_column(String(300), nullable=True)
    trip_purpose: Mapped[str | None] = mapped_column(String(40), nullable=True)

    report_session = relationship("ReportSession")
    splits = relationship(
        "ExpenseSplit",
        back_populates="expense",
        cascade="all, delete-orphan",
        order_by="ExpenseSplit.position",
    )


class ExpenseSplit(UUIDPrimaryKey, Base):
    __tablename__ = "expenses_expense_split"
    __table_args__ = (UniqueConstraint("expense_id", "position", name="uq_split_position"),)

    expense_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("expenses_expense.id", ondelete="CASCADE"), index=True
    )
    position: Mapped[int] = mapped_column(Integer)
    gl_code: Mapped[str] = mapped_column(String(20))
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    percentage: Mapped[Decimal] = mapped_column(Numeric(6, 3))

    expense = relationship("Expense", back_populates="splits")
