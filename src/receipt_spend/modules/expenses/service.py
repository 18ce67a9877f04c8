from __future__ import annotations

import uuid
from collections.abc import Sequence
from decimal import Decimal

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from receipt_spend.core.logging import get_logger, log_event
from receipt_spend.modules.expenses.domain import (
    ErrorKind,
    ExpenseRecord,
    FieldError,
    MileageDetails,
    SplitAllocation,
    TripPurpose,
)
from receipt_spend.modules.expenses.models import Expense, ExpenseSplit
from receipt_spend.modules.expenses.splits import SplitInput, apply_split, recheck_splits
from receipt_spend.modules.expenses.validation import RawExpenseFields, raw_from_record, validate
from receipt_spend.modules.ledger import catalog
from receipt_spend.modules.sessions.models import ReportSession

logger = get_logger(__name__)


def to_record(expense: Expense) -> ExpenseRecord:
    mileage = None
    if expense.gl_code == catalog.MILEAGE and expense.kilometers is not None:
        mileage = MileageDetails(
            kilometers=expense.kilometers,
            from_location=expense.from_location or "",
            to_location=expense.to_location or "",
            trip_purpose=TripPurpose.parse(expense.trip_purpose),
        )
    return ExpenseRecord(
        id=expense.id,
        date=expense.date,
        merchant=expense.merchant,
        amount=expense.amount,
        tax=expense.tax,
        description=expense.description or "",
        accounting_code=expense.gl_code,
        name=expense.name or "",
        department=expense.department or "",
        location=expense.location,
        mileage=mileage,
        splits=tuple(
            SplitAllocation(accounting_code=s.gl_code, amount=s.amount, percentage=s.percentage)
            for s in expense.splits
        ),
    )


def list_expenses(session: Session, *, session_id: uuid.UUID) -> list[Expense]:
    return list(
        session.scalars(
            select(Expense)
            .where(Expense.session_id == session_id)
            .order_by(Expense.date, Expense.created_at)
        )
    )


def records_for_session(session: Session, *, session_id: uuid.UUID) -> list[ExpenseRecord]:
    return [to_record(e) for e in list_expenses(session, session_id=session_id)]


def get_expense(
    session: Session, *, report_session: ReportSession, expense_id: uuid.UUID
) -> Expense:
    expense = session.scalar(
        select(Expense).where(Expense.id == expense_id, Expense.session_id == report_session.id)
    )
    if not expense:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found")
    return expense


def _field_errors(errors: Sequence[FieldError], *, status_code: int) -> HTTPException:
    return HTTPException(status_code=status_code, detail=[e.as_dict() for e in errors])


def _split_error(error: FieldError) -> HTTPException:
    if error.kind == ErrorKind.SPLIT_EXCEEDS_TOTAL:
        return _field_errors([error], status_code=status.HTTP_409_CONFLICT)
    return _field_errors([error], status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


def _write_record(expense: Expense, record: ExpenseRecord) -> None:
    expense.date = record.date
    expense.merchant = record.merchant
    expense.amount = record.amount
    expense.tax = record.tax
    expense.gl_code = record.accounting_code
    expense.description = record.description
    expense.name = record.name
    expense.department = record.department
    expense.location = record.location
    if record.mileage is not None:
        expense.kilometers = record.mileage.kilometers
        expense.from_location = record.mileage.from_location or None
        expense.to_location = record.mileage.to_location or None
        expense.trip_purpose = record.mileage.trip_purpose.value
    else:
        expense.kilometers = None
        expense.from_location = None
        expense.to_location = None
        expense.trip_purpose = None


def _write_splits(session: Session, expense: Expense, splits: Sequence[SplitAllocation]) -> None:
    expense.splits.clear()
    # Old rows must be gone before new positions are inserted.
    session.flush()
    for position, split in enumerate(splits):
        expense.splits.append(
            ExpenseSplit(
                position=position,
                gl_code=split.accounting_code,
                amount=split.amount,
                percentage=split.percentage,
            )
        )


def save_record(session: Session, *, session_id: uuid.UUID, record: ExpenseRecord) -> Expense:
    """Persist an already validated record; the caller commits."""
    expense = Expense(id=record.id, session_id=session_id)
    _write_record(expense, record)
    session.add(expense)
    for position, split in enumerate(record.splits):
        expense.splits.append(
            ExpenseSplit(
                position=position,
                gl_code=split.accounting_code,
                amount=split.amount,
                percentage=split.percentage,
            )
        )
    return expense


def create_expense(
    session: Session, *, report_session: ReportSession, raw: RawExpenseFields
) -> Expense:
    if not raw.name and report_session.name:
        raw = raw.model_copy(update={"name": report_session.name})
    if not raw.department and report_session.department:
        raw = raw.model_copy(update={"department": report_session.department})

    result = validate(raw)
    if isinstance(result, list):
        raise _field_errors(result, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)

    expense = save_record(session, session_id=report_session.id, record=result)
    session.commit()
    session.refresh(expense)
    log_event(
        logger,
        "expense.created",
        expense_id=str(expense.id),
        gl_code=expense.gl_code,
        amount=str(expense.amount),
    )
    return expense


def update_expense(
    session: Session,
    *,
    report_session: ReportSession,
    expense_id: uuid.UUID,
    changes: dict,
) -> Expense:
    """
    Merge `changes` over the stored fields and re-validate the whole record.

    Mileage amounts are re-derived; an amount-only change on a mileage record
    is read as kilometers, and a `title` replaces the stored merchant. Existing
    splits must still fit the new amount.
    """
    expense = get_expense(session, report_session=report_session, expense_id=expense_id)
    current = to_record(expense)

    merged = raw_from_record(current).model_dump()
    if "amount" in changes and "kilometers" not in changes:
        merged["kilometers"] = None
    if "title" in changes and "merchant" not in changes:
        merged["merchant"] = None
    merged.update(changes)

    result = validate(RawExpenseFields.model_validate(merged), record_id=expense.id)
    if isinstance(result, list):
        raise _field_errors(result, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)

    result.splits = current.splits
    rechecked = recheck_splits(result)
    if isinstance(rechecked, FieldError):
        raise _split_error(rechecked)

    _write_record(expense, rechecked)
    _write_splits(session, expense, rechecked.splits)
    session.add(expense)
    session.commit()
    session.refresh(expense)
    log_event(
        logger,
        "expense.updated",
        expense_id=str(expense.id),
        changed=sorted(changes),
        amount=str(expense.amount),
    )
    return expense


def replace_splits(
    session: Session,
    *,
    report_session: ReportSession,
    expense_id: uuid.UUID,
    splits: Sequence[SplitInput],
) -> Expense:
    expense = get_expense(session, report_session=report_session, expense_id=expense_id)
    result = apply_split(to_record(expense), splits)
    if isinstance(result, FieldError):
        raise _split_error(result)

    _write_splits(session, expense, result.splits)
    session.add(expense)
    session.commit()
    session.refresh(expense)
    allocated = sum((s.amount for s in result.splits), Decimal("0.00"))
    log_event(
        logger,
        "expense.splits.replaced",
        expense_id=str(expense.id),
        split_count=len(result.splits),
        primary_allocation=str(expense.amount - allocated),
    )
    return expense


def delete_expense(
    session: Session, *, report_session: ReportSession, expense_id: uuid.UUID
) -> None:
    expense = get_expense(session, report_session=report_session, expense_id=expense_id)
    session.delete(expense)
    session.commit()
    log_event(logger, "expense.deleted", expense_id=str(expense_id))
