from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from receipt_spend.core.db import db_session
from receipt_spend.modules.expenses.schemas import ExpenseOut, SplitsIn
from receipt_spend.modules.expenses.service import (
    create_expense,
    delete_expense,
    list_expenses,
    replace_splits,
    update_expense,
)
from receipt_spend.modules.expenses.validation import RawExpenseFields
from receipt_spend.modules.sessions.service import get_session

router = APIRouter(tags=["expenses"])


@router.get("/sessions/{session_id}/expenses", response_model=list[ExpenseOut])
def list_expenses_endpoint(
    session_id: uuid.UUID,
    session: Session = Depends(db_session),
) -> list[ExpenseOut]:
    report_session = get_session(session, session_id=session_id)
    items = list_expenses(session, session_id=report_session.id)
    return [ExpenseOut.model_validate(i, from_attributes=True) for i in items]


@router.post("/sessions/{session_id}/expenses", response_model=ExpenseOut, status_code=201)
def create_expense_endpoint(
    session_id: uuid.UUID,
    payload: RawExpenseFields,
    session: Session = Depends(db_session),
) -> ExpenseOut:
    report_session = get_session(session, session_id=session_id)
    expense = create_expense(session, report_session=report_session, raw=payload)
    return ExpenseOut.model_validate(expense, from_attributes=True)


@router.put("/sessions/{session_id}/expenses/{expense_id}", response_model=ExpenseOut)
def update_expense_endpoint(
    session_id: uuid.UUID,
    expense_id: uuid.UUID,
    payload: RawExpenseFields,
    session: Session = Depends(db_session),
) -> ExpenseOut:
    report_session = get_session(session, session_id=session_id)
    expense = update_expense(
        session,
        report_session=report_session,
        expense_id=expense_id,
        changes=payload.model_dump(exclude_unset=True),
    )
    return ExpenseOut.model_validate(expense, from_attributes=True)


@router.delete("/sessions/{session_id}/expenses/{expense_id}")
def delete_expense_endpoint(
    session_id: uuid.UUID,
    expense_id: uuid.UUID,
    session: Session = Depends(db_session),
) -> Response:
    report_session = get_session(session, session_id=session_id)
    delete_expense(session, report_session=report_session, expense_id=expense_id)
    return Response(status_code=204)


@router.put("/sessions/{session_id}/expenses/{expense_id}/splits", response_model=ExpenseOut)
def replace_splits_endpoint(
    session_id: uuid.UUID,
    expense_id: uuid.UUID,
    payload: SplitsIn,
    session: Session = Depends(db_session),
) -> ExpenseOut:
    report_session = get_session(session, session_id=session_id)
    expense = replace_splits(
        session,
        report_session=report_session,
        expense_id=expense_id,
        splits=payload.splits,
    )
    return ExpenseOut.model_validate(expense, from_attributes=True)
