from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from receipt_spend.modules.expenses.schemas import ExpenseOut
from receipt_spend.modules.sessions.models import ReportSessionStatus


class ReportSessionCreateIn(BaseModel):
    name: str = ""
    department: str = ""


class ReportSessionOut(BaseModel):
    id: uuid.UUID
    name: str
    department: str
    status: ReportSessionStatus
    created_at: datetime


class ReceiptResultOut(BaseModel):
    filename: str
    data: ExpenseOut


class ReceiptErrorOut(BaseModel):
    filename: str
    error: str


class UploadBatchOut(BaseModel):
    results: list[ReceiptResultOut]
    errors: list[ReceiptErrorOut]
    processed_count: int = Field(serialization_alias="processedCount")
    error_count: int = Field(serialization_alias="errorCount")
    total_count: int = Field(serialization_alias="totalCount")
    session_id: uuid.UUID = Field(serialization_alias="sessionId")
    summary: str
