from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.responses import Response
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from receipt_spend.core.config import settings
from receipt_spend.core.db import db_session
from receipt_spend.core.logging import get_logger, log_event
from receipt_spend.modules.expenses.schemas import ExpenseOut
from receipt_spend.modules.sessions.schemas import (
    ReceiptErrorOut,
    ReceiptResultOut,
    ReportSessionCreateIn,
    ReportSessionOut,
    UploadBatchOut,
)
from receipt_spend.modules.sessions.service import (
    create_session,
    delete_session,
    get_session,
    ingest_receipts,
)

router = APIRouter(tags=["sessions"])
logger = get_logger(__name__)


def _is_pdf(upload: UploadFile) -> bool:
    filename = (upload.filename or "").lower()
    content_type = (upload.content_type or "").lower()
    return filename.endswith(".pdf") or content_type == "application/pdf"


@router.post("/sessions", response_model=ReportSessionOut, status_code=201)
def create_session_endpoint(
    payload: ReportSessionCreateIn | None = None,
    session: Session = Depends(db_session),
) -> ReportSessionOut:
    payload = payload or ReportSessionCreateIn()
    report_session = create_session(session, name=payload.name, department=payload.department)
    return ReportSessionOut.model_validate(report_session, from_attributes=True)


@router.delete("/sessions/{session_id}")
def delete_session_endpoint(
    session_id: uuid.UUID,
    session: Session = Depends(db_session),
) -> Response:
    report_session = get_session(session, session_id=session_id)
    delete_session(session, report_session=report_session)
    return Response(status_code=204)


@router.post("/sessions/{session_id}/uploads", response_model=UploadBatchOut)
async def upload_receipts(
    session_id: uuid.UUID,
    pdf_files: list[UploadFile] = File(..., alias="pdfFiles"),
    user_name: str = Form("", alias="userName"),
    user_department: str = Form("", alias="userDepartment"),
    session: Session = Depends(db_session),
) -> UploadBatchOut:
    report_session = get_session(session, session_id=session_id)

    if not pdf_files:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No PDF files uploaded")
    if len(pdf_files) > settings.max_upload_files:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"At most {settings.max_upload_files} files per upload",
        )
    if not user_name.strip() or not user_department.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Name and Department are required fields",
        )

    files: list[tuple[str, bytes]] = []
    for upload in pdf_files:
        filename = upload.filename or "receipt.pdf"
        if not _is_pdf(upload):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Only PDF files are allowed ({filename})",
            )
        body = await upload.read()
        if len(body) > settings.max_upload_bytes:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"File too large ({filename})",
            )
        log_event(
            logger,
            "upload.received",
            filename=filename,
            content_type=upload.content_type,
            byte_size=len(body),
        )
        files.append((filename, body))

    batch, saved = await run_in_threadpool(
        ingest_receipts,
        session,
        report_session=report_session,
        files=files,
        name=user_name,
        department=user_department,
    )

    return UploadBatchOut(
        results=[
            ReceiptResultOut(
                filename=filename, data=ExpenseOut.model_validate(expense, from_attributes=True)
            )
            for filename, expense in saved
        ],
        errors=[ReceiptErrorOut(filename=f.filename, error=f.error) for f in batch.failures],
        processed_count=len(batch.successes),
        error_count=len(batch.failures),
        total_count=batch.total,
        session_id=report_session.id,
        summary=batch.summary,
    )
