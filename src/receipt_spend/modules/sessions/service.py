from __future__ import annotations

import hashlib
import re
import uuid
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta

from fastapi import HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from receipt_spend.core.config import settings
from receipt_spend.core.logging import get_logger, log_event, set_report_session_context
from receipt_spend.core.storage import get_storage
from receipt_spend.modules.expenses.models import Expense
from receipt_spend.modules.expenses.service import save_record
from receipt_spend.modules.extraction.service import (
    BatchResult,
    ReceiptFile,
    process_receipt_batch,
)
from receipt_spend.modules.sessions.models import (
    ReportSession,
    ReportSessionStatus,
    Upload,
    UploadStatus,
)

logger = get_logger(__name__)

_SAFE_NAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


def create_session(session: Session, *, name: str = "", department: str = "") -> ReportSession:
    report_session = ReportSession(
        name=name.strip(), department=department.strip(), status=ReportSessionStatus.OPEN
    )
    session.add(report_session)
    session.commit()
    session.refresh(report_session)
    set_report_session_context(str(report_session.id))
    log_event(logger, "session.created", report_session_id=str(report_session.id))
    return report_session


def get_session(session: Session, *, session_id: uuid.UUID) -> ReportSession:
    report_session = session.scalar(select(ReportSession).where(ReportSession.id == session_id))
    if not report_session:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    set_report_session_context(str(report_session.id))
    return report_session


def list_uploads(session: Session, *, session_id: uuid.UUID) -> list[Upload]:
    return list(
        session.scalars(
            select(Upload)
            .where(Upload.session_id == session_id)
            .order_by(Upload.created_at, Upload.id)
        )
    )


def store_upload(
    session: Session, *, report_session: ReportSession, filename: str, body: bytes
) -> Upload:
    upload_id = uuid.uuid4()
    safe_name = _SAFE_NAME_RE.sub("_", filename).strip("_") or "receipt.pdf"
    key = f"sessions/{report_session.id}/uploads/{upload_id}/{safe_name}"
    get_storage().put(key=key, body=body)

    upload = Upload(
        id=upload_id,
        session_id=report_session.id,
        storage_key=key,
        original_name=filename,
        byte_size=len(body),
        sha256=hashlib.sha256(body).hexdigest(),
        status=UploadStatus.UPLOADED,
        error_message=None,
    )
    session.add(upload)
    session.flush()
    return upload


def delete_session(session: Session, *, report_session: ReportSession) -> None:
    """Remove a session with its expenses, upload rows and stored files."""
    session_id = report_session.id
    session.execute(delete(Expense).where(Expense.session_id == session_id))
    session.delete(report_session)
    session.commit()
    removed = get_storage().delete_prefix(prefix=f"sessions/{session_id}/")
    log_event(
        logger,
        "session.deleted",
        report_session_id=str(session_id),
        removed_objects=removed,
    )


def cleanup_stale_sessions(session: Session, *, now: datetime | None = None) -> int:
    now = now or datetime.now(UTC)
    cutoff = now - timedelta(minutes=int(settings.session_max_age_minutes))
    stale = list(session.scalars(select(ReportSession).where(ReportSession.created_at < cutoff)))
    for report_session in stale:
        delete_session(session, report_session=report_session)
    log_event(
        logger,
        "session.cleanup",
        removed_sessions=len(stale),
        cutoff=cutoff.isoformat(),
    )
    return len(stale)


def ingest_receipts(
    session: Session,
    *,
    report_session: ReportSession,
    files: Sequence[tuple[str, bytes]],
    name: str,
    department: str,
) -> tuple[BatchResult, list[tuple[str, Expense]]]:
    """Store uploaded PDFs, extract them in parallel and persist every valid expense."""
    report_session.name = name.strip()
    report_session.department = department.strip()
    session.add(report_session)

    uploads = [
        store_upload(session, report_session=report_session, filename=filename, body=body)
        for filename, body in files
    ]
    session.commit()

    receipts = [
        ReceiptFile(filename=upload.original_name, body=body, upload_id=upload.id)
        for upload, (_, body) in zip(uploads, files, strict=True)
    ]
    batch = process_receipt_batch(
        receipts, name=report_session.name, department=report_session.department
    )

    by_id = {u.id: u for u in uploads}
    saved: list[tuple[str, Expense]] = []
    for success in batch.successes:
        expense = save_record(session, session_id=report_session.id, record=success.record)
        saved.append((success.filename, expense))
        upload = by_id.get(success.upload_id)
        if upload is not None:
            upload.status = UploadStatus.PROCESSED
    for failure in batch.failures:
        upload = by_id.get(failure.upload_id)
        if upload is not None:
            upload.status = UploadStatus.FAILED
            upload.error_message = failure.error[:2000]
    session.commit()
    for _, expense in saved:
        session.refresh(expense)

    log_event(
        logger,
        "session.ingest.finish",
        total=batch.total,
        processed=len(batch.successes),
        failed=len(batch.failures),
    )
    return batch, saved
