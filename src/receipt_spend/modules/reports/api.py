from __future__ import annotations

import uuid
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from receipt_spend.core.db import db_session
from receipt_spend.core.logging import get_logger, log_event
from receipt_spend.modules.expenses.service import records_for_session
from receipt_spend.modules.ledger import catalog
from receipt_spend.modules.reports.layout import ReportTable, build_report
from receipt_spend.modules.reports.schemas import ReportTableOut
from receipt_spend.modules.reports.supporting import ReportError, build_supporting_pdf
from receipt_spend.modules.reports.xlsx import render_report_xlsx
from receipt_spend.modules.sessions.models import ReportSession, ReportSessionStatus
from receipt_spend.modules.sessions.service import get_session, list_uploads

router = APIRouter(tags=["reports"])
logger = get_logger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _session_table(session: Session, report_session: ReportSession) -> ReportTable:
    records = records_for_session(session, session_id=report_session.id)
    return build_report(
        records,
        name=report_session.name or None,
        department=report_session.department or None,
    )


@router.get("/catalog")
def catalog_endpoint() -> list[dict[str, str]]:
    return [
        {"code": c.code, "category_name": c.category_name, "section": c.section.value}
        for c in catalog.selectable_codes()
    ]


@router.get("/sessions/{session_id}/report/layout", response_model=ReportTableOut)
def report_layout_endpoint(
    session_id: uuid.UUID,
    session: Session = Depends(db_session),
) -> ReportTableOut:
    report_session = get_session(session, session_id=session_id)
    return ReportTableOut.from_table(_session_table(session, report_session))


@router.get("/sessions/{session_id}/report.xlsx")
def report_xlsx_endpoint(
    session_id: uuid.UUID,
    session: Session = Depends(db_session),
) -> Response:
    report_session = get_session(session, session_id=session_id)
    table = _session_table(session, report_session)
    body = render_report_xlsx(table, submitted_on=datetime.now(UTC).date())

    report_session.status = ReportSessionStatus.EXPORTED
    session.add(report_session)
    session.commit()
    log_event(
        logger,
        "report.xlsx.built",
        rows=sum(len(s.rows) for s in table.sections),
        grand_total=str(table.grand_total),
        byte_size=len(body),
    )
    return Response(
        content=body,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="expense-report.xlsx"'},
    )


@router.get("/sessions/{session_id}/supporting.pdf")
def supporting_pdf_endpoint(
    session_id: uuid.UUID,
    session: Session = Depends(db_session),
) -> Response:
    report_session = get_session(session, session_id=session_id)
    uploads = list_uploads(session, session_id=report_session.id)
    try:
        body = build_supporting_pdf(uploads)
    except ReportError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return Response(
        content=body,
        media_type="application/pdf",
        headers={"Content-Disposition": 'attachment; filename="supporting-receipts.pdf"'},
    )
