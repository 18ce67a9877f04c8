from __future__ import annotations

import io

import pytest
from pypdf import PdfReader, PdfWriter

from receipt_spend.core.db import SessionLocal
from receipt_spend.modules.reports.supporting import ReportError, build_supporting_pdf
from receipt_spend.modules.sessions.service import create_session, list_uploads, store_upload


def _pdf(pages: int) -> bytes:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=200, height=200)
    out = io.BytesIO()
    writer.write(out)
    return out.getvalue()


def test_merges_uploads_in_order_and_skips_broken_files():
    with SessionLocal() as session:
        report_session = create_session(session)
        store_upload(session, report_session=report_session, filename="a.pdf", body=_pdf(2))
        store_upload(session, report_session=report_session, filename="broken.pdf", body=b"junk")
        store_upload(session, report_session=report_session, filename="b.pdf", body=_pdf(1))
        session.commit()

        body = build_supporting_pdf(list_uploads(session, session_id=report_session.id))

    assert len(PdfReader(io.BytesIO(body)).pages) == 3


def test_nothing_readable_raises():
    with SessionLocal() as session:
        report_session = create_session(session)
        store_upload(session, report_session=report_session, filename="x.pdf", body=b"junk")
        session.commit()

        with pytest.raises(ReportError):
            build_supporting_pdf(list_uploads(session, session_id=report_session.id))
