from __future__ import annotations

import io
import time
from collections.abc import Sequence

from pypdf import PdfReader, PdfWriter

from receipt_spend.core.logging import get_logger, log_event, log_exception, monotonic_ms
from receipt_spend.core.storage import get_storage
from receipt_spend.modules.sessions.models import Upload

logger = get_logger(__name__)


class ReportError(RuntimeError):
    pass


def build_supporting_pdf(uploads: Sequence[Upload]) -> bytes:
    """Merge stored receipt PDFs in upload order; unreadable files are skipped."""
    start = time.monotonic()
    writer = PdfWriter()
    merged = 0
    for upload in sorted(uploads, key=lambda u: (u.created_at, u.id)):
        try:
            body = get_storage().get(key=upload.storage_key)
            reader = PdfReader(io.BytesIO(body))
            writer.append_pages_from_reader(reader)
        except Exception:  # noqa: BLE001
            log_exception(
                logger,
                "report.supporting_pdf.skip",
                upload_id=str(upload.id),
                original_name=upload.original_name,
            )
            continue
        merged += 1

    if merged == 0:
        raise ReportError("No readable receipts to merge")

    out = io.BytesIO()
    writer.write(out)
    log_event(
        logger,
        "report.supporting_pdf.built",
        merged=merged,
        skipped=len(uploads) - merged,
        byte_size=out.tell(),
        duration_ms=monotonic_ms(start),
    )
    return out.getvalue()
