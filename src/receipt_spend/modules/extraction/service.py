from __future__ import annotations

import time
import uuid
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from receipt_spend.core.config import settings
from receipt_spend.core.logging import get_logger, log_event, log_exception, monotonic_ms
from receipt_spend.modules.expenses.domain import ExpenseRecord
from receipt_spend.modules.expenses.validation import RawExpenseFields, validate
from receipt_spend.modules.extraction.ai import extract_receipt_fields
from receipt_spend.modules.extraction.pdf import UnreadableReceipt, extract_pdf_text

logger = get_logger(__name__)


@dataclass(frozen=True)
class ReceiptFile:
    filename: str
    body: bytes
    upload_id: uuid.UUID | None = None


@dataclass(frozen=True)
class ReceiptSuccess:
    filename: str
    record: ExpenseRecord
    upload_id: uuid.UUID | None = None


@dataclass(frozen=True)
class ReceiptFailure:
    filename: str
    error: str
    upload_id: uuid.UUID | None = None


@dataclass
class BatchResult:
    successes: list[ReceiptSuccess] = field(default_factory=list)
    failures: list[ReceiptFailure] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.successes) + len(self.failures)

    @property
    def summary(self) -> str:
        text = f"{len(self.successes)} of {self.total} receipts processed"
        if not self.failures:
            return text
        failed = ", ".join(f"{f.filename} ({f.error})" for f in self.failures)
        return f"{text}, the following failed: {failed}"


def process_receipt(
    receipt: ReceiptFile, *, name: str, department: str
) -> ReceiptSuccess | ReceiptFailure:
    start = time.monotonic()
    try:
        text = extract_pdf_text(receipt.body)
    except UnreadableReceipt as e:
        return ReceiptFailure(filename=receipt.filename, error=str(e), upload_id=receipt.upload_id)
    if not text.strip():
        return ReceiptFailure(
            filename=receipt.filename, error="No text found in PDF", upload_id=receipt.upload_id
        )

    fields = extract_receipt_fields(text)
    if fields is None:
        return ReceiptFailure(
            filename=receipt.filename,
            error="Could not extract expense fields",
            upload_id=receipt.upload_id,
        )

    raw = RawExpenseFields.model_validate({**fields, "name": name, "department": department})
    result = validate(raw)
    if isinstance(result, list):
        message = "; ".join(e.message for e in result)
        log_event(
            logger,
            "extraction.receipt.invalid",
            filename=receipt.filename,
            errors=[e.as_dict() for e in result],
            duration_ms=monotonic_ms(start),
        )
        return ReceiptFailure(filename=receipt.filename, error=message, upload_id=receipt.upload_id)

    log_event(
        logger,
        "extraction.receipt.success",
        filename=receipt.filename,
        gl_code=result.accounting_code,
        duration_ms=monotonic_ms(start),
    )
    return ReceiptSuccess(filename=receipt.filename, record=result, upload_id=receipt.upload_id)


def _process_safely(
    receipt: ReceiptFile, *, name: str, department: str
) -> ReceiptSuccess | ReceiptFailure:
    try:
        return process_receipt(receipt, name=name, department=department)
    except Exception as e:  # noqa: BLE001
        log_exception(logger, "extraction.receipt.error", filename=receipt.filename)
        return ReceiptFailure(
            filename=receipt.filename,
            error=str(e) or type(e).__name__,
            upload_id=receipt.upload_id,
        )


def process_receipt_batch(
    receipts: Sequence[ReceiptFile], *, name: str, department: str
) -> BatchResult:
    """
    Extract and validate every receipt with bounded parallelism.

    Results keep input order. A failing receipt never affects its siblings.
    """
    start = time.monotonic()
    out = BatchResult()
    if not receipts:
        return out

    workers = max(1, min(int(settings.extraction_batch_size or 1), len(receipts)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = [
            executor.submit(_process_safely, r, name=name, department=department)
            for r in receipts
        ]
        for future in futures:
            result = future.result()
            if isinstance(result, ReceiptSuccess):
                out.successes.append(result)
            else:
                out.failures.append(result)

    log_event(
        logger,
        "extraction.batch.finish",
        total=out.total,
        processed=len(out.successes),
        failed=len(out.failures),
        workers=workers,
        duration_ms=monotonic_ms(start),
    )
    return out
