"""
Expense record validation.

`validate` is the only place where loosely typed field bags (LLM extraction
output, edit forms) become `ExpenseRecord`s. Expected failures are returned as
`FieldError` values, never raised.
"""

from __future__ import annotations

import datetime as dt
import re
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from receipt_spend.modules.expenses.domain import (
    CODE_RE,
    MILEAGE_RATE,
    ErrorKind,
    ExpenseRecord,
    FieldError,
    MileageDetails,
    TripPurpose,
    parse_money,
    quantize_money,
)
from receipt_spend.modules.ledger import catalog
from receipt_spend.modules.ledger.classify import classify

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

Scalar = str | int | float | Decimal | None


class RawExpenseFields(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    date: str | dt.date | None = None
    merchant: str | None = None
    title: str | None = None
    amount: Scalar = None
    tax: Scalar = None
    description: str | None = None
    gl_code: str | None = Field(default=None, validation_alias=AliasChoices("gl_code", "glCode"))
    name: str | None = None
    department: str | None = None
    location: str | None = None
    kilometers: Scalar = None
    from_location: str | None = Field(
        default=None, validation_alias=AliasChoices("from_location", "fromLocation")
    )
    to_location: str | None = Field(
        default=None, validation_alias=AliasChoices("to_location", "toLocation")
    )
    trip_purpose: str | None = Field(
        default=None, validation_alias=AliasChoices("trip_purpose", "tripPurpose")
    )


@dataclass
class BatchValidation:
    records: list[ExpenseRecord] = field(default_factory=list)
    failures: list[tuple[int, list[FieldError]]] = field(default_factory=list)


def _clean_text(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _present(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def _parse_date(raw: str | dt.date) -> dt.date | None:
    if isinstance(raw, dt.date):
        return raw
    s = raw.strip()
    if not _DATE_RE.match(s):
        return None
    try:
        return dt.date.fromisoformat(s)
    except ValueError:
        return None


def _missing(name: str) -> FieldError:
    return FieldError(ErrorKind.MISSING_REQUIRED_FIELD, name, f"{name} is required")


def _invalid_amount(name: str, raw: object) -> FieldError:
    return FieldError(
        ErrorKind.INVALID_AMOUNT, name, f"{name} must be a non-negative number (got {raw!r})"
    )


def validate(
    raw: RawExpenseFields, *, record_id: uuid.UUID | None = None
) -> ExpenseRecord | list[FieldError]:
    errors: list[FieldError] = []

    merchant = _clean_text(raw.merchant) or _clean_text(raw.title)
    if not merchant:
        errors.append(_missing("merchant"))

    parsed_date: dt.date | None = None
    if not _present(raw.date):
        errors.append(_missing("date"))
    else:
        parsed_date = _parse_date(raw.date)
        if parsed_date is None:
            errors.append(
                FieldError(
                    ErrorKind.INVALID_DATE, "date", f"date must be YYYY-MM-DD (got {raw.date!r})"
                )
            )

    if raw.description is None:
        errors.append(_missing("description"))
    description = _clean_text(raw.description)

    code: str | None = None
    code_raw = _clean_text(raw.gl_code)
    if code_raw:
        if CODE_RE.match(code_raw):
            code = code_raw
        else:
            errors.append(
                FieldError(
                    ErrorKind.INVALID_CODE_FORMAT,
                    "gl_code",
                    f"gl_code must look like NNNN-NNN (got {code_raw!r})",
                )
            )
    else:
        code = classify(merchant, description).code

    is_mileage = code == catalog.MILEAGE

    kilometers: Decimal | None = None
    if is_mileage and _present(raw.kilometers):
        kilometers = parse_money(raw.kilometers)
        if kilometers is None or kilometers < 0:
            errors.append(_invalid_amount("kilometers", raw.kilometers))
            kilometers = None

    amount: Decimal | None = None
    if is_mileage and _present(raw.kilometers):
        pass
    elif not _present(raw.amount):
        errors.append(_missing("amount"))
    else:
        amount = parse_money(raw.amount)
        if amount is None or amount < 0:
            errors.append(_invalid_amount("amount", raw.amount))
            amount = None

    if errors or parsed_date is None or code is None:
        return errors

    mileage: MileageDetails | None = None
    if is_mileage:
        # Without an explicit distance the amount field carries kilometers.
        km = kilometers if kilometers is not None else amount
        mileage = MileageDetails(
            kilometers=km or Decimal("0.00"),
            from_location=_clean_text(raw.from_location),
            to_location=_clean_text(raw.to_location),
            trip_purpose=TripPurpose.parse(raw.trip_purpose),
        )
        amount = quantize_money(mileage.kilometers * MILEAGE_RATE)
        tax = Decimal("0.00")
    else:
        tax = parse_money(raw.tax) if _present(raw.tax) else None
        if tax is None or tax < 0:
            tax = Decimal("0.00")

    return ExpenseRecord(
        id=record_id or uuid.uuid4(),
        date=parsed_date,
        merchant=merchant,
        amount=amount or Decimal("0.00"),
        tax=tax,
        description=description,
        accounting_code=code,
        name=_clean_text(raw.name),
        department=_clean_text(raw.department),
        location=_clean_text(raw.location) or None,
        mileage=mileage,
        splits=(),
    )


def validate_batch(raws: Iterable[RawExpenseFields]) -> BatchValidation:
    out = BatchValidation()
    for idx, raw in enumerate(raws):
        result = validate(raw)
        if isinstance(result, ExpenseRecord):
            out.records.append(result)
        else:
            out.failures.append((idx, result))
    return out


def raw_from_record(record: ExpenseRecord) -> RawExpenseFields:
    """Field bag that re-validates to `record` (splits aside)."""
    data: dict[str, object] = {
        "date": record.date.isoformat(),
        "merchant": record.merchant,
        "amount": record.amount,
        "tax": record.tax,
        "description": record.description,
        "gl_code": record.accounting_code,
        "name": record.name,
        "department": record.department,
        "location": record.location,
    }
    if record.mileage is not None:
        data.update(
            kilometers=record.mileage.kilometers,
            from_location=record.mileage.from_location,
            to_location=record.mileage.to_location,
            trip_purpose=record.mileage.trip_purpose.value,
        )
    return RawExpenseFields.model_validate(data)
