from __future__ import annotations

import enum
import re
import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENT = Decimal("0.01")
SPLIT_TOLERANCE = Decimal("0.01")
MILEAGE_RATE = Decimal("0.72")
# Largest value a numeric(12,2) column holds.
MAX_AMOUNT = Decimal("9999999999.99")

CODE_RE = re.compile(r"^\d{4}-\d{3}$")


class TripPurpose(str, enum.Enum):
    CLIENT_MEETING = "CLIENT_MEETING"
    SITE_VISIT = "SITE_VISIT"
    TRAINING = "TRAINING"
    CONFERENCE = "CONFERENCE"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, raw: object) -> TripPurpose:
        s = re.sub(r"[\s\-]+", "_", str(raw or "").strip()).upper()
        try:
            return cls(s)
        except ValueError:
            return cls.OTHER


class ErrorKind(str, enum.Enum):
    MISSING_REQUIRED_FIELD = "MissingRequiredField"
    INVALID_AMOUNT = "InvalidAmount"
    INVALID_DATE = "InvalidDate"
    INVALID_CODE_FORMAT = "InvalidCodeFormat"
    SPLIT_EXCEEDS_TOTAL = "SplitExceedsTotal"
    INVALID_SPLIT = "InvalidSplit"


@dataclass(frozen=True)
class FieldError:
    kind: ErrorKind
    field: str
    message: str

    def as_dict(self) -> dict[str, str]:
        return {"kind": self.kind.value, "field": self.field, "message": self.message}


@dataclass(frozen=True)
class MileageDetails:
    kilometers: Decimal
    from_location: str = ""
    to_location: str = ""
    trip_purpose: TripPurpose = TripPurpose.OTHER


@dataclass(frozen=True)
class SplitAllocation:
    accounting_code: str
    amount: Decimal
    percentage: Decimal


@dataclass
class ExpenseRecord:
    date: date
    merchant: str
    amount: Decimal
    accounting_code: str
    description: str = ""
    tax: Decimal = Decimal("0.00")
    name: str = ""
    department: str = ""
    location: str | None = None
    mileage: MileageDetails | None = None
    splits: tuple[SplitAllocation, ...] = ()
    id: uuid.UUID = field(default_factory=uuid.uuid4)


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_money(raw: object) -> Decimal | None:
    """
    Parse a loosely formatted amount ("$1,234.50", 12, "12.5 CAD").

    Returns None for anything that is not a finite number after stripping
    currency symbols, separators and letters.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, Decimal):
        value = raw
    elif isinstance(raw, int):
        value = Decimal(raw)
    elif isinstance(raw, float):
        value = Decimal(str(raw))
    else:
        s = re.sub(r"[^0-9.\-]", "", str(raw))
        if not s or not any(ch.isdigit() for ch in s):
            return None
        try:
            value = Decimal(s)
        except InvalidOperation:
            return None
    if not value.is_finite() or abs(value) > MAX_AMOUNT:
        return None
    return quantize_money(value)


def percentage_of(amount: Decimal, total: Decimal) -> Decimal:
    if total <= 0:
        return Decimal("0.000")
    return (amount / total * 100).quantize(Decimal("0.001"), rounding=ROUND_HALF_UP)


def primary_allocation(record: ExpenseRecord) -> Decimal:
    """Share of the amount left on the record's own code after its splits."""
    return record.amount - sum((s.amount for s in record.splits), Decimal("0.00"))
