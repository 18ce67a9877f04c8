from __future__ import annotations

import dataclasses
from collections.abc import Sequence
from decimal import Decimal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from receipt_spend.modules.expenses.domain import (
    CODE_RE,
    SPLIT_TOLERANCE,
    ErrorKind,
    ExpenseRecord,
    FieldError,
    SplitAllocation,
    parse_money,
    percentage_of,
    quantize_money,
)

Scalar = str | int | float | Decimal | None


class SplitInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    code: str = Field(validation_alias=AliasChoices("code", "gl_code", "glCode"))
    amount: Scalar = None
    percentage: Scalar = None


def _present(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def _resolve(idx: int, item: SplitInput, total: Decimal) -> SplitAllocation | FieldError:
    prefix = f"splits[{idx}]"
    code = (item.code or "").strip()
    if not code:
        return FieldError(
            ErrorKind.MISSING_REQUIRED_FIELD, f"{prefix}.code", "Split G/L code is required"
        )
    if not CODE_RE.match(code):
        return FieldError(
            ErrorKind.INVALID_CODE_FORMAT,
            f"{prefix}.code",
            f"Split G/L code must look like NNNN-NNN (got {code!r})",
        )

    has_amount = _present(item.amount)
    has_percentage = _present(item.percentage)
    if not has_amount and not has_percentage:
        return FieldError(
            ErrorKind.INVALID_SPLIT, prefix, "Split needs either an amount or a percentage"
        )

    amount: Decimal | None = None
    if has_amount:
        amount = parse_money(item.amount)
        if amount is None or amount < 0:
            return FieldError(
                ErrorKind.INVALID_AMOUNT,
                f"{prefix}.amount",
                f"Split amount must be a non-negative number (got {item.amount!r})",
            )

    if has_percentage:
        pct = parse_money(item.percentage)
        if pct is None or pct < 0:
            return FieldError(
                ErrorKind.INVALID_AMOUNT,
                f"{prefix}.percentage",
                f"Split percentage must be a non-negative number (got {item.percentage!r})",
            )
        derived = quantize_money(pct / 100 * total)
        if amount is None:
            amount = derived
        elif abs(derived - amount) > SPLIT_TOLERANCE:
            return FieldError(
                ErrorKind.INVALID_SPLIT,
                prefix,
                f"Split amount {amount} does not match {pct}% of {total}",
            )

    # Each split stays within the total; only the sum gets SPLIT_TOLERANCE for rounding.
    if amount > total:
        return FieldError(
            ErrorKind.SPLIT_EXCEEDS_TOTAL,
            f"{prefix}.amount",
            f"Split amount {amount} exceeds the expense total {total}",
        )
    return SplitAllocation(
        accounting_code=code, amount=amount, percentage=percentage_of(amount, total)
    )


def resolve_splits(
    total: Decimal, inputs: Sequence[SplitInput]
) -> tuple[SplitAllocation, ...] | FieldError:
    """Turn split inputs into allocations against `total`, or the first error found."""
    allocations: list[SplitAllocation] = []
    for idx, item in enumerate(inputs):
        resolved = _resolve(idx, item, total)
        if isinstance(resolved, FieldError):
            return resolved
        allocations.append(resolved)

    allocated = sum((a.amount for a in allocations), Decimal("0.00"))
    if allocated > total + SPLIT_TOLERANCE:
        return FieldError(
            ErrorKind.SPLIT_EXCEEDS_TOTAL,
            "splits",
            f"Splits total {allocated} exceeds the expense total {total}",
        )
    return tuple(allocations)


def apply_split(
    record: ExpenseRecord, inputs: Sequence[SplitInput]
) -> ExpenseRecord | FieldError:
    """
    Replace the record's splits wholesale.

    Returns a new record; `record` itself is never modified, so a rejected
    split leaves the caller's copy as it was.
    """
    resolved = resolve_splits(record.amount, inputs)
    if isinstance(resolved, FieldError):
        return resolved
    return dataclasses.replace(record, splits=resolved)


def recheck_splits(record: ExpenseRecord) -> ExpenseRecord | FieldError:
    """Re-derive percentages of existing splits after the record's amount changed."""
    inputs = [SplitInput(code=s.accounting_code, amount=s.amount) for s in record.splits]
    return apply_split(record, inputs)
