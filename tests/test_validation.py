from __future__ import annotations

from datetime import date
from decimal import Decimal

from receipt_spend.modules.expenses.domain import ErrorKind, ExpenseRecord, TripPurpose
from receipt_spend.modules.expenses.validation import (
    RawExpenseFields,
    raw_from_record,
    validate,
    validate_batch,
)


def _raw(**overrides) -> RawExpenseFields:
    data = {
        "date": "2024-03-01",
        "merchant": "Hilton",
        "amount": "300.00",
        "description": "Hotel stay",
        "gl_code": "6012-000",
    }
    data.update(overrides)
    return RawExpenseFields.model_validate(data)


def test_valid_record():
    record = validate(_raw(amount="$1,234.50", tax="CAD 12.3"))

    assert isinstance(record, ExpenseRecord)
    assert record.date == date(2024, 3, 1)
    assert record.amount == Decimal("1234.50")
    assert record.tax == Decimal("12.30")
    assert record.accounting_code == "6012-000"
    assert record.splits == ()
    assert record.name == ""
    assert record.mileage is None


def test_aliases_are_accepted():
    raw = RawExpenseFields.model_validate(
        {
            "date": "2024-03-01",
            "title": "Tim Hortons",
            "amount": 4.5,
            "description": "Coffee",
            "glCode": "6010-000",
        }
    )
    record = validate(raw)

    assert isinstance(record, ExpenseRecord)
    assert record.merchant == "Tim Hortons"
    assert record.amount == Decimal("4.50")
    assert record.accounting_code == "6010-000"


def test_all_missing_fields_are_reported():
    errors = validate(RawExpenseFields())

    assert isinstance(errors, list)
    assert {e.field for e in errors} == {"merchant", "date", "description", "amount"}
    assert all(e.kind == ErrorKind.MISSING_REQUIRED_FIELD for e in errors)


def test_empty_description_is_allowed():
    record = validate(_raw(description=""))

    assert isinstance(record, ExpenseRecord)
    assert record.description == ""


def test_invalid_dates():
    for bad in ("2024-02-30", "03/01/2024", "2024-3-1"):
        errors = validate(_raw(date=bad))
        assert isinstance(errors, list)
        assert [e.kind for e in errors] == [ErrorKind.INVALID_DATE]


def test_date_objects_are_accepted():
    record = validate(_raw(date=date(2024, 2, 29)))

    assert isinstance(record, ExpenseRecord)
    assert record.date == date(2024, 2, 29)


def test_invalid_amounts():
    for bad in ("-5", "abc", "n/a", "1" * 30, 1e30, "10000000000.00"):
        errors = validate(_raw(amount=bad))
        assert isinstance(errors, list)
        assert [e.kind for e in errors] == [ErrorKind.INVALID_AMOUNT]


def test_largest_storable_amount_is_accepted():
    record = validate(_raw(amount="9,999,999,999.99"))

    assert isinstance(record, ExpenseRecord)
    assert record.amount == Decimal("9999999999.99")


def test_invalid_tax_defaults_to_zero():
    record = validate(_raw(tax="n/a"))
    assert isinstance(record, ExpenseRecord)
    assert record.tax == Decimal("0.00")

    record = validate(_raw(tax="-3"))
    assert isinstance(record, ExpenseRecord)
    assert record.tax == Decimal("0.00")


def test_malformed_code_is_rejected():
    errors = validate(_raw(gl_code="6012"))

    assert isinstance(errors, list)
    assert [e.kind for e in errors] == [ErrorKind.INVALID_CODE_FORMAT]


def test_custom_well_formed_code_is_kept():
    record = validate(_raw(gl_code="9999-999"))

    assert isinstance(record, ExpenseRecord)
    assert record.accounting_code == "9999-999"


def test_missing_code_is_classified():
    record = validate(_raw(merchant="Starbucks", description="Coffee meeting", gl_code=None))

    assert isinstance(record, ExpenseRecord)
    assert record.accounting_code == "6010-000"


def test_mileage_amount_is_read_as_kilometers():
    record = validate(_raw(merchant="Mileage claim", amount="100", tax="5", gl_code="6026-000"))

    assert isinstance(record, ExpenseRecord)
    assert record.mileage is not None
    assert record.mileage.kilometers == Decimal("100.00")
    assert record.amount == Decimal("72.00")
    assert record.tax == Decimal("0.00")


def test_mileage_with_explicit_kilometers():
    raw = RawExpenseFields.model_validate(
        {
            "date": "2024-03-01",
            "merchant": "Site visit",
            "description": "Drive to site",
            "glCode": "6026-000",
            "kilometers": "50",
            "fromLocation": "Toronto",
            "toLocation": "Hamilton",
            "tripPurpose": "site visit",
        }
    )
    record = validate(raw)

    assert isinstance(record, ExpenseRecord)
    assert record.amount == Decimal("36.00")
    assert record.mileage is not None
    assert record.mileage.from_location == "Toronto"
    assert record.mileage.trip_purpose == TripPurpose.SITE_VISIT


def test_unknown_trip_purpose_is_other():
    record = validate(_raw(gl_code="6026-000", amount="10", trip_purpose="road trip"))

    assert isinstance(record, ExpenseRecord)
    assert record.mileage is not None
    assert record.mileage.trip_purpose == TripPurpose.OTHER


def test_batch_keeps_going_after_failures():
    result = validate_batch([_raw(), _raw(date="bad"), _raw(merchant="Zoom", gl_code="6404-000")])

    assert [r.merchant for r in result.records] == ["Hilton", "Zoom"]
    assert len(result.failures) == 1
    idx, errors = result.failures[0]
    assert idx == 1
    assert errors[0].kind == ErrorKind.INVALID_DATE


def test_raw_from_record_revalidates_to_same_fields():
    record = validate(_raw(location="Toronto", tax="39"))
    assert isinstance(record, ExpenseRecord)

    again = validate(raw_from_record(record), record_id=record.id)

    assert again == record
