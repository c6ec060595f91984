import uuid
from datetime import date

import pytest

from ahorrai.core.errors import ValidationFailed
from ahorrai.models.expense import Expense
from ahorrai.services.expense_forms import (
    AMOUNT_ERROR,
    CATEGORY_ERROR,
    FUTURE_DATE_ERROR,
    MERCHANT_ERROR,
    PAYMENT_METHOD_ERROR,
    duplicate_draft,
    ensure_valid_expense_form,
    split_expense,
    suggest_merchants,
    validate_batch_forms,
    validate_expense_form,
)

TODAY = date(2025, 3, 15)


def valid_form(**overrides):
    form = {"amount": 12.5, "category_id": str(uuid.uuid4()), "merchant": "Starbucks"}
    form.update(overrides)
    return form


def test_valid_form_has_no_errors():
    assert validate_expense_form(valid_form(payment_method="cash", expense_date="2025-03-01"), TODAY) == {}


@pytest.mark.parametrize("amount", [None, "", 0, -3, "abc"])
def test_amount_must_be_positive(amount):
    assert validate_expense_form(valid_form(amount=amount), TODAY) == {"amount": AMOUNT_ERROR}


def test_empty_form_reports_every_required_field():
    errors = validate_expense_form({"merchant": "   "}, TODAY)
    assert errors == {
        "amount": AMOUNT_ERROR,
        "category_id": CATEGORY_ERROR,
        "merchant": MERCHANT_ERROR,
    }


def test_unknown_payment_method():
    errors = validate_expense_form(valid_form(payment_method="bitcoin"), TODAY)
    assert errors == {"payment_method": PAYMENT_METHOD_ERROR}


def test_future_date_is_rejected():
    errors = validate_expense_form(valid_form(expense_date=date(2025, 3, 16)), TODAY)
    assert errors == {"expense_date": FUTURE_DATE_ERROR}


def test_partial_only_checks_given_fields():
    assert validate_expense_form({"notes": "x"}, TODAY, partial=True) == {}
    assert validate_expense_form({"amount": 0}, TODAY, partial=True) == {"amount": AMOUNT_ERROR}


def test_ensure_valid_raises_with_errors():
    with pytest.raises(ValidationFailed) as exc:
        ensure_valid_expense_form(valid_form(amount=0), TODAY)
    assert exc.value.errors == {"amount": AMOUNT_ERROR}


def test_merchant_suggestions_filter_case_insensitive():
    assert suggest_merchants("STAR") == ["Starbucks"]
    assert "Amazon" in suggest_merchants(None)
    assert suggest_merchants("zzz") == []


def test_duplicate_draft_uses_today_and_marks_copy():
    original = Expense(
        id=uuid.uuid4(), user_id=uuid.uuid4(), category_id=uuid.uuid4(),
        amount=40, merchant="Uber", expense_date=date(2025, 1, 2),
        description="Viaje al aeropuerto", tags=["viaje"],
    )
    draft = duplicate_draft(original, TODAY)
    assert draft["expense_date"] == "2025-03-15"
    assert draft["description"] == "Viaje al aeropuerto (copia)"
    assert draft["amount"] == 40
    assert draft["tags"] == ["viaje"]


def test_split_by_percentage():
    a, b = str(uuid.uuid4()), str(uuid.uuid4())
    parts = split_expense(80, "percentage", [{"category_id": a, "percentage": 25}, {"category_id": b, "percentage": 75}])
    assert [p["amount"] for p in parts] == [20, 60]


def test_split_by_amount():
    a, b = str(uuid.uuid4()), str(uuid.uuid4())
    parts = split_expense(80, "amount", [{"category_id": a, "amount": 30}, {"category_id": b, "amount": 50}])
    assert [p["percentage"] for p in parts] == [37.5, 62.5]


def test_split_must_add_up():
    with pytest.raises(ValidationFailed) as exc:
        split_expense(80, "percentage", [{"category_id": "x", "percentage": 50}, {"category_id": "y", "percentage": 40}])
    assert "splits" in exc.value.errors
    with pytest.raises(ValidationFailed):
        split_expense(80, "amount", [{"category_id": "x", "amount": 10}])


def test_split_rejects_unknown_method():
    with pytest.raises(ValidationFailed) as exc:
        split_expense(80, "shares", [{"category_id": "x", "shares": 1}])
    assert "method" in exc.value.errors


def test_batch_errors_are_keyed_by_receipt():
    errors = validate_batch_forms(
        [valid_form(), valid_form(amount=0, merchant=""), valid_form(expense_date="2025-03-20")],
        today=TODAY,
    )
    assert errors == {
        "receipts[1].amount": AMOUNT_ERROR,
        "receipts[1].merchant": MERCHANT_ERROR,
        "receipts[2].expense_date": FUTURE_DATE_ERROR,
    }
    assert validate_batch_forms([valid_form(), valid_form()], today=TODAY) == {}
