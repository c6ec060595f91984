import uuid
from datetime import date

import pytest

from ahorrai.core.errors import GENERIC_ERROR_MESSAGE, DataAccessError, NotFoundError
from ahorrai.data import budgets as budgets_data
from ahorrai.data import categories as categories_data
from ahorrai.data import expenses as expenses_data
from ahorrai.data import profiles as profiles_data


@pytest.fixture
def profile(session):
    return profiles_data.create_profile(session, {"email": "Luis@Example.com".lower(), "hashed_password": "x"})


@pytest.fixture
def category(session, profile):
    return categories_data.create_category(session, profile.id, {"name": "Comida", "icon": "Coffee"})


def test_duplicate_email_becomes_data_access_error(session, profile):
    with pytest.raises(DataAccessError) as exc:
        profiles_data.create_profile(session, {"email": profile.email, "hashed_password": "y"})
    assert exc.value.operation == "create profile"
    # The session is usable again after the rollback
    assert profiles_data.fetch_profile_by_email(session, "LUIS@example.com").id == profile.id


def test_missing_rows_raise_not_found(session, profile):
    with pytest.raises(NotFoundError):
        categories_data.fetch_category(session, uuid.uuid4())
    with pytest.raises(NotFoundError):
        budgets_data.fetch_budget(session, uuid.uuid4())
    with pytest.raises(NotFoundError):
        profiles_data.fetch_profile(session, uuid.uuid4())


def test_fetch_category_checks_owner(session, category):
    with pytest.raises(NotFoundError):
        categories_data.fetch_category(session, category.id, user_id=uuid.uuid4())


def test_categories_in_creation_order(session, profile, category):
    second = categories_data.create_category(session, profile.id, {"name": "Transporte", "icon": "Car"})
    assert [c.id for c in categories_data.fetch_categories(session, profile.id)] == [category.id, second.id]


def test_partial_update_keeps_other_fields(session, category):
    updated = categories_data.update_category(session, category.id, {"color": "#EF4444"})
    assert updated.color == "#EF4444"
    assert updated.name == "Comida"
    assert updated.icon == "Coffee"


def test_expense_soft_delete_and_since_filter(session, profile, category):
    old = expenses_data.create_expense(
        session, profile.id,
        {"category_id": category.id, "amount": 10, "merchant": "A", "expense_date": date(2025, 1, 5)},
    )
    new = expenses_data.create_expense(
        session, profile.id,
        {"category_id": category.id, "amount": 20, "merchant": "B", "expense_date": date(2025, 3, 5)},
    )
    assert [e.id for e in expenses_data.fetch_expenses(session, profile.id, since=date(2025, 2, 1))] == [new.id]
    assert [e.id for e in expenses_data.fetch_expenses(session, profile.id, limit=1)] == [new.id]

    expenses_data.delete_expense(session, old.id)
    assert [e.id for e in expenses_data.fetch_expenses(session, profile.id)] == [new.id]
    with pytest.raises(NotFoundError):
        expenses_data.fetch_expense(session, old.id)
    assert categories_data.count_expenses_for_category(session, category.id) == 2


def test_budget_hard_delete(session, profile, category):
    budget = budgets_data.create_budget(
        session, profile.id,
        {"category_id": category.id, "amount": 100, "start_date": date(2025, 3, 1), "end_date": date(2025, 4, 1)},
    )
    assert categories_data.count_budgets_for_category(session, category.id) == 1
    budgets_data.delete_budget(session, budget.id)
    assert budgets_data.fetch_budgets(session, profile.id) == []
    assert categories_data.count_budgets_for_category(session, category.id) == 0


def test_store_failure_returns_generic_message(client, monkeypatch):
    def broken(*args, **kwargs):
        raise DataAccessError("fetch expenses", "connection reset")

    monkeypatch.setattr(expenses_data, "fetch_expenses", broken)
    r = client.get("/expenses")
    assert r.status_code == 502
    assert r.json() == {"detail": GENERIC_ERROR_MESSAGE}
