import uuid
from datetime import date

import pytest

from ahorrai.core.errors import ValidationFailed
from ahorrai.models.category import Category
from ahorrai.services.management import (
    DEFAULT_ALERT_THRESHOLD,
    DEFAULT_BUDGET,
    add_period,
    default_alert_settings,
    recommended_budget,
    spending_trends,
    validate_wizard,
    wizard_to_records,
)


@pytest.mark.parametrize(
    "start, period, end",
    [
        (date(2025, 3, 1), "monthly", date(2025, 4, 1)),
        (date(2025, 1, 31), "monthly", date(2025, 2, 28)),
        (date(2024, 12, 15), "monthly", date(2025, 1, 15)),
        (date(2024, 2, 29), "yearly", date(2025, 2, 28)),
    ],
)
def test_add_period(start, period, end):
    assert add_period(start, period) == end


def test_recommended_budget_by_similar_name():
    assert recommended_budget("transporte") == 400
    assert recommended_budget("Comida") == 800
    assert recommended_budget("Mascotas") == DEFAULT_BUDGET
    assert recommended_budget("") == DEFAULT_BUDGET


def test_wizard_validation():
    errors = validate_wizard({"name": " ", "icon": "Rocket", "color": "blue", "budget": 0})
    assert set(errors) == {"name", "icon", "color", "budget"}


@pytest.mark.parametrize("color", ["#ZZZZZZ", "#12345", "#1234567", "10B981", ""])
def test_wizard_rejects_malformed_colors(color):
    errors = validate_wizard({"name": "Viajes", "icon": "Plane", "color": color})
    assert set(errors) == {"color"}


@pytest.mark.parametrize("budget", [float("inf"), float("-inf"), float("nan")])
def test_wizard_rejects_non_finite_budget(budget):
    errors = validate_wizard({"name": "Viajes", "icon": "Plane", "color": "#06B6D4", "budget": budget})
    assert set(errors) == {"budget"}


def test_wizard_to_records_with_budget():
    category, budget = wizard_to_records(
        {"name": " Mascotas ", "icon": "Heart", "color": "#EC4899", "budget": 150, "period": "yearly"},
        today=date(2025, 3, 15),
    )
    assert category["name"] == "Mascotas"
    assert budget == {
        "amount": 150.0,
        "period": "yearly",
        "start_date": date(2025, 3, 15),
        "end_date": date(2026, 3, 15),
    }


def test_wizard_to_records_without_budget():
    _, budget = wizard_to_records({"name": "Regalos", "icon": "Gift", "color": "#F59E0B"})
    assert budget is None


def test_wizard_to_records_raises_on_invalid():
    with pytest.raises(ValidationFailed):
        wizard_to_records({"name": "", "icon": "Gift", "color": "#F59E0B"})


def test_default_alert_settings():
    cat = Category(id=uuid.uuid4(), user_id=uuid.uuid4(), name="Comida")
    settings = default_alert_settings([cat])
    alert = settings["category_alerts"][str(cat.id)]
    assert alert["threshold"] == DEFAULT_ALERT_THRESHOLD
    assert alert["enabled"] is True


def test_spending_trends_period_lengths():
    assert len(spending_trends("3months")["data"]) == 3
    assert len(spending_trends("1year")["data"]) == 12
    assert spending_trends("decade")["period"] == "3months"


def test_spending_trends_stats():
    trends = spending_trends("3months")
    food = next(s for s in trends["stats"] if s["category"] == "Comida")
    assert food["average"] == pytest.approx((720 + 680 + 650) / 3, abs=0.01)
    assert food["change"] == pytest.approx(-9.7, abs=0.05)
