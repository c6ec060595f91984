import uuid

from ahorrai.data import expenses as expenses_data
from ahorrai.services.expense_forms import AMOUNT_ERROR, CATEGORY_ERROR, FUTURE_DATE_ERROR, MERCHANT_ERROR
from conftest import TODAY


def test_zero_amount_never_reaches_the_store(client, make_category, monkeypatch):
    cat = make_category()
    calls = []
    monkeypatch.setattr(expenses_data, "create_expense", lambda *a, **kw: calls.append(a))

    r = client.post("/expenses", json={"amount": 0, "category_id": cat["id"], "merchant": "Target"})
    assert r.status_code == 422
    assert r.json() == {"errors": {"amount": AMOUNT_ERROR}}
    assert calls == []


def test_missing_fields_are_reported_together(client):
    r = client.post("/expenses", json={"merchant": " "})
    assert r.status_code == 422
    assert r.json()["errors"] == {
        "amount": AMOUNT_ERROR,
        "category_id": CATEGORY_ERROR,
        "merchant": MERCHANT_ERROR,
    }


def test_future_date_is_rejected(client, make_category):
    cat = make_category()
    r = client.post(
        "/expenses",
        json={"amount": 5, "category_id": cat["id"], "merchant": "Shell", "expense_date": "2025-03-16"},
    )
    assert r.status_code == 422
    assert r.json()["errors"] == {"expense_date": FUTURE_DATE_ERROR}


def test_created_expense_round_trips(client, make_category, make_expense):
    cat = make_category()
    created = make_expense(cat["id"], amount=42.1, merchant=" Walmart ", payment_method="debit_card", tags=["casa"])

    fetched = client.get(f"/expenses/{created['id']}").json()
    assert fetched["amount"] == 42.1
    assert fetched["merchant"] == "Walmart"
    assert fetched["category_id"] == cat["id"]
    assert fetched["expense_date"] == TODAY.isoformat()
    assert fetched["payment_method"] == "debit_card"
    assert fetched["tags"] == ["casa"]
    assert fetched["currency"] == "USD"
    assert [entry["action"] for entry in fetched["activity_log"]] == ["created"]


def test_expense_needs_own_category(client):
    r = client.post("/expenses", json={"amount": 5, "category_id": str(uuid.uuid4()), "merchant": "Shell"})
    assert r.status_code == 400


def test_list_is_newest_first(client, make_category, make_expense):
    cat = make_category()
    make_expense(cat["id"], merchant="Viejo", expense_date=TODAY.replace(day=1))
    make_expense(cat["id"], merchant="Nuevo")
    assert [e["merchant"] for e in client.get("/expenses").json()] == ["Nuevo", "Viejo"]


def test_update_appends_activity(client, make_category, make_expense):
    cat = make_category()
    created = make_expense(cat["id"])

    r = client.patch(f"/expenses/{created['id']}", json={"amount": 30, "notes": "con propina"})
    assert r.status_code == 200
    body = r.json()
    assert body["amount"] == 30
    assert [entry["action"] for entry in body["activity_log"]] == ["created", "updated"]

    r = client.patch(f"/expenses/{created['id']}", json={"amount": -1})
    assert r.status_code == 422


def test_delete_hides_expense(client, make_category, make_expense):
    cat = make_category()
    created = make_expense(cat["id"])

    assert client.delete(f"/expenses/{created['id']}").status_code == 204
    assert client.get("/expenses").json() == []
    assert client.get(f"/expenses/{created['id']}").status_code == 404


def test_split_preview(client, make_category, make_expense):
    food, fun = make_category("Comida"), make_category("Ocio", icon="Film")
    created = make_expense(food["id"], amount=50)

    r = client.post(
        f"/expenses/{created['id']}/split",
        json={"method": "percentage", "splits": [
            {"category_id": food["id"], "percentage": 60},
            {"category_id": fun["id"], "percentage": 40},
        ]},
    )
    assert r.status_code == 200
    assert [p["amount"] for p in r.json()["splits"]] == [30, 20]

    r = client.post(
        f"/expenses/{created['id']}/split",
        json={"method": "amount", "splits": [{"category_id": food["id"], "amount": 10}]},
    )
    assert r.status_code == 422


def test_currency_must_be_iso_code(client, make_category):
    cat = make_category()
    for currency in ("us$", "usd"):
        r = client.post(
            "/expenses",
            json={"amount": 5, "category_id": cat["id"], "merchant": "Shell", "currency": currency},
        )
        assert r.status_code == 422
    assert client.get("/expenses").json() == []


def test_overflowing_amount_is_rejected(client, make_category):
    cat = make_category()
    body = '{"amount": 1e309, "category_id": "%s", "merchant": "Target"}' % cat["id"]
    r = client.post("/expenses", content=body, headers={"Content-Type": "application/json"})
    assert r.status_code == 422
    assert r.json() == {"errors": {"amount": AMOUNT_ERROR}}

    assert client.get("/financial-dashboard").status_code == 200
