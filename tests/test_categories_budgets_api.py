import pytest

from conftest import TODAY


def test_unknown_icon_is_stored_as_fallback(client, make_category):
    cat = make_category(icon="Rocket")
    assert cat["icon"] == "HelpCircle"


def test_category_update(client, make_category):
    cat = make_category()
    r = client.patch(f"/categories/{cat['id']}", json={"name": "Supermercado", "color": "#EF4444"})
    assert r.status_code == 200
    assert r.json()["name"] == "Supermercado"
    assert client.patch(f"/categories/{cat['id']}", json={"color": "rojo"}).status_code == 422


def test_category_in_use_cannot_be_deleted(client, make_category, make_expense):
    cat = make_category()
    expense = make_expense(cat["id"])

    r = client.delete(f"/categories/{cat['id']}")
    assert r.status_code == 409
    assert r.json()["detail"]["expenses"] == 1

    # Soft-deleted expenses still reference the category
    client.delete(f"/expenses/{expense['id']}")
    assert client.delete(f"/categories/{cat['id']}").status_code == 409


def test_unused_category_is_deleted(client, make_category):
    cat = make_category()
    assert client.delete(f"/categories/{cat['id']}").status_code == 204
    assert client.get("/categories").json() == []


def test_budget_end_date_is_derived(client, make_category):
    cat = make_category()
    r = client.post("/budgets", json={"category_id": cat["id"], "amount": 300, "start_date": "2025-01-31"})
    assert r.status_code == 201
    body = r.json()
    assert body["end_date"] == "2025-02-28"
    assert body["currency"] == "USD"
    assert body["active"] is False


def test_budget_window_must_be_ordered(client, make_category):
    cat = make_category()
    r = client.post(
        "/budgets",
        json={"category_id": cat["id"], "amount": 300, "start_date": "2025-03-10", "end_date": "2025-03-01"},
    )
    assert r.status_code == 400


def test_active_filter(client, make_category):
    cat = make_category()
    client.post("/budgets", json={"category_id": cat["id"], "amount": 300, "start_date": "2025-03-01"})
    client.post("/budgets", json={"category_id": cat["id"], "amount": 100, "start_date": "2024-01-01"})

    active = client.get("/budgets", params={"active": True}).json()
    assert [b["amount"] for b in active] == [300]
    assert len(client.get("/budgets").json()) == 2


def test_deleted_budget_leaves_list(client, make_category):
    cat = make_category()
    budget = client.post(
        "/budgets", json={"category_id": cat["id"], "amount": 300, "start_date": TODAY.isoformat()}
    ).json()

    assert client.delete(f"/budgets/{budget['id']}").status_code == 204
    assert client.get("/budgets").json() == []
    assert client.delete(f"/budgets/{budget['id']}").status_code == 404


def test_budget_update(client, make_category):
    cat = make_category()
    budget = client.post(
        "/budgets", json={"category_id": cat["id"], "amount": 300, "start_date": "2025-03-01"}
    ).json()
    r = client.patch(f"/budgets/{budget['id']}", json={"amount": 450})
    assert r.status_code == 200
    assert r.json()["amount"] == 450
    assert r.json()["active"] is True


def test_category_color_must_be_hex(client):
    r = client.post("/categories", json={"name": "Viajes", "icon": "Plane", "color": "rojo"})
    assert r.status_code == 422
    assert client.get("/categories").json() == []


def test_ui_icon_is_not_a_category_icon(client, make_category):
    cat = make_category(icon="Settings")
    assert cat["icon"] == "HelpCircle"

    r = client.patch(f"/categories/{cat['id']}", json={"icon": "Trash2"})
    assert r.status_code == 200
    assert r.json()["icon"] == "HelpCircle"


@pytest.mark.parametrize("field", ["name", "icon", "color"])
def test_category_fields_cannot_be_cleared(client, make_category, field):
    cat = make_category()
    r = client.patch(f"/categories/{cat['id']}", json={field: None})
    assert r.status_code == 400
    assert client.get("/categories").json()[0][field] == cat[field]


def test_budget_period_must_be_known(client, make_category):
    cat = make_category()
    r = client.post(
        "/budgets",
        json={"category_id": cat["id"], "amount": 300, "period": "weekly", "start_date": "2025-03-01"},
    )
    assert r.status_code == 422
    assert client.get("/budgets").json() == []


def test_budget_amount_must_be_finite(client, make_category):
    cat = make_category()
    body = '{"category_id": "%s", "amount": 1e309, "start_date": "2025-03-01"}' % cat["id"]
    r = client.post("/budgets", content=body, headers={"Content-Type": "application/json"})
    assert r.status_code == 422
    assert client.get("/budgets").json() == []
