import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

import main


def post_expense(api, **overrides):
    payload = {"description": "Coffee", "amount": 3.5, "category": "Food"}
    payload.update(overrides)
    return api.post("/api/expenses", json=payload)


def test_create_returns_201_with_id(api):
    response = post_expense(api, date="2025-03-15T12:00:00Z")

    assert response.status_code == 201
    body = response.json()
    assert ObjectId.is_valid(body["id"])
    assert body["date"].startswith("2025-03-15T12:00:00")
    assert body["category"] == "Food"


def test_amount_is_coerced_to_number(api):
    response = post_expense(api, amount="12.50")

    assert response.status_code == 201
    assert response.json()["amount"] == 12.5


def test_create_rejects_missing_fields(api):
    response = api.post("/api/expenses", json={"amount": 10, "category": "Food"})
    assert response.status_code == 422


def test_create_rejects_blank_description(api):
    assert post_expense(api, description="   ").status_code == 422


def test_create_rejects_unknown_category(api):
    assert post_expense(api, category="Rent").status_code == 422


def test_list_is_newest_first(api):
    post_expense(api, description="old", date="2025-01-01T00:00:00Z")
    post_expense(api, description="new", date="2025-02-01T00:00:00Z")

    response = api.get("/api/expenses")

    assert response.status_code == 200
    assert [e["description"] for e in response.json()] == ["new", "old"]


def test_update_expense(api):
    created = post_expense(api, date="2025-01-01T00:00:00Z").json()

    response = api.put(
        f"/api/expenses/{created['id']}",
        json={"description": "Train", "amount": 20, "category": "Transport"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["description"] == "Train"
    assert body["category"] == "Transport"
    assert body["date"] == created["date"]


def test_update_unknown_expense_is_404(api):
    response = api.put(
        f"/api/expenses/{ObjectId()}",
        json={"description": "Train", "amount": 20, "category": "Transport"},
    )
    assert response.status_code == 404
    assert response.json()["detail"] == "Expense not found"


def test_delete_expense(api):
    created = post_expense(api).json()

    response = api.delete(f"/api/expenses/{created['id']}")

    assert response.status_code == 200
    assert response.json() == {"id": created["id"], "message": "Expense deleted successfully"}
    assert api.get("/api/expenses").json() == []


def test_delete_unknown_expense_is_404(api):
    post_expense(api)

    response = api.delete(f"/api/expenses/{ObjectId()}")

    assert response.status_code == 404
    assert len(api.get("/api/expenses").json()) == 1


def test_budget_defaults_to_zero(api):
    response = api.get("/api/budget")

    assert response.status_code == 200
    assert response.json() == {"identifier": "main_budget", "amount": 0}


def test_budget_set_then_get(api):
    assert api.post("/api/budget", json={"amount": "150"}).json()["amount"] == 150
    assert api.get("/api/budget").json()["amount"] == 150


def test_summary_for_selected_month(api):
    post_expense(api, category="Food", amount=50, date="2025-03-02T10:00:00Z")
    post_expense(api, category="Food", amount=30, date="2025-03-05T10:00:00Z")
    post_expense(api, category="Transport", amount=40, date="2025-03-09T10:00:00Z")
    post_expense(api, category="Shopping", amount=500, date="2025-04-01T10:00:00Z")
    api.post("/api/budget", json={"amount": 100})

    response = api.get("/api/summary", params={"year": 2025, "month": 3})

    assert response.status_code == 200
    body = response.json()
    assert body["total_expenses"] == 620
    assert body["monthly_total"] == 120
    assert body["remaining"] == -20
    assert body["percentage"] == 100
    assert body["top_category"] == {"category": "Food", "amount": 80}
    assert body["alert"]["type"] == "danger"
    assert body["alert"]["overage"] == 20


def test_summary_rejects_invalid_month(api):
    assert api.get("/api/summary", params={"month": 13}).status_code == 422


def test_export_csv(api):
    post_expense(api, description="Coffee", amount=3.5, date="2025-03-02T10:00:00Z")

    response = api.get("/api/expenses/export")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]
    assert response.text.splitlines() == ["Date,Description,Amount,Category", "2025-03-02,Coffee,3.5,Food"]


def test_unconnected_database_is_503():
    main.app_state.clear()
    api = TestClient(main.app)

    assert api.get("/api/expenses").status_code == 503
    assert api.get("/api/budget").status_code == 503


def test_oversized_body_is_rejected(api, monkeypatch):
    monkeypatch.setattr(main, "MAX_BODY_SIZE", 10)

    assert post_expense(api).status_code == 413


def test_startup_refused_without_database_uri(monkeypatch):
    monkeypatch.setattr(main, "MONGODB_URI", None)

    with pytest.raises(RuntimeError):
        with TestClient(main.app):
            pass


def test_blank_date_defaults_to_now(api):
    response = post_expense(api, date="")

    assert response.status_code == 201
    assert response.json()["date"]


def test_unexpected_export_failure_is_500(api, monkeypatch):
    async def broken(collection):
        raise RuntimeError("boom")

    monkeypatch.setattr("services.expenses_service.get_all_expenses_from_db", broken)

    response = api.get("/api/expenses/export")

    assert response.status_code == 500
    assert response.json()["detail"] == "An unexpected server error occurred while exporting expenses."


def test_unexpected_summary_failure_is_500(api, monkeypatch):
    async def broken(collection):
        raise RuntimeError("boom")

    monkeypatch.setattr("services.budget_service.get_budget", broken)

    response = api.get("/api/summary")

    assert response.status_code == 500
    assert response.json()["detail"] == "An unexpected server error occurred while building the summary."
