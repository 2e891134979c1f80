"""
tests/integration/test_bills_api.py — Integration tests for the bill endpoints.

Endpoints covered:
  POST /bills/split        → 200 / 400 / 422 / 500
  POST /bills/tip          → 200 / 400
  POST /bills/format-date  → 200 / 500

Verified:
  - Amounts appear as strings in JSON, never numbers
  - Output keys keep field order, not alphabetical
  - sum(items.amount) == totalAmount in every 200 response
  - Schema errors use the {"error": {"code", "message", "field"}} envelope
  - Service errors (NO_PERSONS_FOR_SHARED_ITEM) keep their HTTP status
  - A malformed date is not reported as a 400; it surfaces as INTERNAL_ERROR
"""

from __future__ import annotations

from decimal import Decimal

from billsplit.app.errors import ErrorCode


# ── Helpers specific to this module ────────────────────────────────────────

def _shared(price, name: str = "shared") -> dict:
    return {"price": price, "name": name, "isShared": True}


def _personal(price, person: str, name: str = "own") -> dict:
    return {"price": price, "name": name, "isShared": False, "person": person}


def _split(client, items: list[dict], tip_percentage=0, date: str = "2024-03-05"):
    """Posts a bill and returns the HTTP response."""
    return client.post(
        "/api/v1/bills/split",
        json={
            "date": date,
            "location": "Taipei",
            "tipPercentage": tip_percentage,
            "items": items,
        },
    )


def _assert_balanced(data: dict) -> None:
    total = sum(Decimal(p["amount"]) for p in data["items"])
    assert total == Decimal(data["totalAmount"])


# ═══════════════════════════════════════════════════════════════════════════
# POST /bills/split
# ═══════════════════════════════════════════════════════════════════════════

class TestSplitBill:

    def test_single_person_bill(self, client):
        resp = _split(client, [_shared(100, "food"), _personal(20, "Alice", "drink")], 10)

        assert resp.status_code == 200
        assert resp.get_json()["data"] == {
            "date": "2024年3月5日",
            "location": "Taipei",
            "subTotal": "120",
            "tip": "12.0",
            "totalAmount": "132.0",
            "items": [{"name": "Alice", "amount": "132.0"}],
        }

    def test_remainder_goes_to_first_person(self, client):
        items = [_shared("10"), _personal(0, "Alice"), _personal(0, "Bob"), _personal(0, "Carol")]
        resp = _split(client, items)

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["items"] == [
            {"name": "Alice", "amount": "3.4"},
            {"name": "Bob", "amount": "3.3"},
            {"name": "Carol", "amount": "3.3"},
        ]
        _assert_balanced(data)

    def test_output_keys_keep_field_order(self, client):
        """Keys are not sorted alphabetically by the JSON provider."""
        resp = _split(client, [_shared(10), _personal(0, "Alice")])

        data = resp.get_json()["data"]
        assert list(data) == ["date", "location", "subTotal", "tip", "totalAmount", "items"]
        assert list(data["items"][0]) == ["name", "amount"]

    def test_amounts_are_strings(self, client):
        resp = _split(client, [_shared("9.99"), _personal("1.01", "Alice"), _personal(0, "Bob")], 15)

        data = resp.get_json()["data"]
        for key in ("subTotal", "tip", "totalAmount"):
            assert isinstance(data[key], str)
        assert all(isinstance(p["amount"], str) for p in data["items"])
        _assert_balanced(data)

    def test_no_items(self, client):
        resp = _split(client, [], 10)

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["items"] == []
        assert Decimal(data["totalAmount"]) == Decimal("0")

    def test_shared_items_without_persons_422(self, client):
        resp = _split(client, [_shared(100, "food")], 10)

        assert resp.status_code == 422
        error = resp.get_json()["error"]
        assert error["code"] == ErrorCode.NO_PERSONS_FOR_SHARED_ITEM
        assert error["field"] == "items"

    def test_personal_item_without_person_400(self, client):
        resp = _split(client, [{"price": 5, "name": "tea", "isShared": False}])

        assert resp.status_code == 400
        error = resp.get_json()["error"]
        assert error["code"] == ErrorCode.MISSING_FIELD
        assert error["field"] == "items.0.person"

    def test_shared_item_with_person_400(self, client):
        resp = _split(client, [{"price": 5, "name": "tea", "isShared": True, "person": "Bob"}])

        assert resp.status_code == 400
        error = resp.get_json()["error"]
        assert error["code"] == ErrorCode.PERSON_NOT_ALLOWED_ON_SHARED_ITEM
        assert error["field"] == "items.0.person"

    def test_missing_tip_percentage_400(self, client):
        resp = client.post(
            "/api/v1/bills/split",
            json={"date": "2024-03-05", "location": "Taipei", "items": []},
        )

        assert resp.status_code == 400
        error = resp.get_json()["error"]
        assert error["code"] == ErrorCode.MISSING_FIELD
        assert error["field"] == "tipPercentage"

    def test_wrong_type_400(self, client):
        resp = _split(client, [_shared("lots")])

        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == ErrorCode.INVALID_FIELD

    def test_too_many_items_400(self, client, app):
        cap = app.config["MAX_BILL_ITEMS"]
        items = [_personal(1, "Alice", f"item{n}") for n in range(cap + 1)]
        resp = _split(client, items)

        assert resp.status_code == 400
        error = resp.get_json()["error"]
        assert error["code"] == ErrorCode.TOO_MANY_ITEMS
        assert error["field"] == "items"

    def test_malformed_date_500(self, client):
        resp = _split(client, [_personal(1, "Alice")], date="05/03/2024")

        assert resp.status_code == 500
        assert resp.get_json()["error"]["code"] == ErrorCode.INTERNAL_ERROR

    def test_get_not_allowed(self, client):
        resp = client.get("/api/v1/bills/split")
        assert resp.status_code == 405

    def test_cors_headers_in_testing(self, client):
        resp = client.post(
            "/api/v1/bills/split",
            json={"date": "2024-03-05", "location": "Taipei", "tipPercentage": 0, "items": []},
            headers={"Origin": "http://localhost:8000"},
        )
        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:8000"


# ═══════════════════════════════════════════════════════════════════════════
# POST /bills/tip and /bills/format-date
# ═══════════════════════════════════════════════════════════════════════════

class TestStandaloneEndpoints:

    def test_tip(self, client):
        resp = client.post("/api/v1/bills/tip", json={"subTotal": "120", "tipPercentage": 10})

        assert resp.status_code == 200
        assert resp.get_json()["data"] == {"tip": "12.0"}

    def test_tip_rounds_half_up(self, client):
        resp = client.post("/api/v1/bills/tip", json={"subTotal": "2.5", "tipPercentage": 10})
        assert resp.get_json()["data"]["tip"] == "0.3"

    def test_tip_missing_field_400(self, client):
        resp = client.post("/api/v1/bills/tip", json={"subTotal": "120"})

        assert resp.status_code == 400
        assert resp.get_json()["error"]["field"] == "tipPercentage"

    def test_format_date(self, client):
        resp = client.post("/api/v1/bills/format-date", json={"date": "2024-03-05"})

        assert resp.status_code == 200
        assert resp.get_json()["data"] == {"date": "2024年3月5日"}

    def test_format_date_malformed_500(self, client):
        resp = client.post("/api/v1/bills/format-date", json={"date": "yesterday"})
        assert resp.status_code == 500
