from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest


def transaction_payload(name="Coffee", amount=4.5, date="2024-01-01"):
    payload = {"name": name, "amount": amount}
    if date is not None:
        payload["date"] = date
    return payload


def parse_ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def assert_transaction_shape(transaction: dict):
    for key in ["id", "name", "amount", "date", "createdAt", "updatedAt"]:
        assert key in transaction
    assert isinstance(transaction["id"], str) and len(transaction["id"]) == 24
    assert isinstance(transaction["name"], str)
    assert isinstance(transaction["amount"], (int, float))
    for key in ["date", "createdAt", "updatedAt"]:
        parse_ts(transaction[key])


def create(client, **kwargs):
    res = client.post("/transactions", json=transaction_payload(**kwargs))
    assert res.status_code == 201, res.text
    return res.json()["data"]


class TestRoot:
    def test_describes_api_and_store_status(self, client):
        res = client.get("/")
        assert res.status_code == 200
        body = res.json()
        assert body["success"] is True
        assert body["database"] == "connected"
        assert body["backend"] == "memory"
        assert "GET /transactions" in body["endpoints"]
        assert "DELETE /transactions/{transaction_id}" in body["endpoints"]

    def test_lists_routes_of_every_router(self, client):
        endpoints = client.get("/").json()["endpoints"]
        assert "GET /" in endpoints
        for route in [
            "GET /users",
            "POST /users",
            "GET /users/{user_id}",
            "PUT /users/{user_id}",
            "DELETE /users/{user_id}",
        ]:
            assert route in endpoints


class TestTransactionsCRUD:
    def test_create_example(self, client):
        res = client.post("/transactions", json={"name": "Coffee", "amount": 4.5, "date": "2024-01-01"})
        assert res.status_code == 201
        body = res.json()
        assert body["success"] is True
        assert body["message"] == "Transaction created successfully"
        assert_transaction_shape(body["data"])
        assert body["data"]["name"] == "Coffee"
        assert body["data"]["amount"] == 4.5
        assert body["data"]["date"].startswith("2024-01-01T00:00:00")

    def test_create_then_get_returns_same_fields(self, client):
        created = create(client, name="  Rent  ", amount=-1200.75, date="2024-03-01T09:30:00Z")
        res = client.get(f"/transactions/{created['id']}")
        assert res.status_code == 200
        body = res.json()
        assert body == {"success": True, "data": created}
        assert created["name"] == "Rent"
        assert created["amount"] == -1200.75

    def test_create_without_date_defaults_to_now(self, client):
        before = datetime.now(timezone.utc) - timedelta(seconds=1)
        created = create(client, name="Lunch", amount=12, date=None)
        stamped = parse_ts(created["date"])
        assert before <= stamped <= datetime.now(timezone.utc) + timedelta(seconds=1)

    def test_create_ignores_client_supplied_metadata(self, client):
        payload = transaction_payload()
        payload.update({"id": "65a1c0ffee0123456789abcd", "createdAt": "2000-01-01T00:00:00Z"})
        res = client.post("/transactions", json=payload)
        assert res.status_code == 201
        data = res.json()["data"]
        assert data["id"] != "65a1c0ffee0123456789abcd"
        assert not data["createdAt"].startswith("2000")

    def test_get_unknown_id(self, client):
        res = client.get("/transactions/65a1c0ffee0123456789abcd")
        assert res.status_code == 404
        assert res.json() == {"success": False, "message": "Transaction not found"}

    def test_get_malformed_id_is_not_found(self, client):
        res = client.get("/transactions/not-an-id")
        assert res.status_code == 404
        assert res.json()["message"] == "Transaction not found"

    def test_put_updates_only_given_fields(self, client):
        created = create(client, name="Groceries", amount=30, date="2024-02-02")
        res = client.put(f"/transactions/{created['id']}", json={"amount": 9.99})
        assert res.status_code == 200
        body = res.json()
        assert body["success"] is True
        assert body["message"] == "Transaction updated successfully"
        updated = body["data"]
        assert updated["amount"] == 9.99
        assert updated["name"] == "Groceries"
        assert updated["date"] == created["date"]
        assert updated["createdAt"] == created["createdAt"]
        assert parse_ts(updated["updatedAt"]) >= parse_ts(created["updatedAt"])

    def test_put_unknown_id_is_not_found_whatever_the_body(self, client):
        for body in ({"amount": 1}, {"name": ""}, {"date": "garbage"}):
            res = client.put("/transactions/65a1c0ffee0123456789abcd", json=body)
            assert res.status_code == 404
            assert res.json()["message"] == "Transaction not found"

    def test_put_invalid_body_leaves_record_unchanged(self, client):
        created = create(client, name="Books", amount=20)
        res = client.put(f"/transactions/{created['id']}", json={"name": "   ", "amount": 99})
        assert res.status_code == 400
        body = res.json()
        assert body["success"] is False
        assert body["errors"] == ["Transaction name is required"]
        fetched = client.get(f"/transactions/{created['id']}").json()["data"]
        assert fetched == created

    def test_delete_twice(self, client):
        created = create(client, name="ToDelete", amount=1)
        res_del = client.delete(f"/transactions/{created['id']}")
        assert res_del.status_code == 200
        body = res_del.json()
        assert body["success"] is True
        assert body["message"] == "Transaction deleted successfully"
        assert body["data"] == created

        assert client.get(f"/transactions/{created['id']}").status_code == 404
        res_again = client.delete(f"/transactions/{created['id']}")
        assert res_again.status_code == 404
        assert res_again.json() == {"success": False, "message": "Transaction not found"}


class TestListOrdering:
    def test_empty_collection(self, client):
        res = client.get("/transactions")
        assert res.status_code == 200
        assert res.json() == {"success": True, "count": 0, "data": []}

    def test_sorted_by_date_descending(self, client):
        create(client, name="D2", date="2024-02-01")
        create(client, name="D3", date="2024-03-01")
        create(client, name="D1", date="2024-01-01")
        res = client.get("/transactions")
        assert res.status_code == 200
        body = res.json()
        assert body["count"] == 3
        assert [t["name"] for t in body["data"]] == ["D3", "D2", "D1"]

    def test_equal_dates_keep_insertion_order(self, client):
        for name in ["first", "second", "third"]:
            create(client, name=name, date="2024-05-05")
        names = [t["name"] for t in client.get("/transactions").json()["data"]]
        assert names == ["first", "second", "third"]


class TestValidationErrors:
    def list_count(self, client):
        return client.get("/transactions").json()["count"]

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_blank_name_is_rejected_and_nothing_is_stored(self, client, name):
        res = client.post("/transactions", json={"name": name, "amount": 5})
        assert res.status_code == 400
        body = res.json()
        assert body["success"] is False
        assert body["message"] == "Validation failed"
        assert body["errors"] == ["Transaction name is required"]
        assert self.list_count(client) == 0

    def test_name_length_limit(self, client):
        res = client.post("/transactions", json={"name": "x" * 101, "amount": 5})
        assert res.status_code == 400
        assert res.json()["errors"] == ["Transaction name cannot exceed 100 characters"]
        assert client.post("/transactions", json={"name": "x" * 100, "amount": 5}).status_code == 201

    @pytest.mark.parametrize("amount", [None, "abc", "", True])
    def test_invalid_amount(self, client, amount):
        res = client.post("/transactions", json={"name": "Tea", "amount": amount})
        assert res.status_code == 400
        assert res.json()["errors"] == ["Transaction amount is required and must be a valid number"]

    def test_missing_fields_are_all_reported(self, client):
        res = client.post("/transactions", json={})
        assert res.status_code == 400
        assert sorted(res.json()["errors"]) == [
            "Transaction amount is required and must be a valid number",
            "Transaction name is required",
        ]

    def test_numeric_string_amount_is_accepted(self, client):
        res = client.post("/transactions", json={"name": "Tea", "amount": "3.25"})
        assert res.status_code == 201
        assert res.json()["data"]["amount"] == 3.25

    def test_invalid_date(self, client):
        res = client.post("/transactions", json={"name": "Tea", "amount": 3, "date": "31/01/2024"})
        assert res.status_code == 400
        assert res.json()["errors"][0].startswith("Transaction date must be a valid date")

    def test_date_outside_utc_range(self, client):
        res = client.post("/transactions", json={"name": "Old", "amount": 1, "date": "0001-01-01T00:00:00+01:00"})
        assert res.status_code == 400
        assert res.json()["errors"][0].startswith("Transaction date must be a valid date")
        assert client.get("/transactions").json()["count"] == 0

    def test_malformed_json(self, client):
        res = client.post(
            "/transactions",
            content=b'{"name": "Tea",',
            headers={"Content-Type": "application/json"},
        )
        assert res.status_code == 400
        body = res.json()
        assert body["success"] is False
        assert body["errors"] == ["Request body is not valid JSON"]

    def test_non_object_body(self, client):
        res = client.post("/transactions", json=["Tea", 3])
        assert res.status_code == 400
        assert res.json()["errors"] == ["Request body must be a JSON object"]


class TestRoutingAndCors:
    def test_unknown_route_lists_available_routes(self, client):
        res = client.get("/nope")
        assert res.status_code == 404
        body = res.json()
        assert body["success"] is False
        assert body["message"] == "Route not found"
        assert "POST /transactions" in body["availableRoutes"]
        assert "GET /users" in body["availableRoutes"]

    def test_unsupported_method_is_route_not_found(self, client):
        res = client.patch("/transactions", json={})
        assert res.status_code == 404
        assert res.json()["message"] == "Route not found"

    def test_preflight(self, client):
        origin = "http://localhost:5500"
        res = client.options(
            "/transactions",
            headers={
                "Origin": origin,
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "content-type",
            },
        )
        assert res.status_code == 200
        assert res.headers["access-control-allow-origin"] in ("*", origin)
        assert "PUT" in res.headers["access-control-allow-methods"]

    def test_plain_options_request(self, client):
        res = client.options("/transactions/anything")
        assert res.status_code == 200
        assert res.content == b""

    def test_cross_origin_get(self, client):
        origin = "https://example.org"
        res = client.get("/transactions", headers={"Origin": origin})
        assert res.status_code == 200
        assert res.headers["access-control-allow-origin"] in ("*", origin)


class TestRestrictedOrigins:
    @pytest.fixture()
    def settings(self, settings):
        return replace(settings, cors_allow_origins=["http://allowed.test"])

    def preflight(self, client, origin):
        return client.options(
            "/transactions",
            headers={"Origin": origin, "Access-Control-Request-Method": "POST"},
        )

    def test_allowed_origin_preflight(self, client):
        res = self.preflight(client, "http://allowed.test")
        assert res.status_code == 200
        assert res.headers["access-control-allow-origin"] == "http://allowed.test"

    def test_disallowed_origin_preflight_is_still_200(self, client):
        res = self.preflight(client, "http://other.test")
        assert res.status_code == 200
        assert "access-control-allow-origin" not in res.headers
