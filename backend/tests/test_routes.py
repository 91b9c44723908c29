# Overview: Pytest coverage for the JSON API surface.

"""
API route tests.

Exercise status codes and error bodies ({errorType, message, itemIndex?})
through the Flask test client.
"""

import pytest

from billing.services import bill_service


def _create_product(client, **overrides):
    payload = {"name": "Chips", "localizedName": "சிப்ஸ்", "price": 10}
    payload.update(overrides)
    return client.post("/api/products", json=payload)


class TestHealth:
    def test_health_ok(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.get_json()["status"] == "healthy"


class TestProductRoutes:
    def test_create_and_list(self, client):
        created = _create_product(client)
        assert created.status_code == 201
        body = created.get_json()
        assert body["id"] == 1
        assert body["stock"] == 0
        assert body["price"] == 10.0
        assert body["priceCents"] == 1000

        listed = client.get("/api/products").get_json()
        assert [p["id"] for p in listed] == [1]

    def test_create_requires_fields(self, client):
        response = client.post("/api/products", json={"name": "Chips"})
        assert response.status_code == 400
        body = response.get_json()
        assert body["errorType"] == "ValidationError"
        assert "localizedName" in body["message"]

    def test_get_update_delete(self, client):
        product_id = _create_product(client).get_json()["id"]

        assert client.get(f"/api/products/{product_id}").status_code == 200

        updated = client.put(f"/api/products/{product_id}", json={"price": "12.25"})
        assert updated.status_code == 200
        assert updated.get_json()["priceCents"] == 1225

        assert client.delete(f"/api/products/{product_id}").status_code == 200
        assert client.get(f"/api/products/{product_id}").status_code == 404
        assert client.delete(f"/api/products/{product_id}").get_json()["errorType"] == "NotFound"

    def test_adjust_stock(self, client):
        product_id = _create_product(client).get_json()["id"]

        response = client.post("/api/products/stock", json={"productId": product_id, "quantity": 5})
        assert response.status_code == 200
        assert response.get_json()["stock"] == 5

        response = client.post("/api/products/stock", json={"productId": product_id, "quantity": -9})
        assert response.status_code == 400
        assert response.get_json()["errorType"] == "InsufficientStock"

    def test_adjust_stock_unknown_product(self, client):
        response = client.post("/api/products/stock", json={"productId": 999, "quantity": 5})
        assert response.status_code == 404
        assert response.get_json()["errorType"] == "NotFound"

    def test_adjust_stock_requires_both_fields(self, client):
        response = client.post("/api/products/stock", json={"productId": 1})
        assert response.status_code == 400

    def test_bulk_adjust(self, client):
        product_id = _create_product(client).get_json()["id"]

        response = client.post("/api/products/stock/bulk", json={"items": [
            {"productId": product_id, "quantity": 5},
            {"productId": 999, "quantity": 5},
        ]})

        assert response.status_code == 200
        body = response.get_json()
        assert body["succeeded"] == 1
        assert body["failed"] == 1
        assert body["results"][0] == {"index": 0, "productId": product_id, "success": True, "stock": 5}
        assert body["results"][1]["errorType"] == "NotFound"

    def test_bulk_adjust_rejects_empty_batch(self, client):
        response = client.post("/api/products/stock/bulk", json={"items": []})
        assert response.status_code == 400

    def test_low_stock(self, client):
        product_id = _create_product(client).get_json()["id"]
        client.post("/api/products/stock", json={"productId": product_id, "quantity": 2})

        body = client.get("/api/products/low-stock").get_json()
        assert [p["id"] for p in body] == [product_id]
        assert body[0]["lowStock"] is True


class TestBillRoutes:
    @pytest.fixture
    def stocked(self, client):
        product_id = _create_product(client).get_json()["id"]
        client.post("/api/products/stock", json={"productId": product_id, "quantity": 5})
        return product_id

    def _post_bill(self, client, items, **overrides):
        payload = {"customerName": "Kavya", "mobileNumber": "9876543210", "items": items}
        payload.update(overrides)
        return client.post("/api/bills", json=payload)

    def test_create_and_fetch(self, client, stocked):
        response = self._post_bill(client, [{"productId": stocked, "quantity": 3}])
        assert response.status_code == 201
        bill = response.get_json()
        assert bill["grandTotal"] == 30.0

        fetched = client.get(f"/api/bills/{bill['billNumber']}")
        assert fetched.status_code == 200
        item = fetched.get_json()["items"][0]
        assert item["productDetails"]["stock"] == 2

    def test_insufficient_stock_body(self, client, stocked):
        response = self._post_bill(client, [
            {"productId": stocked, "quantity": 1},
            {"productId": stocked, "quantity": 5},
        ])
        assert response.status_code == 400
        body = response.get_json()
        assert body["errorType"] == "InsufficientStock"
        assert body["itemIndex"] == 1
        assert body["details"]["available"] == 5

    def test_unknown_product_is_bad_request(self, client, stocked):
        response = self._post_bill(client, [{"productId": 404, "quantity": 1}])
        assert response.status_code == 400
        assert response.get_json()["itemIndex"] == 0

    def test_empty_order(self, client):
        response = self._post_bill(client, [])
        assert response.status_code == 400
        assert response.get_json()["errorType"] == "EmptyOrder"

    def test_invalid_json(self, client):
        response = client.post("/api/bills", data="not json", content_type="application/json")
        assert response.status_code == 400

    def test_unknown_bill(self, client):
        assert client.get("/api/bills/BILL-2026-999999").status_code == 404

    def test_unexpected_error_is_generic(self, client, stocked, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("secret internals")

        monkeypatch.setattr(bill_service, "create_bill", explode)

        response = self._post_bill(client, [{"productId": stocked, "quantity": 1}])
        assert response.status_code == 500
        body = response.get_json()
        assert body["errorType"] == "InternalError"
        assert "secret" not in body["message"]


class TestContactRoutes:
    def test_create_then_existing(self, client):
        first = client.post("/api/contacts", json={"name": "Kavya", "mobileNumber": "9876543210"})
        second = client.post("/api/contacts", json={"name": "Other", "mobileNumber": "9876543210"})

        assert first.status_code == 201
        assert second.status_code == 200
        assert second.get_json()["contact"]["name"] == "Kavya"

    def test_invalid_mobile(self, client):
        response = client.post("/api/contacts", json={"name": "Kavya", "mobileNumber": "123"})
        assert response.status_code == 400

    def test_recent_list(self, client):
        client.post("/api/contacts", json={"name": "Kavya", "mobileNumber": "9876543210"})
        body = client.get("/api/contacts?limit=5").get_json()
        assert [c["mobileNumber"] for c in body] == ["9876543210"]


def test_cors_header_for_allowed_origin(client):
    response = client.get("/api/products", headers={"Origin": "http://localhost:5173"})
    assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

    response = client.get("/api/products", headers={"Origin": "http://evil.example"})
    assert "Access-Control-Allow-Origin" not in response.headers


def test_unknown_route_is_json_404(client):
    response = client.get("/api/nope")
    assert response.status_code == 404
    assert response.get_json()["errorType"] == "NotFound"


class TestNonObjectBodies:
    @pytest.mark.parametrize("method, path", [
        ("post", "/api/products"),
        ("put", "/api/products/1"),
        ("post", "/api/products/stock"),
        ("post", "/api/contacts"),
        ("post", "/api/bills"),
    ])
    def test_list_body_is_validation_error(self, client, method, path):
        _create_product(client)
        response = getattr(client, method)(path, json=[1, 2])
        assert response.status_code == 400
        assert response.get_json()["errorType"] == "ValidationError"

    def test_missing_body_is_validation_error(self, client):
        response = client.post("/api/contacts")
        assert response.status_code == 400
        assert response.get_json()["errorType"] == "ValidationError"

    def test_out_of_range_quantity(self, client):
        product_id = _create_product(client).get_json()["id"]
        response = client.post("/api/products/stock", json={"productId": product_id, "quantity": 10**20})
        assert response.status_code == 400
        assert response.get_json()["errorType"] == "ValidationError"

    def test_non_ascii_mobile_number(self, client):
        response = client.post("/api/contacts", json={"name": "Ravi", "mobileNumber": "९८७६५४३२१०"})
        assert response.status_code == 400
