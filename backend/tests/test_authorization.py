"""
Authorization tests.

Verifies:
- Unauthenticated requests return 401
- Store managers are denied warehouse and admin operations (403)
- Warehouse managers are denied store and admin operations (403)
- Store managers only ever see their own store's requests
"""

import pytest

from stockroom.services import request_service


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/inventory"),
            ("POST", "/api/inventory"),
            ("GET", "/api/stock-items"),
            ("POST", "/api/stock-items"),
            ("GET", "/api/stock-items/barcode?barcode=1"),
            ("GET", "/api/stock-requests"),
            ("POST", "/api/stock-requests"),
            ("GET", "/api/stock-requests/1"),
            ("GET", "/api/stock-requests/1/fulfillment"),
            ("POST", "/api/stock-requests/1/fulfillment/ship"),
            ("GET", "/api/users"),
            ("POST", "/api/users"),
            ("PUT", "/api/users"),
            ("DELETE", "/api/users"),
            ("GET", "/api/auth/me"),
        ],
    )
    def test_requires_auth(self, client, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_bad_token(self, client):
        resp = client.get("/api/inventory", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401


# =============================================================================
# STORE MANAGER DENIED WAREHOUSE/ADMIN OPERATIONS (403)
# =============================================================================


class TestStoreManagerDenied:

    def test_cannot_change_inventory(self, client, sydney_headers, widget):
        resp = client.post(
            "/api/inventory",
            json={"action": "addStock", "itemId": widget.id, "quantity": 5},
            headers=sydney_headers,
        )
        assert resp.status_code == 403
        assert resp.json["required_permission"] == "MANAGE_INVENTORY"

    def test_cannot_create_stock_item(self, client, sydney_headers):
        resp = client.post("/api/stock-items", json={"name": "X", "sku": "X1"}, headers=sydney_headers)
        assert resp.status_code == 403

    def test_cannot_manage_users(self, client, sydney_headers):
        assert client.get("/api/users", headers=sydney_headers).status_code == 403

    def test_cannot_accept(self, client, sydney_headers, sydney_manager, widget):
        req = request_service.create_request(
            store_location="Sydney",
            items=[{"itemId": widget.id, "requestedQuantity": 1}],
            actor=sydney_manager,
        )
        resp = client.post(
            "/api/stock-requests",
            json={"action": "updateStatus", "requestId": req.id, "status": "accepted"},
            headers=sydney_headers,
        )
        assert resp.status_code == 403
        assert request_service.get_request(req.id).status == "pending"

    def test_cannot_delete_request(self, client, sydney_headers, sydney_manager, widget):
        req = request_service.create_request(
            store_location="Sydney",
            items=[{"itemId": widget.id, "requestedQuantity": 1}],
            actor=sydney_manager,
        )
        resp = client.post(
            "/api/stock-requests",
            json={"action": "delete", "requestId": req.id},
            headers=sydney_headers,
        )
        assert resp.status_code == 403

    def test_cannot_use_fulfillment(self, client, sydney_headers):
        assert client.get("/api/stock-requests/1/fulfillment", headers=sydney_headers).status_code == 403


# =============================================================================
# WAREHOUSE MANAGER DENIED STORE/ADMIN OPERATIONS (403)
# =============================================================================


class TestWarehouseManagerDenied:

    def test_cannot_create_request(self, client, warehouse_headers, widget):
        resp = client.post(
            "/api/stock-requests",
            json={
                "action": "create",
                "request": {"storeLocation": "Sydney", "items": [{"itemId": widget.id, "requestedQuantity": 1}]},
            },
            headers=warehouse_headers,
        )
        assert resp.status_code == 403

    def test_cannot_cancel(self, client, warehouse_headers, sydney_manager, widget):
        req = request_service.create_request(
            store_location="Sydney",
            items=[{"itemId": widget.id, "requestedQuantity": 1}],
            actor=sydney_manager,
        )
        resp = client.post(
            "/api/stock-requests",
            json={"action": "updateStatus", "requestId": req.id, "status": "cancelled"},
            headers=warehouse_headers,
        )
        assert resp.status_code == 403

    def test_cannot_manage_users(self, client, warehouse_headers):
        resp = client.post(
            "/api/users",
            json={"name": "X", "email": "x@stockapp.com", "role": "admin"},
            headers=warehouse_headers,
        )
        assert resp.status_code == 403


# =============================================================================
# STORE SCOPING
# =============================================================================


class TestStoreScoping:

    @pytest.fixture
    def both_stores(self, widget, sydney_manager, melbourne_manager):
        sydney = request_service.create_request(
            store_location="Sydney",
            items=[{"itemId": widget.id, "requestedQuantity": 1}],
            actor=sydney_manager,
        )
        melbourne = request_service.create_request(
            store_location="Melbourne",
            items=[{"itemId": widget.id, "requestedQuantity": 2}],
            actor=melbourne_manager,
        )
        return sydney, melbourne

    def test_store_manager_lists_own_store_only(self, client, sydney_headers, both_stores):
        sydney, _ = both_stores
        resp = client.get("/api/stock-requests?storeLocation=Melbourne", headers=sydney_headers)
        assert resp.status_code == 200
        assert [r["id"] for r in resp.json] == [sydney.id]

    def test_warehouse_sees_every_store(self, client, warehouse_headers, both_stores):
        resp = client.get("/api/stock-requests", headers=warehouse_headers)
        assert {r["storeLocation"] for r in resp.json} == {"Sydney", "Melbourne"}

    def test_other_store_request_is_not_found(self, client, sydney_headers, both_stores):
        _, melbourne = both_stores
        resp = client.get(f"/api/stock-requests/{melbourne.id}", headers=sydney_headers)
        assert resp.status_code == 404

    def test_cannot_edit_other_store_request(self, client, sydney_headers, both_stores):
        _, melbourne = both_stores
        resp = client.post(
            "/api/stock-requests",
            json={"action": "update", "requestId": melbourne.id, "updates": {"comments": "hi"}},
            headers=sydney_headers,
        )
        assert resp.status_code == 404
        assert request_service.get_request(melbourne.id).comments == ""

    def test_cannot_cancel_other_store_request(self, client, sydney_headers, both_stores):
        _, melbourne = both_stores
        resp = client.post(
            "/api/stock-requests",
            json={"action": "updateStatus", "requestId": melbourne.id, "status": "cancelled"},
            headers=sydney_headers,
        )
        assert resp.status_code == 404
        assert request_service.get_request(melbourne.id).status == "pending"

    def test_cannot_create_for_other_store(self, client, sydney_headers, widget):
        resp = client.post(
            "/api/stock-requests",
            json={
                "action": "create",
                "request": {"storeLocation": "Melbourne", "items": [{"itemId": widget.id, "requestedQuantity": 1}]},
            },
            headers=sydney_headers,
        )
        assert resp.status_code == 403
        assert resp.json["error"] == "Permission denied"
