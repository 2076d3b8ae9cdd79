"""Integration tests for the order API via TestClient."""

from api_flows import OTHER_OWNER_HEADERS, OWNER_HEADERS, STAFF_HEADERS, place_buy_now_order


class TestOrderAPI:
    def test_list_orders(self, client):
        order_id = place_buy_now_order(client)["order_id"]
        orders = client.get("/orders", headers=OWNER_HEADERS).json()
        assert [o["id"] for o in orders] == [order_id]
        assert client.get("/orders", headers=OTHER_OWNER_HEADERS).json() == []

    def test_read_order(self, client):
        order_id = place_buy_now_order(client)["order_id"]
        order = client.get(f"/orders/{order_id}", headers=OWNER_HEADERS).json()
        assert order["total"] == 54.25
        assert order["source"] == "buy_now"

    def test_staff_reads_any_order(self, client):
        order_id = place_buy_now_order(client)["order_id"]
        assert client.get(f"/orders/{order_id}", headers=STAFF_HEADERS).status_code == 200

    def test_cancel(self, client):
        order_id = place_buy_now_order(client)["order_id"]
        response = client.post(f"/orders/{order_id}/cancel", json={"reason": "Changed my mind"}, headers=OWNER_HEADERS)
        assert response.json()["status"] == "cancelled"

        again = client.post(f"/orders/{order_id}/cancel", json={}, headers=OWNER_HEADERS)
        assert again.status_code == 409
        assert again.json()["error"] == "conflict"

    def test_anonymous_listing_returns_401(self, client):
        assert client.get("/orders", headers={"X-Session-Id": "sess-guest"}).status_code == 401
