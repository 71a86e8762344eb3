"""HTTP surface via TestClient, backed by the SQL store on SQLite."""
from conftest import auth, make_token

ADDRESS = {
    "street": "Rua das Flores",
    "number": "120",
    "neighborhood": "Centro",
    "city": "Curitiba",
    "state": "PR",
    "postalCode": "80010-000",
    "recipient": "Ana Souza",
}


def _place(client, items, buyer="buyer-1"):
    return client.post(
        "/orders",
        json={"items": items, "shippingAddress": ADDRESS, "paymentMethod": "card"},
        headers=auth(buyer),
    )


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
    assert client.get("/orders/health").json() == {"status": "ok"}
    assert client.get("/v1/_info").json()["service"] == "orders"


def test_create_order(client):
    resp = _place(client, [{"productId": "P1", "quantity": 2}])

    assert resp.status_code == 201
    body = resp.json()
    assert body["status"] == "pending"
    assert body["total"] == 200.0
    assert body["orderNumber"].startswith("ORD-")
    assert body["buyerId"] == "buyer-1"
    assert body["shippingAddress"]["postalCode"] == "80010-000"
    assert body["items"] == [
        {
            "id": body["items"][0]["id"],
            "productId": "P1",
            "productName": "Linen Shirt",
            "quantity": 2,
            "priceAtTime": 100.0,
            "color": None,
            "size": None,
        }
    ]


def test_client_supplied_prices_are_ignored(client):
    resp = _place(client, [{"productId": "P1", "quantity": 1, "price": 0.01, "priceAtTime": 0.01}])

    assert resp.status_code == 201
    assert resp.json()["items"][0]["priceAtTime"] == 100.0
    assert resp.json()["total"] == 100.0


def test_snake_case_request_accepted(client):
    resp = client.post(
        "/orders",
        json={
            "items": [{"product_id": "P2", "quantity": 1}],
            "shipping_address": {**ADDRESS, "postal_code": "80010-000"},
            "payment_method": "pix",
        },
        headers=auth("buyer-1"),
    )

    assert resp.status_code == 201
    assert resp.json()["paymentMethod"] == "pix"


def test_empty_cart_is_rejected(client):
    resp = _place(client, [])
    assert resp.status_code == 422


def test_zero_quantity_is_rejected(client):
    resp = _place(client, [{"productId": "P1", "quantity": 0}])
    assert resp.status_code == 422


def test_insufficient_stock_is_a_conflict_and_persists_nothing(client):
    resp = _place(client, [{"productId": "P1", "quantity": 6}])

    assert resp.status_code == 409
    assert "Linen Shirt" in resp.json()["detail"]
    assert client.get("/orders/my-orders", headers=auth("buyer-1")).json()["total"] == 0


def test_unknown_product(client):
    resp = _place(client, [{"productId": "nope", "quantity": 1}])
    assert resp.status_code == 404


def test_requires_authentication(client):
    assert client.get("/orders/my-orders").status_code == 401
    bad = {"Authorization": f"Bearer {make_token('buyer-1', secret='wrong')}"}
    assert client.get("/orders/my-orders", headers=bad).status_code == 401
    refresh = {"Authorization": f"Bearer {make_token('buyer-1', token_type='refresh')}"}
    assert client.get("/orders/my-orders", headers=refresh).status_code == 401


def test_my_orders_pagination(client):
    for _ in range(3):
        _place(client, [{"productId": "P2", "quantity": 1}])

    body = client.get("/orders/my-orders?limit=2", headers=auth("buyer-1")).json()
    assert body["total"] == 3
    assert body["limit"] == 2
    assert body["offset"] == 0
    assert len(body["orders"]) == 2

    clamped = client.get("/orders/my-orders?limit=500", headers=auth("buyer-1")).json()
    assert clamped["limit"] == 100
    defaulted = client.get("/orders/my-orders?limit=0", headers=auth("buyer-1")).json()
    assert defaulted["limit"] == 10


def test_order_visibility(client):
    order_id = _place(client, [{"productId": "P3", "quantity": 1}]).json()["id"]

    assert client.get(f"/orders/{order_id}", headers=auth("buyer-1")).status_code == 200
    assert client.get(f"/orders/{order_id}", headers=auth("seller-2", "seller")).status_code == 200
    assert client.get(f"/orders/{order_id}", headers=auth("buyer-2")).status_code == 404
    assert client.get(f"/orders/{order_id}", headers=auth("seller-1", "seller")).status_code == 404


def test_seller_endpoints_require_seller_role(client):
    assert client.get("/seller/orders", headers=auth("buyer-1")).status_code == 403
    assert client.get("/seller/analytics", headers=auth("buyer-1")).status_code == 403


def test_seller_orders_and_analytics(client):
    _place(client, [{"productId": "P1", "quantity": 1}, {"productId": "P2", "quantity": 2}])
    _place(client, [{"productId": "P3", "quantity": 1}], buyer="buyer-2")

    page = client.get("/seller/orders", headers=auth("seller-1", "seller")).json()
    assert page["total"] == 1
    assert len(page["orders"][0]["items"]) == 2

    stats = client.get("/seller/analytics", headers=auth("seller-1", "seller")).json()
    assert stats == {
        "totalOrders": 1,
        "totalRevenue": 171.0,
        "averageOrderValue": 171.0,
        "totalProducts": 0,
        "totalViews": 0,
        "conversionRate": 0.0,
    }


def test_fulfilment_flow(client):
    order_id = _place(client, [{"productId": "P1", "quantity": 1}]).json()["id"]
    seller = auth("seller-1", "seller")

    resp = client.patch(f"/seller/orders/{order_id}/status", json={"status": "confirmed"}, headers=seller)
    assert resp.status_code == 200
    assert resp.json()["status"] == "confirmed"

    resp = client.patch(f"/seller/orders/{order_id}/tracking", json={"trackingNumber": "BR123"}, headers=seller)
    assert resp.json()["trackingNumber"] == "BR123"

    resp = client.patch(f"/seller/orders/{order_id}/status", json={"status": "delivered"}, headers=seller)
    assert resp.status_code == 409

    resp = client.patch(f"/seller/orders/{order_id}/status", json={"status": "teleported"}, headers=seller)
    assert resp.status_code == 409


def test_other_seller_cannot_touch_order(client):
    order_id = _place(client, [{"productId": "P1", "quantity": 1}]).json()["id"]

    resp = client.patch(
        f"/seller/orders/{order_id}/status", json={"status": "confirmed"}, headers=auth("seller-2", "seller")
    )
    assert resp.status_code == 404


def test_buyer_cancels(client):
    order_id = _place(client, [{"productId": "P1", "quantity": 1}]).json()["id"]

    assert client.post(f"/orders/{order_id}/cancel", headers=auth("buyer-2")).status_code == 404
    resp = client.post(f"/orders/{order_id}/cancel", headers=auth("buyer-1"))
    assert resp.status_code == 200
    assert resp.json()["status"] == "cancelled"
    assert client.post(f"/orders/{order_id}/cancel", headers=auth("buyer-1")).status_code == 409


def test_in_memory_services_behave_the_same(memory_client):
    resp = memory_client.post(
        "/orders",
        json={"items": [{"productId": "P1", "quantity": 2}], "shippingAddress": ADDRESS, "paymentMethod": "card"},
        headers=auth("buyer-1"),
    )

    assert resp.status_code == 201
    assert resp.json()["total"] == 200.0
