"""HTTP surface: status codes, error envelopes, actor header."""

from retailpos.extensions import db
from retailpos.models import Order, Product


def _checkout_body(product, qty=2, paid=2000, **extra):
    body = {
        "items": [{"product_id": product.id, "quantity": qty}],
        "payment_method": "cash",
        "amount_paid_cents": paid,
    }
    body.update(extra)
    return body


def test_health(client, db_session):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.get_json()["checks"]["database"]["status"] == "healthy"


def test_actor_header_required(client, db_session, make_product):
    product = make_product()

    assert client.post("/api/checkout", json=_checkout_body(product)).status_code == 401
    assert client.post(
        "/api/checkout", json=_checkout_body(product), headers={"X-Actor-Id": "abc"}
    ).status_code == 401
    assert client.post(
        "/api/checkout", json=_checkout_body(product), headers={"X-Actor-Id": "999"}
    ).status_code == 401


def test_inactive_actor_rejected(client, cashier, make_product):
    cashier.is_active = False
    db.session.commit()

    response = client.get("/api/orders", headers={"X-Actor-Id": str(cashier.id)})
    assert response.status_code == 401


def test_checkout_created(client, actor_headers, make_product):
    product = make_product(price_cents=1000, tax_rate_bps=1000)

    response = client.post(
        "/api/checkout",
        json=_checkout_body(product, discount_type="numerical", discount_value=500),
        headers=actor_headers,
    )

    assert response.status_code == 201
    order = response.get_json()["order"]
    assert order["status"] == "completed"
    assert order["total_amount_cents"] == 1700
    assert order["change_amount_cents"] == 300
    assert len(order["items"]) == 1
    assert order["items"][0]["product_name"] == product.name


def test_checkout_invalid_input(client, actor_headers):
    response = client.post("/api/checkout", json={"items": []}, headers=actor_headers)

    assert response.status_code == 400
    body = response.get_json()
    assert body["code"] == "InvalidInput"
    assert body["details"]["field"] == "items"


def test_checkout_payment_insufficient(client, actor_headers, make_product):
    product = make_product(price_cents=1000, tax_rate_bps=1000)

    response = client.post("/api/checkout", json=_checkout_body(product, paid=100), headers=actor_headers)

    assert response.status_code == 402
    body = response.get_json()
    assert body["code"] == "PaymentInsufficient"
    assert body["details"]["shortfall_cents"] == 2100
    order_id = body["details"]["order_id"]

    # Retry completion with enough tender
    retry = client.post(
        f"/api/orders/{order_id}/complete",
        json={"amount_paid_cents": 2200},
        headers=actor_headers,
    )
    assert retry.status_code == 200
    assert retry.get_json()["order"]["status"] == "completed"


def test_checkout_insufficient_stock(client, actor_headers, make_product):
    product = make_product(stock=1)

    response = client.post("/api/checkout", json=_checkout_body(product, paid=100_000), headers=actor_headers)

    assert response.status_code == 409
    body = response.get_json()
    assert body["code"] == "InsufficientStock"
    assert body["details"]["items"][0]["product_id"] == product.id

    db.session.expire_all()
    assert db.session.get(Product, product.id).stock_quantity == 1


def test_order_detail_and_list(client, actor_headers, make_product):
    product = make_product()
    created = client.post(
        "/api/checkout", json=_checkout_body(product, paid=100_000), headers=actor_headers
    ).get_json()["order"]

    detail = client.get(f"/api/orders/{created['id']}", headers=actor_headers)
    assert detail.status_code == 200
    assert detail.get_json()["refund_summary"]["remaining_quantity"] == 2

    listing = client.get("/api/orders?status=completed&search=ORD", headers=actor_headers).get_json()
    assert listing["total"] == 1
    assert listing["orders"][0]["order_number"] == created["order_number"]
    assert listing["stats"]["total_orders"] == 1

    assert client.get("/api/orders?status=bogus", headers=actor_headers).status_code == 400
    assert client.get("/api/orders/9999", headers=actor_headers).status_code == 404


def test_line_refund_flow(client, actor_headers, make_product):
    product = make_product(price_cents=1000, tax_rate_bps=1000)
    order = client.post(
        "/api/checkout", json=_checkout_body(product, paid=100_000), headers=actor_headers
    ).get_json()["order"]
    line_id = order["items"][0]["id"]

    first = client.post(
        f"/api/order-items/{line_id}/refund",
        json={"quantity": 1, "reason": "Chipped"},
        headers=actor_headers,
    )
    assert first.status_code == 200
    body = first.get_json()
    assert body["refunded_amount_cents"] == 1000
    assert body["item"]["remaining_quantity"] == 1
    assert body["order"]["status"] == "completed"

    too_many = client.post(
        f"/api/order-items/{line_id}/refund",
        json={"quantity": 5, "reason": "Again"},
        headers=actor_headers,
    )
    assert too_many.status_code == 409
    assert too_many.get_json()["code"] == "RefundExceedsRemaining"
    assert too_many.get_json()["details"]["max_refundable_quantity"] == 1

    last = client.post(
        f"/api/order-items/{line_id}/refund",
        json={"quantity": 1, "reason": "Chipped too"},
        headers=actor_headers,
    )
    assert last.get_json()["order"]["status"] == "refunded"

    history = client.get(f"/api/orders/{order['id']}/refund-history", headers=actor_headers).get_json()
    assert history["total_refunded_cents"] == 2000
    assert history["refunded_items"][0]["refunded_quantity"] == 2


def test_refund_missing_reason(client, actor_headers, make_product):
    product = make_product()
    order = client.post(
        "/api/checkout", json=_checkout_body(product, paid=100_000), headers=actor_headers
    ).get_json()["order"]

    response = client.post(
        f"/api/order-items/{order['items'][0]['id']}/refund",
        json={"quantity": 1},
        headers=actor_headers,
    )
    assert response.status_code == 400


def test_whole_order_refund_and_cancel(client, actor_headers, make_product):
    product = make_product(stock=10)
    completed = client.post(
        "/api/checkout", json=_checkout_body(product, paid=100_000), headers=actor_headers
    ).get_json()["order"]

    # Completed orders cannot be cancelled
    assert client.post(f"/api/orders/{completed['id']}/cancel", headers=actor_headers).status_code == 409

    refund = client.post(
        f"/api/orders/{completed['id']}/refund", json={"reason": "Return"}, headers=actor_headers
    )
    assert refund.status_code == 200
    assert refund.get_json()["order"]["status"] == "refunded"

    pending = client.post(
        "/api/checkout", json=_checkout_body(product, paid=1), headers=actor_headers
    ).get_json()["details"]["order_id"]
    cancel = client.post(
        f"/api/orders/{pending}/cancel", json={"reason": "Walked away"}, headers=actor_headers
    )
    assert cancel.status_code == 200
    assert cancel.get_json()["order"]["status"] == "cancelled"

    db.session.expire_all()
    assert db.session.get(Order, pending).cancel_reason == "Walked away"


def test_dashboard_endpoint(client, actor_headers, make_product):
    product = make_product(price_cents=1000, tax_rate_bps=0)
    client.post("/api/checkout", json=_checkout_body(product, paid=100_000), headers=actor_headers)

    response = client.get("/api/reports/dashboard", headers=actor_headers)

    assert response.status_code == 200
    assert response.get_json()["statistics"]["today_sales_cents"] == 2000


def test_oversized_ids_are_client_errors(client, actor_headers, make_product):
    product = make_product()
    huge = 10**20

    response = client.post(
        "/api/checkout",
        json={"items": [{"product_id": huge, "quantity": 1}], "payment_method": "cash", "amount_paid_cents": 100},
        headers=actor_headers,
    )
    assert response.status_code == 400
    assert response.get_json()["details"]["field"] == "items[0].product_id"

    response = client.post("/api/checkout", json=_checkout_body(product, customer_id=huge), headers=actor_headers)
    assert response.status_code == 400
    assert response.get_json()["details"]["field"] == "customer_id"

    assert client.get(f"/api/orders/{huge}", headers=actor_headers).status_code == 404
    assert client.get(f"/api/orders/{huge}/refund-history", headers=actor_headers).status_code == 404
    assert client.post(
        f"/api/orders/{huge}/cancel", json={"reason": "x"}, headers=actor_headers
    ).status_code == 404
    assert client.post(
        f"/api/order-items/{huge}/refund", json={"quantity": 1, "reason": "x"}, headers=actor_headers
    ).status_code == 404


def test_percentage_discount_precision(client, actor_headers, make_product):
    product = make_product(price_cents=1000, tax_rate_bps=0)

    response = client.post(
        "/api/checkout",
        json=_checkout_body(product, paid=100_000, discount_type="percentage", discount_value="12.34567"),
        headers=actor_headers,
    )
    assert response.status_code == 400
    assert response.get_json()["details"]["field"] == "discount_value"
    assert db.session.query(Order).count() == 0

    response = client.post(
        "/api/checkout",
        json=_checkout_body(product, paid=100_000, discount_type="percentage", discount_value="12.5"),
        headers=actor_headers,
    )
    assert response.status_code == 201
    assert response.get_json()["order"]["discount_value"] == "12.5"


def test_product_search(client, actor_headers, make_product):
    make_product(name="Blue Mug", sku="MUG-01", barcode="4006381333931")
    make_product(name="Ballpoint Pen", sku="PEN-01")
    make_product(name="Retired Mug", sku="MUG-02", is_active=False)

    def names(q):
        response = client.get("/api/pos/products/search", query_string={"q": q}, headers=actor_headers)
        assert response.status_code == 200
        return [p["name"] for p in response.get_json()["products"]]

    assert names("mug") == ["Blue Mug"]
    assert names("pen-0") == ["Ballpoint Pen"]
    assert names("333931") == ["Blue Mug"]
    assert names("%") == []
    assert names("") == ["Ballpoint Pen", "Blue Mug"]

    assert client.get("/api/pos/products/search", query_string={"q": "x" * 101}, headers=actor_headers).status_code == 400
    assert client.get("/api/pos/products/search", query_string={"q": "mug"}).status_code == 401


def test_cart_backup_round(client, actor_headers):
    assert client.get("/api/pos/cart-info", headers=actor_headers).get_json() == {
        "success": True, "has_backup": False, "info": None,
    }
    restored = client.get("/api/pos/restore-cart", headers=actor_headers).get_json()
    assert restored["success"] is False
    assert restored["data"] is None

    response = client.post(
        "/api/pos/save-cart",
        json={
            "items": [{"product_id": 1, "quantity": 2}, {"product_id": 2, "quantity": 1}],
            "payment_method": "card",
            "discount_type": "percentage",
            "discount_value": "10",
        },
        headers=actor_headers,
    )
    assert response.status_code == 200
    assert response.get_json()["success"] is True

    info = client.get("/api/pos/cart-info", headers=actor_headers).get_json()
    assert info["has_backup"] is True
    assert info["info"]["item_count"] == 2
    assert info["info"]["payment_method"] == "card"
    assert info["info"]["discount_value"] == "10"

    data = client.get("/api/pos/restore-cart", headers=actor_headers).get_json()["data"]
    assert data["items"] == [{"product_id": 1, "quantity": 2}, {"product_id": 2, "quantity": 1}]
    assert data["discount_type"] == "percentage"

    assert client.delete("/api/pos/clear-cart", headers=actor_headers).status_code == 200
    assert client.get("/api/pos/cart-info", headers=actor_headers).get_json()["has_backup"] is False


def test_cart_backup_rejects_bad_payload(client, actor_headers):
    response = client.post("/api/pos/save-cart", json={"items": []}, headers=actor_headers)

    assert response.status_code == 400
    assert response.get_json()["code"] == "InvalidInput"
    assert client.post("/api/pos/save-cart", json={"items": []}).status_code == 401
