from datetime import datetime, timedelta

from flask_jwt_extended import create_access_token
from sqlalchemy.exc import SQLAlchemyError

from models.cartModels import CartItem
from models.orderModels import Order, OrderItem
from services import orderService

ADDRESS = {
    "firstName": "Jane",
    "lastName": "Doe",
    "address": "12 Main St",
    "city": "Austin",
    "state": "TX",
    "zipCode": "73301",
    "country": "USA",
}


def payload(product, quantity=1, **overrides):
    data = {
        "email": "jane@example.com",
        "shipping_address": ADDRESS,
        "cartItems": [{"product_id": product.id, "quantity": quantity, "size": "M", "color": "Black"}],
    }
    data.update(overrides)
    return data


def test_create_cod_order(client, make_product):
    product = make_product(price=25, stock=10)

    res = client.post("/api/orders", json=payload(product, quantity=2, total_amount=50, payment_method="cod"))
    assert res.status_code == 201
    body = res.get_json()
    assert body["status"] == "pending"
    assert body["payment_status"] == "pending"
    assert body["total_amount"] == 50.0
    assert body["shipping_address"] == ADDRESS
    assert len(body["items"]) == 1
    assert body["items"][0]["price"] == 25.0
    assert body["items"][0]["quantity"] == 2


def test_non_cod_order_awaits_payment(client, make_product):
    product = make_product(price=25)
    body = client.post("/api/orders", json=payload(product, payment_method="card")).get_json()
    assert body["status"] == "payment_pending"
    assert body["payment_status"] == "awaiting_payment"


def test_order_prices_are_recomputed_server_side(client, make_product, make_deal):
    product = make_product(price=100, stock=5)
    make_deal(product, discount=20)

    data = payload(product, quantity=2)
    data["cartItems"][0]["price"] = 1
    res = client.post("/api/orders", json=data)

    assert res.status_code == 201
    body = res.get_json()
    assert body["items"][0]["price"] == 80.0
    assert body["total_amount"] == 160.0


def test_order_total_mismatch_is_rejected(client, make_product):
    product = make_product(price=100, stock=5)

    res = client.post("/api/orders", json=payload(product, quantity=1, total_amount=1))
    assert res.status_code == 400
    assert "does not match" in res.get_json()["error"]
    assert Order.query.count() == 0


def test_order_total_within_tolerance_is_accepted(client, make_product):
    product = make_product(price=100, stock=5)
    res = client.post("/api/orders", json=payload(product, total_amount=100.005))
    assert res.status_code == 201
    assert res.get_json()["total_amount"] == 100.0


def test_order_decrements_stock(client, make_product, db):
    product = make_product(stock=5)
    client.post("/api/orders", json=payload(product, quantity=3))

    db.session.refresh(product)
    assert product.stock == 2


def test_order_exceeding_stock_is_rejected(client, make_product, db):
    product = make_product(stock=2)
    data = payload(product, quantity=2)
    data["cartItems"].append({"product_id": product.id, "quantity": 1, "size": "L", "color": "Black"})

    res = client.post("/api/orders", json=data)
    assert res.status_code == 400
    db.session.refresh(product)
    assert product.stock == 2
    assert Order.query.count() == 0


def test_order_validation(client, make_product):
    product = make_product()

    assert client.post("/api/orders", json=payload(product, email="")).status_code == 400
    assert client.post("/api/orders", json=payload(product, shipping_address=None)).status_code == 400
    assert client.post("/api/orders", json=payload(product, cartItems=[])).status_code == 400
    assert client.post("/api/orders", json=payload(product, quantity=0)).status_code == 400

    missing = payload(product)
    missing["cartItems"][0]["product_id"] = "nope"
    assert client.post("/api/orders", json=missing).status_code == 404


def test_order_creation_is_atomic(client, make_product, monkeypatch, db):
    product = make_product(stock=5)

    def fail(order, lines):
        raise SQLAlchemyError("order_items insert failed")

    monkeypatch.setattr(orderService, "_add_order_items", fail)

    res = client.post("/api/orders", json=payload(product))
    assert res.status_code == 500
    assert res.get_json() == {"error": "Failed to create order"}

    assert Order.query.count() == 0
    assert OrderItem.query.count() == 0
    db.session.refresh(product)
    assert product.stock == 5


def test_order_clears_session_cart(client, make_product, session_headers):
    product = make_product()
    client.post("/api/cart", json={"product_id": product.id, "quantity": 1, "size": "M", "color": "Black"},
                headers=session_headers)
    client.post("/api/cart", json={"product_id": product.id, "quantity": 1, "size": "M", "color": "Black"},
                headers={"x-session-id": "other"})

    res = client.post("/api/orders", json=payload(product), headers=session_headers)
    assert res.status_code == 201
    assert CartItem.query.filter_by(session_id="test-session-1").count() == 0
    assert CartItem.query.filter_by(session_id="other").count() == 1


def test_order_links_authenticated_user(client, make_product, make_user, auth_headers):
    user = make_user(email="jane@example.com")
    product = make_product()

    body = client.post("/api/orders", json=payload(product), headers=auth_headers(user)).get_json()
    assert body["user_id"] == user.id


def test_orders_by_email_newest_first(client, make_order):
    older = make_order(email="jane@example.com", created_at=datetime.utcnow() - timedelta(days=1))
    newer = make_order(email="jane@example.com")
    make_order(email="john@example.com")

    res = client.get("/api/orders?email=jane@example.com")
    assert res.status_code == 200
    ids = [o["id"] for o in res.get_json()]
    assert ids == [newer.id, older.id]
    assert res.get_json()[0]["shipping_address"]["city"] == "Austin"


def test_orders_by_email_requires_email(client):
    res = client.get("/api/orders")
    assert res.status_code == 400
    assert res.get_json()["error"] == "Email parameter required"


def test_get_order_by_id(client, make_order, make_product):
    product = make_product()
    order = make_order(items=[(product, 2)])

    body = client.get(f"/api/orders/{order.id}").get_json()
    assert body["items"][0]["product_name"] == product.name
    assert client.get("/api/orders/unknown").status_code == 404


def test_expired_token_checks_out_as_guest(client, make_product, make_user):
    user = make_user(email="jane@example.com")
    token = create_access_token(identity=user.id, expires_delta=timedelta(seconds=-10))

    res = client.post("/api/orders", json=payload(make_product()),
                      headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 201
    assert res.get_json()["user_id"] is None
    assert Order.query.count() == 1


def test_malformed_token_checks_out_as_guest(client, make_product):
    res = client.post("/api/orders", json=payload(make_product()),
                      headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 201
    assert res.get_json()["user_id"] is None


def test_token_of_deleted_user_is_not_linked(client, make_product, make_user, auth_headers, db):
    user = make_user(email="jane@example.com")
    headers = auth_headers(user)
    db.session.delete(user)
    db.session.commit()

    res = client.post("/api/orders", json=payload(make_product()), headers=headers)
    assert res.status_code == 201
    assert res.get_json()["user_id"] is None


def test_non_numeric_totals_are_rejected(client, make_product, db):
    product = make_product(stock=5)

    for total in ("NaN", "Infinity", "-Infinity", "abc", True, [100], {"value": 100}):
        res = client.post("/api/orders", json=payload(product, total_amount=total))
        assert res.status_code == 400, total
        assert "error" in res.get_json()

    assert Order.query.count() == 0
    db.session.refresh(product)
    assert product.stock == 5


def test_order_email_is_normalized(client, make_product):
    product = make_product()
    body = client.post("/api/orders", json=payload(product, email="  Jane@Example.COM ")).get_json()
    assert body["email"] == "jane@example.com"

    res = client.get("/api/orders?email=JANE@example.com")
    assert [o["id"] for o in res.get_json()] == [body["id"]]
