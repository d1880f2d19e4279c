from datetime import datetime, timedelta

from models.cartModels import CartItem


def add(client, headers, product, quantity=1, size="M", color="Black"):
    return client.post("/api/cart", json={
        "product_id": product.id, "quantity": quantity, "size": size, "color": color
    }, headers=headers)


def test_cart_without_session_is_empty(client, make_product, session_headers):
    add(client, session_headers, make_product())
    res = client.get("/api/cart")
    assert res.status_code == 200
    assert res.get_json() == []


def test_issue_session_id(client):
    res = client.post("/api/cart/session")
    assert res.status_code == 201
    first = res.get_json()["session_id"]
    second = client.post("/api/cart/session").get_json()["session_id"]
    assert len(first) >= 32
    assert first != second


def test_add_requires_session(client, make_product):
    res = add(client, {}, make_product())
    assert res.status_code == 400
    assert res.get_json()["error"] == "Session ID required"


def test_adding_same_variant_twice_merges_quantities(client, make_product, session_headers):
    product = make_product()

    first = add(client, session_headers, product, quantity=2)
    assert first.status_code == 201
    second = add(client, session_headers, product, quantity=3)
    assert second.status_code == 200
    assert second.get_json()["id"] == first.get_json()["id"]

    items = client.get("/api/cart", headers=session_headers).get_json()
    assert len(items) == 1
    assert items[0]["quantity"] == 5
    assert CartItem.query.count() == 1


def test_different_variants_are_separate_rows(client, make_product, session_headers):
    product = make_product()
    add(client, session_headers, product, size="M")
    add(client, session_headers, product, size="L")

    items = client.get("/api/cart", headers=session_headers).get_json()
    assert sorted(i["size"] for i in items) == ["L", "M"]


def test_carts_are_isolated_by_session(client, make_product, session_headers):
    product = make_product()
    add(client, session_headers, product)
    add(client, {"x-session-id": "someone-else"}, product)

    assert len(client.get("/api/cart", headers=session_headers).get_json()) == 1


def test_add_validation(client, make_product, session_headers):
    product = make_product(sizes=["S"], colors=["Black"])

    assert add(client, session_headers, product, quantity=0, size="S").status_code == 400
    assert add(client, session_headers, product, quantity="lots", size="S").status_code == 400
    assert add(client, session_headers, product, size="XXL").status_code == 400
    assert add(client, session_headers, product, size="S", color="Pink").status_code == 400

    res = client.post("/api/cart", json={"product_id": "missing", "quantity": 1}, headers=session_headers)
    assert res.status_code == 404


def test_add_does_not_check_stock(client, make_product, session_headers):
    product = make_product(stock=1)
    res = add(client, session_headers, product, quantity=10)
    assert res.status_code == 201
    assert res.get_json()["quantity"] == 10


def test_cart_items_carry_effective_price(client, make_product, make_deal, session_headers):
    product = make_product(price=100)
    make_deal(product, discount=20)

    add(client, session_headers, product, quantity=2)
    item = client.get("/api/cart", headers=session_headers).get_json()[0]

    assert item["product"]["flashDeal"]["discount_percentage"] == 20
    assert item["unit_price"] == 80.0
    assert item["line_total"] == 160.0


def test_cart_newest_first(client, make_product, session_headers, db):
    older = make_product(name="Older")
    newer = make_product(name="Newer")
    add(client, session_headers, older)
    CartItem.query.one().created_at = datetime.utcnow() - timedelta(minutes=5)
    db.session.commit()
    add(client, session_headers, newer)

    names = [i["product"]["name"] for i in client.get("/api/cart", headers=session_headers).get_json()]
    assert names == ["Newer", "Older"]


def test_update_quantity(client, make_product, session_headers):
    item_id = add(client, session_headers, make_product()).get_json()["id"]

    res = client.put(f"/api/cart/{item_id}", json={"quantity": 4}, headers=session_headers)
    assert res.status_code == 200
    assert res.get_json()["quantity"] == 4


def test_update_to_zero_or_negative_removes_item(client, make_product, session_headers):
    product = make_product()
    item_id = add(client, session_headers, product, size="M").get_json()["id"]
    other_id = add(client, session_headers, product, size="L").get_json()["id"]

    res = client.put(f"/api/cart/{item_id}", json={"quantity": 0}, headers=session_headers)
    assert res.status_code == 200
    assert res.get_json() == {"message": "Item removed from cart"}

    client.put(f"/api/cart/{other_id}", json={"quantity": -3}, headers=session_headers)

    assert client.get("/api/cart", headers=session_headers).get_json() == []


def test_update_requires_matching_session(client, make_product, session_headers):
    item_id = add(client, session_headers, make_product()).get_json()["id"]

    res = client.put(f"/api/cart/{item_id}", json={"quantity": 2}, headers={"x-session-id": "intruder"})
    assert res.status_code == 404

    client.delete(f"/api/cart/{item_id}", headers={"x-session-id": "intruder"})
    assert len(client.get("/api/cart", headers=session_headers).get_json()) == 1


def test_remove_and_clear(client, make_product, session_headers):
    product = make_product()
    item_id = add(client, session_headers, product, size="S").get_json()["id"]
    add(client, session_headers, product, size="M")
    add(client, session_headers, product, size="L")

    res = client.delete(f"/api/cart/{item_id}", headers=session_headers)
    assert res.get_json() == {"message": "Item removed from cart"}
    assert len(client.get("/api/cart", headers=session_headers).get_json()) == 2

    res = client.delete("/api/cart", headers=session_headers)
    assert res.get_json() == {"message": "Cart cleared"}
    assert client.get("/api/cart", headers=session_headers).get_json() == []


def test_cart_items_removed_with_product(client, make_product, session_headers, db):
    product = make_product()
    add(client, session_headers, product)

    db.session.delete(product)
    db.session.commit()

    assert CartItem.query.count() == 0
