from datetime import datetime, timedelta

from core.extensions import db


def test_list_products_newest_first(client, make_product):
    make_product(name="Old Tee", created_at=datetime.utcnow() - timedelta(days=2))
    make_product(name="New Hoodie", category="hoodie")

    res = client.get("/api/products")
    assert res.status_code == 200
    names = [p["name"] for p in res.get_json()]
    assert names == ["New Hoodie", "Old Tee"]


def test_list_products_filters(client, make_product):
    make_product(name="Tee", featured=True)
    make_product(name="Hoodie", category="hoodie")

    res = client.get("/api/products?category=hoodie")
    assert [p["name"] for p in res.get_json()] == ["Hoodie"]

    res = client.get("/api/products?featured=true")
    assert [p["name"] for p in res.get_json()] == ["Tee"]

    assert client.get("/api/products?category=socks").status_code == 400


def test_get_product_decodes_sizes_and_colors(client, make_product):
    product = make_product(sizes=["M", "L"], colors=["Red"])

    res = client.get(f"/api/products/{product.id}")
    assert res.status_code == 200
    body = res.get_json()
    assert body["sizes"] == ["M", "L"]
    assert body["colors"] == ["Red"]
    assert body["price"] == 100.0
    assert "flashDeal" not in body


def test_get_missing_product(client):
    res = client.get("/api/products/does-not-exist")
    assert res.status_code == 404
    assert res.get_json() == {"error": "Product not found"}


def test_flash_deal_lifecycle_on_product(client, make_product, make_deal):
    product = make_product(price=100, stock=5)
    deal = make_deal(product, discount=20)

    body = client.get(f"/api/products/{product.id}").get_json()
    assert body["flashDeal"]["discount_percentage"] == 20
    assert body["flashDeal"]["id"] == deal.id
    assert body["sale_price"] == 80.0
    assert body["price"] * (1 - body["flashDeal"]["discount_percentage"] / 100) == 80.0

    # the deal's window closes
    deal.start_time = datetime.utcnow() - timedelta(hours=2)
    deal.end_time = datetime.utcnow() - timedelta(seconds=1)
    db.session.commit()

    body = client.get(f"/api/products/{product.id}").get_json()
    assert "flashDeal" not in body
    assert "sale_price" not in body


def test_inactive_deal_is_not_exposed(client, make_product, make_deal):
    product = make_product()
    make_deal(product, is_active=False)

    body = client.get("/api/products").get_json()
    assert "flashDeal" not in body[0]


def test_public_active_deals(client, make_product, make_deal):
    tee = make_product(name="Tee", price=50)
    hoodie = make_product(name="Hoodie", price=80, category="hoodie")
    make_deal(tee, discount=10, end=datetime.utcnow() + timedelta(hours=3))
    make_deal(hoodie, discount=25, end=datetime.utcnow() + timedelta(hours=1))
    make_deal(hoodie, discount=50, start=datetime.utcnow() + timedelta(days=1),
              end=datetime.utcnow() + timedelta(days=2))

    deals = client.get("/api/flash-deals/active").get_json()
    assert [d["product_name"] for d in deals] == ["Hoodie", "Tee"]
    assert deals[0]["sale_price"] == 60.0
    assert deals[1]["original_price"] == 50.0


def test_public_product_deal(client, make_product, make_deal):
    product = make_product()
    assert client.get(f"/api/flash-deals/product/{product.id}").get_json() is None

    make_deal(product, discount=30)
    body = client.get(f"/api/flash-deals/product/{product.id}").get_json()
    assert body["discount_percentage"] == 30
    assert body["sale_price"] == 70.0


def test_health(client):
    res = client.get("/api/health")
    assert res.status_code == 200
    assert res.get_json()["status"] == "ok"
