from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from main import create_app
from core.config import TestConfig
from core.extensions import db as _db
from core.security import issue_token
from models.orderModels import Order, OrderItem
from models.productModels import Product, FlashDeal
from models.userModel import User
from routes.auth import hash_password

SESSION = "test-session-1"


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        _db.create_all()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    return _db


@pytest.fixture
def make_product(db):
    def _make(**kwargs):
        data = {
            "name": "Classic Tee",
            "description": "Soft cotton tee",
            "price": Decimal("100.00"),
            "category": "t-shirt",
            "image_url": "https://example.com/tee.jpg",
            "sizes": ["S", "M", "L"],
            "colors": ["Black", "White"],
            "stock": 5,
            "featured": False,
        }
        data.update(kwargs)
        product = Product(**data)
        db.session.add(product)
        db.session.commit()
        return product
    return _make


@pytest.fixture
def make_deal(db):
    def _make(product, discount=20, start=None, end=None, is_active=True):
        now = datetime.utcnow()
        deal = FlashDeal(
            product_id=product.id,
            discount_percentage=discount,
            start_time=start or now - timedelta(minutes=5),
            end_time=end or now + timedelta(hours=1),
            is_active=is_active,
        )
        db.session.add(deal)
        db.session.commit()
        return deal
    return _make


@pytest.fixture
def make_user(db):
    def _make(email="user@example.com", role="user", password="secret123", **kwargs):
        user = User(email=email, password_hash=hash_password(password), role=role, **kwargs)
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def make_order(db):
    def _make(email="guest@example.com", total=Decimal("50.00"), status="pending",
              created_at=None, user_id=None, items=(), shipping_address=None):
        order = Order(
            email=email,
            user_id=user_id,
            total_amount=total,
            status=status,
            payment_method="cod",
            payment_status="pending",
            shipping_address=shipping_address or {"firstName": "Guest", "lastName": "Buyer", "city": "Austin"},
            created_at=created_at or datetime.utcnow(),
        )
        db.session.add(order)
        db.session.flush()
        for product, quantity in items:
            db.session.add(OrderItem(order_id=order.id, product_id=product.id,
                                     quantity=quantity, price=product.price))
        db.session.commit()
        return order
    return _make


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {issue_token(user)}"}
    return _headers


@pytest.fixture
def admin_headers(make_user, auth_headers):
    admin = make_user(email="admin@example.com", role="admin")
    return auth_headers(admin)


@pytest.fixture
def user_headers(make_user, auth_headers):
    user = make_user(email="shopper@example.com")
    return auth_headers(user)


@pytest.fixture
def session_headers():
    return {"x-session-id": SESSION}
