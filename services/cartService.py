"""
Session-scoped cart.

Carts belong to whoever holds the session id sent in the ``x-session-id``
header; there is no user binding. Rows are unique per
(session_id, product_id, size, color); adding an existing tuple again
increments its quantity.
"""
import logging

from core.imports import secrets, datetime
from core.extensions import db
from core.errors import ValidationError, NotFoundError
from core.pricing import serialize_product, unit_price
from models.cartModels import CartItem
from models.productModels import Product

logger = logging.getLogger(__name__)

MAX_SESSION_ID_LENGTH = 255


def new_session_id():
    return secrets.token_urlsafe(32)


def require_session(session_id):
    if not session_id:
        raise ValidationError("Session ID required")
    if len(session_id) > MAX_SESSION_ID_LENGTH:
        raise ValidationError("Invalid session ID")
    return session_id


def parse_quantity(value, allow_non_positive=False):
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool):
        raise ValidationError("Quantity must be an integer")
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Quantity must be an integer")
    if isinstance(value, float) and value != quantity:
        raise ValidationError("Quantity must be an integer")
    if quantity < 1 and not allow_non_positive:
        raise ValidationError("Quantity must be at least 1")
    return quantity


def serialize_item(item, now=None):
    now = now or datetime.utcnow()
    price, _ = unit_price(item.product, now)
    return {
        "id": item.id,
        "session_id": item.session_id,
        "product_id": item.product_id,
        "quantity": item.quantity,
        "size": item.size,
        "color": item.color,
        "created_at": item.created_at.isoformat() if item.created_at else None,
        "updated_at": item.updated_at.isoformat() if item.updated_at else None,
        "unit_price": float(price),
        "line_total": float(price * item.quantity),
        "product": serialize_product(item.product, now),
    }


def get_cart(session_id):
    if not session_id:
        return []
    return (CartItem.query
            .filter_by(session_id=session_id)
            .order_by(CartItem.created_at.desc())
            .all())


def add_item(session_id, product_id, size, color, quantity):
    """Add ``quantity`` of a product variant; returns ``(item, created)``."""
    require_session(session_id)
    quantity = parse_quantity(quantity)

    product = db.session.get(Product, product_id) if product_id else None
    if not product:
        raise NotFoundError("Product not found")
    if product.sizes and size not in product.sizes:
        raise ValidationError(f"Size '{size}' is not available for this product")
    if product.colors and color not in product.colors:
        raise ValidationError(f"Color '{color}' is not available for this product")

    item = CartItem.query.filter_by(
        session_id=session_id, product_id=product_id, size=size, color=color
    ).first()

    if item:
        item.quantity += quantity
        created = False
    else:
        item = CartItem(session_id=session_id, product_id=product_id,
                        size=size, color=color, quantity=quantity)
        db.session.add(item)
        created = True

    db.session.commit()
    return item, created


def update_item(item_id, session_id, quantity):
    """Set an item's quantity; a quantity of zero or less removes it and returns None."""
    require_session(session_id)
    quantity = parse_quantity(quantity, allow_non_positive=True)

    item = CartItem.query.filter_by(id=item_id, session_id=session_id).first()

    if quantity <= 0:
        if item:
            db.session.delete(item)
            db.session.commit()
        return None

    if not item:
        raise NotFoundError("Cart item not found")

    item.quantity = quantity
    db.session.commit()
    return item


def remove_item(item_id, session_id):
    require_session(session_id)
    deleted = CartItem.query.filter_by(id=item_id, session_id=session_id).delete()
    db.session.commit()
    return deleted


def clear_cart(session_id):
    require_session(session_id)
    deleted = CartItem.query.filter_by(session_id=session_id).delete()
    db.session.commit()
    logger.debug("Cleared %s cart items", deleted)
    return deleted
