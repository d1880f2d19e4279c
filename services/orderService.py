"""
Checkout.

An order and its line items are written in one transaction. Unit prices are
recomputed from the product and its effective flash deal at order time; the
prices a client sends are never stored. A client-submitted total that
disagrees with the recomputed one beyond ``ORDER_TOTAL_TOLERANCE`` rejects
the order.
"""
import logging

from core.imports import current_app, func, datetime, Decimal, InvalidOperation, SQLAlchemyError
from core.extensions import db
from core.errors import ValidationError, NotFoundError, OrderCreationError, StorefrontError
from core.pricing import unit_price, to_decimal
from models.cartModels import CartItem
from models.orderModels import Order, OrderItem
from models.productModels import Product
from services.cartService import parse_quantity

logger = logging.getLogger(__name__)

CASH_ON_DELIVERY = "cod"


def initial_status(payment_method):
    """Return ``(status, payment_status)`` for a new order."""
    if payment_method == CASH_ON_DELIVERY:
        return "pending", "pending"
    return "payment_pending", "awaiting_payment"


def _validate_request(email, shipping_address, items):
    if not email or not isinstance(email, str) or "@" not in email:
        raise ValidationError("A valid email is required")
    if not isinstance(shipping_address, dict) or not shipping_address:
        raise ValidationError("Shipping address is required")
    if not isinstance(items, list) or not items:
        raise ValidationError("Order must contain at least one item")
    for item in items:
        if not isinstance(item, dict) or not item.get("product_id"):
            raise ValidationError("Each item needs a product_id")


def _price_lines(items, now):
    """Lock each product row, check stock and price every line."""
    lines = []
    reserved = {}
    for item in items:
        quantity = parse_quantity(item.get("quantity", 1))
        product_id = item["product_id"]

        product = (Product.query
                   .filter_by(id=product_id)
                   .with_for_update()
                   .first())
        if not product:
            raise NotFoundError(f"Product {product_id} not found")

        reserved[product.id] = reserved.get(product.id, 0) + quantity
        if reserved[product.id] > product.stock:
            raise ValidationError(f"Only {product.stock} of '{product.name}' available")

        price, _ = unit_price(product, now)
        lines.append({
            "product": product,
            "quantity": quantity,
            "size": item.get("size"),
            "color": item.get("color"),
            "price": price,
        })
    return lines


def _check_total(submitted, computed):
    if submitted is None:
        return
    if isinstance(submitted, (bool, list, dict)):
        raise ValidationError("total_amount must be a number")
    try:
        submitted = to_decimal(submitted)
    except (InvalidOperation, ValueError):
        raise ValidationError("total_amount must be a number")
    if not submitted.is_finite():
        raise ValidationError("total_amount must be a number")
    tolerance = to_decimal(current_app.config.get("ORDER_TOTAL_TOLERANCE", 0.01))
    if abs(submitted - computed) > tolerance:
        raise ValidationError(
            f"Order total {submitted} does not match current prices ({computed})"
        )


def _add_order_items(order, lines):
    for line in lines:
        db.session.add(OrderItem(
            order_id=order.id,
            product_id=line["product"].id,
            quantity=line["quantity"],
            size=line["size"],
            color=line["color"],
            price=line["price"],
        ))
        line["product"].stock -= line["quantity"]
    db.session.flush()


def create_order(email, shipping_address, items, total_amount=None,
                 payment_method=None, user_id=None, session_id=None):
    _validate_request(email, shipping_address, items)
    email = email.strip().lower()
    payment_method = payment_method or CASH_ON_DELIVERY
    status, payment_status = initial_status(payment_method)
    now = datetime.utcnow()

    try:
        lines = _price_lines(items, now)
        total = sum((line["price"] * line["quantity"] for line in lines), Decimal("0.00"))
        _check_total(total_amount, total)

        order = Order(
            user_id=user_id,
            email=email,
            total_amount=total,
            status=status,
            payment_method=payment_method,
            payment_status=payment_status,
            shipping_address=shipping_address,
        )
        db.session.add(order)
        db.session.flush()

        _add_order_items(order, lines)

        if session_id:
            CartItem.query.filter_by(session_id=session_id).delete()

        db.session.commit()
    except StorefrontError:
        db.session.rollback()
        raise
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Error creating order for %s", email)
        raise OrderCreationError("Failed to create order")

    logger.info("Order %s created for %s: %s items, total %s",
                order.id, email, len(lines), total)
    return order


def list_orders_by_email(email):
    if not email:
        raise ValidationError("Email parameter required")
    return (Order.query
            .filter(func.lower(Order.email) == email.strip().lower())
            .order_by(Order.created_at.desc())
            .all())


def get_order(order_id):
    order = db.session.get(Order, order_id)
    if not order:
        raise NotFoundError("Order not found")
    return order
