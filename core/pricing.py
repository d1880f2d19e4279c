"""
Flash-deal pricing.

Every endpoint that exposes or charges a price goes through this module so
that the catalogue, the cart and checkout always agree on what a product
costs at a given moment.

A deal is effective when it is active and ``start_time <= now < end_time``.
Times are naive UTC, like every timestamp stored by the models.
"""
from core.imports import datetime, Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")


def to_decimal(value):
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def is_effective(deal, now=None):
    if deal is None or not deal.is_active:
        return False
    now = now or datetime.utcnow()
    return deal.start_time <= now < deal.end_time


def effective_deal(product, now=None):
    """Return the product's effective deal, or None.

    Overlap is only checked when deals are created, so more than one deal
    can be effective at once; the one ending first wins.
    """
    now = now or datetime.utcnow()
    candidates = [deal for deal in product.flash_deals if is_effective(deal, now)]
    if not candidates:
        return None
    return min(candidates, key=lambda deal: (deal.end_time, deal.id or 0))


def discounted_price(price, discount_percentage):
    price = to_decimal(price)
    factor = (Decimal(100) - to_decimal(discount_percentage)) / Decimal(100)
    return (price * factor).quantize(CENT, rounding=ROUND_HALF_UP)


def unit_price(product, now=None):
    """Return ``(price, deal)`` for one unit of ``product`` at ``now``."""
    deal = effective_deal(product, now)
    if deal is None:
        return to_decimal(product.price).quantize(CENT, rounding=ROUND_HALF_UP), None
    return discounted_price(product.price, deal.discount_percentage), deal


def deals_overlap(a_start, a_end, b_start, b_end):
    return a_start < b_end and b_start < a_end


def serialize_flash_deal(deal):
    return {
        "id": deal.id,
        "product_id": deal.product_id,
        "discount_percentage": deal.discount_percentage,
        "start_time": deal.start_time.isoformat(),
        "end_time": deal.end_time.isoformat(),
        "is_active": bool(deal.is_active),
    }


def serialize_product(product, now=None):
    """Product JSON with ``flashDeal`` and ``sale_price`` when a deal is effective."""
    data = product.to_dict()
    price, deal = unit_price(product, now)
    if deal is not None:
        data["flashDeal"] = serialize_flash_deal(deal)
        data["sale_price"] = float(price)
    return data
