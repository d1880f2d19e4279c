import logging
import math

from core.imports import Blueprint, jsonify, request, datetime, timezone
from core.extensions import db
from core.pricing import deals_overlap, is_effective, discounted_price, serialize_flash_deal
from core.security import admin_required
from models.productModels import FlashDeal, Product
from routes.products import parse_flag

logger = logging.getLogger(__name__)

admin_flash_deals_bp = Blueprint('admin_flash_deals', __name__)

MIN_DISCOUNT = 1
MAX_DISCOUNT = 99


def parse_timestamp(value):
    """ISO-8601 string to naive UTC; aware values are converted first."""
    if isinstance(value, datetime):
        parsed = value
    else:
        if not isinstance(value, str) or not value:
            raise ValueError("timestamp must be an ISO-8601 string")
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_discount(value):
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError("discount must be a number")
    number = float(value)
    if not math.isfinite(number):
        raise ValueError("discount must be finite")
    discount = int(number)
    if discount != number or not MIN_DISCOUNT <= discount <= MAX_DISCOUNT:
        raise ValueError("discount out of range")
    return discount


def find_overlapping_deal(product_id, start_time, end_time, exclude_id=None):
    query = FlashDeal.query.filter(FlashDeal.product_id == product_id,
                                   FlashDeal.is_active.is_(True))
    if exclude_id is not None:
        query = query.filter(FlashDeal.id != exclude_id)
    for deal in query.all():
        if deals_overlap(deal.start_time, deal.end_time, start_time, end_time):
            return deal
    return None


def deal_details(deal, now=None):
    data = serialize_flash_deal(deal)
    product = deal.product
    data.update({
        "product_name": product.name if product else None,
        "original_price": float(product.price) if product else None,
        "sale_price": float(discounted_price(product.price, deal.discount_percentage)) if product else None,
        "image_url": product.image_url if product else None,
        "is_effective": is_effective(deal, now),
        "created_at": deal.created_at.isoformat() if deal.created_at else None,
    })
    return data


@admin_flash_deals_bp.route('/api/admin/flash-deals', methods=['GET'])
@admin_required
def list_flash_deals():
    now = datetime.utcnow()
    deals = FlashDeal.query.order_by(FlashDeal.created_at.desc(), FlashDeal.id.desc()).all()
    return jsonify([deal_details(d, now) for d in deals]), 200


@admin_flash_deals_bp.route('/api/admin/flash-deals', methods=['POST'])
@admin_required
def create_flash_deal():
    """
    Admin: create a flash deal
    ---
    tags:
      - Admin Flash Deals
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [product_id, discount_percentage, start_time, end_time]
          properties:
            product_id: { type: string }
            discount_percentage: { type: integer, example: 20 }
            start_time: { type: string, example: "2026-11-01T09:00:00Z" }
            end_time: { type: string, example: "2026-11-01T21:00:00Z" }
    responses:
      201:
        description: Flash deal created
      400:
        description: Missing or invalid fields, or overlaps an active deal of the same product
      404:
        description: Product not found
    """
    data = request.get_json(silent=True) or {}
    required = ("product_id", "discount_percentage", "start_time", "end_time")
    if any(data.get(field) in (None, "") for field in required):
        return jsonify({"error": "All fields are required"}), 400

    try:
        discount = parse_discount(data["discount_percentage"])
    except (TypeError, ValueError):
        return jsonify({"error": "Discount must be between 1-99%"}), 400

    try:
        start_time = parse_timestamp(data["start_time"])
        end_time = parse_timestamp(data["end_time"])
    except ValueError:
        return jsonify({"error": "start_time and end_time must be ISO-8601 timestamps"}), 400

    if start_time >= end_time:
        return jsonify({"error": "end_time must be after start_time"}), 400

    product = db.session.get(Product, data["product_id"])
    if not product:
        return jsonify({"error": "Product not found"}), 404

    if find_overlapping_deal(product.id, start_time, end_time):
        return jsonify({"error": "This product already has an active flash deal in this time period"}), 400

    deal = FlashDeal(
        product_id=product.id,
        discount_percentage=discount,
        start_time=start_time,
        end_time=end_time,
        is_active=True
    )
    db.session.add(deal)
    db.session.commit()
    logger.info("Flash deal %s created: %s%% off %s from %s to %s",
                deal.id, discount, product.id, start_time, end_time)

    return jsonify({
        "message": "Flash deal created successfully",
        "id": deal.id,
        "deal": deal_details(deal)
    }), 201


@admin_flash_deals_bp.route('/api/admin/flash-deals/<int:deal_id>', methods=['PUT'])
@admin_required
def update_flash_deal(deal_id):
    deal = db.session.get(FlashDeal, deal_id)
    if not deal:
        return jsonify({"error": "Flash deal not found"}), 404

    data = request.get_json(silent=True) or {}

    discount = deal.discount_percentage
    if "discount_percentage" in data:
        try:
            discount = parse_discount(data["discount_percentage"])
        except (TypeError, ValueError):
            return jsonify({"error": "Discount must be between 1-99%"}), 400

    try:
        start_time = parse_timestamp(data["start_time"]) if "start_time" in data else deal.start_time
        end_time = parse_timestamp(data["end_time"]) if "end_time" in data else deal.end_time
    except ValueError:
        return jsonify({"error": "start_time and end_time must be ISO-8601 timestamps"}), 400

    if start_time >= end_time:
        return jsonify({"error": "end_time must be after start_time"}), 400

    try:
        is_active = parse_flag(data["is_active"]) if "is_active" in data else deal.is_active
    except ValueError:
        return jsonify({"error": "is_active must be a boolean"}), 400

    if is_active and find_overlapping_deal(deal.product_id, start_time, end_time, exclude_id=deal.id):
        return jsonify({"error": "This product already has an active flash deal in this time period"}), 400

    deal.discount_percentage = discount
    deal.start_time = start_time
    deal.end_time = end_time
    deal.is_active = is_active
    db.session.commit()

    return jsonify({"message": "Flash deal updated successfully", "deal": deal_details(deal)}), 200


@admin_flash_deals_bp.route('/api/admin/flash-deals/<int:deal_id>', methods=['DELETE'])
@admin_required
def delete_flash_deal(deal_id):
    deal = db.session.get(FlashDeal, deal_id)
    if not deal:
        return jsonify({"error": "Flash deal not found"}), 404

    db.session.delete(deal)
    db.session.commit()
    return jsonify({"message": "Flash deal deleted successfully"}), 200
