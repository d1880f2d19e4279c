from core.imports import Blueprint, jsonify, datetime
from core.extensions import db
from core.pricing import effective_deal, discounted_price, serialize_flash_deal
from models.productModels import FlashDeal, Product

flash_deals_bp = Blueprint('flash_deals', __name__)


def deal_with_product(deal):
    data = serialize_flash_deal(deal)
    product = deal.product
    data.update({
        "product_name": product.name,
        "original_price": float(product.price),
        "sale_price": float(discounted_price(product.price, deal.discount_percentage)),
        "image_url": product.image_url,
    })
    return data


@flash_deals_bp.route('/api/flash-deals/active', methods=['GET'])
def active_flash_deals():
    """
    Flash deals running right now
    ---
    tags:
      - Flash Deals
    responses:
      200:
        description: Effective deals with product info, soonest ending first
    """
    now = datetime.utcnow()
    deals = (FlashDeal.query
             .filter(FlashDeal.is_active.is_(True),
                     FlashDeal.start_time <= now,
                     FlashDeal.end_time > now)
             .order_by(FlashDeal.end_time.asc())
             .all())
    return jsonify([deal_with_product(d) for d in deals]), 200


@flash_deals_bp.route('/api/flash-deals/product/<string:product_id>', methods=['GET'])
def product_flash_deal(product_id):
    """
    Effective flash deal of one product, or null
    ---
    tags:
      - Flash Deals
    parameters:
      - name: product_id
        in: path
        type: string
        required: true
    responses:
      200:
        description: The running deal, or null when there is none
      404:
        description: Product not found
    """
    product = db.session.get(Product, product_id)
    if not product:
        return jsonify({"error": "Product not found"}), 404

    deal = effective_deal(product)
    return jsonify(deal_with_product(deal) if deal else None), 200
