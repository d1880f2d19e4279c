import logging

from core.imports import Blueprint, jsonify, request, current_app, func, datetime, timedelta, Decimal, InvalidOperation
from core.extensions import db
from core.pricing import serialize_product
from core.security import admin_required
from models.orderModels import OrderItem
from models.productModels import Product, CATEGORIES
from routes.products import parse_flag, TRUE_VALUES

logger = logging.getLogger(__name__)

admin_products_bp = Blueprint('admin_products', __name__)

REQUIRED_FIELDS = ("name", "description", "price", "category", "image_url")
MAX_PRICE = Decimal("100000000")


def _apply_product_fields(product, data):
    """Copy validated fields from ``data`` onto ``product``; returns an error string or None."""
    if "name" in data:
        if not data["name"]:
            return "Name cannot be empty"
        product.name = data["name"]

    if "description" in data:
        product.description = data["description"] or ""

    if "price" in data:
        if isinstance(data["price"], (bool, list, dict)):
            return "Price must be a number"
        try:
            price = Decimal(str(data["price"]))
        except (InvalidOperation, ValueError):
            return "Price must be a number"
        if not price.is_finite():
            return "Price must be a number"
        if price <= 0:
            return "Price must be greater than zero"
        if price >= MAX_PRICE:
            return "Price is too large"
        product.price = price

    if "category" in data:
        if data["category"] not in CATEGORIES:
            return f"Category must be one of: {', '.join(CATEGORIES)}"
        product.category = data["category"]

    if "image_url" in data:
        product.image_url = data["image_url"]

    for field in ("sizes", "colors"):
        if field in data:
            values = data[field] or []
            if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
                return f"{field.capitalize()} must be a list of strings"
            setattr(product, field, values)

    if "stock" in data:
        try:
            stock = int(data["stock"] or 0)
        except (TypeError, ValueError, OverflowError):
            return "Stock must be an integer"
        if stock < 0:
            return "Stock cannot be negative"
        product.stock = stock

    if "featured" in data:
        try:
            product.featured = parse_flag(data["featured"])
        except ValueError:
            return "Featured must be a boolean"

    return None


@admin_products_bp.route('/api/admin/products', methods=['GET'])
@admin_required
def list_products():
    now = datetime.utcnow()
    products = Product.query.order_by(Product.created_at.desc()).all()
    return jsonify([serialize_product(p, now) for p in products]), 200


@admin_products_bp.route('/api/admin/products/stats/overview', methods=['GET'])
@admin_required
def product_stats():
    """
    Admin: product statistics
    ---
    tags:
      - Admin Products
    security:
      - Bearer: []
    responses:
      200:
        description: Catalogue totals
        schema:
          type: object
          properties:
            totalProducts: { type: integer, example: 12 }
            featuredProducts: { type: integer, example: 3 }
            lowStock: { type: integer, example: 2 }
            categoryCounts: { type: object, example: { "t-shirt": 9, "hoodie": 3 } }
            recentProducts: { type: integer, example: 4 }
            totalStock: { type: integer, example: 480 }
    """
    threshold = current_app.config.get("LOW_STOCK_THRESHOLD", 10)
    since = datetime.utcnow() - timedelta(days=30)

    category_counts = (db.session.query(Product.category, func.count(Product.id))
                       .group_by(Product.category)
                       .all())

    return jsonify({
        "totalProducts": Product.query.count(),
        "featuredProducts": Product.query.filter(Product.featured.is_(True)).count(),
        "lowStock": Product.query.filter(Product.stock < threshold).count(),
        "categoryCounts": {category: count for category, count in category_counts},
        "recentProducts": Product.query.filter(Product.created_at >= since).count(),
        "totalStock": int(db.session.query(func.coalesce(func.sum(Product.stock), 0)).scalar())
    }), 200


@admin_products_bp.route('/api/admin/products/<string:product_id>', methods=['GET'])
@admin_required
def get_product(product_id):
    product = db.session.get(Product, product_id)
    if not product:
        return jsonify({"error": "Product not found"}), 404
    return jsonify(serialize_product(product)), 200


@admin_products_bp.route('/api/admin/products', methods=['POST'])
@admin_required
def create_product():
    """
    Admin: create a product
    ---
    tags:
      - Admin Products
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
          required: [name, description, price, category, image_url]
          properties:
            name: { type: string }
            description: { type: string }
            price: { type: number, example: 25.0 }
            category: { type: string, enum: [t-shirt, hoodie] }
            image_url: { type: string }
            sizes: { type: array, items: { type: string } }
            colors: { type: array, items: { type: string } }
            stock: { type: integer, example: 20 }
            featured: { type: boolean }
    responses:
      201:
        description: Created product
      400:
        description: Missing or invalid fields
    """
    data = request.get_json(silent=True) or {}

    if any(data.get(field) in (None, "") for field in REQUIRED_FIELDS):
        return jsonify({"error": "Missing required fields"}), 400

    product = Product(sizes=[], colors=[], stock=0, featured=False)
    error = _apply_product_fields(product, data)
    if error:
        return jsonify({"error": error}), 400

    db.session.add(product)
    db.session.commit()
    logger.info("Product %s created: %s", product.id, product.name)
    return jsonify(serialize_product(product)), 201


@admin_products_bp.route('/api/admin/products/<string:product_id>', methods=['PUT'])
@admin_required
def update_product(product_id):
    product = db.session.get(Product, product_id)
    if not product:
        return jsonify({"error": "Product not found"}), 404

    data = request.get_json(silent=True) or {}
    error = _apply_product_fields(product, data)
    if error:
        db.session.rollback()
        return jsonify({"error": error}), 400

    db.session.commit()
    return jsonify(serialize_product(product)), 200


@admin_products_bp.route('/api/admin/products/<string:product_id>', methods=['DELETE'])
@admin_required
def delete_product(product_id):
    """
    Admin: delete a product
    ---
    tags:
      - Admin Products
    security:
      - Bearer: []
    parameters:
      - name: product_id
        in: path
        type: string
        required: true
      - name: force
        in: query
        type: boolean
        required: false
        description: Also delete the order items that reference this product
    responses:
      200:
        description: Product deleted
      400:
        description: Product has been ordered and force was not given
      404:
        description: Product not found
    """
    product = db.session.get(Product, product_id)
    if not product:
        return jsonify({"error": "Product not found"}), 404

    force = request.args.get("force", "").lower() in TRUE_VALUES
    ordered = OrderItem.query.filter_by(product_id=product_id).count()

    if ordered and not force:
        return jsonify({
            "error": "This product has been ordered by customers and cannot be deleted. "
                     "Use force=true to delete it together with its order history.",
            "orderItems": ordered
        }), 400

    if ordered:
        OrderItem.query.filter_by(product_id=product_id).delete()
        logger.warning("Force-deleting product %s removed %s order items", product_id, ordered)

    db.session.delete(product)
    db.session.commit()
    logger.info("Product %s deleted", product_id)
    return jsonify({"message": "Product deleted successfully"}), 200
