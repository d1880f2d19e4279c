from core.imports import Blueprint, jsonify, request, datetime
from core.extensions import db
from core.pricing import serialize_product
from models.productModels import Product, CATEGORIES

products_bp = Blueprint('products', __name__)

TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off", "")


def parse_flag(value):
    """JSON or form-style boolean; raises ValueError for anything else."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_VALUES:
            return True
        if lowered in FALSE_VALUES:
            return False
    raise ValueError(f"not a boolean: {value!r}")


def seed_products():
    sample_products = [
        {
            "name": "Classic Black Tee",
            "description": "Heavyweight cotton t-shirt with a relaxed fit.",
            "price": 25.00,
            "category": "t-shirt",
            "image_url": "https://images.example.com/classic-black-tee.jpg",
            "sizes": ["S", "M", "L", "XL"],
            "colors": ["Black", "White"],
            "stock": 50,
            "featured": True
        },
        {
            "name": "Vintage Wash Tee",
            "description": "Garment-dyed tee with a soft vintage finish.",
            "price": 30.00,
            "category": "t-shirt",
            "image_url": "https://images.example.com/vintage-wash-tee.jpg",
            "sizes": ["S", "M", "L"],
            "colors": ["Sand", "Olive"],
            "stock": 30,
            "featured": False
        },
        {
            "name": "Essential Hoodie",
            "description": "Brushed fleece pullover hoodie.",
            "price": 60.00,
            "category": "hoodie",
            "image_url": "https://images.example.com/essential-hoodie.jpg",
            "sizes": ["M", "L", "XL"],
            "colors": ["Grey", "Navy"],
            "stock": 20,
            "featured": True
        }
    ]

    created = []
    for data in sample_products:
        if not Product.query.filter_by(name=data["name"]).first():
            db.session.add(Product(**data))
            created.append(data["name"])
    db.session.commit()
    return created


@products_bp.route('/api/products', methods=['GET'])
def list_products():
    """
    List products
    ---
    tags:
      - Products
    parameters:
      - name: category
        in: query
        type: string
        enum: [t-shirt, hoodie]
        required: false
      - name: featured
        in: query
        type: boolean
        required: false
    responses:
      200:
        description: Products, newest first. flashDeal is present only while a deal is running.
        schema:
          type: array
          items:
            type: object
            properties:
              id: { type: string, example: "3f1c2a8e-5a0b-4c55-9a43-7c1f1d0b2e11" }
              name: { type: string, example: "Classic Black Tee" }
              price: { type: number, example: 25.0 }
              sale_price: { type: number, example: 20.0 }
              category: { type: string, example: "t-shirt" }
              sizes: { type: array, items: { type: string } }
              colors: { type: array, items: { type: string } }
              stock: { type: integer, example: 50 }
              featured: { type: boolean, example: true }
              flashDeal:
                type: object
                properties:
                  id: { type: integer, example: 4 }
                  discount_percentage: { type: integer, example: 20 }
                  start_time: { type: string }
                  end_time: { type: string }
                  is_active: { type: boolean }
      400:
        description: Unknown category
    """
    query = Product.query

    category = request.args.get("category")
    if category:
        if category not in CATEGORIES:
            return jsonify({"error": "Invalid category"}), 400
        query = query.filter_by(category=category)

    featured = request.args.get("featured")
    if featured is not None:
        query = query.filter_by(featured=featured.lower() in TRUE_VALUES)

    now = datetime.utcnow()
    products = query.order_by(Product.created_at.desc()).all()
    return jsonify([serialize_product(p, now) for p in products]), 200


@products_bp.route('/api/products/<string:product_id>', methods=['GET'])
def get_product(product_id):
    """
    Get a single product
    ---
    tags:
      - Products
    parameters:
      - name: product_id
        in: path
        type: string
        required: true
    responses:
      200:
        description: Product, with flashDeal while a deal is running
      404:
        description: Product not found
    """
    product = db.session.get(Product, product_id)
    if not product:
        return jsonify({"error": "Product not found"}), 404

    return jsonify(serialize_product(product)), 200
