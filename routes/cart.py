from core.imports import Blueprint, jsonify, request, datetime
from services import cartService

cart_bp = Blueprint("cart", __name__)

SESSION_HEADER = "x-session-id"


def _session_id():
    return request.headers.get(SESSION_HEADER)


@cart_bp.route('/api/cart/session', methods=['POST'])
def create_cart_session():
    """
    Issue a new cart session id
    ---
    tags:
      - Cart
    responses:
      201:
        description: Send the returned id as the x-session-id header on cart requests
        schema:
          type: object
          properties:
            session_id:
              type: string
              example: "kQ2b0m3Jx9u4...w"
    """
    return jsonify({"session_id": cartService.new_session_id()}), 201


@cart_bp.route('/api/cart', methods=['GET'])
def get_cart():
    """
    Get the cart of the current session
    ---
    tags:
      - Cart
    parameters:
      - name: x-session-id
        in: header
        type: string
        required: false
        description: Cart session id. Without it the cart is empty.
    responses:
      200:
        description: Cart items, newest first, with product and effective price
        schema:
          type: array
          items:
            type: object
            properties:
              id:
                type: string
              product_id:
                type: string
              quantity:
                type: integer
                example: 2
              size:
                type: string
                example: "M"
              color:
                type: string
                example: "Black"
              unit_price:
                type: number
                example: 20.0
              line_total:
                type: number
                example: 40.0
              product:
                type: object
    """
    now = datetime.utcnow()
    items = cartService.get_cart(_session_id())
    return jsonify([cartService.serialize_item(item, now) for item in items]), 200


@cart_bp.route('/api/cart', methods=['POST'])
def add_to_cart():
    """
    Add a product variant to the cart
    ---
    tags:
      - Cart
    consumes:
      - application/json
    parameters:
      - name: x-session-id
        in: header
        type: string
        required: true
      - name: body
        in: body
        required: true
        schema:
          type: object
          required:
            - product_id
            - quantity
          properties:
            product_id:
              type: string
            quantity:
              type: integer
              example: 1
            size:
              type: string
              example: "M"
            color:
              type: string
              example: "Black"
    responses:
      201:
        description: New cart row created
      200:
        description: Quantity added to an existing row for the same product, size and color
      400:
        description: Missing session id, bad quantity, or unavailable size/color
      404:
        description: Product not found
    """
    data = request.get_json(silent=True) or {}

    item, created = cartService.add_item(
        _session_id(),
        data.get("product_id"),
        data.get("size"),
        data.get("color"),
        data.get("quantity", 1),
    )

    return jsonify(cartService.serialize_item(item)), 201 if created else 200


@cart_bp.route('/api/cart/<string:item_id>', methods=['PUT'])
def update_cart_item(item_id):
    """
    Update quantity of a cart item
    ---
    tags:
      - Cart
    consumes:
      - application/json
    parameters:
      - name: x-session-id
        in: header
        type: string
        required: true
      - name: item_id
        in: path
        type: string
        required: true
      - name: body
        in: body
        required: true
        schema:
          type: object
          required:
            - quantity
          properties:
            quantity:
              type: integer
              example: 3
    responses:
      200:
        description: Updated item, or a removal message when quantity is 0 or less
      404:
        description: Cart item not found
    """
    data = request.get_json(silent=True) or {}
    if "quantity" not in data:
        return jsonify({"error": "Quantity is required"}), 400

    item = cartService.update_item(item_id, _session_id(), data["quantity"])
    if item is None:
        return jsonify({"message": "Item removed from cart"}), 200

    return jsonify(cartService.serialize_item(item)), 200


@cart_bp.route('/api/cart/<string:item_id>', methods=['DELETE'])
def delete_cart_item(item_id):
    cartService.remove_item(item_id, _session_id())
    return jsonify({"message": "Item removed from cart"}), 200


@cart_bp.route('/api/cart', methods=['DELETE'])
def clear_cart():
    cartService.clear_cart(_session_id())
    return jsonify({"message": "Cart cleared"}), 200
