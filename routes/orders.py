from core.imports import Blueprint, jsonify, request
from core.security import optional_user_id
from services import orderService

orders_bp = Blueprint('orders', __name__)


@orders_bp.route('/api/orders', methods=['POST'])
def create_order():
    """
    Place an order
    ---
    tags:
      - Orders
    summary: Create an order from cart line items
    description: >
      Unit prices are recomputed from the current product price and any running
      flash deal; prices sent by the client are ignored. If total_amount is sent
      and does not match the recomputed total, the order is rejected.
      A bearer token is optional and links the order to the user.
      When x-session-id is sent, that cart is emptied with the same transaction.
    consumes:
      - application/json
    parameters:
      - name: x-session-id
        in: header
        type: string
        required: false
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - email
            - shipping_address
            - cartItems
          properties:
            email:
              type: string
              example: "jane@example.com"
            total_amount:
              type: number
              example: 50.0
            payment_method:
              type: string
              example: "cod"
            shipping_address:
              type: object
              properties:
                firstName: { type: string, example: "Jane" }
                lastName: { type: string, example: "Doe" }
                address: { type: string, example: "12 Main St" }
                city: { type: string, example: "Austin" }
                state: { type: string, example: "TX" }
                zipCode: { type: string, example: "73301" }
                country: { type: string, example: "USA" }
            cartItems:
              type: array
              items:
                type: object
                properties:
                  product_id: { type: string }
                  quantity: { type: integer, example: 2 }
                  size: { type: string, example: "M" }
                  color: { type: string, example: "Black" }
    responses:
      201:
        description: Order created
      400:
        description: Invalid input, insufficient stock or total mismatch
      404:
        description: Product not found
      500:
        description: Failed to create order
    """
    data = request.get_json(silent=True) or {}

    items = data.get("cartItems", data.get("items"))

    order = orderService.create_order(
        email=data.get("email"),
        shipping_address=data.get("shipping_address"),
        items=items,
        total_amount=data.get("total_amount"),
        payment_method=data.get("payment_method"),
        user_id=optional_user_id(),
        session_id=request.headers.get("x-session-id"),
    )

    return jsonify(order.to_dict()), 201


@orders_bp.route('/api/orders', methods=['GET'])
def get_orders_by_email():
    """
    Orders placed with an email address
    ---
    tags:
      - Orders
    parameters:
      - name: email
        in: query
        type: string
        required: true
    responses:
      200:
        description: Orders for this email (case-insensitive), newest first
      400:
        description: Email parameter required
    """
    orders = orderService.list_orders_by_email(request.args.get("email"))
    return jsonify([order.to_dict() for order in orders]), 200


@orders_bp.route('/api/orders/<string:order_id>', methods=['GET'])
def get_order(order_id):
    order = orderService.get_order(order_id)
    return jsonify(order.to_dict()), 200
