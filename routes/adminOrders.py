import logging

from core.imports import Blueprint, jsonify, request, func, datetime, timedelta
from core.extensions import db
from core.security import admin_required
from models.orderModels import Order, ORDER_STATUSES

logger = logging.getLogger(__name__)

admin_orders_bp = Blueprint('admin_orders', __name__)


def order_with_customer(order):
    data = order.to_dict()
    user = order.user
    data.update({
        "first_name": user.first_name if user else None,
        "last_name": user.last_name if user else None,
        "phone": user.phone if user else None,
    })
    return data


@admin_orders_bp.route('/api/admin/orders', methods=['GET'])
@admin_required
def list_orders():
    """
    Admin: list orders
    ---
    tags:
      - Admin Orders
    security:
      - Bearer: []
    parameters:
      - name: status
        in: query
        type: string
        required: false
      - name: email
        in: query
        type: string
        required: false
        description: Partial, case-insensitive match on the order email
    responses:
      200:
        description: Orders newest first, each with items and customer name
    """
    query = Order.query

    status = request.args.get("status")
    if status:
        query = query.filter(Order.status == status)

    email = request.args.get("email")
    if email:
        query = query.filter(Order.email.ilike(f"%{email}%"))

    orders = query.order_by(Order.created_at.desc()).all()
    return jsonify([order_with_customer(o) for o in orders]), 200


@admin_orders_bp.route('/api/admin/orders/stats/overview', methods=['GET'])
@admin_required
def order_stats():
    since = datetime.utcnow() - timedelta(days=30)

    status_counts = (db.session.query(Order.status, func.count(Order.id))
                     .group_by(Order.status)
                     .all())

    total_revenue, counted_orders, avg_order_value = (
        db.session.query(func.coalesce(func.sum(Order.total_amount), 0),
                         func.count(Order.id),
                         func.coalesce(func.avg(Order.total_amount), 0))
        .filter(Order.status != "cancelled")
        .one()
    )

    return jsonify({
        "totalOrders": Order.query.count(),
        "statusCounts": {status: count for status, count in status_counts},
        "revenue": {
            "total_revenue": round(float(total_revenue), 2),
            "total_orders": counted_orders,
            "avg_order_value": round(float(avg_order_value), 2)
        },
        "recentOrders": Order.query.filter(Order.created_at >= since).count()
    }), 200


@admin_orders_bp.route('/api/admin/orders/<string:order_id>', methods=['GET'])
@admin_required
def get_order(order_id):
    order = db.session.get(Order, order_id)
    if not order:
        return jsonify({"error": "Order not found"}), 404
    return jsonify(order_with_customer(order)), 200


@admin_orders_bp.route('/api/admin/orders/<string:order_id>/status', methods=['PUT'])
@admin_required
def update_order_status(order_id):
    """
    Admin: change order status
    ---
    tags:
      - Admin Orders
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - name: order_id
        in: path
        type: string
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            status:
              type: string
              enum: [pending, processing, shipped, delivered, cancelled]
    responses:
      200:
        description: Updated order
      400:
        description: Invalid status
      404:
        description: Order not found
    """
    data = request.get_json(silent=True) or {}
    new_status = data.get("status")

    if new_status not in ORDER_STATUSES:
        return jsonify({"error": "Invalid status"}), 400

    order = db.session.get(Order, order_id)
    if not order:
        return jsonify({"error": "Order not found"}), 404

    logger.info("Order %s status %s -> %s", order.id, order.status, new_status)
    order.status = new_status
    db.session.commit()
    return jsonify(order_with_customer(order)), 200
