from core.imports import Blueprint, jsonify, func, datetime, timedelta
from core.extensions import db
from core.security import admin_required
from models.orderModels import Order
from models.productModels import Product
from models.userModel import User

admin_stats_bp = Blueprint('admin_stats', __name__)

WINDOW_DAYS = 30


def growth_rate(current, previous):
    """Percent change from ``previous`` to ``current``, one decimal."""
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return round((current - previous) / previous * 100, 1)


def _window_totals(start, end):
    orders, revenue = (
        db.session.query(func.count(Order.id), func.coalesce(func.sum(Order.total_amount), 0))
        .filter(Order.created_at >= start, Order.created_at < end, Order.status != "cancelled")
        .one()
    )
    users = User.query.filter(User.created_at >= start, User.created_at < end).count()
    return orders, float(revenue), users


@admin_stats_bp.route('/api/admin/stats', methods=['GET'])
@admin_required
def dashboard_stats():
    """
    Admin: dashboard statistics
    ---
    tags:
      - Admin
    summary: Totals plus growth of the last 30 days against the 30 days before
    security:
      - Bearer: []
    responses:
      200:
        description: Dashboard numbers
        schema:
          type: object
          properties:
            totalRevenue: { type: number, example: 1520.5 }
            totalOrders: { type: integer, example: 48 }
            totalUsers: { type: integer, example: 31 }
            totalProducts: { type: integer, example: 12 }
            growth:
              type: object
              properties:
                orders: { type: number, example: 12.5 }
                revenue: { type: number, example: -3.2 }
                users: { type: number, example: 100.0 }
      401:
        description: Missing or invalid token
      403:
        description: Not an admin
    """
    now = datetime.utcnow()
    window = timedelta(days=WINDOW_DAYS)

    cur_orders, cur_revenue, cur_users = _window_totals(now - window, now)
    prev_orders, prev_revenue, prev_users = _window_totals(now - 2 * window, now - window)

    total_revenue = (db.session.query(func.coalesce(func.sum(Order.total_amount), 0))
                     .filter(Order.status != "cancelled")
                     .scalar())

    return jsonify({
        "totalRevenue": round(float(total_revenue), 2),
        "totalOrders": Order.query.count(),
        "totalUsers": User.query.count(),
        "totalProducts": Product.query.count(),
        "lastWindow": {"orders": cur_orders, "revenue": round(cur_revenue, 2), "users": cur_users},
        "previousWindow": {"orders": prev_orders, "revenue": round(prev_revenue, 2), "users": prev_users},
        "growth": {
            "orders": growth_rate(cur_orders, prev_orders),
            "revenue": growth_rate(cur_revenue, prev_revenue),
            "users": growth_rate(cur_users, prev_users)
        }
    }), 200
