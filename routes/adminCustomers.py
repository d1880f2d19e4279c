"""
Customer views for the back-office.

A customer is either *registered* (a ``users`` row with role ``user``; their
orders are matched by user id or by email) or a *guest* (an order email with
no ``users`` row at all). Guest details come from the shipping address of
their most recent order. Emails are compared case-insensitively.

Both segments are aggregated in the database with grouped joins.
"""
import logging
from urllib.parse import quote

from core.imports import Blueprint, jsonify, request, current_app, datetime, timedelta, Message, func, or_, and_
from core.extensions import db, mail
from core.security import admin_required
from models.orderModels import Order
from models.userModel import User

logger = logging.getLogger(__name__)

admin_customers_bp = Blueprint('admin_customers', __name__)

ACTIVE_WINDOW_DAYS = 90
RECENT_ORDERS_LIMIT = 20

order_email = func.lower(Order.email)


def _iso(value):
    return value.isoformat() if value else None


def _user_orders_condition(user_id, email):
    return or_(Order.user_id == user_id, order_email == func.lower(email))


def _guest_filter():
    """Order rows whose email belongs to no user account."""
    return order_email.not_in(db.select(func.lower(User.email)))


def _totals(count, spent, last_order):
    return {
        "total_orders": count,
        "total_spent": round(float(spent or 0), 2),
        "last_order_date": _iso(last_order),
    }


def _registered_rows():
    rows = (db.session.query(User,
                             func.count(Order.id),
                             func.coalesce(func.sum(Order.total_amount), 0),
                             func.max(Order.created_at))
            .outerjoin(Order, _user_orders_condition(User.id, User.email))
            .filter(User.role == "user")
            .group_by(User.id)
            .order_by(User.created_at.desc())
            .all())

    customers = []
    for user, count, spent, last_order in rows:
        row = {
            "id": user.id,
            "email": user.email,
            "first_name": user.first_name,
            "last_name": user.last_name,
            "phone": user.phone,
            "city": user.city,
            "state": user.state,
            "role": user.role,
            "customer_type": "registered",
            "created_at": _iso(user.created_at),
        }
        row.update(_totals(count, spent, last_order))
        customers.append(row)
    return customers


def _guest_rows():
    """One row per guest email, most recent order first."""
    summary = (db.session.query(order_email.label("email"),
                                func.count(Order.id).label("order_count"),
                                func.sum(Order.total_amount).label("spent"),
                                func.min(Order.created_at).label("first_order"),
                                func.max(Order.created_at).label("last_order"))
               .filter(_guest_filter())
               .group_by(order_email)
               .subquery())

    rows = (db.session.query(Order, summary.c.order_count, summary.c.spent,
                             summary.c.first_order, summary.c.last_order)
            .join(summary, and_(order_email == summary.c.email,
                                Order.created_at == summary.c.last_order))
            .order_by(summary.c.last_order.desc(), Order.id)
            .all())

    guests = []
    seen = set()
    for latest, count, spent, first_order, last_order in rows:
        key = latest.email.lower()
        if key in seen:
            continue
        seen.add(key)
        address = latest.shipping_address or {}
        row = {
            "id": None,
            "email": latest.email,
            "first_name": address.get("firstName"),
            "last_name": address.get("lastName"),
            "phone": address.get("phone"),
            "city": address.get("city"),
            "state": address.get("state"),
            "role": "user",
            "customer_type": "guest",
            "created_at": _iso(first_order),
            "first_order_date": _iso(first_order),
        }
        row.update(_totals(count, spent, last_order))
        guests.append(row)
    return guests


@admin_customers_bp.route('/api/admin/customers', methods=['GET'])
@admin_required
def list_customers():
    """
    Admin: all customers, registered and guest
    ---
    tags:
      - Admin Customers
    security:
      - Bearer: []
    responses:
      200:
        description: Registered customers (newest account first) followed by guest customers
    """
    return jsonify(_registered_rows() + _guest_rows()), 200


@admin_customers_bp.route('/api/admin/customers/guests', methods=['GET'])
@admin_required
def list_guest_customers():
    return jsonify(_guest_rows()), 200


@admin_customers_bp.route('/api/admin/customers/stats/overview', methods=['GET'])
@admin_required
def customer_stats():
    since = datetime.utcnow() - timedelta(days=ACTIVE_WINDOW_DAYS)

    registered = User.query.filter(User.role == "user").count()
    guests = (db.session.query(func.count(func.distinct(order_email)))
              .filter(_guest_filter())
              .scalar())

    active_registered = (db.session.query(func.count(func.distinct(User.id)))
                         .join(Order, _user_orders_condition(User.id, User.email))
                         .filter(User.role == "user", Order.created_at >= since)
                         .scalar())
    active_guests = (db.session.query(func.count(func.distinct(order_email)))
                     .filter(_guest_filter(), Order.created_at >= since)
                     .scalar())

    total_revenue, order_count = (
        db.session.query(func.coalesce(func.sum(Order.total_amount), 0), func.count(Order.id)).one()
    )
    total_revenue = float(total_revenue)
    total_customers = registered + guests

    return jsonify({
        "totalCustomers": total_customers,
        "registeredCustomers": registered,
        "guestCustomers": guests,
        "activeCustomers": active_registered + active_guests,
        "totalRevenue": round(total_revenue, 2),
        "avgOrderValue": round(total_revenue / order_count, 2) if order_count else 0.0,
        "conversionRate": round(registered / total_customers * 100, 1) if total_customers else 0.0
    }), 200


@admin_customers_bp.route('/api/admin/customers/by-email/<string:email>', methods=['GET'])
@admin_required
def customer_by_email(email):
    email = email.strip().lower()
    user = User.query.filter(func.lower(User.email) == email).first()

    if user:
        condition = _user_orders_condition(user.id, email)
    else:
        condition = order_email == email

    order_count, spent = (db.session.query(func.count(Order.id),
                                           func.coalesce(func.sum(Order.total_amount), 0))
                          .filter(condition)
                          .one())
    orders = (Order.query
              .filter(condition)
              .order_by(Order.created_at.desc())
              .limit(RECENT_ORDERS_LIMIT)
              .all())

    if user:
        info = user.to_dict()
        info["customer_type"] = "registered"
    elif orders:
        address = orders[0].shipping_address or {}
        first_order = (db.session.query(func.min(Order.created_at))
                       .filter(condition)
                       .scalar())
        info = {
            "id": None,
            "email": orders[0].email,
            "firstName": address.get("firstName"),
            "lastName": address.get("lastName"),
            "phone": address.get("phone"),
            "address": address.get("address"),
            "city": address.get("city"),
            "state": address.get("state"),
            "zipCode": address.get("zipCode"),
            "country": address.get("country") or "USA",
            "role": "user",
            "createdAt": _iso(first_order),
            "customer_type": "guest",
        }
    else:
        return jsonify({"error": "Customer not found"}), 404

    info.update({
        "total_orders": order_count,
        "total_spent": round(float(spent), 2),
        "orders": [
            {
                "id": o.id,
                "total_amount": float(o.total_amount),
                "status": o.status,
                "payment_method": o.payment_method,
                "payment_status": o.payment_status,
                "created_at": _iso(o.created_at),
                "items_count": len(o.order_items),
            }
            for o in orders
        ]
    })
    return jsonify(info), 200


def send_invitation(email, order_count):
    link = f"{current_app.config['FRONTEND_URL']}/register?email={quote(email)}"
    msg = Message(subject="Create your account", recipients=[email])
    msg.html = (
        f"<p>Thanks for your {order_count} order{'s' if order_count != 1 else ''} with us!</p>"
        f"<p>Create an account to track orders and check out faster: "
        f"<a href=\"{link}\">{link}</a></p>"
    )
    try:
        mail.send(msg)
    except Exception:
        logger.exception("Error sending invitation to %s", email)
        return False
    return True


@admin_customers_bp.route('/api/admin/customers/invite-guest', methods=['POST'])
@admin_required
def invite_guest():
    """
    Admin: invite a guest customer to register
    ---
    tags:
      - Admin Customers
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
          required: [email]
          properties:
            email: { type: string, example: "guest@example.com" }
    responses:
      200:
        description: Invitation email sent (invitationSent tells whether delivery succeeded)
      400:
        description: Missing email or the email already has an account
      404:
        description: No orders found for this email
    """
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    email = email.strip() if isinstance(email, str) else ""

    if not email:
        return jsonify({"error": "Email is required"}), 400

    if User.query.filter(func.lower(User.email) == email.lower()).first():
        return jsonify({"error": "User already has an account"}), 400

    order_count = Order.query.filter(order_email == email.lower()).count()
    if order_count == 0:
        return jsonify({"error": "No orders found for this email"}), 404

    sent = send_invitation(email, order_count)
    return jsonify({
        "message": "Invitation sent to guest customer" if sent else "Invitation could not be sent",
        "email": email,
        "orderCount": order_count,
        "invitationSent": sent
    }), 200
