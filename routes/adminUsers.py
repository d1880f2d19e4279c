import logging

from core.imports import Blueprint, jsonify, request, get_jwt_identity, datetime, timedelta
from core.extensions import db
from core.security import admin_required
from models.userModel import User, ROLES
from routes.auth import PROFILE_FIELDS, MIN_PASSWORD_LENGTH, hash_password

logger = logging.getLogger(__name__)

admin_users_bp = Blueprint('admin_users', __name__)


@admin_users_bp.route('/api/admin/users', methods=['GET'])
@admin_required
def list_users():
    users = User.query.order_by(User.created_at.desc()).all()
    return jsonify([user.to_dict() for user in users]), 200


@admin_users_bp.route('/api/admin/users/stats/overview', methods=['GET'])
@admin_required
def user_stats():
    since = datetime.utcnow() - timedelta(days=30)
    return jsonify({
        "totalUsers": User.query.count(),
        "totalAdmins": User.query.filter_by(role="admin").count(),
        "recentUsers": User.query.filter(User.created_at >= since).count()
    }), 200


@admin_users_bp.route('/api/admin/users/<string:user_id>', methods=['GET'])
@admin_required
def get_user(user_id):
    user = db.session.get(User, user_id)
    if not user:
        return jsonify({"error": "User not found"}), 404
    return jsonify(user.to_dict()), 200


@admin_users_bp.route('/api/admin/users/<string:user_id>', methods=['PUT'])
@admin_required
def update_user(user_id):
    """
    Admin: update a user's profile or role
    ---
    tags:
      - Admin Users
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - name: user_id
        in: path
        type: string
        required: true
      - in: body
        name: body
        schema:
          type: object
          properties:
            firstName: { type: string }
            lastName: { type: string }
            phone: { type: string }
            address: { type: string }
            city: { type: string }
            state: { type: string }
            zipCode: { type: string }
            country: { type: string }
            role: { type: string, enum: [user, admin] }
    responses:
      200:
        description: User updated
      400:
        description: Invalid role
      404:
        description: User not found
    """
    user = db.session.get(User, user_id)
    if not user:
        return jsonify({"error": "User not found"}), 404

    data = request.get_json(silent=True) or {}

    if "role" in data:
        if data["role"] not in ROLES:
            return jsonify({"error": "Invalid role"}), 400
        if data["role"] != user.role:
            logger.info("Role of user %s changed from %s to %s", user.id, user.role, data["role"])
        user.role = data["role"]

    for key, column in PROFILE_FIELDS.items():
        if key in data:
            setattr(user, column, data[key])

    db.session.commit()
    return jsonify({"message": "User updated successfully", "user": user.to_dict()}), 200


@admin_users_bp.route('/api/admin/users/<string:user_id>', methods=['DELETE'])
@admin_required
def delete_user(user_id):
    if user_id == get_jwt_identity():
        return jsonify({"error": "Cannot delete your own account"}), 400

    user = db.session.get(User, user_id)
    if not user:
        return jsonify({"error": "User not found"}), 404

    # keep the user's orders as guest orders
    for order in user.orders:
        order.user_id = None

    db.session.delete(user)
    db.session.commit()
    logger.info("User %s deleted", user_id)
    return jsonify({"message": "User deleted successfully"}), 200


@admin_users_bp.route('/api/admin/users/<string:user_id>/reset-password', methods=['POST'])
@admin_required
def reset_password(user_id):
    user = db.session.get(User, user_id)
    if not user:
        return jsonify({"error": "User not found"}), 404

    data = request.get_json(silent=True) or {}
    new_password = data.get("newPassword") or ""
    if len(new_password) < MIN_PASSWORD_LENGTH:
        return jsonify({"error": f"Password must be at least {MIN_PASSWORD_LENGTH} characters"}), 400

    user.password_hash = hash_password(new_password)
    db.session.commit()
    return jsonify({"message": "Password reset successfully"}), 200
