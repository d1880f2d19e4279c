import logging
import os

from core.imports import Blueprint, jsonify, request, jwt_required, get_jwt_identity, IntegrityError
from core.extensions import db, bcrypt
from core.security import issue_token
from models.userModel import User

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)

MIN_PASSWORD_LENGTH = 6

PROFILE_FIELDS = {
    "firstName": "first_name",
    "lastName": "last_name",
    "phone": "phone",
    "address": "address",
    "city": "city",
    "state": "state",
    "zipCode": "zip_code",
    "country": "country",
}


def hash_password(password):
    return bcrypt.generate_password_hash(password).decode('utf-8')


def seed_demo_admin():
    email = os.environ.get("ADMIN_EMAIL", "admin@example.com")
    admin = User.query.filter_by(email=email).first()
    if not admin:
        raw_password = os.environ.get("ADMIN_PASSWORD", "admin123")
        admin = User(
            email=email,
            password_hash=hash_password(raw_password),
            first_name="Store",
            last_name="Admin",
            role="admin"
        )
        db.session.add(admin)
        db.session.commit()
        logger.info("Demo admin created (email=%s)", email)
    else:
        logger.info("Demo admin already exists.")
    return admin


@auth_bp.route('/api/auth/register', methods=['POST'])
def register():
    """
    Register a customer account
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - email
            - password
          properties:
            email: { type: string, example: "jane@example.com" }
            password: { type: string, example: "secret123" }
            firstName: { type: string, example: "Jane" }
            lastName: { type: string, example: "Doe" }
            phone: { type: string, example: "555-0100" }
    responses:
      201:
        description: Account created, returns token and user
      400:
        description: Missing email or password too short
      409:
        description: Account with this email already exists
    """
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''

    if not email or not password:
        return jsonify({"error": "Email and password are required"}), 400

    if len(password) < MIN_PASSWORD_LENGTH:
        return jsonify({"error": f"Password must be at least {MIN_PASSWORD_LENGTH} characters"}), 400

    if User.query.filter_by(email=email).first():
        return jsonify({"error": "Account with this email already exists"}), 409

    user = User(
        email=email,
        password_hash=hash_password(password),
        first_name=data.get('firstName'),
        last_name=data.get('lastName'),
        phone=data.get('phone'),
        role="user"
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "Account with this email already exists"}), 409

    return jsonify({
        "message": "Registration successful",
        "token": issue_token(user),
        "user": user.to_dict()
    }), 201


@auth_bp.route('/api/auth/login', methods=['POST'])
def login():
    """
    Log in
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - email
            - password
          properties:
            email: { type: string }
            password: { type: string }
    responses:
      200:
        description: Bearer token and user
      401:
        description: Invalid credentials
    """
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip().lower()
    password = data.get('password')

    if not email or not password:
        return jsonify({"error": "Email and password are required"}), 400

    user = User.query.filter_by(email=email).first()
    if not user or not bcrypt.check_password_hash(user.password_hash, password):
        return jsonify({"error": "Invalid credentials"}), 401

    return jsonify({
        "message": "Login successful",
        "token": issue_token(user),
        "user": user.to_dict()
    }), 200


@auth_bp.route('/api/auth/me', methods=['GET'])
@jwt_required()
def me():
    user = db.session.get(User, get_jwt_identity())
    if not user:
        return jsonify({"error": "User not found"}), 404
    return jsonify(user.to_dict()), 200


@auth_bp.route('/api/auth/profile', methods=['PUT'])
@jwt_required()
def update_profile():
    user = db.session.get(User, get_jwt_identity())
    if not user:
        return jsonify({"error": "User not found"}), 404

    data = request.get_json(silent=True) or {}
    for key, column in PROFILE_FIELDS.items():
        if key in data:
            setattr(user, column, data[key])

    db.session.commit()
    return jsonify({"message": "Profile updated successfully", "user": user.to_dict()}), 200


@auth_bp.route('/api/auth/change-password', methods=['PUT'])
@jwt_required()
def change_password():
    user = db.session.get(User, get_jwt_identity())
    if not user:
        return jsonify({"error": "User not found"}), 404

    data = request.get_json(silent=True) or {}
    current_password = data.get('currentPassword') or ''
    new_password = data.get('newPassword') or ''

    if not bcrypt.check_password_hash(user.password_hash, current_password):
        return jsonify({"error": "Current password is incorrect"}), 401

    if len(new_password) < MIN_PASSWORD_LENGTH:
        return jsonify({"error": f"Password must be at least {MIN_PASSWORD_LENGTH} characters"}), 400

    user.password_hash = hash_password(new_password)
    db.session.commit()
    return jsonify({"message": "Password changed successfully"}), 200
