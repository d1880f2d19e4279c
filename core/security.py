import logging
from functools import wraps

from core.imports import jsonify, get_jwt_identity, verify_jwt_in_request, create_access_token, JWTExtendedException, PyJWTError
from core.extensions import db, jwt
from models.userModel import User

logger = logging.getLogger(__name__)


def issue_token(user):
    return create_access_token(identity=str(user.id), additional_claims={"role": user.role})


def optional_user_id():
    """Id of the user behind the bearer token, or None.

    Used on public endpoints: a missing, malformed or expired token and a token
    whose user no longer exists all count as anonymous.
    """
    try:
        verify_jwt_in_request(optional=True)
    except (JWTExtendedException, PyJWTError) as e:
        logger.info("Ignoring unusable token on public endpoint: %s", e)
        return None

    identity = get_jwt_identity()
    if identity is None or db.session.get(User, identity) is None:
        return None
    return identity


def admin_required(fn):
    """Bearer token must belong to a user whose stored role is ``admin``.

    The role is read from the database rather than the token claims, so a
    demoted admin loses access before the token expires.
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request()
        user = db.session.get(User, get_jwt_identity())
        if not user:
            return jsonify({"error": "User not found"}), 404
        if user.role != "admin":
            return jsonify({"error": "Admin access required"}), 403
        return fn(*args, **kwargs)
    return wrapper


@jwt.unauthorized_loader
def missing_token_callback(reason):
    return jsonify({"error": "Authentication required"}), 401


@jwt.invalid_token_loader
def invalid_token_callback(reason):
    logger.info("Rejected invalid token: %s", reason)
    return jsonify({"error": "Invalid token"}), 401


@jwt.expired_token_loader
def expired_token_callback(jwt_header, jwt_payload):
    return jsonify({"error": "Token has expired"}), 401


@jwt.revoked_token_loader
def revoked_token_callback(jwt_header, jwt_payload):
    return jsonify({"error": "Token has been revoked"}), 401
