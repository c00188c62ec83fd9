"""
Admin API endpoints for user and portfolio management

Requires admin role for access.
"""

import logging
from flask import Blueprint, request, jsonify

from app.api.models import error_response, serialize_holding, serialize_portfolio, serialize_user
from app.api.validation import parse_holding, parse_roles
from app.auth import AuthService
from app.auth.decorators import current_identity, require_login, require_role
from app.auth.service import DUPLICATE_USER_ERROR
from app.context import get_ledger, get_request_session, get_store
from app.core.errors import LedgerError, NotFoundError, ValidationError
from app.models import RoleEnum

logger = logging.getLogger(__name__)

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


@admin_bp.route("/users", methods=["GET"])
@require_login
@require_role(RoleEnum.ADMIN)
def list_users():
    """List all users (admin only)

    Returns:
    {
        "users": [
            {
                "email": "admin@example.com",
                "fullname": "Administrator",
                "username": "admin",
                "roles": ["admin", "user"],
                "createdAt": "2025-11-27T12:00:00",
                "updatedAt": "2025-11-27T12:00:00"
            }
        ]
    }
    """
    try:
        users = get_store().list_users()
        return jsonify({"users": [serialize_user(user) for user in users]}), 200

    except Exception as e:
        logger.error(f"List users error: {e}")
        return jsonify({"error": "Failed to list users"}), 500


@admin_bp.route("/users", methods=["POST"])
@require_login
@require_role(RoleEnum.ADMIN)
def create_user():
    """Create a user with explicit roles (admin only)

    Request JSON:
    {
        "username": "alice",
        "email": "alice@example.com",
        "fullname": "Alice Smith",
        "password": "SecurePass123",
        "roles": ["user"]
    }
    """
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "No data provided"}), 400

        roles = parse_roles(data) if "roles" in data else [RoleEnum.USER.value]

        success, user, error = AuthService.register_user(
            get_request_session(),
            str(data.get("username") or "").strip(),
            str(data.get("email") or "").strip(),
            str(data.get("fullname") or "").strip(),
            str(data.get("password") or ""),
            roles=roles,
        )
        if not success or not user:
            status = 409 if error == DUPLICATE_USER_ERROR else 400
            return jsonify({"error": error}), status

        logger.info(f"User {user.username} created by admin {current_identity().username}")
        return jsonify({"user": serialize_user(user)}), 201

    except ValidationError as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Create user error: {e}")
        return jsonify({"error": "Failed to create user"}), 500


@admin_bp.route("/users/<username>/roles", methods=["PATCH"])
@require_login
@require_role(RoleEnum.ADMIN)
def update_roles(username):
    """Replace a user's roles (admin only)

    Request JSON:
    {
        "roles": ["admin", "user"]
    }
    """
    session = get_request_session()
    try:
        roles = parse_roles(request.get_json(silent=True))
        user = get_store().set_roles(username, roles)
        session.commit()
        logger.info(f"Roles of {username} set to {user.role_names} by {current_identity().username}")
        return jsonify({"user": serialize_user(user)}), 200

    except (ValidationError, NotFoundError) as e:
        session.rollback()
        return error_response(e)
    except ValueError as e:
        session.rollback()
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        session.rollback()
        logger.error(f"Update roles error: {e}")
        return jsonify({"error": "Failed to update roles"}), 500


@admin_bp.route("/users/<username>", methods=["DELETE"])
@require_login
@require_role(RoleEnum.ADMIN)
def delete_user(username):
    """Delete user and their portfolio (admin only, cannot delete self)

    Returns:
    {
        "success": true,
        "message": "User deleted"
    }
    """
    if current_identity().username == username:
        return jsonify({"error": "Cannot delete your own user account"}), 400

    session = get_request_session()
    try:
        get_store().delete_user(username)
        session.commit()
        logger.info(f"User deleted by admin: {username}")
        return jsonify({"success": True, "message": "User deleted"}), 200

    except NotFoundError as e:
        session.rollback()
        return error_response(e)
    except Exception as e:
        session.rollback()
        logger.error(f"Delete user error: {e}")
        return jsonify({"error": "Failed to delete user"}), 500


@admin_bp.route("/users/<username>/reset-password", methods=["POST"])
@require_login
@require_role(RoleEnum.ADMIN)
def reset_user_password(username):
    """Reset user password (admin only)

    Request JSON:
    {
        "new_password": "NewSecurePass123"
    }
    """
    try:
        data = request.get_json(silent=True) or {}
        new_password = data.get("new_password", "") if isinstance(data, dict) else ""
        if not new_password:
            return jsonify({"error": "new_password required"}), 400

        session = get_request_session()
        user = get_store().find_user_by_username(username)
        if not user:
            return jsonify({"error": "user not found"}), 404

        success, error = AuthService.reset_password(session, user, new_password)
        if not success:
            return jsonify({"error": error}), 400

        logger.info(f"Password reset by admin for user: {username}")
        return jsonify({"success": True, "message": "Password reset successfully"}), 200

    except Exception as e:
        logger.error(f"Reset password error: {e}")
        return jsonify({"error": "Failed to reset password"}), 500


@admin_bp.route("/portfolios/<username>", methods=["GET"])
@require_login
@require_role(RoleEnum.ADMIN)
def get_portfolio(username):
    """Stored holdings of any user, without refreshing prices (admin only)"""
    portfolio = get_store().find_portfolio_by_username(username)
    if not portfolio:
        return jsonify({"error": "portfolio not found"}), 404
    return jsonify(serialize_portfolio(portfolio)), 200


@admin_bp.route("/portfolios/<username>/holdings", methods=["PUT"])
@require_login
@require_role(RoleEnum.ADMIN)
def upsert_holding(username):
    """Create or overwrite a holding (admin only)

    Request JSON:
    {
        "symbol": "AAPL",
        "quantity": 10,
        "buyPrice": 150.25
    }
    """
    try:
        symbol, quantity, buy_price = parse_holding(request.get_json(silent=True))
        holding = get_ledger().set_holding(username, symbol, quantity, buy_price)
        logger.info(f"Holding {symbol} of {username} edited by {current_identity().username}")
        return jsonify({"holding": serialize_holding(holding)}), 200

    except (ValidationError, LedgerError) as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Upsert holding error: {e}")
        return jsonify({"error": "Failed to update holding"}), 500


@admin_bp.route("/portfolios/<username>/holdings/<symbol>", methods=["DELETE"])
@require_login
@require_role(RoleEnum.ADMIN)
def delete_holding(username, symbol):
    """Remove a holding (admin only)"""
    try:
        get_ledger().remove_holding(username, symbol)
        logger.info(f"Holding {symbol} of {username} removed by {current_identity().username}")
        return jsonify({"success": True, "message": "Holding removed"}), 200

    except (ValidationError, LedgerError) as e:
        return error_response(e)
    except Exception as e:
        logger.error(f"Delete holding error: {e}")
        return jsonify({"error": "Failed to remove holding"}), 500
