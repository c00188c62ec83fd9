"""
User account endpoints

Registration and login. Login returns a JWT which the other endpoints
accept as a Bearer token.
"""

import logging
from typing import Tuple
from flask import Blueprint, request, jsonify, Response

from app.api.models import serialize_user
from app.auth import AuthService
from app.auth.decorators import require_login, current_identity
from app.auth.service import DUPLICATE_USER_ERROR
from app.context import get_request_session, get_store
from config.settings import get_config

logger = logging.getLogger(__name__)

users_bp = Blueprint("users", __name__, url_prefix="/users")


@users_bp.route("/register", methods=["POST"])
def register() -> Tuple[Response, int]:
    """
    Register a new user with an empty portfolio
    ---
    tags:
      - users
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [email, password, fullname, username]
          properties:
            email:
              type: string
            password:
              type: string
              minLength: 8
            fullname:
              type: string
            username:
              type: string
              description: 3-30 letters or digits
    responses:
      200:
        description: User created
      400:
        description: Invalid payload
      403:
        description: Registration disabled
      409:
        description: Email or username already exists
    """
    try:
        if not get_config().ALLOW_REGISTRATION():
            return jsonify({"error": "Registration is disabled"}), 403

        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "No data provided"}), 400

        session = get_request_session()
        success, user, error = AuthService.register_user(
            session,
            str(data.get("username") or "").strip(),
            str(data.get("email") or "").strip(),
            str(data.get("fullname") or "").strip(),
            str(data.get("password") or ""),
        )

        if not success or not user:
            status = 409 if error == DUPLICATE_USER_ERROR else 400
            return jsonify({"error": error}), status

        return jsonify({"id": user.id, **serialize_user(user)}), 200

    except Exception as e:
        logger.error(f"Registration error: {e}")
        return jsonify({"error": "Registration failed"}), 500


@users_bp.route("/login", methods=["POST"])
def login() -> Tuple[Response, int]:
    """
    Login with username and password
    ---
    tags:
      - users
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [username, password]
          properties:
            username:
              type: string
            password:
              type: string
    responses:
      200:
        description: User profile and JWT access token
      400:
        description: Missing username or password
      401:
        description: Invalid credentials
    """
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "No data provided"}), 400

        username = str(data.get("username") or "").strip()
        password = str(data.get("password") or "")
        if not username or not password:
            return jsonify({"error": "Username and password required"}), 400

        success, user, error = AuthService.login_user(
            get_request_session(), username, password
        )
        if not success or not user:
            logger.warning(f"Failed login attempt: {username}")
            return jsonify({"error": error}), 401

        token = AuthService.create_access_token(user)
        return jsonify({"user": serialize_user(user), "token": token}), 200

    except Exception as e:
        logger.error(f"Login error: {e}")
        return jsonify({"error": "Login failed"}), 500


@users_bp.route("/me", methods=["GET"])
@require_login
def me() -> Tuple[Response, int]:
    """Current user's profile

    Accepts a Bearer token or the x-username / x-password headers.
    """
    user = get_store().find_user_by_username(current_identity().username)
    if not user:
        return jsonify({"error": "user not found"}), 404
    return jsonify({"user": serialize_user(user)}), 200
