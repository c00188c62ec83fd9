"""
Authentication decorators for API endpoints

Provides decorators for requiring authentication and role-based access control.
"""

import logging
from functools import wraps
from typing import Callable, Any
from flask import request, jsonify

from app.auth.service import AuthService, AuthenticationError, Identity
from app.context import get_request_session

logger = logging.getLogger(__name__)


def current_identity() -> Identity:
    """Identity attached by require_login"""
    return request.identity  # type: ignore[attr-defined]


def require_login(f: Callable) -> Callable:
    """Decorator requiring a bearer token or legacy username/password

    Stores the resolved Identity on the request.

    Usage:
        @bp.route('/portfolio/all', methods=['POST'])
        @require_login
        def portfolio_all():
            username = current_identity().username
    """

    @wraps(f)
    def decorated_function(*args: Any, **kwargs: Any) -> Any:
        body = request.get_json(silent=True)
        try:
            identity = AuthService.authenticate(
                get_request_session(),
                request.headers.get("Authorization"),
                body if isinstance(body, dict) else None,
                {
                    "x-username": request.headers.get("x-username", ""),
                    "x-password": request.headers.get("x-password", ""),
                },
            )
        except AuthenticationError as e:
            return jsonify(e.to_dict()), 401

        request.identity = identity  # type: ignore[attr-defined]
        return f(*args, **kwargs)

    return decorated_function


def require_role(*allowed_roles: str) -> Callable:
    """Decorator requiring specific role(s)

    Must be used AFTER @require_login.

    Usage:
        @bp.route('/admin/users')
        @require_login
        @require_role(RoleEnum.ADMIN)
        def admin_only():
            ...
    """
    allowed = tuple(str(getattr(role, "value", role)) for role in allowed_roles)

    def decorator(f: Callable) -> Callable:
        @wraps(f)
        def decorated_function(*args: Any, **kwargs: Any) -> Any:
            identity = getattr(request, "identity", None)
            if identity is None:
                return jsonify({"error": "Authentication required"}), 401

            if not any(identity.has_role(role) for role in allowed):
                logger.warning(
                    f"Access denied for user {identity.username}: "
                    f"requires {allowed}, has {identity.roles}"
                )
                return (
                    jsonify({"error": f"Access denied. Required role: {', '.join(allowed)}"}),
                    403,
                )

            return f(*args, **kwargs)

        return decorated_function

    return decorator
