"""
app/api/__init__.py
API package initialization
"""

from typing import List

from flask import Blueprint


def all_blueprints() -> List[Blueprint]:
    """Blueprints to register on the application"""
    from .routes import api_bp
    from .auth_routes import users_bp
    from .portfolio_routes import portfolio_bp
    from .market_routes import market_bp
    from .admin_routes import admin_bp

    return [api_bp, users_bp, portfolio_bp, market_bp, admin_bp]


__all__ = ["all_blueprints"]
