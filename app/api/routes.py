"""
app/api/routes.py - Service health endpoint
"""

from datetime import datetime, timezone
import logging
from typing import Tuple

from flask import Blueprint, Response, jsonify

from app.db import get_db_manager

api_bp = Blueprint("api", __name__)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


@api_bp.route("/health", methods=["GET"])
def health_check() -> Tuple[Response, int]:
    """
    Get service health status
    ---
    tags:
      - health
    responses:
      200:
        description: Service and database are up
        schema:
          type: object
          properties:
            status:
              type: string
              enum: ['healthy', 'unhealthy']
            timestamp:
              type: string
              description: Health check timestamp (ISO8601)
            database:
              type: string
              enum: ['connected', 'disconnected']
            version:
              type: string
      503:
        description: Database unreachable
    """
    try:
        connected = get_db_manager().test_connection()
    except RuntimeError as e:
        logger.error(f"Health check failed: {e}")
        connected = False

    status = {
        "status": "healthy" if connected else "unhealthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": "connected" if connected else "disconnected",
        "version": API_VERSION,
    }
    return jsonify(status), 200 if connected else 503
