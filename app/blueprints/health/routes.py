# app/blueprints/health/routes.py

from flask import Blueprint, jsonify
from sqlalchemy import text

from app.extensions import db
from app.utils.logging import get_logger

health_bp = Blueprint("health", __name__)

logger = get_logger("health")


@health_bp.route("/")
def health():
    try:
        db.session.execute(text("SELECT 1"))
    except Exception as e:
        logger.exception("Healthcheck: base de datos no disponible")
        return jsonify({"status": "unhealthy", "database": str(e)}), 503
    return jsonify({"status": "healthy", "database": "ok"})
