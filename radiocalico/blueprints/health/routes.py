from datetime import datetime
from flask import current_app, jsonify

from . import health_bp


@health_bp.route("/health", methods=["GET"], endpoint="health")
def health():
    database = current_app.extensions["rating_store"].check_connection()
    healthy = database.get("connected", False)
    body = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "version": current_app.config.get("APP_VERSION"),
        "database": database,
    }
    return jsonify(body), (200 if healthy else 503)
