import logging
from flask import current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from ...services.errors import PersistenceUnavailable, ValidationError
from . import errors_bp

log = logging.getLogger(__name__)


def _error(message, code):
    return jsonify(success=False, error=message), code

# 400 – bad rating value / missing id; nothing was written
@errors_bp.app_errorhandler(ValidationError)
def err_validation(e: ValidationError):
    return _error(str(e), 400)

# 503 – store timeout, pool exhaustion, disk or connection failure; caller may retry
@errors_bp.app_errorhandler(PersistenceUnavailable)
def err_persistence(e: PersistenceUnavailable):
    log.warning("%s %s: persistence unavailable: %s", request.method, request.path, e)
    return _error("Rating storage is temporarily unavailable", 503)

# Any HTTP error (404, 405, 413 ...) as a JSON envelope
@errors_bp.app_errorhandler(HTTPException)
def err_http(e: HTTPException):
    return _error(e.description or e.name, e.code)

# Last-resort: any other Exception
@errors_bp.app_errorhandler(Exception)
def err_unexpected(e):
    log.exception("Error on %s %s", request.method, request.path)
    # Don't leak internals outside development
    if current_app.config.get("ENV") == "development":
        return _error(str(e), 500)
    return _error("Internal server error", 500)
