from flask import Blueprint

songs_bp = Blueprint("songs", __name__)

# Import route modules to register their endpoints
from . import routes  # noqa: E402,F401
