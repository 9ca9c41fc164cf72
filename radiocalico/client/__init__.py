from typing import Optional

from ..config import Config
from .api import ApiError, ApiService
from .identity import DEFAULT_IDENTITY_FILE, load_user_identifier
from .rating import DISLIKE, LIKE, RatingController, RatingPhase, RatingView
from .state import AppState, song_id_for


def create_controller(app_state: Optional[AppState] = None, config=Config,
                      identity_file: str = DEFAULT_IDENTITY_FILE) -> RatingController:
    """Wire a rating controller to the API named by ``config.API_BASE_URL``."""
    api = ApiService(config.API_BASE_URL, timeout=config.API_TIMEOUT_SECONDS)
    return RatingController(
        app_state if app_state is not None else AppState(),
        api,
        load_user_identifier(identity_file),
        cooldown=config.RATING_COOLDOWN_SECONDS,
    )
