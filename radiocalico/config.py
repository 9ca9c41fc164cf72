# radiocalico/config.py
import os
from dotenv import load_dotenv

load_dotenv()

def _as_bool(val: str | None, default=False) -> bool:
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}

class Config:
    # --- Core ---
    APP_VERSION = os.getenv("APP_VERSION")
    ENV = os.getenv("ENV", "development")

    # --- Rating store ---
    # "sqlite" (embedded single file) or "postgres" (pooled client-server)
    DATABASE_TYPE = os.getenv("DATABASE_TYPE", "sqlite").strip().lower()
    DATABASE_FILE = os.getenv("DATABASE_FILE", "database/radiocalico.db")
    DATABASE_URL = os.getenv("DATABASE_URL", "postgresql+psycopg2://radiocalico@localhost:5432/radiocalico")
    DB_POOL_SIZE = int(os.getenv("DB_POOL_SIZE", "10"))
    DB_TIMEOUT_SECONDS = float(os.getenv("DB_TIMEOUT_SECONDS", "5"))

    # --- Client ---
    API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:3000/api")
    API_TIMEOUT_SECONDS = float(os.getenv("API_TIMEOUT_SECONDS", "10"))
    RATING_COOLDOWN_SECONDS = float(os.getenv("RATING_COOLDOWN_SECONDS", "1.0"))

    # --- Logging ---
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR = os.getenv("LOG_DIR", "logs")
    LOG_FILENAME = os.getenv("LOG_FILENAME", "radiocalico.log")
    LOG_JSON = _as_bool(os.getenv("LOG_JSON", "0"))
