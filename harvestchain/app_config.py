# harvestchain/app_config.py

import logging
import os
from datetime import timedelta

from dotenv import load_dotenv

from harvestchain.errors import ConfigurationError

log = logging.getLogger(__name__)

REQUIRED_KEYS = ("MONGO_URI", "JWT_SECRET_KEY")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


def load_config(app, overrides=None):
    """
    Load all Flask configuration in one place.
    Environment first (.env is read if present), then explicit overrides.
    """
    load_dotenv(os.path.join(os.getcwd(), ".env"))

    # ------------------------------
    # Runtime
    # ------------------------------
    app.config["APP_ENV"] = os.getenv("APP_ENV", "development").strip().lower()
    app.config["LOG_LEVEL"] = os.getenv("LOG_LEVEL", "INFO").upper()

    # ------------------------------
    # Mongo
    # ------------------------------
    app.config["MONGO_URI"] = os.getenv("MONGO_URI")
    app.config["MONGO_DBNAME"] = os.getenv("MONGO_DBNAME", "harvestchain")
    app.config["MONGO_MAX_POOL_SIZE"] = _env_int("MONGO_MAX_POOL_SIZE", 10)
    app.config["MONGO_SERVER_SELECTION_TIMEOUT_MS"] = _env_int("MONGO_SERVER_SELECTION_TIMEOUT_MS", 5000)
    app.config["MONGO_SOCKET_TIMEOUT_MS"] = _env_int("MONGO_SOCKET_TIMEOUT_MS", 45000)

    # ------------------------------
    # Security Keys
    # ------------------------------
    app.config["JWT_SECRET_KEY"] = os.getenv("JWT_SECRET_KEY")
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(hours=12)
    app.config["JWT_TOKEN_LOCATION"] = ["headers"]
    app.config["JWT_HEADER_TYPE"] = "Bearer"
    app.config["SETUP_SECRET"] = os.getenv("SETUP_SECRET")
    app.config["BCRYPT_LOG_ROUNDS"] = _env_int("BCRYPT_LOG_ROUNDS", 12)

    if overrides:
        app.config.update(overrides)

    missing = [k for k in REQUIRED_KEYS if not (app.config.get(k) or "").strip()]
    if missing:
        raise ConfigurationError(f"{', '.join(missing)} must be set in .env")

    log.info("Config loaded (env=%s)", app.config["APP_ENV"])


def configure_logging(app):
    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))
