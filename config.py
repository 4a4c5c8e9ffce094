import logging
import os

import structlog

# ----------------------------------------------------------------------------
# Environment
# ----------------------------------------------------------------------------

APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
PORT = int(os.getenv("PORT", 8000))

DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "storefront")

JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")
JWT_ALG = os.getenv("JWT_ALG", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7))  # 7 days

STORE_NAME = os.getenv("STORE_NAME", "My Store")
STORE_EMAIL = os.getenv("STORE_EMAIL", "store@example.com")
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "INR")

ALLOW_GUEST_CHECKOUT = os.getenv("ALLOW_GUEST_CHECKOUT", "true").lower() in ("1", "true", "yes")

ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")
SEED_ON_STARTUP = os.getenv("SEED_ON_STARTUP", "true").lower() in ("1", "true", "yes")


def configure_logging() -> None:
    level = logging.getLevelName(LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO

    if APP_ENV == "production":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )
