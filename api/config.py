"""
Environment-aware configuration.
Values come from the process environment, with a .env file loaded first if
present. Select a class with get_config(name) or APP_ENV (dev/prod/test).
"""
import os
from dotenv import load_dotenv

load_dotenv()  # Read .env if present


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).lower() in ("1", "true", "yes")


def _database_url() -> str:
    return os.getenv("DATABASE_URL") or f"sqlite:///{os.getenv('DB_PATH', 'todo.db')}"


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    APP_ENV = os.getenv("APP_ENV", "dev")
    PORT = _int_env("PORT", 8080)
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    # Number of reverse proxies in front of the app whose X-Forwarded-For is trusted
    TRUSTED_PROXY_COUNT = _int_env("TRUSTED_PROXY_COUNT", 0)
    # CORS: comma-separated list of origins, or '*'
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:4200")

    DATABASE_URL = _database_url()
    SQL_ECHO = _bool_env("SQL_ECHO", False)

    JWT_SECRET = os.getenv("JWT_SECRET", "default-secret-change-me")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRY_HOURS = _int_env("JWT_EXPIRY_HOURS", 24)
    REFRESH_TOKEN_DAYS = _int_env("REFRESH_TOKEN_DAYS", 7)

    RATE_LIMIT_ENABLED = _bool_env("RATE_LIMIT_ENABLED", True)
    RATE_LIMIT_REQUESTS = _int_env("RATE_LIMIT_REQUESTS", 100)
    RATE_LIMIT_WINDOW_SECONDS = _int_env("RATE_LIMIT_WINDOW_SECONDS", 60)

    NOTIFICATIONS_ENABLED = _bool_env("NOTIFICATIONS_ENABLED", True)
    NOTIFICATION_QUEUE_SIZE = _int_env("NOTIFICATION_QUEUE_SIZE", 100)
    # Simulated delivery latency of the mock e-mail/notification sender
    NOTIFICATION_DELIVERY_DELAY = _float_env("NOTIFICATION_DELIVERY_DELAY", 0.5)

    SCHEDULER_ENABLED = _bool_env("SCHEDULER_ENABLED", True)
    DUE_SOON_CHECK_MINUTES = _int_env("DUE_SOON_CHECK_MINUTES", 5)
    TOKEN_CLEANUP_MINUTES = _int_env("TOKEN_CLEANUP_MINUTES", 60)


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")


class ProductionConfig(BaseConfig):
    DEBUG = False


class TestingConfig(BaseConfig):
    TESTING = True
    DATABASE_URL = "sqlite://"
    JWT_SECRET = "test-secret"
    JWT_EXPIRY_HOURS = 1
    NOTIFICATIONS_ENABLED = False
    NOTIFICATION_DELIVERY_DELAY = 0.0
    SCHEDULER_ENABLED = False
    LOG_LEVEL = "WARNING"


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/prod/test).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig
