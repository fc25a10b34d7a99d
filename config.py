import os
from datetime import timedelta
from dotenv import load_dotenv

load_dotenv()


def _csv(value, default):
    raw = os.getenv(value)
    if not raw:
        return default
    return tuple(part.strip() for part in raw.split(",") if part.strip())


class Config:
    # --- Flask Core ---
    SECRET_KEY = os.getenv('SECRET_KEY', 'fallback-secret-key')
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///sacco.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # --- Logging ---
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # --- JWT (tokens are issued by the identity service, we only verify) ---
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-jwt-secret")
    JWT_TOKEN_LOCATION = ["headers", "cookies"]
    JWT_COOKIE_SECURE = False  # set to True with HTTPS in production
    JWT_COOKIE_CSRF_PROTECT = False
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=1)

    # Roles (from the "role" claim) allowed to call operator endpoints
    OPERATOR_ROLES = _csv("OPERATOR_ROLES", ("admin", "chairperson", "treasurer", "secretary", "disburser"))


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    JWT_SECRET_KEY = "test-jwt-secret-with-enough-length-for-hs256"
    LOG_LEVEL = 'WARNING'
