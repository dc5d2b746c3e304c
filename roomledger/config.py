import os
from datetime import timedelta


def _origins():
    default = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
    ]
    extra = os.getenv("CORS_ALLOWED_ORIGINS", "")
    return sorted(set(default + [o.strip() for o in extra.split(",") if o.strip()]))


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret")

    # Falls back to sqlite in the instance folder when DATABASE_URL is unset
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # JWT Configuration
    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", SECRET_KEY)
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(seconds=int(os.environ.get("JWT_ACCESS_TOKEN_EXPIRES", 3600)))
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=30)

    API_PREFIX = os.environ.get("API_PREFIX", "/api/v1")
    CORS_ALLOWED_ORIGINS = _origins()
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    JSON_SORT_KEYS = False

    # Market benchmarks used by occupancy analytics when no live feed exists
    MARKET_OCCUPANCY_RATE = float(os.environ.get("MARKET_OCCUPANCY_RATE", 85))
    MARKET_AVERAGE_RENT = float(os.environ.get("MARKET_AVERAGE_RENT", 1200))

    # Uploaded documents
    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", os.path.abspath("uploads/documents"))
    DOCUMENT_EXTENSIONS = {"pdf", "png", "jpg", "jpeg", "gif", "doc", "docx"}
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024


class DevelopmentConfig(Config):
    DEBUG = True


class ProductionConfig(Config):
    SECRET_KEY = os.environ.get("SECRET_KEY")
    if os.environ.get("CONFIG_CLASS", "").endswith("ProductionConfig") and not SECRET_KEY:
        raise ValueError("SECRET_KEY environment variable must be set")
    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", SECRET_KEY)


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "testing-secret"
    JWT_SECRET_KEY = "testing-jwt-secret-with-enough-length"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=15)
    LOG_LEVEL = "WARNING"
