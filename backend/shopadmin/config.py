# backend/shopadmin/config.py
from __future__ import annotations
import os


def _csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored next to the instance by default
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///shopadmin.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    APP_ENV = os.environ.get("APP_ENV", "development")

    # Token issuance
    JWT_SECRET = os.environ.get("JWT_SECRET", "super-secret")
    JWT_REFRESH_SECRET = os.environ.get("JWT_REFRESH_SECRET", "refresh-secret")
    JWT_ALGORITHM = "HS256"
    JWT_EXPIRES_MINUTES = int(os.environ.get("JWT_EXPIRES_MINUTES", str(7 * 24 * 60)))
    JWT_REFRESH_EXPIRES_DAYS = int(os.environ.get("JWT_REFRESH_EXPIRES_DAYS", "30"))

    # Blob store root for media and plain uploads
    UPLOAD_DESTINATION = os.environ.get("UPLOAD_DESTINATION", "./uploads")

    CORS_ORIGINS = _csv(os.environ.get(
        "CORS_ORIGINS",
        "http://localhost:5173,http://127.0.0.1:5173",
    ))
