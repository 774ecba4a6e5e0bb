# backend/shopfront/config.py
from __future__ import annotations
import os

from dotenv import load_dotenv

load_dotenv()


DEV_JWT_SECRET = "dev-jwt-secret-change-me"


class Config:
    # Flask session signing (cookies are not session based, but Flask wants one)
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/shopfront.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///shopfront.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # "development" | "production" | "test"
    APP_ENV = os.environ.get("APP_ENV", "development")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    JWT_SECRET = os.environ.get("JWT_SECRET", DEV_JWT_SECRET)
    JWT_ALGORITHM = "HS256"
    ACCESS_TOKEN_TTL_MINUTES = int(os.environ.get("ACCESS_TOKEN_TTL_MINUTES", "15"))
    REFRESH_TOKEN_TTL_DAYS = int(os.environ.get("REFRESH_TOKEN_TTL_DAYS", "30"))

    # Refresh cookie is scoped to the auth endpoints only
    REFRESH_COOKIE_NAME = "auth"
    REFRESH_COOKIE_PATH = "/api/public/auth"

    TELEGRAM_BOT_TOKEN = os.environ.get("TELEGRAM_BOT_TOKEN")
    TELEGRAM_AUTH_MAX_AGE_SECONDS = 5 * 60

    # Number of reverse proxies in front of the app whose X-Forwarded-For is trusted.
    # 0 means request.remote_addr is the client address.
    TRUSTED_PROXY_COUNT = int(os.environ.get("TRUSTED_PROXY_COUNT", "0"))

    CORS_ALLOWED_ORIGINS = {
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://localhost:5174",
        ).split(",")
        if origin.strip()
    }
