from __future__ import annotations

import os


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///emi_verify.db",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024

    APP_ENV = os.getenv("APP_ENV", "development")

    JWT_SECRET = os.getenv("JWT_SECRET", "dev-jwt-secret")
    JWT_ACCESS_TTL_MIN = int(os.getenv("JWT_ACCESS_TTL_MIN", "15"))
    JWT_REFRESH_TTL_DAYS = int(os.getenv("JWT_REFRESH_TTL_DAYS", "7"))
    VERIFICATION_CODE_TTL_MIN = 30
    PASSWORD_RESET_TTL_MIN = 30

    SMTP_HOST = os.getenv("SMTP_HOST", "")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME = os.getenv("SMTP_USERNAME", "")
    SMTP_PASSWORD = os.getenv("SMTP_PASSWORD", "")
    MAIL_FROM = os.getenv("MAIL_FROM", "no-reply@emiverify.local")
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

    EXPORT_DIR = os.getenv("EXPORT_DIR", "")
