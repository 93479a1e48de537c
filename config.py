import os

from dotenv import load_dotenv

load_dotenv()


def _as_list(value: str):
    return [v.strip() for v in value.split(",") if v.strip()]


class Config:
    # database
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./finance.db")

    # jwt
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret-change-me")
    JWT_REFRESH_SECRET_KEY = os.getenv("JWT_REFRESH_SECRET_KEY") or JWT_SECRET_KEY
    ALGORITHM = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 600))
    REFRESH_TOKEN_EXPIRE_MINUTES = int(os.getenv("REFRESH_TOKEN_EXPIRE_MINUTES", 600))

    # hashing cost for passwords, OTP and reset tokens
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", 12))

    # rate limit: RATE_LIMIT_MAX_REQUESTS per RATE_LIMIT_WINDOW_SECONDS
    RATE_LIMIT_MAX_REQUESTS = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", 10))
    RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", 60))

    # password reset
    OTP_EXPIRE_MINUTES = int(os.getenv("OTP_EXPIRE_MINUTES", 10))
    RESET_TOKEN_EXPIRE_MINUTES = int(os.getenv("RESET_TOKEN_EXPIRE_MINUTES", 15))

    # email, logged instead of sent when SMTP_HOST/SMTP_USER/SMTP_PASS are missing
    SMTP_HOST = os.getenv("SMTP_HOST")
    SMTP_PORT = int(os.getenv("SMTP_PORT", 587))
    SMTP_USER = os.getenv("SMTP_USER")
    SMTP_PASS = os.getenv("SMTP_PASS")
    SMTP_SECURE = os.getenv("SMTP_SECURE", "false").lower() == "true"
    SMTP_FROM = os.getenv("SMTP_FROM", "noreply@finance-bro.app")

    APP_NAME = "Finance-Bro"
    APP_URL = os.getenv("APP_URL", "http://localhost:3000")
    TIMEZONE = "Asia/Jakarta"

    CORS_ORIGINS = _as_list(os.getenv("CORS_ORIGINS", "http://localhost:3000"))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
