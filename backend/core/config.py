import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./feathers.db")

CORS_ORIGINS = _get_list(os.getenv("CORS_ORIGINS"), ["http://localhost:5173"])

SESSION_SECRET_KEY = os.getenv("SESSION_SECRET_KEY", "change-me")
SESSION_ALGORITHM = os.getenv("SESSION_ALGORITHM", "HS256")
SESSION_EXPIRES_MINUTES = int(os.getenv("SESSION_EXPIRES_MINUTES", str(60 * 24 * 7)))
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "session")
SESSION_COOKIE_SECURE = _get_bool(os.getenv("SESSION_COOKIE_SECURE"), default=APP_ENV.lower() == "production")

TWILIO_ACCOUNT_SID = os.getenv("TWILIO_ACCOUNT_SID", "")
TWILIO_AUTH_TOKEN = os.getenv("TWILIO_AUTH_TOKEN", "")
TWILIO_FROM_NUMBER = os.getenv("TWILIO_FROM_NUMBER", "")
SMS_ENABLED = _get_bool(os.getenv("SMS_ENABLED"), default=bool(TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN))
SMS_DEFAULT_COUNTRY_CODE = os.getenv("SMS_DEFAULT_COUNTRY_CODE", "+91")
SMS_BRAND_NAME = os.getenv("SMS_BRAND_NAME", "Fancy Feathers India")

CANCELLATION_CREDIT_CUTOFF_HOURS = int(os.getenv("CANCELLATION_CREDIT_CUTOFF_HOURS", "12"))
DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "Asia/Kolkata")

ACTIVE_USERS_TTL_SECONDS = int(os.getenv("ACTIVE_USERS_TTL_SECONDS", "60"))
ACTIVE_USERS_MIN = int(os.getenv("ACTIVE_USERS_MIN", "5"))
ACTIVE_USERS_MAX = int(os.getenv("ACTIVE_USERS_MAX", "19"))

def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and SESSION_SECRET_KEY == "change-me":
        raise RuntimeError("SESSION_SECRET_KEY must be set in production.")
    if ACTIVE_USERS_MIN > ACTIVE_USERS_MAX:
        raise RuntimeError("ACTIVE_USERS_MIN must not exceed ACTIVE_USERS_MAX.")
