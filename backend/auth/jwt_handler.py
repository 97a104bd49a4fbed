from datetime import datetime, timedelta, timezone

import jwt

from backend.core import config

USER_PHONE_CLAIM = "user_phone"
ADMIN_ID_CLAIM = "admin_id"


def create_session_token(claims: dict, expires_minutes: int | None = None) -> str:
    expire_minutes = expires_minutes or config.SESSION_EXPIRES_MINUTES
    now = datetime.now(timezone.utc)
    payload = {**claims, "exp": now + timedelta(minutes=expire_minutes), "iat": now}
    return jwt.encode(payload, config.SESSION_SECRET_KEY, algorithm=config.SESSION_ALGORITHM)


def create_user_session(phone: str) -> str:
    return create_session_token({USER_PHONE_CLAIM: phone})


def create_admin_session(admin_id: int) -> str:
    return create_session_token({ADMIN_ID_CLAIM: admin_id})


def decode_session_token(token: str) -> dict:
    return jwt.decode(token, config.SESSION_SECRET_KEY, algorithms=[config.SESSION_ALGORITHM])
