import jwt
from fastapi import Cookie, HTTPException

from backend.auth import jwt_handler
from backend.core import config


def read_session(session_token: str | None) -> dict:
    if not session_token:
        return {}
    try:
        return jwt_handler.decode_session_token(session_token)
    except jwt.PyJWTError:
        return {}


def get_session(
    session_token: str | None = Cookie(default=None, alias=config.SESSION_COOKIE_NAME),
) -> dict:
    return read_session(session_token)


def require_user_phone(
    session_token: str | None = Cookie(default=None, alias=config.SESSION_COOKIE_NAME),
) -> str:
    phone = read_session(session_token).get(jwt_handler.USER_PHONE_CLAIM)
    if not phone:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return phone


def require_admin_id(
    session_token: str | None = Cookie(default=None, alias=config.SESSION_COOKIE_NAME),
) -> int:
    admin_id = read_session(session_token).get(jwt_handler.ADMIN_ID_CLAIM)
    if admin_id is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return int(admin_id)
