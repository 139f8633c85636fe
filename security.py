"""
Password hashing, JWT issuing/verification and the auth dependencies.
"""
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext

from errors import Forbidden, Unauthorized
from logger import logger
from settings import get_settings

JWT_ALGO = "HS256"
TOKEN_COOKIE = "token"
security = HTTPBearer(auto_error=False)


@lru_cache()
def password_context() -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=get_settings().bcrypt_rounds)


def hash_password(password: str) -> str:
    return password_context().hash(password)


def verify_password(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    return password_context().verify(password, hashed)


def create_token(user: dict) -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "id": str(user["_id"]),
        "role": user.get("role", "user"),
        "email": user.get("email"),
        "userName": user.get("userName"),
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_expires_min),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALGO)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, get_settings().jwt_secret, algorithms=[JWT_ALGO])
    except jwt.ExpiredSignatureError:
        logger.warning("AUTH_TOKEN_EXPIRED")
        raise Unauthorized()
    except jwt.InvalidTokenError as e:
        logger.warning("AUTH_TOKEN_INVALID", {"error": str(e)})
        raise Unauthorized()


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    """Decoded token claims: {id, role, email, userName}."""
    token = credentials.credentials if credentials else request.cookies.get(TOKEN_COOKIE)
    if not token:
        logger.warning("AUTH_MIDDLEWARE_NO_TOKEN", {"path": request.url.path})
        raise Unauthorized()
    payload = decode_token(token)
    if not payload.get("id"):
        raise Unauthorized()
    return payload


def require_admin(user: dict = Depends(get_current_user)) -> dict:
    if user.get("role") != "admin":
        logger.warning("AUTH_ADMIN_REQUIRED", {"userId": user.get("id")})
        raise Forbidden("Admin only")
    return user
