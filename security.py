"""
Password hashing and session tokens.

Access and refresh tokens are signed with separate secrets and expiries so
either kind can be revoked on its own by rotating its secret. Verification
here is purely cryptographic; matching a refresh token against the value
stored on the user is the caller's job.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from jose import JWTError, jwt
from passlib.context import CryptContext

from config import settings
from errors import AuthError

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    try:
        return pwd_context.verify(password, hashed)
    except (ValueError, TypeError):
        # unknown or malformed hash
        return False


def _encode(claims: Dict[str, Any], secret: str, expires_in: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        **claims,
        # two tokens minted in the same second must still differ
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(payload, secret, algorithm=settings.JWT_ALGORITHM)


def create_access_token(user: Dict[str, Any]) -> str:
    claims = {
        "id": str(user["_id"]),
        "email": user.get("email"),
        "username": user.get("username"),
        "fullName": user.get("full_name"),
    }
    return _encode(claims, settings.ACCESS_TOKEN_SECRET, timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))


def create_refresh_token(user_id: Any) -> str:
    return _encode({"id": str(user_id)}, settings.REFRESH_TOKEN_SECRET, timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS))


def decode_token(token: str, secret: str) -> Dict[str, Any]:
    """Verify signature and expiry, returning the claims."""
    try:
        claims = jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        raise AuthError("Invalid or expired token") from exc
    if not claims.get("id"):
        raise AuthError("Token is missing the user id")
    return claims


def decode_access_token(token: str) -> Dict[str, Any]:
    return decode_token(token, settings.ACCESS_TOKEN_SECRET)


def decode_refresh_token(token: str) -> Dict[str, Any]:
    return decode_token(token, settings.REFRESH_TOKEN_SECRET)
