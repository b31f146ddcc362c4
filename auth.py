"""
Request gate for protected routes.

get_current_user resolves the caller from an access token (cookie first, then
the Authorization header) and is composed into each protected route with
Depends. Session cookies are written and cleared here as well.
"""

from typing import Any, Dict, Optional

from fastapi import Depends, Request, Response
from pymongo.database import Database

from config import settings
from database import get_db
from errors import AuthError
from security import decode_access_token
from utils import objid

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"

# stripped from the user attached to a request
_USER_PROJECTION = {"password_hash": 0, "refresh_token": 0}


def _extract_token(request: Request) -> Optional[str]:
    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token
    header = request.headers.get("Authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


def _resolve_user(request: Request, db: Database, token: str) -> Dict[str, Any]:
    claims = decode_access_token(token)
    user = db["user"].find_one({"_id": objid(claims["id"])}, _USER_PROJECTION)
    if not user:
        raise AuthError("Invalid access token")
    request.state.user = user
    return user


def get_current_user(request: Request, db: Database = Depends(get_db)) -> Dict[str, Any]:
    token = _extract_token(request)
    if not token:
        raise AuthError("Unauthorized request")
    return _resolve_user(request, db, token)


def get_optional_user(request: Request, db: Database = Depends(get_db)) -> Optional[Dict[str, Any]]:
    """Like get_current_user, but anonymous callers get None instead of a 401.

    A stale or invalid token also counts as anonymous.
    """
    token = _extract_token(request)
    if not token:
        return None
    try:
        return _resolve_user(request, db, token)
    except AuthError:
        return None


def set_session_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    options = {"httponly": True, "secure": settings.COOKIE_SECURE, "samesite": "lax"}
    response.set_cookie(ACCESS_COOKIE, access_token, max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60, **options)
    response.set_cookie(REFRESH_COOKIE, refresh_token, max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 3600, **options)


def clear_session_cookies(response: Response) -> None:
    for name in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(name, httponly=True, secure=settings.COOKIE_SECURE, samesite="lax")
