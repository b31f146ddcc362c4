"""
Users, sessions and channel profiles.

Session state lives in the single refresh_token slot of the user document:
login overwrites it, refresh swaps it for a new value, logout unsets it.
Only one session per user can therefore refresh at a time and the most
recent login wins.
"""

from typing import Any, Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile, status
from loguru import logger
from pydantic import ValidationError as PydanticValidationError
from pymongo import ReturnDocument
from pymongo.database import Database

from auth import REFRESH_COOKIE, clear_session_cookies, get_current_user, get_optional_user, set_session_cookies
from database import create_document, get_db, utcnow
from errors import ApiResponse, AuthError, ConflictError, NotFoundError, ValidationError
from schemas import (
    ChangePasswordRequest,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    UpdateAccountRequest,
    User,
)
from security import create_access_token, create_refresh_token, decode_refresh_token, hash_password, verify_password
from storage import has_file, upload_file
from utils import objid, public_user, with_owner

router = APIRouter(prefix="/users", tags=["users"])


def _issue_tokens(db: Database, user: Dict[str, Any]) -> Dict[str, str]:
    """Mint an access/refresh pair and make the refresh token the user's only valid one."""
    access_token = create_access_token(user)
    refresh_token = create_refresh_token(user["_id"])
    db["user"].update_one(
        {"_id": user["_id"]},
        {"$set": {"refresh_token": refresh_token, "updated_at": utcnow()}},
    )
    return {"accessToken": access_token, "refreshToken": refresh_token}


def _field_errors(exc: PydanticValidationError) -> List[Dict[str, str]]:
    return [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]


# -------------------- Registration & session --------------------
@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register_user(
    full_name: Optional[str] = Form(None, alias="fullName"),
    email: Optional[str] = Form(None),
    username: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    db: Database = Depends(get_db),
):
    if any(value is None or not value.strip() for value in (full_name, email, username, password)):
        raise ValidationError("All fields are required")
    if not has_file(avatar):
        raise ValidationError("Avatar file is required")

    try:
        payload = RegisterRequest(
            full_name=full_name.strip(),
            email=email.strip().lower(),
            username=username.strip().lower(),
            password=password,
        )
    except PydanticValidationError as exc:
        raise ValidationError("Invalid registration details", errors=_field_errors(exc))

    existing = db["user"].find_one({"$or": [{"email": payload.email}, {"username": payload.username}]})
    if existing:
        raise ConflictError("User with this email or username already exists")

    avatar_url = await upload_file(avatar, "avatars")
    cover_image_url = await upload_file(cover_image, "covers") if has_file(cover_image) else ""

    user = create_document(
        "user",
        User(
            username=payload.username,
            email=payload.email,
            full_name=payload.full_name,
            password_hash=hash_password(payload.password),
            avatar_url=avatar_url,
            cover_image_url=cover_image_url,
        ),
        database=db,
    )
    logger.info(f"Registered user {user['username']} ({user['_id']})")
    return ApiResponse.success_response(public_user(user), "User registered successfully", status.HTTP_201_CREATED)


@router.post("/login")
def login_user(payload: LoginRequest, response: Response, db: Database = Depends(get_db)):
    if not (payload.email or payload.username):
        raise ValidationError("Username or email is required")
    if not payload.password:
        raise ValidationError("Password is required")

    identifiers = []
    if payload.email:
        identifiers.append({"email": payload.email.strip().lower()})
    if payload.username:
        identifiers.append({"username": payload.username.strip().lower()})
    user = db["user"].find_one({"$or": identifiers})
    if not user:
        raise NotFoundError("User does not exist")
    if not verify_password(payload.password, user.get("password_hash", "")):
        raise AuthError("Invalid user credentials")

    tokens = _issue_tokens(db, user)
    set_session_cookies(response, tokens["accessToken"], tokens["refreshToken"])
    logger.info(f"User {user['username']} logged in")
    return ApiResponse.success_response({"user": public_user(user), **tokens}, "User logged in successfully")


def _rotate_refresh_token(db: Database, incoming: str) -> Optional[Tuple[Dict[str, Any], str]]:
    """Swap the stored refresh token for a new one if incoming is still the stored value."""
    try:
        claims = decode_refresh_token(incoming)
        user_id = objid(claims["id"])
    except (AuthError, ValidationError) as exc:
        logger.warning(f"Rejected undecodable refresh token: {exc.message}")
        return None

    new_refresh_token = create_refresh_token(user_id)
    # swap only if the presented token is still the stored one, so a token can be redeemed once
    user = db["user"].find_one_and_update(
        {"_id": user_id, "refresh_token": incoming},
        {"$set": {"refresh_token": new_refresh_token, "updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if not user:
        logger.warning(f"Rejected stale or unknown refresh token for user {user_id}")
        return None
    return user, new_refresh_token


@router.post("/refresh-token")
def refresh_access_token(
    request: Request,
    response: Response,
    payload: Optional[RefreshTokenRequest] = None,
    db: Database = Depends(get_db),
):
    # cookie first, then body; a stale cookie must not hide a live body token
    candidates = [request.cookies.get(REFRESH_COOKIE), payload.refresh_token if payload else None]
    candidates = list(dict.fromkeys(token for token in candidates if token))
    if not candidates:
        raise AuthError("Unauthorized request")

    for incoming in candidates:
        rotated = _rotate_refresh_token(db, incoming)
        if rotated:
            break
    else:
        raise AuthError("Refresh token is expired or used")

    user, new_refresh_token = rotated
    tokens = {"accessToken": create_access_token(user), "refreshToken": new_refresh_token}
    set_session_cookies(response, tokens["accessToken"], tokens["refreshToken"])
    logger.info(f"Rotated refresh token for user {user['username']}")
    return ApiResponse.success_response(tokens, "Access token refreshed")


@router.post("/logout")
def logout_user(response: Response, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    db["user"].update_one(
        {"_id": current_user["_id"]},
        {"$unset": {"refresh_token": ""}, "$set": {"updated_at": utcnow()}},
    )
    clear_session_cookies(response)
    logger.info(f"User {current_user['username']} logged out")
    return ApiResponse.success_response({}, "User logged out")


@router.post("/change-password")
def change_password(
    payload: ChangePasswordRequest,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    if not payload.old_password or not payload.new_password:
        raise ValidationError("Old and new password are required")

    user = db["user"].find_one({"_id": current_user["_id"]}, {"password_hash": 1})
    if not user or not verify_password(payload.old_password, user.get("password_hash", "")):
        raise AuthError("Invalid old password")

    # the stored refresh token is left alone; open sessions keep refreshing
    db["user"].update_one(
        {"_id": current_user["_id"]},
        {"$set": {"password_hash": hash_password(payload.new_password), "updated_at": utcnow()}},
    )
    return ApiResponse.success_response({}, "Password changed successfully")


# -------------------- Profile --------------------
@router.get("/me")
def get_me(current_user: dict = Depends(get_current_user)):
    return ApiResponse.success_response(public_user(current_user), "Current user fetched successfully")


@router.patch("/update-account")
def update_account(
    payload: UpdateAccountRequest,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    changes: Dict[str, Any] = {}
    if payload.full_name and payload.full_name.strip():
        changes["full_name"] = payload.full_name.strip()
    if payload.email:
        changes["email"] = payload.email.strip().lower()
    if not changes:
        raise ValidationError("fullName or email is required")

    if "email" in changes and db["user"].find_one({"email": changes["email"], "_id": {"$ne": current_user["_id"]}}):
        raise ConflictError("Email is already in use")

    changes["updated_at"] = utcnow()
    user = db["user"].find_one_and_update(
        {"_id": current_user["_id"]},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )
    return ApiResponse.success_response(public_user(user), "Account details updated successfully")


async def _replace_image(db: Database, user_id, file: Optional[UploadFile], kind: str, field: str):
    if not has_file(file):
        raise ValidationError(f"{'Avatar' if kind == 'avatars' else 'Cover image'} file is missing")
    url = await upload_file(file, kind)
    return db["user"].find_one_and_update(
        {"_id": user_id},
        {"$set": {field: url, "updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )


@router.patch("/avatar")
async def update_avatar(
    avatar: Optional[UploadFile] = File(None),
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    user = await _replace_image(db, current_user["_id"], avatar, "avatars", "avatar_url")
    return ApiResponse.success_response(public_user(user), "Avatar updated successfully")


@router.patch("/cover-image")
async def update_cover_image(
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    user = await _replace_image(db, current_user["_id"], cover_image, "covers", "cover_image_url")
    return ApiResponse.success_response(public_user(user), "Cover image updated successfully")


# -------------------- Channel & history --------------------
@router.get("/channel/{username}")
def get_channel_profile(
    username: str,
    viewer: Optional[dict] = Depends(get_optional_user),
    db: Database = Depends(get_db),
):
    pipeline = [
        {"$match": {"username": username.strip().lower()}},
        {"$lookup": {"from": "subscription", "localField": "_id", "foreignField": "channel", "as": "subscribers"}},
        {"$lookup": {"from": "subscription", "localField": "_id", "foreignField": "subscriber", "as": "subscribed_to"}},
        {
            "$addFields": {
                "subscribers_count": {"$size": "$subscribers"},
                "channels_subscribed_to_count": {"$size": "$subscribed_to"},
            }
        },
    ]
    channels = list(db["user"].aggregate(pipeline))
    if not channels:
        raise NotFoundError("Channel does not exist")

    channel = channels[0]
    is_subscribed = viewer is not None and any(
        sub["subscriber"] == viewer["_id"] for sub in channel["subscribers"]
    )
    profile = {
        "id": str(channel["_id"]),
        "username": channel["username"],
        "full_name": channel.get("full_name"),
        "email": channel.get("email"),
        "avatar_url": channel.get("avatar_url"),
        "cover_image_url": channel.get("cover_image_url", ""),
        "subscribers_count": channel["subscribers_count"],
        "channels_subscribed_to_count": channel["channels_subscribed_to_count"],
        "is_subscribed": is_subscribed,
    }
    return ApiResponse.success_response(profile, "User channel fetched successfully")


@router.get("/watch-history")
def get_watch_history(current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    # most recent first, each video once
    ordered_ids = list(dict.fromkeys(reversed(current_user.get("watch_history", []))))
    if not ordered_ids:
        return ApiResponse.success_response([], "Watch history fetched successfully")

    pipeline = [
        {"$match": {"_id": {"$in": ordered_ids}}},
        {"$lookup": {"from": "user", "localField": "owner", "foreignField": "_id", "as": "owner"}},
        {"$unwind": "$owner"},
    ]
    by_id = {video["_id"]: video for video in db["video"].aggregate(pipeline)}
    history = [with_owner(by_id[video_id]) for video_id in ordered_ids if video_id in by_id]
    return ApiResponse.success_response(history, "Watch history fetched successfully")
