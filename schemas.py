"""
Database Schemas for the video sharing backend

Each Pydantic model maps to a MongoDB collection. The collection name is the lowercase of the class name.

Collections:
- User -> user
- Video -> video
- Comment -> comment
- Like -> like
- Tweet -> tweet
- Playlist -> playlist
- Subscription -> subscription

References to other documents are stored as ObjectId so aggregation $lookup
stages can join on _id. The request bodies accepted by the API live at the
bottom of this module.
"""

from typing import List, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, EmailStr, Field


class Document(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)


class User(Document):
    username: str
    email: EmailStr
    full_name: str
    password_hash: str = Field(..., description="Bcrypt hash")
    avatar_url: str
    cover_image_url: str = ""
    refresh_token: Optional[str] = Field(None, description="Current refresh token, one per user")
    watch_history: List[ObjectId] = Field(default_factory=list)


class Video(Document):
    owner: ObjectId
    title: str = Field(..., min_length=1, max_length=120)
    description: str
    video_url: str
    thumbnail_url: str
    duration: Optional[float] = Field(None, ge=0, description="Length in seconds")
    views: int = Field(0, ge=0)
    is_published: bool = True


class Comment(Document):
    content: str = Field(..., min_length=1, max_length=1000)
    video: ObjectId
    owner: ObjectId


class Like(Document):
    """Exactly one of video, comment or tweet is set."""

    liked_by: ObjectId
    video: Optional[ObjectId] = None
    comment: Optional[ObjectId] = None
    tweet: Optional[ObjectId] = None


class Tweet(Document):
    owner: ObjectId
    content: str = Field(..., min_length=1, max_length=280)


class Playlist(Document):
    name: str
    description: str
    owner: ObjectId
    videos: List[ObjectId] = Field(default_factory=list)


class Subscription(Document):
    subscriber: ObjectId = Field(..., description="The user who subscribes")
    channel: ObjectId = Field(..., description="The user being subscribed to")


# -------------------- Request bodies --------------------
class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class RegisterRequest(CamelModel):
    full_name: str = Field(..., alias="fullName", min_length=1)
    email: EmailStr
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginRequest(CamelModel):
    email: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None


class RefreshTokenRequest(CamelModel):
    refresh_token: Optional[str] = Field(None, alias="refreshToken")


class ChangePasswordRequest(CamelModel):
    old_password: Optional[str] = Field(None, alias="oldPassword")
    new_password: Optional[str] = Field(None, alias="newPassword")


class UpdateAccountRequest(CamelModel):
    full_name: Optional[str] = Field(None, alias="fullName")
    email: Optional[EmailStr] = None


class ContentRequest(BaseModel):
    content: Optional[str] = None


class PlaylistRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
