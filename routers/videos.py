import re
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from loguru import logger
from pymongo import ReturnDocument
from pymongo.database import Database

from auth import get_current_user
from database import create_document, get_db, utcnow
from errors import ApiResponse, ForbiddenError, NotFoundError, ValidationError
from schemas import Video
from storage import has_file, upload_file
from utils import objid, page_window, require_text, to_str_id, with_owner

router = APIRouter(prefix="/videos", tags=["videos"])

# public sort keys -> document fields
SORT_FIELDS = {"createdAt": "created_at", "views": "views", "title": "title"}


def _owner_lookup():
    return [
        {"$lookup": {"from": "user", "localField": "owner", "foreignField": "_id", "as": "owner"}},
        {"$unwind": "$owner"},
    ]


def get_owned_video(db: Database, video_id: str, user: dict) -> dict:
    video = db["video"].find_one({"_id": objid(video_id, "video id")})
    if not video:
        raise NotFoundError("Video not found")
    if video["owner"] != user["_id"]:
        raise ForbiddenError("Only the owner can modify this video")
    return video


@router.get("")
def list_videos(
    page: int = 1,
    limit: int = 10,
    query: Optional[str] = None,
    sort_by: str = Query("createdAt", alias="sortBy"),
    sort_type: str = Query("desc", alias="sortType"),
    user_id: Optional[str] = Query(None, alias="userId"),
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    if sort_by not in SORT_FIELDS:
        raise ValidationError("Invalid sortBy field")
    if sort_type not in ("asc", "desc"):
        raise ValidationError("Invalid sortType")
    window = page_window(page, limit)
    direction = 1 if sort_type == "asc" else -1

    filter_dict = {"is_published": True}
    if user_id:
        filter_dict["owner"] = objid(user_id, "user id")
    if query:
        filter_dict["title"] = {"$regex": re.escape(query), "$options": "i"}

    pipeline = [
        {"$match": filter_dict},
        {"$sort": {SORT_FIELDS[sort_by]: direction, "_id": direction}},
        {"$skip": window["skip"]},
        {"$limit": window["limit"]},
        *_owner_lookup(),
    ]
    videos = [with_owner(v) for v in db["video"].aggregate(pipeline)]
    total = db["video"].count_documents(filter_dict)
    return ApiResponse.success_response(
        {"videos": videos, "totalCount": total, "page": page, "limit": limit},
        "Videos fetched successfully",
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def publish_video(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    duration: Optional[float] = Form(None),
    video_file: Optional[UploadFile] = File(None, alias="videoFile"),
    thumbnail: Optional[UploadFile] = File(None),
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    if not has_file(video_file) or not has_file(thumbnail):
        raise ValidationError("Video file and thumbnail are required")
    title = require_text(title, "Title and description are required")
    description = require_text(description, "Title and description are required")

    video_url = await upload_file(video_file, "videos")
    thumbnail_url = await upload_file(thumbnail, "thumbnails")

    video = create_document(
        "video",
        Video(
            owner=current_user["_id"],
            title=title,
            description=description,
            video_url=video_url,
            thumbnail_url=thumbnail_url,
            duration=duration,
        ),
        database=db,
    )
    logger.info(f"User {current_user['username']} published video {video['_id']}")
    return ApiResponse.success_response(to_str_id(video), "Video published successfully", status.HTTP_201_CREATED)


@router.get("/{video_id}")
def get_video(video_id: str, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    _id = objid(video_id, "video id")
    video = db["video"].find_one_and_update(
        {"_id": _id},
        {"$inc": {"views": 1}},
        return_document=ReturnDocument.AFTER,
    )
    if not video:
        raise NotFoundError("Video not found")
    db["user"].update_one({"_id": current_user["_id"]}, {"$push": {"watch_history": _id}})

    owner = db["user"].find_one({"_id": video["owner"]})
    if owner:
        video["owner"] = owner
    return ApiResponse.success_response(with_owner(video), "Video fetched successfully")


@router.patch("/toggle/publish/{video_id}")
def toggle_publish_status(video_id: str, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    video = get_owned_video(db, video_id, current_user)
    updated = db["video"].find_one_and_update(
        {"_id": video["_id"]},
        {"$set": {"is_published": not video.get("is_published", True), "updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    return ApiResponse.success_response(to_str_id(updated), "Publish status updated successfully")


@router.patch("/{video_id}")
async def update_video(
    video_id: str,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    thumbnail: Optional[UploadFile] = File(None),
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    video = get_owned_video(db, video_id, current_user)

    changes = {}
    if title and title.strip():
        changes["title"] = title.strip()
    if description and description.strip():
        changes["description"] = description.strip()
    if has_file(thumbnail):
        changes["thumbnail_url"] = await upload_file(thumbnail, "thumbnails")
    if not changes:
        raise ValidationError("Provide a title, description or thumbnail to update")

    changes["updated_at"] = utcnow()
    updated = db["video"].find_one_and_update(
        {"_id": video["_id"]},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )
    return ApiResponse.success_response(to_str_id(updated), "Video updated successfully")


@router.delete("/{video_id}")
def delete_video(video_id: str, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    video = get_owned_video(db, video_id, current_user)

    db["video"].delete_one({"_id": video["_id"]})
    comment_ids = [c["_id"] for c in db["comment"].find({"video": video["_id"]}, {"_id": 1})]
    db["like"].delete_many({"$or": [{"video": video["_id"]}, {"comment": {"$in": comment_ids}}]})
    db["comment"].delete_many({"video": video["_id"]})
    db["playlist"].update_many({"videos": video["_id"]}, {"$pull": {"videos": video["_id"]}})

    logger.info(f"User {current_user['username']} deleted video {video['_id']}")
    return ApiResponse.success_response(to_str_id(video), "Video deleted successfully")
