from fastapi import APIRouter, Depends, status
from pymongo import ReturnDocument
from pymongo.database import Database

from auth import get_current_user
from database import create_document, get_db, utcnow
from errors import ApiResponse, ForbiddenError, NotFoundError
from schemas import Comment, ContentRequest
from utils import objid, page_window, require_text, to_str_id, with_owner

router = APIRouter(prefix="/comments", tags=["comments"])


def _get_owned_comment(db: Database, comment_id: str, user: dict) -> dict:
    comment = db["comment"].find_one({"_id": objid(comment_id, "comment id")})
    if not comment:
        raise NotFoundError("Comment not found")
    if comment["owner"] != user["_id"]:
        raise ForbiddenError("Only the author can modify this comment")
    return comment


@router.get("/{video_id}")
def get_video_comments(
    video_id: str,
    page: int = 1,
    limit: int = 10,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    video = objid(video_id, "video id")
    window = page_window(page, limit)
    pipeline = [
        {"$match": {"video": video}},
        {"$sort": {"created_at": -1, "_id": -1}},
        {"$skip": window["skip"]},
        {"$limit": window["limit"]},
        {"$lookup": {"from": "user", "localField": "owner", "foreignField": "_id", "as": "owner"}},
        {"$unwind": "$owner"},
    ]
    comments = [with_owner(c) for c in db["comment"].aggregate(pipeline)]
    total = db["comment"].count_documents({"video": video})
    return ApiResponse.success_response(
        {"comments": comments, "totalCount": total, "page": page, "limit": limit},
        "Comments fetched successfully",
    )


@router.post("/{video_id}", status_code=status.HTTP_201_CREATED)
def add_comment(
    video_id: str,
    payload: ContentRequest,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    content = require_text(payload.content, "Comment content is required")
    video = objid(video_id, "video id")
    if not db["video"].find_one({"_id": video}, {"_id": 1}):
        raise NotFoundError("Video not found")

    comment = create_document(
        "comment",
        Comment(content=content, video=video, owner=current_user["_id"]),
        database=db,
    )
    return ApiResponse.success_response(to_str_id(comment), "Comment added successfully", status.HTTP_201_CREATED)


@router.patch("/c/{comment_id}")
def update_comment(
    comment_id: str,
    payload: ContentRequest,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    content = require_text(payload.content, "Comment content is required")
    comment = _get_owned_comment(db, comment_id, current_user)
    updated = db["comment"].find_one_and_update(
        {"_id": comment["_id"]},
        {"$set": {"content": content, "updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    return ApiResponse.success_response(to_str_id(updated), "Comment updated successfully")


@router.delete("/c/{comment_id}")
def delete_comment(comment_id: str, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    comment = _get_owned_comment(db, comment_id, current_user)
    db["comment"].delete_one({"_id": comment["_id"]})
    db["like"].delete_many({"comment": comment["_id"]})
    return ApiResponse.success_response(to_str_id(comment), "Comment deleted successfully")
