"""
Like toggles for videos, comments and tweets.

A like document names its liker and exactly one target; toggling the same
target twice removes it again.
"""

from fastapi import APIRouter, Depends, Response, status
from pymongo.database import Database

from auth import get_current_user
from database import create_document, get_db
from errors import ApiResponse, NotFoundError
from schemas import Like
from utils import objid, to_str_id

router = APIRouter(prefix="/likes", tags=["likes"])


def _toggle_like(db: Database, response: Response, user: dict, target: str, target_id: str) -> ApiResponse:
    _id = objid(target_id, f"{target} id")
    if not db[target].find_one({"_id": _id}, {"_id": 1}):
        raise NotFoundError(f"{target.capitalize()} not found")

    existing = db["like"].find_one({"liked_by": user["_id"], target: _id})
    if existing:
        db["like"].delete_one({"_id": existing["_id"]})
        return ApiResponse.success_response({"isLiked": False}, "Like removed")

    create_document("like", Like(liked_by=user["_id"], **{target: _id}), database=db)
    response.status_code = status.HTTP_201_CREATED
    return ApiResponse.success_response({"isLiked": True}, "Like added", status.HTTP_201_CREATED)


@router.post("/toggle/v/{video_id}")
def toggle_video_like(video_id: str, response: Response, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    return _toggle_like(db, response, current_user, "video", video_id)


@router.post("/toggle/c/{comment_id}")
def toggle_comment_like(comment_id: str, response: Response, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    return _toggle_like(db, response, current_user, "comment", comment_id)


@router.post("/toggle/t/{tweet_id}")
def toggle_tweet_like(tweet_id: str, response: Response, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    return _toggle_like(db, response, current_user, "tweet", tweet_id)


@router.get("/videos")
def get_liked_videos(current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    pipeline = [
        {"$match": {"liked_by": current_user["_id"], "video": {"$ne": None}}},
        {"$lookup": {"from": "video", "localField": "video", "foreignField": "_id", "as": "video"}},
        {"$unwind": "$video"},
        {"$sort": {"created_at": -1, "_id": -1}},
    ]
    liked = [
        to_str_id({"liked_at": like["created_at"], "video": like["video"]})
        for like in db["like"].aggregate(pipeline)
    ]
    return ApiResponse.success_response(liked, "Liked videos fetched successfully")
