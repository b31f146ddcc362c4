from fastapi import APIRouter, Depends, status
from pymongo import ReturnDocument
from pymongo.database import Database

from auth import get_current_user
from database import create_document, get_db, utcnow
from errors import ApiResponse, ForbiddenError, NotFoundError
from schemas import ContentRequest, Tweet
from utils import objid, page_window, require_text, to_str_id, with_owner

router = APIRouter(prefix="/tweets", tags=["tweets"])


def _get_owned_tweet(db: Database, tweet_id: str, user: dict) -> dict:
    tweet = db["tweet"].find_one({"_id": objid(tweet_id, "tweet id")})
    if not tweet:
        raise NotFoundError("Tweet not found")
    if tweet["owner"] != user["_id"]:
        raise ForbiddenError("Only the author can modify this tweet")
    return tweet


@router.post("", status_code=status.HTTP_201_CREATED)
def create_tweet(payload: ContentRequest, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    content = require_text(payload.content, "Tweet content is required")
    tweet = create_document("tweet", Tweet(owner=current_user["_id"], content=content), database=db)
    return ApiResponse.success_response(to_str_id(tweet), "Tweet created successfully", status.HTTP_201_CREATED)


@router.get("/user/{user_id}")
def get_user_tweets(
    user_id: str,
    page: int = 1,
    limit: int = 10,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    window = page_window(page, limit)
    pipeline = [
        {"$match": {"owner": objid(user_id, "user id")}},
        {"$sort": {"created_at": -1, "_id": -1}},
        {"$skip": window["skip"]},
        {"$limit": window["limit"]},
        {"$lookup": {"from": "user", "localField": "owner", "foreignField": "_id", "as": "owner"}},
        {"$unwind": "$owner"},
    ]
    tweets = [with_owner(t) for t in db["tweet"].aggregate(pipeline)]
    return ApiResponse.success_response(tweets, "User tweets fetched successfully")


@router.patch("/{tweet_id}")
def update_tweet(
    tweet_id: str,
    payload: ContentRequest,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    content = require_text(payload.content, "Tweet content is required")
    tweet = _get_owned_tweet(db, tweet_id, current_user)
    updated = db["tweet"].find_one_and_update(
        {"_id": tweet["_id"]},
        {"$set": {"content": content, "updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    return ApiResponse.success_response(to_str_id(updated), "Tweet updated successfully")


@router.delete("/{tweet_id}")
def delete_tweet(tweet_id: str, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    tweet = _get_owned_tweet(db, tweet_id, current_user)
    db["tweet"].delete_one({"_id": tweet["_id"]})
    db["like"].delete_many({"tweet": tweet["_id"]})
    return ApiResponse.success_response(to_str_id(tweet), "Tweet deleted successfully")
