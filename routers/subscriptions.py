from fastapi import APIRouter, Depends, Response, status
from loguru import logger
from pymongo.database import Database

from auth import get_current_user
from database import create_document, get_db
from errors import ApiResponse, NotFoundError, ValidationError
from schemas import Subscription
from utils import objid, owner_summary

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


def _related_users(db: Database, match_field: str, user_id: str, join_field: str) -> list:
    """Users on the other side of the subscriptions whose match_field is user_id."""
    pipeline = [
        {"$match": {match_field: objid(user_id, "user id")}},
        {"$lookup": {"from": "user", "localField": join_field, "foreignField": "_id", "as": "user"}},
        {"$unwind": "$user"},
        {"$sort": {"created_at": -1, "_id": -1}},
    ]
    return [
        {**owner_summary(sub["user"]), "subscribed_at": sub["created_at"].isoformat()}
        for sub in db["subscription"].aggregate(pipeline)
    ]


@router.post("/toggle/c/{channel_id}")
def toggle_subscription(
    channel_id: str,
    response: Response,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    channel = objid(channel_id, "channel id")
    if channel == current_user["_id"]:
        raise ValidationError("Cannot subscribe to yourself")
    if not db["user"].find_one({"_id": channel}, {"_id": 1}):
        raise NotFoundError("Channel not found")

    existing = db["subscription"].find_one({"subscriber": current_user["_id"], "channel": channel})
    if existing:
        db["subscription"].delete_one({"_id": existing["_id"]})
        logger.info(f"User {current_user['username']} unsubscribed from {channel_id}")
        return ApiResponse.success_response({"subscribed": False}, "Unsubscribed successfully")

    create_document("subscription", Subscription(subscriber=current_user["_id"], channel=channel), database=db)
    logger.info(f"User {current_user['username']} subscribed to {channel_id}")
    response.status_code = status.HTTP_201_CREATED
    return ApiResponse.success_response({"subscribed": True}, "Subscribed successfully", status.HTTP_201_CREATED)


@router.get("/u/{channel_id}")
def get_channel_subscribers(channel_id: str, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    subscribers = _related_users(db, "channel", channel_id, "subscriber")
    return ApiResponse.success_response(subscribers, "Subscribers fetched successfully")


@router.get("/c/{subscriber_id}")
def get_subscribed_channels(subscriber_id: str, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    channels = _related_users(db, "subscriber", subscriber_id, "channel")
    return ApiResponse.success_response(channels, "Subscribed channels fetched successfully")
