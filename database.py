"""
MongoDB access

A single MongoClient is shared by the whole process. pymongo connects lazily,
so importing this module never blocks on the server.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

from loguru import logger
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database

from config import settings

client = MongoClient(settings.DATABASE_URL, tz_aware=True)
db = client[settings.DATABASE_NAME]


def get_db() -> Database:
    """FastAPI dependency returning the application database."""
    return db


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_document(collection_name: str, data: Union[BaseModel, Dict[str, Any]], database: Optional[Database] = None) -> Dict[str, Any]:
    """Insert a document stamped with created_at/updated_at and return it with its _id."""
    database = db if database is None else database
    doc = data.model_dump() if isinstance(data, BaseModel) else dict(data)
    now = utcnow()
    doc["created_at"] = now
    doc["updated_at"] = now
    doc["_id"] = database[collection_name].insert_one(doc).inserted_id
    return doc


def get_documents(
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    limit: Optional[int] = None,
    sort: Optional[List[Tuple[str, int]]] = None,
    database: Optional[Database] = None,
) -> List[Dict[str, Any]]:
    database = db if database is None else database
    cursor = database[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(sort)
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def ensure_indexes(database: Database) -> None:
    """Create the unique indexes backing the uniqueness invariants."""
    database["user"].create_index([("username", ASCENDING)], unique=True)
    database["user"].create_index([("email", ASCENDING)], unique=True)
    database["subscription"].create_index(
        [("subscriber", ASCENDING), ("channel", ASCENDING)], unique=True
    )
    # a like document carries exactly one target, the others index as null
    database["like"].create_index(
        [("liked_by", ASCENDING), ("video", ASCENDING), ("comment", ASCENDING), ("tweet", ASCENDING)],
        unique=True,
    )
    database["video"].create_index([("owner", ASCENDING)])
    database["comment"].create_index([("video", ASCENDING)])
    logger.info("MongoDB indexes ensured")
