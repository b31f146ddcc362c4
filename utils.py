from datetime import datetime
from typing import Any, Dict, Optional

from bson import ObjectId
from bson.errors import InvalidId

from errors import ValidationError

# never leaves the API
PRIVATE_USER_FIELDS = ("password_hash", "refresh_token")


def _plain(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return to_str_id(value)
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def to_str_id(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Make a Mongo document JSON friendly: _id -> id, ObjectId -> str, datetime -> isoformat."""
    if not doc:
        return doc
    d = {**doc}
    if "_id" in d:
        d["id"] = d.pop("_id")
    return {k: _plain(v) for k, v in d.items()}


def objid(id_str: str, name: str = "id") -> ObjectId:
    try:
        return ObjectId(id_str)
    except (InvalidId, TypeError):
        raise ValidationError(f"Invalid {name}")


def public_user(user: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not user:
        return user
    return to_str_id({k: v for k, v in user.items() if k not in PRIVATE_USER_FIELDS})


def owner_summary(user: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """The slice of a user embedded next to the things they own."""
    if not user:
        return None
    return {
        "id": str(user["_id"]),
        "username": user.get("username"),
        "full_name": user.get("full_name"),
        "avatar_url": user.get("avatar_url"),
    }


def page_window(page: int, limit: int) -> Dict[str, int]:
    if page < 1 or limit < 1:
        raise ValidationError("page and limit must be positive integers")
    return {"skip": (page - 1) * limit, "limit": limit}


def require_text(value: Optional[str], message: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(message)
    return value.strip()


def with_owner(doc: Dict[str, Any], field: str = "owner") -> Dict[str, Any]:
    """Serialize a document whose owner field was joined in by a $lookup + $unwind."""
    owner = doc.get(field)
    out = to_str_id({k: v for k, v in doc.items() if k != field})
    out[field] = owner_summary(owner) if isinstance(owner, dict) else _plain(owner)
    return out
