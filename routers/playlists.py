from fastapi import APIRouter, Depends, status
from pymongo import DESCENDING, ReturnDocument
from pymongo.database import Database

from auth import get_current_user
from database import create_document, get_db, get_documents, utcnow
from errors import ApiResponse, ForbiddenError, NotFoundError, ValidationError
from schemas import Playlist, PlaylistRequest
from utils import objid, require_text, to_str_id

router = APIRouter(prefix="/playlists", tags=["playlists"])


def _get_owned_playlist(db: Database, playlist_id: str, user: dict) -> dict:
    playlist = db["playlist"].find_one({"_id": objid(playlist_id, "playlist id")})
    if not playlist:
        raise NotFoundError("Playlist not found")
    if playlist["owner"] != user["_id"]:
        raise ForbiddenError("Only the owner can modify this playlist")
    return playlist


@router.post("", status_code=status.HTTP_201_CREATED)
def create_playlist(payload: PlaylistRequest, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    name = require_text(payload.name, "Name and description are required")
    description = require_text(payload.description, "Name and description are required")
    playlist = create_document(
        "playlist",
        Playlist(name=name, description=description, owner=current_user["_id"]),
        database=db,
    )
    return ApiResponse.success_response(to_str_id(playlist), "Playlist created successfully", status.HTTP_201_CREATED)


@router.get("/user/{user_id}")
def get_user_playlists(user_id: str, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    playlists = get_documents(
        "playlist",
        {"owner": objid(user_id, "user id")},
        sort=[("created_at", DESCENDING), ("_id", DESCENDING)],
        database=db,
    )
    return ApiResponse.success_response([to_str_id(p) for p in playlists], "User playlists fetched successfully")


@router.get("/{playlist_id}")
def get_playlist(playlist_id: str, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    playlist = db["playlist"].find_one({"_id": objid(playlist_id, "playlist id")})
    if not playlist:
        raise NotFoundError("Playlist not found")

    found = {v["_id"]: v for v in db["video"].find({"_id": {"$in": playlist.get("videos", [])}})}
    playlist["videos"] = [found[v] for v in playlist.get("videos", []) if v in found]
    return ApiResponse.success_response(to_str_id(playlist), "Playlist fetched successfully")


@router.patch("/add/{video_id}/{playlist_id}")
def add_video_to_playlist(
    video_id: str,
    playlist_id: str,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    playlist = _get_owned_playlist(db, playlist_id, current_user)
    video = objid(video_id, "video id")
    if not db["video"].find_one({"_id": video}, {"_id": 1}):
        raise NotFoundError("Video not found")

    updated = db["playlist"].find_one_and_update(
        {"_id": playlist["_id"]},
        {"$addToSet": {"videos": video}, "$set": {"updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    return ApiResponse.success_response(to_str_id(updated), "Video added to playlist successfully")


@router.patch("/remove/{video_id}/{playlist_id}")
def remove_video_from_playlist(
    video_id: str,
    playlist_id: str,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    playlist = _get_owned_playlist(db, playlist_id, current_user)
    updated = db["playlist"].find_one_and_update(
        {"_id": playlist["_id"]},
        {"$pull": {"videos": objid(video_id, "video id")}, "$set": {"updated_at": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    return ApiResponse.success_response(to_str_id(updated), "Video removed from playlist successfully")


@router.patch("/{playlist_id}")
def update_playlist(
    playlist_id: str,
    payload: PlaylistRequest,
    current_user: dict = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    playlist = _get_owned_playlist(db, playlist_id, current_user)
    changes = {k: v.strip() for k, v in payload.model_dump().items() if v and v.strip()}
    if not changes:
        raise ValidationError("Name or description is required")

    changes["updated_at"] = utcnow()
    updated = db["playlist"].find_one_and_update(
        {"_id": playlist["_id"]},
        {"$set": changes},
        return_document=ReturnDocument.AFTER,
    )
    return ApiResponse.success_response(to_str_id(updated), "Playlist updated successfully")


@router.delete("/{playlist_id}")
def delete_playlist(playlist_id: str, current_user: dict = Depends(get_current_user), db: Database = Depends(get_db)):
    playlist = _get_owned_playlist(db, playlist_id, current_user)
    db["playlist"].delete_one({"_id": playlist["_id"]})
    return ApiResponse.success_response(to_str_id(playlist), "Playlist deleted successfully")
