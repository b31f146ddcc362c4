from fastapi import APIRouter, Depends
from loguru import logger
from pymongo.database import Database

from config import settings
from database import get_db
from errors import ApiResponse

router = APIRouter(tags=["healthcheck"])


@router.get("/")
def read_root():
    return ApiResponse.success_response({"service": settings.PROJECT_NAME}, "Video Sharing Backend is running")


@router.get("/healthcheck")
def healthcheck(db: Database = Depends(get_db)):
    info = {"status": "OK", "database": False, "collections": []}
    try:
        db.command("ping")
        info["database"] = True
        info["collections"] = sorted(db.list_collection_names())
    except Exception as e:
        # the service itself is still up
        logger.warning(f"Database ping failed: {e}")
    return ApiResponse.success_response(info, "Service is healthy")
