import os
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from loguru import logger
from pymongo.errors import PyMongoError

from config import settings
from database import db, ensure_indexes
from errors import register_exception_handlers
from routers import comments, healthcheck, likes, playlists, subscriptions, tweets, users, videos


def configure_logging() -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.LOG_LEVEL.upper(),
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | {name}:{line} - {message}",
    )


configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        ensure_indexes(db)
    except PyMongoError as e:
        logger.error(f"Could not create MongoDB indexes: {e}")
    logger.info(f"{settings.PROJECT_NAME} started")
    yield
    logger.info(f"{settings.PROJECT_NAME} shutting down")


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Uploaded avatars, covers, videos and thumbnails are served from here
os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
app.mount("/static", StaticFiles(directory=settings.UPLOAD_DIR), name="static")

app.include_router(healthcheck.router)
app.include_router(users.router)
app.include_router(videos.router)
app.include_router(comments.router)
app.include_router(likes.router)
app.include_router(tweets.router)
app.include_router(playlists.router)
app.include_router(subscriptions.router)


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
