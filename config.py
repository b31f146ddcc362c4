"""
Application settings

Values come from environment variables or a local .env file.
Token secrets MUST be overridden outside of development.
"""

from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    PROJECT_NAME: str = "Video Sharing Backend"

    DATABASE_URL: str = "mongodb://localhost:27017"
    DATABASE_NAME: str = "videotube"

    ACCESS_TOKEN_SECRET: str = "change-me-access"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    REFRESH_TOKEN_SECRET: str = "change-me-refresh"
    REFRESH_TOKEN_EXPIRE_DAYS: int = 10
    JWT_ALGORITHM: str = "HS256"

    CORS_ORIGINS: List[str] = ["*"]
    COOKIE_SECURE: bool = True

    UPLOAD_DIR: str = "uploads"
    LOG_LEVEL: str = "INFO"


settings = Settings()
