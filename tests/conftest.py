"""Test configuration and fixtures.

The app runs against an in-memory mongomock database swapped in through
dependency_overrides; uploads land in a per-test temporary directory.
"""

import os
import tempfile

os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="videotube-uploads-"))

import mongomock
import pytest
from fastapi.testclient import TestClient
from passlib.context import CryptContext

import security
from config import settings
from database import get_db
from main import app

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
MP4_BYTES = b"\x00\x00\x00\x18ftypmp42" + b"\x00" * 32


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    """Point the asset store at a fresh directory."""
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))
    return tmp_path


@pytest.fixture(autouse=True)
def fast_hashing(monkeypatch):
    """Cheap bcrypt rounds keep the suite quick."""
    monkeypatch.setattr(security, "pwd_context", CryptContext(schemes=["bcrypt"], bcrypt__rounds=4))


@pytest.fixture
def mongo_db():
    return mongomock.MongoClient()["videotube_test"]


@pytest.fixture
def client(mongo_db):
    app.dependency_overrides[get_db] = lambda: mongo_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def register_user(client):
    """Register a user through the API and return the raw response."""

    def _register(username="ada", email=None, password="p@ss1234", full_name="Ada L.", with_avatar=True, cover=False):
        data = {
            "username": username,
            "email": email or f"{username}@x.com",
            "password": password,
            "fullName": full_name,
        }
        files = {}
        if with_avatar:
            files["avatar"] = (f"{username}.png", PNG_BYTES, "image/png")
        if cover:
            files["coverImage"] = (f"{username}-cover.png", PNG_BYTES, "image/png")
        return client.post("/users/register", data=data, files=files or None)

    return _register


@pytest.fixture
def make_user(client, register_user):
    """Register and log in a user, returning its id, tokens and auth headers."""

    def _make(username="ada", password="p@ss1234", **kwargs):
        registered = register_user(username=username, password=password, **kwargs)
        assert registered.status_code == 201, registered.text
        login = client.post("/users/login", json={"username": username, "password": password})
        assert login.status_code == 200, login.text
        data = login.json()["data"]
        return {
            "id": data["user"]["id"],
            "username": username,
            "password": password,
            "access_token": data["accessToken"],
            "refresh_token": data["refreshToken"],
            "headers": bearer(data["accessToken"]),
        }

    return _make


@pytest.fixture
def publish_video(client):
    """Publish a video as the given user and return the created document."""

    def _publish(user, title="My first video", description="A short clip", duration=12.5):
        response = client.post(
            "/videos",
            data={"title": title, "description": description, "duration": str(duration)},
            files={
                "videoFile": ("clip.mp4", MP4_BYTES, "video/mp4"),
                "thumbnail": ("thumb.png", PNG_BYTES, "image/png"),
            },
            headers=user["headers"],
        )
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _publish
