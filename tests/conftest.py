import os
import tempfile
from pathlib import Path

_db_dir = tempfile.mkdtemp(prefix="videotube-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{Path(_db_dir) / 'test.db'}"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["RATE_LIMIT_ENABLED"] = "0"
os.environ["DB_AUTO_CREATE"] = "1"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import SQLModel, Session  # noqa: E402

import api.db.models  # noqa: E402,F401
from api.db.session import engine  # noqa: E402
from api.media.storage import MediaStorage, MediaStorageError, UploadedMedia, get_media_storage  # noqa: E402
from main import app  # noqa: E402


class FakeMediaStorage(MediaStorage):
    """In-memory media host. ``fail_upload_at`` makes the n-th upload (1-based) fail."""

    def __init__(self):
        self.assets: dict[str, bytes] = {}
        self.deleted: list[str] = []
        self.uploads = 0
        self.fail_upload_at: int | None = None
        self.fail_deletes = False

    def upload(self, path: Path) -> UploadedMedia:
        self.uploads += 1
        if self.fail_upload_at == self.uploads:
            raise MediaStorageError("upload rejected")
        public_id = f"asset-{self.uploads}{path.suffix}"
        self.assets[public_id] = path.read_bytes()
        return UploadedMedia(url=f"https://media.test/{public_id}", public_id=public_id, duration=42.0)

    def delete(self, public_id: str) -> None:
        if self.fail_deletes:
            raise MediaStorageError("delete rejected")
        self.assets.pop(public_id, None)
        self.deleted.append(public_id)


@pytest.fixture(autouse=True)
def fresh_database():
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    yield


@pytest.fixture
def media():
    storage = FakeMediaStorage()
    app.dependency_overrides[get_media_storage] = lambda: storage
    yield storage
    app.dependency_overrides.pop(get_media_storage, None)


@pytest.fixture
def client(media):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db_session():
    with Session(engine) as session:
        yield session


@pytest.fixture
def signup(client):
    def _signup(username: str) -> dict:
        r = client.post(
            "/api/auth/signup",
            json={
                "username": username,
                "email": f"{username}@example.com",
                "full_name": username.title(),
                "password": "Passw0rd1",
            },
        )
        assert r.status_code == 201, r.text
        data = r.json()["data"]
        return {
            "id": data["user"]["id"],
            "headers": {"Authorization": f"Bearer {data['access_token']}"},
        }
    return _signup


@pytest.fixture
def publish(client):
    def _publish(user: dict, title: str = "My video", description: str = "A video") -> dict:
        r = client.post(
            "/api/videos/",
            headers=user["headers"],
            data={"title": title, "description": description},
            files={
                "video_file": ("clip.mp4", b"video-bytes", "video/mp4"),
                "thumbnail": ("thumb.jpg", b"image-bytes", "image/jpeg"),
            },
        )
        assert r.status_code == 201, r.text
        return r.json()["data"]
    return _publish
