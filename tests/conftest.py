import os
import tempfile
import uuid
from pathlib import Path

_TMP = Path(tempfile.mkdtemp(prefix="vidshare-tests-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP / 'bootstrap.db'}"
os.environ["STORAGE_BACKEND"] = "local"
os.environ["STORAGE_LOCAL_PATH"] = str(_TMP / "media")
os.environ["UPLOAD_TEMP_PATH"] = str(_TMP / "temp")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

import vidshare.models  # noqa: E402,F401
from vidshare.config import AuthConfig, settings  # noqa: E402
from vidshare.db.base import Base  # noqa: E402
from vidshare.db.session import get_db  # noqa: E402
from vidshare.dependencies import get_auth_config  # noqa: E402
from vidshare.main import app  # noqa: E402
from vidshare.utils.storage import MediaStorage, StoredMedia, extract_public_id, get_storage  # noqa: E402

TEST_AUTH = AuthConfig(
    access_token_secret="test-access-secret",
    access_token_expire_minutes=15,
    refresh_token_secret="test-refresh-secret",
    refresh_token_expire_days=1,
    bcrypt_rounds=4,
)


class FakeStorage(MediaStorage):
    """Records uploads and deletions; hands out Cloudinary-shaped URLs."""

    def __init__(self):
        self.stored: list[str] = []
        self.deleted: list[str] = []
        self.fail_folders: set[str] = set()
        self.on_delete = None

    async def store(self, local_path: Path, folder: str = "") -> StoredMedia | None:
        try:
            if folder in self.fail_folders:
                return None
            kind = "video" if folder == "videos" else "image"
            url = (
                f"https://res.cloudinary.com/demo/{kind}/upload/v1700000000/"
                f"{folder}/{uuid.uuid4().hex}{local_path.suffix}"
            )
            self.stored.append(url)
            return StoredMedia(
                url=url,
                public_id=extract_public_id(url),
                resource_type=kind,
                duration=12.5 if kind == "video" else 0.0,
            )
        finally:
            local_path.unlink(missing_ok=True)

    async def delete(self, url: str) -> None:
        if self.on_delete is not None:
            await self.on_delete(url)
        self.deleted.append(url)


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
async def client(session_factory, storage):
    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_auth_config] = lambda: TEST_AUTH
    async with AsyncClient(transport=ASGITransport(app=app), base_url="https://testserver") as c:
        yield c
    app.dependency_overrides.clear()


def temp_upload_files() -> list[Path]:
    if not settings.UPLOAD_TEMP_PATH.exists():
        return []
    return [p for p in settings.UPLOAD_TEMP_PATH.iterdir() if p.is_file()]


class Api:
    """Small helpers over the HTTP surface shared by the API tests."""

    def __init__(self, client: AsyncClient):
        self.client = client

    async def register(self, name: str = "alice", password: str = "secret123", cover: bool = False, **overrides):
        data = {
            "fullName": f"{name.title()} Example",
            "email": f"{name}@example.com",
            "username": name,
            "password": password,
        }
        data.update(overrides)
        files = {"avatar": ("avatar.png", b"avatar-bytes", "image/png")}
        if cover:
            files["coverImage"] = ("cover.jpg", b"cover-bytes", "image/jpeg")
        return await self.client.post("/api/v1/users/register", data=data, files=files)

    async def login(self, username: str = "alice", password: str = "secret123", keep_cookies: bool = False) -> dict:
        resp = await self.client.post(
            "/api/v1/users/login", json={"email": f"{username}@example.com", "password": password}
        )
        assert resp.status_code == 200, resp.text
        if not keep_cookies:
            self.client.cookies.clear()
        return resp.json()["data"]

    async def signup(self, username: str = "alice", password: str = "secret123") -> tuple[dict, dict]:
        """Register and log in; returns (user, auth headers)."""
        resp = await self.register(username, password)
        assert resp.status_code == 201, resp.text
        tokens = await self.login(username, password)
        return resp.json()["data"], {"Authorization": f"Bearer {tokens['accessToken']}"}

    async def upload_video(self, headers: dict, title: str = "My video", description: str = "A description"):
        return await self.client.post(
            "/api/v1/videos",
            data={"title": title, "description": description},
            files={
                "videoFile": ("clip.mp4", b"video-bytes", "video/mp4"),
                "thumbnail": ("thumb.png", b"thumb-bytes", "image/png"),
            },
            headers=headers,
        )


@pytest.fixture
def api(client):
    return Api(client)
