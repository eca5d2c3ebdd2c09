import os
import tempfile
import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from app.api.v1.deps import get_media_service
from app.config import settings
from app.core import db as db_module
from app.main import app
from app.models.user import User
from app.services.media import MediaService, MediaUploadResult


TEST_DB_URL = "sqlite://:memory:?cache=shared"
os.environ["DATABASE_URL"] = TEST_DB_URL
db_module.DB_URL = TEST_DB_URL
db_module.TORTOISE_ORM["connections"]["default"] = TEST_DB_URL

settings.upload_temp_dir = tempfile.mkdtemp(prefix="accounts-uploads-")


class FakeMediaService(MediaService):
    """
    In-memory stand-in for the media host.
    Records every upload and deletion; set fail_uploads to simulate an outage.
    """

    def __init__(self):
        super().__init__(settings.media)
        self.uploaded: list[str] = []
        self.deleted: list[str] = []
        self.fail_uploads = False
        self.attempts = 0

    async def upload(self, local_path):
        if not local_path:
            return None
        self.attempts += 1
        with open(local_path, "rb") as f:
            f.read()
        os.remove(local_path)
        if self.fail_uploads:
            return None
        public_id = uuid.uuid4().hex[:12]
        url = f"https://res.cloudinary.com/demo/image/upload/v1700000000/{public_id}.png"
        self.uploaded.append(url)
        return MediaUploadResult(url=url, public_id=public_id)

    async def delete(self, public_id, resource_type="image"):
        self.deleted.append(public_id)
        return True


async def _init_test_db() -> None:
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch.
    """
    if Tortoise._inited:
        await Tortoise.close_connections()
    await Tortoise.init(config=db_module.TORTOISE_ORM)
    await Tortoise.generate_schemas()


@pytest_asyncio.fixture
async def db():
    """Fresh database without an HTTP client (for service-level tests)."""
    await _init_test_db()
    yield
    await Tortoise.close_connections()


@pytest.fixture
def media():
    """Fake media host wired into the app for the duration of a test."""
    fake = FakeMediaService()
    app.dependency_overrides[get_media_service] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_media_service, None)


@pytest_asyncio.fixture
async def client(db, media):
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client


@pytest_asyncio.fixture
async def create_user():
    """
    Factory fixture to create users directly via ORM.
    """

    async def _create_user(password: str = "UserPass!23", **fields) -> tuple[User, str]:
        suffix = uuid.uuid4().hex[:6]
        user = User(
            username=fields.pop("username", f"user_{suffix}"),
            email=fields.pop("email", f"{suffix}@example.com"),
            full_name=fields.pop("full_name", "Test User"),
            avatar=fields.pop("avatar", f"https://res.cloudinary.com/demo/image/upload/v1/{suffix}.png"),
            **fields,
        )
        user.set_password(password)
        await user.save()
        return user, password

    return _create_user


@pytest_asyncio.fixture
async def login(client):
    """
    Helper fixture returning the login response body data for a user.
    """

    async def _login(username: str, password: str) -> dict:
        resp = await client.post(
            "/api/v1/users/login",
            json={"username": username, "password": password},
        )
        assert resp.status_code == 200, resp.text
        return resp.json()["data"]

    return _login


@pytest_asyncio.fixture
async def auth_header_factory(login):
    """
    Helper fixture to obtain Authorization headers via the login endpoint.
    """

    async def _get_headers(username: str, password: str) -> dict[str, str]:
        data = await login(username, password)
        return {"Authorization": f"Bearer {data['accessToken']}"}

    return _get_headers
