# tests/conftest.py
from __future__ import annotations

from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from nufounders_backend.app.auth.providers import ProviderAdapter, ProviderConfig
from nufounders_backend.app.auth.session import SessionCodec
from nufounders_backend.app.core.config import COOKIE_NAME, Settings
from nufounders_backend.app.db.session import Database
from nufounders_backend.app.db.users import SqlUserRepository
from nufounders_backend.app.main import create_app
from nufounders_backend.app.schemas.identity import Identity
from nufounders_backend.app.schemas.user import UserRecord, UserUpsert

TEST_SECRET = "test-secret-0123456789abcdef0123456789"
TEST_APP_ID = "nufounders-test"


# ---------- fakes ----------
class RecordingUserRepository:
    """In-memory user store that records every upsert."""

    def __init__(self):
        self.rows: Dict[str, dict] = {}
        self.upserts: List[UserUpsert] = []

    async def get_by_open_id(self, open_id: str) -> Optional[UserRecord]:
        row = self.rows.get(open_id)
        return UserRecord(**row) if row else None

    async def upsert(self, data: UserUpsert) -> None:
        self.upserts.append(data)
        row = self.rows.setdefault(data.open_id, {"open_id": data.open_id})
        row.update(data.model_dump(exclude_unset=True))

    async def list_users(self, limit: int = 100, offset: int = 0) -> List[UserRecord]:
        rows = list(self.rows.values())[offset:offset + limit]
        return [UserRecord(**r) for r in rows]


class StubAdapter(ProviderAdapter):
    """Provider adapter that never touches the network."""

    def __init__(self, name: str, identity: Optional[Identity] = None, fail: Optional[Exception] = None):
        super().__init__(ProviderConfig(name, "stub-id", "stub-secret"))
        self.name = name
        self.identity = identity
        self.fail = fail
        self.calls: List[tuple] = []

    async def exchange_code(self, code: str, redirect_uri: str) -> str:
        self.calls.append(("exchange", code, redirect_uri))
        if self.fail is not None:
            raise self.fail
        return f"{self.name}-access-token"

    async def fetch_identity(self, access_token: str) -> Identity:
        self.calls.append(("identity", access_token))
        return self.identity


# ---------- fixtures ----------
@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        app_id=TEST_APP_ID,
        jwt_secret=TEST_SECRET,
        google_client_id="google-client",
        google_client_secret="google-secret",
        github_client_id="github-client",
        github_client_secret="github-secret",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
    )


@pytest.fixture
def codec(settings) -> SessionCodec:
    return SessionCodec(settings.jwt_secret, settings.app_id)


@pytest.fixture
def users() -> RecordingUserRepository:
    return RecordingUserRepository()


@pytest.fixture
def google_stub() -> StubAdapter:
    return StubAdapter("google", Identity(
        open_id="google_123", name="Jane", email="jane@x.com", login_method="google",
    ))


@pytest.fixture
def github_stub() -> StubAdapter:
    return StubAdapter("github", Identity(
        open_id="github_42", name="Octo Cat", email=None, login_method="github",
    ))


@pytest.fixture
def stub_client(settings, users, google_stub, github_stub):
    """App with the recording repository and stub adapters; redirects are not followed."""
    app = create_app(settings, users=users, adapters={"google": google_stub, "github": github_stub})
    with TestClient(app, follow_redirects=False) as c:
        yield c


@pytest.fixture
async def database(settings):
    db = Database(settings.database_url)
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def sql_users(database) -> SqlUserRepository:
    return SqlUserRepository(database)


@pytest.fixture
def make_stub():
    return StubAdapter


@pytest.fixture
def cookie_header():
    def _header(token: str) -> Dict[str, str]:
        return {"Cookie": f"{COOKIE_NAME}={token}"}
    return _header
