import base64
from collections.abc import Generator, Iterator
from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_clock, get_pairing_store
from app.core.config import settings
from app.db.base import Base
from app.db.session import get_db
from app.main import app
from app.models.account import Account
from app.modules.accounts.service import create_account
from app.modules.credentials.service import SqlAlchemyCredentialIssuer
from app.modules.pairing.store import InMemoryPairingStore


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2026, 10, 18, 12, 0, 0, tzinfo=UTC)

    def now(self) -> datetime:
        return self._now

    def advance(self, seconds: float) -> None:
        self._now += timedelta(seconds=seconds)


def basic_auth(username: str, password: str) -> dict[str, str]:
    token = base64.b64encode(f"{username}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store(fake_clock: FakeClock) -> InMemoryPairingStore:
    return InMemoryPairingStore(fake_clock)


@pytest.fixture
def db_engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=db_engine, autocommit=False, autoflush=False, class_=Session)


@pytest.fixture
def db_session(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(
    monkeypatch: pytest.MonkeyPatch,
    session_factory: sessionmaker[Session],
    memory_store: InMemoryPairingStore,
    fake_clock: FakeClock,
) -> Iterator[TestClient]:
    monkeypatch.setattr(settings, "db_create_tables", False)

    def _get_test_db() -> Generator[Session, None, None]:
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_test_db
    app.dependency_overrides[get_pairing_store] = lambda: memory_store
    app.dependency_overrides[get_clock] = lambda: fake_clock
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


def make_account(db: Session, username: str, role: str) -> tuple[Account, str]:
    account = create_account(db, username=username, display_name=username.title(), role=role)
    issued = SqlAlchemyCredentialIssuer(db).mint(
        account, name="AgentPair (tests)", app_id="agentpair-tests"
    )
    return account, issued.password


@pytest.fixture
def admin(db_session: Session) -> tuple[Account, str]:
    return make_account(db_session, "admin", "administrator")


@pytest.fixture
def admin_headers(admin: tuple[Account, str]) -> dict[str, str]:
    account, password = admin
    return basic_auth(account.username, password)
