# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Generator, Iterator
from datetime import UTC, datetime, timedelta

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "tickety-test-secret")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("NONCE_BACKEND", "memory")
os.environ.setdefault("SIWE_DOMAIN", "localhost:5173")
os.environ.setdefault("SIWE_CHAIN_IDS", "80002")
os.environ.setdefault("ADMIN_ADDRESSES", "")

from tickety.api.v1.dependencies import get_admin_registry_dep, get_nonce_store_dep
from tickety.db.session import Base
from tickety.db.session import get_db as app_get_session
from tickety.main import app as fastapi_app
from tickety.services.admins import AdminRegistry
from tickety.services.nonce_store import MemoryNonceStore
from tickety.services.sessions import ROLE_ADMIN, ROLE_CUSTOMER, SessionIssuer, get_session_issuer
from tickety.services.siwe import SiweMessage

TEST_DB_URL = "sqlite://"
DEFAULT_DOMAIN = "localhost:5173"
DEFAULT_CHAIN_ID = 80002


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        # Admin changes commit, so wipe every table between tests.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def nonce_store() -> MemoryNonceStore:
    return MemoryNonceStore(ttl_seconds=300)


@pytest.fixture()
def admin_registry() -> AdminRegistry:
    # No caching so allow-list edits are visible immediately.
    return AdminRegistry(ttl_seconds=0)


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    nonce_store: MemoryNonceStore,
    admin_registry: AdminRegistry,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_nonce_store_dep] = lambda: nonce_store
    app.dependency_overrides[get_admin_registry_dep] = lambda: admin_registry
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_nonce_store_dep, None)
        app.dependency_overrides.pop(get_admin_registry_dep, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def wallet() -> LocalAccount:
    return Account.create()


@pytest.fixture()
def other_wallet() -> LocalAccount:
    return Account.create()


@pytest.fixture()
def admin_wallet(db_session: Session, admin_registry: AdminRegistry) -> LocalAccount:
    account = Account.create()
    admin_registry.add(db_session, account.address, "test admin")
    return account


@pytest.fixture()
def session_issuer() -> SessionIssuer:
    return get_session_issuer()


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def customer_headers(wallet: LocalAccount, session_issuer: SessionIssuer) -> dict[str, str]:
    return auth_headers(session_issuer.issue(wallet.address, (ROLE_CUSTOMER,), DEFAULT_CHAIN_ID))


@pytest.fixture()
def admin_headers(admin_wallet: LocalAccount, session_issuer: SessionIssuer) -> dict[str, str]:
    return auth_headers(session_issuer.issue(admin_wallet.address, (ROLE_ADMIN,), DEFAULT_CHAIN_ID))


def build_sign_in_message(
    address: str,
    nonce: str,
    *,
    domain: str | None = DEFAULT_DOMAIN,
    chain_id: int | None = DEFAULT_CHAIN_ID,
    issued_at: datetime | None = None,
    expiration_time: datetime | None = None,
    not_before: datetime | None = None,
) -> str:
    """Render an EIP-4361 message the way the frontend does."""
    now = datetime.now(UTC)
    return SiweMessage(
        address=address,
        nonce=nonce,
        domain=domain,
        statement="Sign in to Tickety",
        uri=f"http://{domain or DEFAULT_DOMAIN}",
        chain_id=chain_id,
        issued_at=issued_at or now,
        expiration_time=expiration_time or now + timedelta(minutes=10),
        not_before=not_before,
    ).to_message()


def sign_message(account: LocalAccount, message: str) -> str:
    """Produce a personal_sign style signature as a 0x-prefixed hex string."""
    signed = Account.sign_message(encode_defunct(text=message), private_key=account.key)
    signature = signed.signature.hex()
    return signature if signature.startswith("0x") else f"0x{signature}"


def request_nonce(client: TestClient, address: str) -> str:
    response = client.get("/api/v1/nonce", params={"address": address})
    assert response.status_code == 200, response.text
    return str(response.json()["nonce"])


def sign_in(client: TestClient, account: LocalAccount) -> dict[str, object]:
    """Run the full nonce, sign, verify handshake and return the verify body."""
    nonce = request_nonce(client, account.address)
    message = build_sign_in_message(account.address, nonce)
    response = client.post(
        "/api/v1/verify",
        json={"message": message, "signature": sign_message(account, message)},
    )
    assert response.status_code == 200, response.text
    body: dict[str, object] = response.json()
    return body

