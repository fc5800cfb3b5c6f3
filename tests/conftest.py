# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("PYTEST_RUNNING", "true")

from ordinal_stage.core.security import (
    CAPABILITY_EDIT_RECORDS,
    CAPABILITY_MANAGE_OPTIONS,
    create_access_token,
)
from ordinal_stage.db.session import Base
from ordinal_stage.db.session import get_db as app_get_session
from ordinal_stage.main import app as fastapi_app
from ordinal_stage.models import Record
from ordinal_stage.models.record import RECORD_STATUS_PUBLISHED
from ordinal_stage.repositories.record_repo import OrderStore
from ordinal_stage.services.throttle import reset_local_cache

TEST_DB_URL = "sqlite://"


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Let SQLAlchemy emit BEGIN itself so SAVEPOINT rollbacks behave under pysqlite.
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record) -> None:  # pragma: no cover
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn) -> None:  # pragma: no cover
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    # Session commits and rollbacks act on a SAVEPOINT; the outer transaction
    # is rolled back when the test ends.
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture(autouse=True)
def clear_throttle_cache() -> Iterator[None]:
    """Start every test with empty rate-limit counters and sync windows."""
    reset_local_cache()
    yield
    reset_local_cache()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def store(db_session: Session) -> OrderStore:
    """Order store bound to the test session."""
    return OrderStore(db_session)


@pytest.fixture()
def make_record(db_session: Session) -> Callable[..., Record]:
    """Return a factory persisting records with explicit ordinals."""

    def _make(
        title: str = "Record",
        *,
        menu_order: int = 0,
        legacy_order: int | None = None,
        status: str = RECORD_STATUS_PUBLISHED,
        record_type: str = "quiz",
        thumbnail_url: str | None = None,
    ) -> Record:
        record = Record(
            title=title,
            menu_order=menu_order,
            legacy_order=legacy_order,
            status=status,
            record_type=record_type,
            thumbnail_url=thumbnail_url,
        )
        db_session.add(record)
        db_session.commit()
        db_session.refresh(record)
        return record

    return _make


@pytest.fixture()
def reload(db_session: Session) -> Callable[[Record], Record]:
    """Return a helper that re-reads a record from the database."""

    def _reload(record: Record) -> Record:
        db_session.expire_all()
        fresh = db_session.get(Record, record.id)
        assert fresh is not None
        return fresh

    return _reload


@pytest.fixture()
def editor_headers() -> dict[str, str]:
    """Authorization headers for a caller allowed to reorder records."""
    token = create_access_token("editor-1", [CAPABILITY_EDIT_RECORDS])
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_headers() -> dict[str, str]:
    """Authorization headers for an operator."""
    token = create_access_token("admin-1", [CAPABILITY_EDIT_RECORDS, CAPABILITY_MANAGE_OPTIONS])
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def viewer_headers() -> dict[str, str]:
    """Authorization headers for a caller without capabilities."""
    token = create_access_token("viewer-1", [])
    return {"Authorization": f"Bearer {token}"}
