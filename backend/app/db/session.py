# app/db/session.py
"""Engine and session factory behind the SQL tabular store."""
from __future__ import annotations

import os

import structlog
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import Settings, get_settings

logger = structlog.get_logger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./cable_progress.db"
IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


def resolve_database_url(settings: Settings) -> str:
    """
    TEST_DATABASE_URL is used under pytest, then DATABASE_URL, then a local SQLite
    file. PostgreSQL URLs get ``sslmode=require`` unless DB_REQUIRE_SSL is off or
    the URL already names an sslmode.
    """
    candidates = []
    if (settings.ENV or "").lower() == "test" or os.getenv("PYTEST_CURRENT_TEST"):
        candidates.append(settings.TEST_DATABASE_URL)
    candidates.append(settings.DATABASE_URL)
    url = make_url(next((c for c in candidates if c), DEFAULT_DATABASE_URL))

    if settings.DB_REQUIRE_SSL and url.get_backend_name() == "postgresql" and "sslmode" not in url.query:
        url = url.update_query_dict({"sslmode": "require"})
    return url.render_as_string(hide_password=False)


def build_engine(url: str) -> Engine:
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True, future=True)

    options = {"connect_args": {"check_same_thread": False}, "future": True}
    if url in IN_MEMORY_URLS:
        # an in-memory database only exists on its single connection
        options["poolclass"] = StaticPool
    return create_engine(url, **options)


def create_schema(engine: Engine) -> None:
    # Lazy import: app.db.base pulls in the models, which import app.db
    from app.db.base import Base  # pylint: disable=import-outside-toplevel

    Base.metadata.create_all(bind=engine)


DATABASE_URL = resolve_database_url(get_settings())
ENGINE: Engine = build_engine(DATABASE_URL)
SessionLocal: sessionmaker[Session] = sessionmaker(
    bind=ENGINE,
    autocommit=False,
    autoflush=False,
    future=True,
)

logger.info("db.engine_selected", url=ENGINE.url.render_as_string(hide_password=True))

# SQLite databases get their tables here; PostgreSQL relies on the Alembic revision.
if ENGINE.dialect.name == "sqlite":
    create_schema(ENGINE)


def get_sessionmaker() -> sessionmaker[Session]:
    return SessionLocal
