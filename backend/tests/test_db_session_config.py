from __future__ import annotations

import pytest
from sqlalchemy import inspect
from sqlalchemy.pool import StaticPool

from app.config import Settings
import app.db.session as db_session


def _settings(**overrides) -> Settings:
    base = {"ENV": "prod", "DATABASE_URL": None, "TEST_DATABASE_URL": None}
    base.update(overrides)
    return Settings(**base)


@pytest.fixture
def outside_pytest(monkeypatch):
    monkeypatch.delenv("PYTEST_CURRENT_TEST", raising=False)


def test_default_is_local_sqlite_file(outside_pytest):
    url = db_session.resolve_database_url(_settings())
    assert url == db_session.DEFAULT_DATABASE_URL
    assert url.endswith("cable_progress.db")


def test_runtime_url_outside_tests(outside_pytest):
    settings = _settings(DATABASE_URL="sqlite:///runtime.db", TEST_DATABASE_URL="sqlite:///other.db")
    assert db_session.resolve_database_url(settings) == "sqlite:///runtime.db"


def test_test_url_wins_in_test_env():
    settings = _settings(ENV="test", DATABASE_URL="sqlite:///runtime.db", TEST_DATABASE_URL="sqlite:///t.db")
    assert db_session.resolve_database_url(settings) == "sqlite:///t.db"


def test_postgres_requires_ssl_and_keeps_password(outside_pytest):
    url = db_session.resolve_database_url(
        _settings(DATABASE_URL="postgresql+psycopg2://crew:s3cret@db/progress")
    )
    assert url == "postgresql+psycopg2://crew:s3cret@db/progress?sslmode=require"


@pytest.mark.parametrize(
    "require_ssl, raw",
    [
        (False, "postgresql://crew@db/progress"),
        (True, "postgresql://crew@db/progress?sslmode=disable"),
        (True, "sqlite:///local.db"),
    ],
)
def test_ssl_left_alone(outside_pytest, require_ssl, raw):
    settings = _settings(DATABASE_URL=raw, DB_REQUIRE_SSL=require_ssl)
    assert db_session.resolve_database_url(settings) == raw


def test_in_memory_engine_shares_one_connection(tmp_path):
    memory = db_session.build_engine("sqlite://")
    on_disk = db_session.build_engine(f"sqlite:///{tmp_path / 'progress.db'}")
    try:
        assert isinstance(memory.pool, StaticPool)
        assert not isinstance(on_disk.pool, StaticPool)
    finally:
        memory.dispose()
        on_disk.dispose()


def test_create_schema_builds_sheet_rows(tmp_path):
    engine = db_session.build_engine(f"sqlite:///{tmp_path / 'progress.db'}")
    try:
        db_session.create_schema(engine)
        inspector = inspect(engine)
        assert "sheet_rows" in inspector.get_table_names()
        unique = inspector.get_unique_constraints("sheet_rows")
        assert [c["column_names"] for c in unique] == [["sheet", "row_index"]]
    finally:
        engine.dispose()


def test_module_engine_has_schema_on_import():
    assert db_session.ENGINE.dialect.name == "sqlite"
    assert "sheet_rows" in inspect(db_session.ENGINE).get_table_names()
    with db_session.get_sessionmaker()() as session:
        assert session.get_bind() is db_session.ENGINE
