import copy
import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure backend/ is importable as the top-level "app" package even when pytest runs from repo root
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

# Ensure the application runs in test mode *before* importing any app modules
os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

from app.db.base import Base
from app.main import app
from app.schemas.progress import FullModel
from app.services.reconcile import ReconciliationController
from app.store import MemoryStore, get_store
from app.store.sql import SqlStore


SAMPLE_PAYLOAD = {
    "project": {
        "name": "Substation 3 Cabling",
        "startDate": "2024-01-08",
        "targetDate": "2024-06-28",
        "asOf": "2024-03-15",
        "types": [
            {"name": "HV", "color": "#d62728"},
            {"name": "LV", "color": "#1f77b4"},
            {"name": "FO", "color": "#2ca02c"},
        ],
    },
    "boq": {
        "HV": {"total": 1000, "color": "#d62728"},
        "LV": {"total": 2500, "color": "#1f77b4"},
        "FO": {"total": 0, "color": "#2ca02c"},
    },
    "srn": [
        {"type": "HV", "date": "05/03/2024", "length": 400, "ref": "SRN-001"},
        {"type": "HV", "date": "12/03/2024", "length": 100, "ref": "SRN-002"},
        {"type": "LV", "date": "2024-03-07", "length": 750, "ref": ""},
    ],
    "manual": {
        "HV": {"delivered": None, "pulled": 300, "lastWeek": 0, "thisWeek": 300},
        "LV": {"delivered": 1000, "pulled": 600, "lastWeek": 200, "thisWeek": 150},
        "FO": {"delivered": 120, "pulled": 0, "lastWeek": 0, "thisWeek": 0},
    },
    "snapshots": [
        {"id": 1, "weekLabel": "2024-W10", "date": "08/03/2024", "pulled": {"HV": 0, "LV": 450}, "total": 450},
    ],
}


@pytest.fixture
def sample_payload():
    return copy.deepcopy(SAMPLE_PAYLOAD)


@pytest.fixture
def store():
    return MemoryStore(infer_dates=True)


@pytest.fixture
def controller(store):
    return ReconciliationController(store)


@pytest.fixture
def seeded(controller, sample_payload):
    result = controller.write_all(FullModel.from_json(sample_payload))
    assert result.success and not result.warnings
    return controller


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.pop(get_store, None)


@pytest.fixture
def sql_store():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)
    try:
        yield SqlStore(factory)
    finally:
        engine.dispose()
