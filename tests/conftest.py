"""
Shared test fixtures — SQLite test database, test client, auth helpers, fake store.
"""

import os
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Set env before importing app modules
os.environ["JWT_SECRET"] = "test-secret-key-for-testing-only"
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["SEED_CATALOG"] = "false"

from estimator.catalog import MaterialRecord, seed_catalog
from estimator.database import Base, get_db
from estimator.errors import StoreError, StoreTimeout
from estimator.main import app


TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    """Direct database session for test setup/assertions."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seeded(db):
    """Default catalog loaded into the test database."""
    seed_catalog(db)
    return db


@pytest.fixture
def auth_headers(client):
    """Register a test user and return auth headers."""
    response = client.post("/api/auth/register", json={
        "email": "ana@constructora.do",
        "password": "strongpassword123",
        "full_name": "Ana Pérez",
    })
    assert response.status_code == 200
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


# --- In-memory store ---

class FakeStore:
    """EstimatorStore double. Records every write in order; failures are opt-in."""

    def __init__(self, materials=None, fail_fetch=False, fail_project=False, fail_event=False):
        self.materials = list(materials or [])
        self.fail_fetch = fail_fetch
        self.fail_project = fail_project
        self.fail_event = fail_event
        self.writes = []

    @property
    def projects(self):
        return [row for kind, row in self.writes if kind == "project"]

    @property
    def events(self):
        return [row for kind, row in self.writes if kind == "event"]

    def fetch_active_materials(self):
        if self.fail_fetch:
            raise StoreError("catalog offline")
        return list(self.materials)

    def insert_project(self, row, gate=None):
        if self.fail_project:
            raise StoreError("insert rejected")
        self._commit(gate)
        self.writes.append(("project", row))
        return {"id": len(self.projects), "created_at": "2026-10-18T10:00:00"}

    def insert_event(self, row, gate=None):
        if self.fail_event:
            raise StoreError("analytics unavailable")
        self._commit(gate)
        self.writes.append(("event", row))
        return {"id": len(self.events), "created_at": "2026-10-18T10:00:00"}

    def _commit(self, gate):
        if gate is not None and not gate.begin_commit():
            raise StoreTimeout("write abandoned")


def material_row(id, price, name_es=None, name_en=None, **extra):
    row = {
        "id": id,
        "name_es": name_es or f"Material {id}",
        "name_en": name_en or f"Material {id} (en)",
        "price": price,
        "unit": "unidad",
        "category_id": 1,
        "category_es": "Estructura",
        "category_en": "Structure",
        "is_active": True,
    }
    row.update(extra)
    return row


@pytest.fixture
def cement():
    return MaterialRecord.from_row(material_row(1, "500.00", "Cemento", "Cement"))


@pytest.fixture
def rebar():
    return MaterialRecord.from_row(material_row(2, "285.50", "Varilla", "Rebar"))


@pytest.fixture
def fake_store():
    return FakeStore(materials=[
        material_row(1, "500.00", "Cemento", "Cement"),
        material_row(2, "285.50", "Varilla", "Rebar"),
        material_row(3, "38.00", "Block 6\"", "Block 6\""),
    ])
