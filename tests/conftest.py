"""
Shared pytest fixtures for SEALANE tests.

CRITICAL: Database patching must occur at module-import time so SQLite
engine creation happens before api.database is imported anywhere. The
_patched_create_engine wrapper strips pool params that are invalid for
SQLite and shares one in-memory database across connections.
"""

import os
import sys
from datetime import datetime, timedelta
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

# ---------------------------------------------------------------------------
# Section 1: Environment setup (before ANY api.* imports)
# ---------------------------------------------------------------------------
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("DB_ECHO", "false")

# ---------------------------------------------------------------------------
# Section 2: Patch SQLAlchemy engine creation for SQLite compatibility
# ---------------------------------------------------------------------------
from sqlalchemy import create_engine as _real_create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool


def _patched_create_engine(url, **kwargs):
    """Create engine, stripping pool params invalid for SQLite.

    Uses StaticPool so all connections share the same in-memory database.
    """
    if str(url).startswith("sqlite"):
        kwargs.pop("pool_size", None)
        kwargs.pop("max_overflow", None)
        kwargs.pop("pool_pre_ping", None)
        kwargs.setdefault("connect_args", {"check_same_thread": False})
        kwargs["poolclass"] = StaticPool
    return _real_create_engine(url, **kwargs)


# Apply patch before api.database is imported
_patcher = patch("sqlalchemy.create_engine", _patched_create_engine)
_patcher.start()

# Clear any cached api.database imports so patch takes effect
for _mod in list(sys.modules.keys()):
    if _mod.startswith("api.database"):
        del sys.modules[_mod]

from api.database import Base, get_db, engine as test_engine  # noqa: E402
import api.models  # noqa: E402,F401 ensure all ORM models are registered

TestingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=test_engine
)
Base.metadata.create_all(bind=test_engine)

# ---------------------------------------------------------------------------
# Section 3: Core database + client fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def db():
    """Create a test database session with transaction isolation."""
    connection = test_engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture(autouse=True)
def fresh_route_cache():
    """Every test starts with an empty in-memory route cache."""
    from api.cache import get_route_cache

    cache = get_route_cache()
    cache.clear_memory()
    yield cache
    cache.clear_memory()


@pytest.fixture(autouse=True)
def closed_breakers():
    """Routing failures in one test never leave the breaker open for the next."""
    from api.routing_backend import get_routing_backend

    backend = get_routing_backend()
    backend.breaker.reset()
    yield
    backend.breaker.reset()


@pytest.fixture
def client(db):
    """Create a FastAPI TestClient with database dependency override."""
    from api.main import app

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Section 4: Domain fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def miami():
    from src.routes.synthesizer import Port
    return Port(id="miami", name="Miami", code="USMIA", latitude=25.7617, longitude=-80.1918)


@pytest.fixture
def nassau():
    from src.routes.synthesizer import Port
    return Port(id="nassau", name="Nassau", code="BSNAS", latitude=25.0343, longitude=-77.3554)


@pytest.fixture
def save_payload():
    """A valid /api/segments/save body for miami-nassau."""
    return {
        "originPortId": "miami",
        "destinationPortId": "nassau",
        "originPort": {"code": "USMIA", "name": "Miami", "lat": 25.7617, "lng": -80.1918},
        "destinationPort": {"code": "BSNAS", "name": "Nassau", "lat": 25.0343, "lng": -77.3554},
        "routeCoordinates": [[25.7617, -80.1918], [25.40, -78.80], [25.0343, -77.3554]],
        "routeType": "manual",
        "createdBy": "tester",
        "metadata": {},
    }


@pytest.fixture
def segment_candidate(save_payload):
    """The same segment as a validated SegmentCandidate."""
    from api.segment_store import SegmentCandidate

    return SegmentCandidate.create(
        origin_port_id=save_payload["originPortId"],
        destination_port_id=save_payload["destinationPortId"],
        origin_port=save_payload["originPort"],
        destination_port=save_payload["destinationPort"],
        route_coordinates=save_payload["routeCoordinates"],
        route_type=save_payload["routeType"],
        created_by=save_payload["createdBy"],
    )


class StepClock:
    """Deterministic clock: each call is one minute after the previous."""

    def __init__(self, start=datetime(2026, 3, 1, 12, 0, 0), step=timedelta(minutes=1)):
        self.now = start
        self.step = step

    def __call__(self):
        current = self.now
        self.now = self.now + self.step
        return current


@pytest.fixture
def step_clock():
    return StepClock()


@pytest.fixture
def sample_ports(db):
    """A handful of catalog ports, one inactive."""
    from api.models import Port

    rows = [
        Port(port_id="MIA", port_code="USMIA", port_name="Miami", port_country_code="US",
             port_latitude=25.7617, port_longitude=-80.1918),
        Port(port_id="NAS", port_code="BSNAS", port_name="Nassau", port_country_code="BS",
             port_latitude=25.0343, port_longitude=-77.3554),
        Port(port_id="MAR", port_code="FRMRS", port_name="Marseille", port_country_code="FR",
             port_latitude=43.2965, port_longitude=5.3698),
        Port(port_id="MAN", port_code="PHMNL", port_name="Manila", port_country_code="PH",
             port_latitude=14.5995, port_longitude=120.9842),
        Port(port_id="OLD", port_code="XXOLD", port_name="Mariel Old", port_country_code="CU",
             port_latitude=22.9917, port_longitude=-82.7539, port_status=False),
    ]
    db.add_all(rows)
    db.commit()
    return rows
