import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_case_graph.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-session-tokens")

import pytest
from datetime import datetime, timedelta, UTC
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from jose import jwt

from app.database import get_db
from app.models.base import Base, utcnow
from app.config import settings
# Import all model classes to ensure they're registered with SQLAlchemy
from app.models.tenant import Tenant
from app.models.person import Person, PersonSource
from app.models.relationship import Relationship
from app.models.actor import Actor
from app.models.role import ActorRole
from app.core.identifiers import pair_key
# Import FastAPI app AFTER model imports
from app.main import app

# Test database (SQLite in-memory for speed)
# Use StaticPool to ensure all connections share the same in-memory database
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create fresh database for each test"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """FastAPI test client with test database"""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def sql_statements():
    """Collect every SQL statement sent to the test database"""
    statements = []

    def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    event.listen(engine, "before_cursor_execute", before_cursor_execute)
    yield statements
    event.remove(engine, "before_cursor_execute", before_cursor_execute)


def create_test_token(
    user_id: str = "worker-a",
    role: str = "tenant_worker",
    tenant_id: int | None = None,
    expired: bool = False,
) -> str:
    """
    Generate valid JWT token for testing.

    Args:
        user_id: User ID to embed in 'sub' claim
        role: Role claim
        tenant_id: Agency claim (omitted when None)
        expired: If True, create expired token

    Returns:
        Encoded JWT token
    """
    if expired:
        exp = datetime.now(UTC) - timedelta(minutes=5)
    else:
        exp = datetime.now(UTC) + timedelta(minutes=15)

    payload = {"sub": user_id, "role": role, "exp": exp, "iat": datetime.now(UTC)}
    if tenant_id is not None:
        payload["tenant_id"] = tenant_id

    token = jwt.encode(payload, settings.SECRET_KEY, algorithm="HS256")
    return token


def headers_for(user_id: str, role: str, tenant_id: int | None = None) -> dict:
    token = create_test_token(user_id=user_id, role=role, tenant_id=tenant_id)
    return {"Authorization": f"Bearer {token}"}


# Agencies


@pytest.fixture
def agency_a(db_session):
    tenant = Tenant(name="Riverside County Children's Services")
    db_session.add(tenant)
    db_session.commit()
    db_session.refresh(tenant)
    return tenant


@pytest.fixture
def agency_b(db_session):
    tenant = Tenant(name="Lakeview Family Services")
    db_session.add(tenant)
    db_session.commit()
    db_session.refresh(tenant)
    return tenant


# Actors


@pytest.fixture
def worker_a(agency_a):
    return Actor(user_id="worker-a", role=ActorRole.TENANT_WORKER, tenant_id=agency_a.id)


@pytest.fixture
def worker_b(agency_b):
    return Actor(user_id="worker-b", role=ActorRole.TENANT_WORKER, tenant_id=agency_b.id)


@pytest.fixture
def administrator():
    return Actor(user_id="admin-1", role=ActorRole.ADMINISTRATOR)


@pytest.fixture
def visitor_a(agency_a):
    return Actor(user_id="visitor-a", role=ActorRole.RESTRICTED, tenant_id=agency_a.id)


@pytest.fixture
def worker_a_headers(agency_a):
    return headers_for("worker-a", "tenant_worker", agency_a.id)


@pytest.fixture
def worker_b_headers(agency_b):
    return headers_for("worker-b", "tenant_worker", agency_b.id)


@pytest.fixture
def admin_headers():
    return headers_for("admin-1", "administrator")


@pytest.fixture
def visitor_a_headers(agency_a):
    return headers_for("visitor-a", "restricted", agency_a.id)


# Records


@pytest.fixture
def make_person(db_session):
    """Factory persisting a person directly, bypassing service validation"""

    def _make_person(tenant, retired: bool = False, **fields) -> Person:
        person = Person(tenant_id=tenant.id, source=fields.pop("source", PersonSource.CASE_ENTRY), **fields)
        if retired:
            person.retired_at = utcnow()
        db_session.add(person)
        db_session.commit()
        db_session.refresh(person)
        return person

    return _make_person


@pytest.fixture
def make_relationship(db_session):
    """Factory persisting an edge directly"""

    def _make_relationship(tenant, source: Person, destination: Person, **fields) -> Relationship:
        low, high = pair_key(source.id, destination.id)
        edge = Relationship(
            tenant_id=tenant.id,
            source_person_id=source.id,
            destination_person_id=destination.id,
            pair_low_id=low,
            pair_high_id=high,
            contact_log_ids=[],
            **fields,
        )
        db_session.add(edge)
        db_session.commit()
        db_session.refresh(edge)
        return edge

    return _make_relationship


@pytest.fixture
def child_a(make_person, agency_a):
    """Case subject owned by agency A"""
    return make_person(agency_a, first_name="Maya", last_name="Lopez", assigned_worker_id="worker-a")
