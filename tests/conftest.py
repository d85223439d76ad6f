"""
Shared test fixtures.

Sets up an isolated SQLite database so tests never touch the
real one. Tables are created before and dropped after every
test, so no data leaks between tests.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from fintrack.main import app
from fintrack.models.base import Base, configure_sqlite, get_db
from fintrack.services.reference_service import ReferenceService


TEST_DATABASE_URL = "sqlite:///./test.db"

engine = configure_sqlite(create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
))

TestSessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop them after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Provide a database session for direct service testing."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def reference_data(db_session):
    """Seed the default types, currencies and categories."""
    ReferenceService(db_session).seed_defaults()
    db_session.commit()
    return db_session


@pytest.fixture
def client(db_session):
    """
    Provide a test client bound to the test session.

    get_db is overridden so every request shares db_session.
    """
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
