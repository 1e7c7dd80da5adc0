"""Shared test fixtures"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app.api.deps import get_db
from app.db.base import Base
from app.db.models.item import Item  # noqa: F401
from app.db.models.review import Review  # noqa: F401
from app.db.session import create_db_engine
from app.main import app
from app.services import items as item_service


@pytest.fixture
def engine(tmp_path):
    """File-backed SQLite database, fresh per test"""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'reviewhub.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    """One session for service-level tests; do not mix with `client` in the same test"""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def sample_item(db):
    return item_service.create_item(
        db,
        name="Aeropress",
        category="Kitchen",
        description="Manual coffee press",
    )


@pytest.fixture
def api_item(client):
    response = client.post(
        "/api/v1/items/",
        json={"name": "Aeropress", "category": "Kitchen", "description": "Manual coffee press"},
    )
    assert response.status_code == 201
    return response.json()
