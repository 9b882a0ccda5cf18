import pytest
from fastapi.testclient import TestClient

from products_api.config import Settings
from products_api.database import Base, create_db_engine, create_session_factory
from products_api.main import create_app


# Test database (SQLite in-memory, one per app instance)
TEST_DATABASE_URL = "sqlite://"


@pytest.fixture
def settings():
    """Settings pointing at a throwaway in-memory database."""
    return Settings(DATABASE_URL=TEST_DATABASE_URL, LOG_LEVEL="DEBUG")


@pytest.fixture(scope="function")
def client(settings):
    """Create test client with fresh database for each test."""
    app = create_app(settings)

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(scope="function")
def db_session():
    """Create database session for direct database access in tests."""
    engine = create_db_engine(TEST_DATABASE_URL)
    Base.metadata.create_all(bind=engine)
    session = create_session_factory(engine)()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def add_products(client):
    """Insert `count` products through the API, returning their JSON bodies."""
    def _add(count: int = 1):
        created = []
        for i in range(count):
            response = client.post(
                "/product",
                json={"name": f"Product {i}", "price": (i + 1.0) * 10}
            )
            assert response.status_code == 201
            created.append(response.json())
        return created
    return _add
