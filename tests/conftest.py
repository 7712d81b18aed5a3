import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront import config
from storefront.database.database import get_db
from storefront.main import app
from storefront.models.database_models import Base
from tests.factories import ADMIN_KEY, CUSTOMER_SECRET, WEBHOOK_SECRET, make_product


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def products(db):
    """Widget at 100.00 (with varieties) and Gadget at 50.00, plus a retired product."""
    return {
        "widget": make_product(db, "Widget", "100.00", varieties=["Clásico", "Integral"]),
        "gadget": make_product(db, "Gadget", "50.00", category="Pastas"),
        "retired": make_product(db, "Retired", "10.00", active=False),
    }


@pytest.fixture
def credentials(monkeypatch):
    monkeypatch.setattr(config, "ADMIN_API_KEY", ADMIN_KEY)
    monkeypatch.setattr(config, "CUSTOMER_TOKEN_SECRET", CUSTOMER_SECRET)
    monkeypatch.setattr(config, "WEBHOOK_SECRET", WEBHOOK_SECRET)


@pytest.fixture
def client(session_factory, credentials):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    # No context manager: the lifespan would open the configured database
    yield TestClient(app)
    app.dependency_overrides.clear()
