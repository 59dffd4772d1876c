import os
from dotenv import load_dotenv
import pytest

# Load environment so TEST_DATABASE_URL can be read from .env
load_dotenv()

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite:///./test_storefront.db")
os.environ.setdefault("DATABASE_URL", TEST_DATABASE_URL)

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from app.config import PricingConfig, get_pricing_config  # noqa: E402
from app.database import Base, engine_options, get_db  # noqa: E402
from app.main import app  # noqa: E402

engine = create_engine(TEST_DATABASE_URL, **engine_options(TEST_DATABASE_URL))
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Override the app's DB dependency to use the test engine/session
def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


def override_pricing_config():
    # pinned so a local .env cannot shift the expected totals
    return PricingConfig()


app.dependency_overrides[get_db] = override_get_db
app.dependency_overrides[get_pricing_config] = override_pricing_config


@pytest.fixture
def setup_database():
    """Fresh schema for each test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(setup_database):
    return TestClient(app)


@pytest.fixture
def db(setup_database):
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
