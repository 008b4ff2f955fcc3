import os

from cryptography.fernet import Fernet

# Must be set before anything under app/ reads settings
os.environ["ENV"] = "test"
os.environ.setdefault("TEST_DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("CREDENTIAL_MASTER_KEY", Fernet.generate_key().decode())

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.db import db_manager, get_db  # noqa: E402
from app.main import create_app  # noqa: E402
import app.models  # noqa: E402,F401

pytest_plugins = [
    "tests.fixtures.conversation_fixtures",
    "tests.fixtures.channel_instance_fixtures",
]


@pytest.fixture(scope="function")
def db():
    """Fresh schema per test; yields an ORM session bound to the test engine."""
    db_manager.create_all()
    session = db_manager.session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        db_manager.drop_all()


@pytest.fixture(scope="function")
def client(db):
    """TestClient with get_db overridden to the test session."""
    app = create_app(testing=True)

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
