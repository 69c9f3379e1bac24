"""Shared fixtures: in-memory database, test client and stubbed e-mail."""
import os

# Must be set before the application modules are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["SENDGRID_API_KEY"] = ""
os.environ["REGISTRATION_OPEN"] = "true"
os.environ["TOKEN_ACADEMIC_DOMAINS_ONLY"] = "false"
os.environ["SITE_URL"] = "http://testserver"

import pytest
from unittest.mock import patch
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.app.app import app
from src.models.database import Base, get_db
from src.models.schemas import EmailResult
from src.utils import email_service
from src.utils.validation import CollegeIdDocument


def make_document(content_type="image/png", size=128, filename="id.png"):
    return CollegeIdDocument(filename=filename, content_type=content_type, content=b"x" * size)


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    """Store uploaded college IDs in a temporary directory."""
    path = tmp_path / "uploads"
    monkeypatch.setenv("UPLOAD_DIR", str(path))
    return path


@pytest.fixture
def db_session_factory():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def client(db_session_factory, upload_dir):
    """TestClient bound to the in-memory database."""
    def override_get_db():
        db = db_session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def sent_emails():
    """Record outgoing e-mails instead of calling SendGrid."""
    outbox = []

    def fake_send(to, subject, html, text=None):
        outbox.append({"to": to, "subject": subject, "html": html})
        return EmailResult(success=True, message_id=f"msg-{len(outbox)}")

    email_service.clear_caches()
    with patch("src.utils.email_service.send_email", side_effect=fake_send):
        yield outbox
    email_service.clear_caches()


@pytest.fixture(name="make_document")
def make_document_fixture():
    """Factory for in-memory college ID documents."""
    return make_document
