from unittest.mock import patch

import pytest
from cryptography.fernet import Fernet

from meridian.config.db import Database
from meridian.utils.encryption import CredentialCipher


@pytest.fixture
def database():
    """A fresh in-memory SQLite database with every table created."""
    db = Database("sqlite://")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def session(database):
    with database.session() as s:
        yield s


@pytest.fixture
def cipher():
    return CredentialCipher(Fernet.generate_key().decode())


@pytest.fixture
def client(database, cipher):
    """A TestClient bound to the in-memory database, with every secret configured."""
    from fastapi.testclient import TestClient

    from meridian.api.main import app

    app.state.database = database
    app.state.cipher = cipher
    app.state.summarizer = None
    with patch("meridian.config.settings.JWT_SECRET", "test-jwt-secret"), patch(
        "meridian.config.settings.CRON_SECRET", "test-cron-secret"
    ), patch("meridian.config.settings.GITHUB_WEBHOOK_SECRET", "test-webhook-secret"):
        with TestClient(app) as c:
            yield c
    app.state.database = None


@pytest.fixture
def owner(database, cipher):
    """A connected owner whose stored token decrypts with the test cipher."""
    from meridian.tests.helpers import make_owner

    with database.session() as s:
        created = make_owner(s, encrypted_token=cipher.encrypt("ghp_test"))
        s.expunge(created)
    return created


@pytest.fixture
def auth_headers(client, owner):
    from meridian.auth import issue_token

    return {"Authorization": f"Bearer {issue_token(owner)}"}
