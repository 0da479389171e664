"""Shared fixtures: in-memory database, seeded defaults, API client."""

import os

# Set test environment before the application reads its settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SEED_ON_STARTUP"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET"] = "test-secret-key-for-unit-tests-only"

import pytest
from fastapi.testclient import TestClient

from rbac_console.core.config import settings
from rbac_console.core.security import Identity
from rbac_console.db.seeds import seed_all
from rbac_console.db.session import SessionLocal, drop_db, init_db
from rbac_console.main import app
from rbac_console.services.user_service import user_service

ADMIN_EMAIL = settings.SEED_ADMIN_EMAIL
ADMIN_PASSWORD = settings.SEED_ADMIN_PASSWORD


@pytest.fixture()
def db():
    """Fresh schema with the default roles, permissions and admin user."""
    drop_db()
    init_db()
    session = SessionLocal()
    seed_all(session)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(db):
    return TestClient(app)


def login(client: TestClient, identifier: str, password: str) -> str:
    resp = client.post("/api/auth/login", json={"email": identifier, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()["token"]


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_headers(client):
    return bearer(login(client, ADMIN_EMAIL, ADMIN_PASSWORD))


def make_user(db, email: str, role: str, password: str = "secret123", status: str = "Active"):
    """Store a user directly through the service layer."""
    return user_service.insert_user(
        db, email.split("@")[0].title(), email, password, role=role, status=status,
    )


def identity_for(user) -> Identity:
    return Identity(id=user.id, email=user.email, role=user.role, name=user.name)


@pytest.fixture()
def editor_headers(client, db):
    make_user(db, "editor@example.com", "Editor")
    return bearer(login(client, "editor@example.com", "secret123"))


@pytest.fixture()
def viewer_headers(client, db):
    make_user(db, "viewer@example.com", "Viewer")
    return bearer(login(client, "viewer@example.com", "secret123"))
