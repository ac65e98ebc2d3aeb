"""
Shared pytest fixtures for the backend.

Each test gets its own SQLite file; config.DATABASE_PATH is patched so
every get_db() call in the app resolves to it.
"""

import os
import tempfile
from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

# Point the app at a throwaway database BEFORE anything imports backend.config
os.environ.setdefault("ENV", "dev")
os.environ["DATABASE_PATH"] = tempfile.mktemp(suffix=".db")

from backend import config  # noqa: E402
from backend.auth_context import create_access_token, hash_password  # noqa: E402
from backend.db import get_db, init_db, now_iso  # noqa: E402


@pytest.fixture
def db_file(tmp_path, monkeypatch):
    path = tmp_path / "rentwise_test.db"
    monkeypatch.setattr(config, "DATABASE_PATH", str(path))
    monkeypatch.setattr(config, "SMTP_HOST", "")
    init_db()
    return path


@pytest.fixture
def conn(db_file):
    connection = get_db()
    yield connection
    connection.close()


@pytest.fixture
def client(db_file):
    from backend.main import app
    return TestClient(app)


def create_user(name: str, email: str, role: str, password: str = "password123") -> dict:
    """Insert a user directly and return id plus bearer headers."""
    connection = get_db()
    cur = connection.execute(
        "INSERT INTO users (name, email, password_hash, role, is_active, created_at) VALUES (?, ?, ?, ?, 1, ?)",
        (name, email, hash_password(password), role, now_iso()),
    )
    user_id = cur.lastrowid
    connection.commit()
    connection.close()
    token = create_access_token({"sub": str(user_id), "role": role})
    return {
        "id": user_id,
        "email": email,
        "password": password,
        "headers": {"Authorization": f"Bearer {token}"},
    }


@pytest.fixture
def admin(db_file):
    return create_user("Alice Landlord", "alice@example.com", "admin")


@pytest.fixture
def other_admin(db_file):
    return create_user("Oscar Owner", "oscar@example.com", "admin")


@pytest.fixture
def tenant(db_file):
    return create_user("Tom Tenant", "tom@example.com", "tenant")


@pytest.fixture
def other_tenant(db_file):
    return create_user("Tina Traveller", "tina@example.com", "tenant")


def days_from_today(n: int) -> str:
    return (date.today() + timedelta(days=n)).isoformat()


@pytest.fixture
def future():
    """ISO date n days from today (negative for the past)."""
    return days_from_today


LISTING_PAYLOAD = {
    "title": "Sunny 2BR",
    "address": "12 Harbour Road",
    "description": "Two bedrooms near the waterfront",
    "price": 1500,
    "amenities": ["WiFi", "Parking"],
}


@pytest.fixture
def listing(client, admin):
    resp = client.post("/api/listings", json=LISTING_PAYLOAD, headers=admin["headers"])
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture
def booking(client, tenant, listing):
    resp = client.post(
        "/api/bookings",
        json={
            "listing_id": listing["id"],
            "check_in": days_from_today(1),
            "check_out": days_from_today(181),
        },
        headers=tenant["headers"],
    )
    assert resp.status_code == 201, resp.text
    return resp.json()
