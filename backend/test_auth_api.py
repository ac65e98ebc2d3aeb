"""
backend/test_auth_api.py

Registration, login, token handling and the password reset flow.

Run:
    pytest backend/test_auth_api.py -v
"""

from datetime import datetime, timedelta
from unittest.mock import patch

import jwt

from backend import config
from backend.db import get_db
from backend.routes_auth import FORGOT_PASSWORD_MESSAGE, hash_token


def register(client, **overrides):
    body = {"name": "Rita Renter", "email": "Rita@Example.com", "password": "secret123"}
    body.update(overrides)
    return client.post("/auth/register", json=body)


class TestRegister:
    def test_register_defaults_to_admin(self, client):
        resp = register(client)
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["user"]["email"] == "rita@example.com"
        assert data["user"]["role"] == "admin"
        assert data["access_token"]

        payload = jwt.decode(data["access_token"], config.SECRET_KEY, algorithms=[config.ALGORITHM])
        assert payload["sub"] == str(data["user"]["id"])
        assert "exp" in payload

    def test_register_tenant(self, client):
        resp = register(client, role="tenant")
        assert resp.json()["user"]["role"] == "tenant"

    def test_duplicate_email_conflicts(self, client):
        register(client)
        resp = register(client, email="rita@example.com")
        assert resp.status_code == 409
        assert resp.json()["error"] == "conflict"

    def test_weak_password_rejected(self, client):
        for password in ("short1", "lettersonly", "12345678"):
            resp = register(client, password=password)
            assert resp.status_code == 400, password
            assert resp.json()["error"] == "validation_error"

    def test_bad_email_rejected(self, client):
        resp = register(client, email="not-an-email")
        assert resp.status_code == 400

    def test_password_is_hashed(self, client, db_file):
        register(client)
        conn = get_db()
        row = conn.execute("SELECT password_hash FROM users WHERE email = ?", ("rita@example.com",)).fetchone()
        conn.close()
        assert row["password_hash"] != "secret123"
        assert row["password_hash"].startswith("$pbkdf2-sha256$")


class TestLogin:
    def test_login_and_me(self, client):
        register(client)
        resp = client.post("/auth/login", json={"email": "RITA@example.com", "password": "secret123"})
        assert resp.status_code == 200
        token = resp.json()["access_token"]

        me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["name"] == "Rita Renter"

    def test_wrong_password(self, client):
        register(client)
        resp = client.post("/auth/login", json={"email": "rita@example.com", "password": "wrongpass1"})
        assert resp.status_code == 401
        assert resp.json()["error"] == "auth_error"

    def test_unknown_user_same_message(self, client):
        register(client)
        a = client.post("/auth/login", json={"email": "rita@example.com", "password": "wrongpass1"})
        b = client.post("/auth/login", json={"email": "nobody@example.com", "password": "wrongpass1"})
        assert a.json()["detail"] == b.json()["detail"]

    def test_expired_token(self, client, admin):
        token = jwt.encode(
            {"sub": str(admin["id"]), "exp": datetime.utcnow() - timedelta(minutes=1)},
            config.SECRET_KEY,
            algorithm=config.ALGORITHM,
        )
        resp = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert resp.status_code == 401

    def test_garbage_token(self, client):
        resp = client.get("/auth/me", headers={"Authorization": "Bearer not.a.token"})
        assert resp.status_code == 401

    def test_inactive_user_forbidden(self, client, admin):
        conn = get_db()
        conn.execute("UPDATE users SET is_active = 0 WHERE id = ?", (admin["id"],))
        conn.commit()
        conn.close()
        resp = client.get("/auth/me", headers=admin["headers"])
        assert resp.status_code == 403


class TestPasswordReset:
    def test_unknown_email_gets_generic_message(self, client):
        with patch("backend.routes_auth.send_password_reset_email") as send:
            resp = client.post("/auth/forgot-password", json={"email": "ghost@example.com"})
        assert resp.status_code == 200
        assert resp.json()["message"] == FORGOT_PASSWORD_MESSAGE
        send.assert_not_called()

    def test_full_reset_flow(self, client, admin):
        with patch("backend.routes_auth.send_password_reset_email", return_value=True) as send:
            resp = client.post("/auth/forgot-password", json={"email": admin["email"]})
        assert resp.json()["message"] == FORGOT_PASSWORD_MESSAGE
        to_email, name, link = send.call_args[0]
        assert to_email == admin["email"]
        assert name == "Alice Landlord"
        assert link.startswith(f"{config.CLIENT_URL}/reset-password?token=")
        token = link.split("token=", 1)[1]

        # Only the hash is stored
        conn = get_db()
        stored = conn.execute("SELECT token_hash FROM password_resets").fetchall()
        conn.close()
        assert [r["token_hash"] for r in stored] == [hash_token(token)]

        resp = client.post("/auth/reset-password", json={"token": token, "new_password": "newpass456"})
        assert resp.status_code == 200, resp.text

        login = client.post("/auth/login", json={"email": admin["email"], "password": "newpass456"})
        assert login.status_code == 200

        # Single use
        again = client.post("/auth/reset-password", json={"token": token, "new_password": "another789"})
        assert again.status_code == 401

    def test_expired_token_rejected(self, client, admin):
        with patch("backend.routes_auth.send_password_reset_email") as send:
            client.post("/auth/forgot-password", json={"email": admin["email"]})
        token = send.call_args[0][2].split("token=", 1)[1]

        conn = get_db()
        past = (datetime.utcnow() - timedelta(minutes=1)).isoformat() + "Z"
        conn.execute("UPDATE password_resets SET expires_at = ?", (past,))
        conn.commit()
        conn.close()

        resp = client.post("/auth/reset-password", json={"token": token, "new_password": "newpass456"})
        assert resp.status_code == 401

    def test_weak_new_password_keeps_token_usable(self, client, admin):
        with patch("backend.routes_auth.send_password_reset_email") as send:
            client.post("/auth/forgot-password", json={"email": admin["email"]})
        token = send.call_args[0][2].split("token=", 1)[1]

        weak = client.post("/auth/reset-password", json={"token": token, "new_password": "short"})
        assert weak.status_code == 400
        ok = client.post("/auth/reset-password", json={"token": token, "new_password": "longer123"})
        assert ok.status_code == 200

    def test_unknown_token(self, client):
        resp = client.post("/auth/reset-password", json={"token": "nope", "new_password": "newpass456"})
        assert resp.status_code == 401


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
