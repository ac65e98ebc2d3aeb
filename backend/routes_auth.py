"""
backend/routes_auth.py

Authentication endpoints: register, login, current user, and the
forgot/reset password flow.

Security guarantees:
- Passwords are stored as salted PBKDF2 hashes (passlib)
- Login and forgot-password never reveal whether an email is registered
- Reset tokens are random, single-use and time-limited; only their SHA-256
  hash is stored
- Tokens, hashes and reset links are never logged
"""

from __future__ import annotations

import hashlib
import secrets
import sqlite3
from datetime import datetime, timedelta
from urllib.parse import urlencode

from fastapi import APIRouter, Depends

try:
    from backend import config
    from backend.auth_context import (
        AuthContext,
        create_access_token,
        hash_password,
        require_auth_context,
        verify_password,
    )
    from backend.db import db_session, now_iso
    from backend.emails import send_password_reset_email
    from backend.errors import AuthError, ConflictError, ValidationError
    from backend.schemas_auth import (
        PASSWORD_RULE,
        ForgotPasswordRequest,
        LoginRequest,
        MessageResponse,
        RegisterRequest,
        ResetPasswordRequest,
        TokenResponse,
        UserProfile,
        is_strong_password,
        is_valid_email,
    )
except ModuleNotFoundError:
    import config
    from auth_context import (
        AuthContext,
        create_access_token,
        hash_password,
        require_auth_context,
        verify_password,
    )
    from db import db_session, now_iso
    from emails import send_password_reset_email
    from errors import AuthError, ConflictError, ValidationError
    from schemas_auth import (
        PASSWORD_RULE,
        ForgotPasswordRequest,
        LoginRequest,
        MessageResponse,
        RegisterRequest,
        ResetPasswordRequest,
        TokenResponse,
        UserProfile,
        is_strong_password,
        is_valid_email,
    )


router = APIRouter(prefix="/auth", tags=["auth"])

FORGOT_PASSWORD_MESSAGE = "If an account exists for that email, a password reset link has been sent."


def hash_token(token: str) -> str:
    """Hash token for secure storage."""
    return hashlib.sha256(token.encode()).hexdigest()


def build_reset_link(token: str) -> str:
    return f"{config.CLIENT_URL}/reset-password?{urlencode({'token': token})}"


def _issue_token(user: dict) -> TokenResponse:
    access_token = create_access_token({"sub": str(user["id"]), "role": user["role"]})
    return TokenResponse(access_token=access_token, user=UserProfile(**user))


@router.post("/register", response_model=TokenResponse)
def register(req: RegisterRequest) -> TokenResponse:
    if not is_valid_email(req.email):
        raise ValidationError("email must be a valid email address")
    if not is_strong_password(req.password):
        raise ValidationError(PASSWORD_RULE)

    role = req.role.value
    with db_session() as conn:
        try:
            cur = conn.execute(
                "INSERT INTO users (name, email, password_hash, role, is_active, created_at) "
                "VALUES (?, ?, ?, ?, 1, ?)",
                (req.name, req.email, hash_password(req.password), role, now_iso()),
            )
        except sqlite3.IntegrityError:
            print("[REGISTER] Duplicate email rejected")
            raise ConflictError("Email already registered")
        user = dict(
            conn.execute(
                "SELECT id, name, email, role, created_at FROM users WHERE id = ?",
                (cur.lastrowid,),
            ).fetchone()
        )

    print(f"[REGISTER] User created: id={user['id']}, role={role}")
    return _issue_token(user)


@router.post("/login", response_model=TokenResponse)
def login(req: LoginRequest) -> TokenResponse:
    with db_session() as conn:
        row = conn.execute(
            "SELECT id, name, email, role, created_at, password_hash, is_active FROM users WHERE email = ?",
            (req.email,),
        ).fetchone()

    if not row or not verify_password(req.password, row["password_hash"]):
        print("[LOGIN] Invalid credentials")
        raise AuthError("Invalid email or password")
    if not row["is_active"]:
        print(f"[LOGIN] Inactive user rejected: user_id={row['id']}")
        raise AuthError("Invalid email or password")

    user = dict(row)
    user.pop("password_hash")
    user.pop("is_active")
    if config.IS_DEV:
        print(f"[LOGIN] Success: user_id={user['id']}, role={user['role']}")
    return _issue_token(user)


@router.get("/me", response_model=UserProfile)
def me(ctx: AuthContext = Depends(require_auth_context)) -> UserProfile:
    with db_session() as conn:
        row = conn.execute(
            "SELECT id, name, email, role, created_at FROM users WHERE id = ?",
            (ctx.user_id,),
        ).fetchone()
    return UserProfile(**dict(row))


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(req: ForgotPasswordRequest) -> MessageResponse:
    """
    Start a password reset.

    Always answers with the same message so callers cannot check for
    registered emails.
    """
    with db_session() as conn:
        user = conn.execute(
            "SELECT id, name, email FROM users WHERE email = ? AND is_active = 1",
            (req.email,),
        ).fetchone()
        if not user:
            if config.IS_DEV:
                print("[RESET] Forgot-password for unknown email")
            return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)

        token = secrets.token_urlsafe(32)
        now = datetime.utcnow()
        expires_at = now + timedelta(minutes=config.RESET_TOKEN_MINUTES)
        conn.execute(
            "INSERT INTO password_resets (token_hash, user_id, created_at, expires_at, used_at) "
            "VALUES (?, ?, ?, ?, NULL)",
            (hash_token(token), user["id"], now.isoformat() + "Z", expires_at.isoformat() + "Z"),
        )

    sent = send_password_reset_email(user["email"], user["name"], build_reset_link(token))
    print(f"[RESET] Reset token issued: user_id={user['id']}, email_sent={sent}")
    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(req: ResetPasswordRequest) -> MessageResponse:
    with db_session() as conn:
        row = conn.execute(
            "SELECT token_hash, user_id, expires_at, used_at FROM password_resets WHERE token_hash = ?",
            (hash_token(req.token),),
        ).fetchone()

        if not row or row["used_at"]:
            print("[RESET] Unknown or already used reset token")
            raise AuthError("Invalid or expired reset token")
        if datetime.fromisoformat(row["expires_at"].rstrip("Z")) < datetime.utcnow():
            print(f"[RESET] Expired reset token: user_id={row['user_id']}")
            raise AuthError("Invalid or expired reset token")
        if not is_strong_password(req.new_password):
            raise ValidationError(PASSWORD_RULE)

        conn.execute(
            "UPDATE users SET password_hash = ? WHERE id = ?",
            (hash_password(req.new_password), row["user_id"]),
        )
        conn.execute(
            "UPDATE password_resets SET used_at = ? WHERE token_hash = ?",
            (now_iso(), row["token_hash"]),
        )

    print(f"[RESET] Password reset: user_id={row['user_id']}")
    return MessageResponse(message="Password has been reset. You can now log in.")
