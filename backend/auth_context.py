"""
backend/auth_context.py

Shared authentication primitives for FastAPI dependency injection.
This module breaks the circular import between main.py, the route modules
and dependencies.py.

Contains:
- AuthContext: Immutable caller context (user id, role, capabilities)
- require_auth_context: FastAPI dependency for auth enforcement
- create_access_token / verify_token: JWT issue and verification
- hash_password / verify_password: salted PBKDF2 password hashing

This module MUST NOT import backend.main to avoid circular dependencies.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Set

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from passlib.hash import pbkdf2_sha256
from pydantic import BaseModel

try:
    from backend import config
    from backend.db import get_db
    from backend.rbac import effective_capabilities
except ModuleNotFoundError:
    import config
    from db import get_db
    from rbac import effective_capabilities

# Security scheme for HTTPBearer
security = HTTPBearer()


# ---------------------------------------------------------
# Password hashing
# ---------------------------------------------------------
def hash_password(password: str) -> str:
    return pbkdf2_sha256.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    try:
        return pbkdf2_sha256.verify(password, password_hash)
    except ValueError:
        # Malformed hash in the users table
        return False


# ---------------------------------------------------------
# JWT Tokens
# ---------------------------------------------------------
def create_access_token(data: Dict[str, Any], minutes: Optional[int] = None) -> str:
    """Sign an access token carrying `data` plus an expiry claim."""
    payload = dict(data)
    lifetime = minutes if minutes is not None else config.ACCESS_TOKEN_MINUTES
    payload["exp"] = datetime.utcnow() + timedelta(minutes=lifetime)
    return jwt.encode(payload, config.SECRET_KEY, algorithm=config.ALGORITHM)


def verify_token(token: str) -> dict:
    """
    Verify JWT access token and return decoded payload.

    Raises:
        HTTPException(401): If token is expired or invalid
    """
    try:
        return jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token")


# ---------------------------------------------------------
# AuthContext
# ---------------------------------------------------------
class AuthContext(BaseModel):
    """
    Caller context derived from the JWT and the users table.
    This is the ONLY source of truth for user_id and role in protected endpoints.
    Never trust owner/tenant ids from request bodies or query params.

    Fields:
        user_id: User ID from JWT token
        role: User role (admin/tenant)
        email: User email
        name: Display name
        capabilities: Capabilities granted by the role
    """
    user_id: int
    role: str
    email: str
    name: str
    capabilities: Set[str]

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def require_auth_context(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> AuthContext:
    """
    Auth context dependency for FastAPI routes.

    Process:
    1. Verify JWT token signature and expiration
    2. Extract user_id from token payload
    3. Fetch user record from database (source of truth for role)
    4. Reject inactive users
    5. Return AuthContext with role capabilities

    Raises:
        HTTPException(401): If token is invalid, expired, or user not found
        HTTPException(403): If user is inactive
    """
    payload = verify_token(credentials.credentials)
    user_id = payload.get("sub")

    if not user_id:
        print("[AUTH] Missing user_id in token payload")
        raise HTTPException(status_code=401, detail="Invalid token payload")

    conn = get_db()
    try:
        row = conn.execute(
            "SELECT id, name, email, role, is_active FROM users WHERE id = ?",
            (user_id,),
        ).fetchone()
    finally:
        conn.close()

    if not row:
        print(f"[AUTH] User not found: user_id={user_id}")
        raise HTTPException(status_code=401, detail="User not found")

    if not row["is_active"]:
        print(f"[AUTH] Inactive user attempted access: user_id={user_id}")
        raise HTTPException(status_code=403, detail="Account inactive")

    ctx = AuthContext(
        user_id=row["id"],
        role=row["role"],
        email=row["email"],
        name=row["name"],
        capabilities=effective_capabilities(row["role"]),
    )

    if config.IS_DEV:
        print(f"[AUTH] Authenticated: user_id={ctx.user_id}, role={ctx.role}, "
              f"capabilities={len(ctx.capabilities)}")

    return ctx
