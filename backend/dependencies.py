"""
backend/dependencies.py

Reusable FastAPI dependencies for capability enforcement.
"""

from __future__ import annotations

from typing import Callable

from fastapi import Depends, HTTPException

try:
    from backend.auth_context import require_auth_context, AuthContext
    from backend.config import IS_DEV
except ModuleNotFoundError:
    from auth_context import require_auth_context, AuthContext
    from config import IS_DEV


def require_capability(capability: str) -> Callable:
    """
    FastAPI dependency factory for role-based capability authorization.

    Capabilities come from the caller's role (see rbac.ROLE_CAPABILITIES) and
    are pre-computed on the AuthContext.

    Usage in routes:
        @router.post("", dependencies=[Depends(require_capability(Capability.LISTING_MANAGE))])
        def create_listing(ctx: AuthContext = Depends(require_auth_context)):
            ...

    Raises:
        HTTPException(403): If the user lacks the required capability
    """
    required = capability.value if hasattr(capability, "value") else str(capability)

    def _check_capability(ctx: AuthContext = Depends(require_auth_context)) -> AuthContext:
        if required not in ctx.capabilities:
            if IS_DEV:
                print(f"[AUTHZ] Capability denied: capability={required}, role={ctx.role}")
            raise HTTPException(
                status_code=403,
                detail="Insufficient permissions for this action",
            )
        return ctx

    return _check_capability
