"""
frontend/api_client.py
Centralized API client for all backend requests.

This module ensures:
1. Protected calls always carry the Authorization header
2. 401 (expired session) and 403 (wrong role) are handled in one place
3. Backend error bodies ({"detail": ..., "error": ...}) become readable messages
"""

import time
from typing import Any, Dict, Literal, Optional

import requests
import streamlit as st

try:
    from frontend.config import IS_DEV, get_api_base_url
except ModuleNotFoundError:
    from config import IS_DEV, get_api_base_url

try:
    from frontend.auth import clear_auth, get_auth_header
except ModuleNotFoundError:
    from auth import clear_auth, get_auth_header


__all__ = ["api_request", "error_detail", "get_api_base_url", "is_public_endpoint"]

PUBLIC_PATHS = (
    "/health",
    "/auth/login",
    "/auth/register",
    "/auth/forgot-password",
    "/auth/reset-password",
)


def is_public_endpoint(path: str) -> bool:
    """True for endpoints that take no bearer token. Query strings are ignored."""
    return path.split("?", 1)[0].rstrip("/") in PUBLIC_PATHS


def error_detail(resp: Optional[requests.Response], fallback: str = "Request failed") -> str:
    """
    Human-readable message from a backend error response.

    Domain errors carry a string `detail`; FastAPI schema errors (422) carry a
    list of {"loc": [...], "msg": ...} entries, flattened to "field: msg".
    """
    if resp is None:
        return fallback
    try:
        body = resp.json()
    except ValueError:
        return f"{fallback} ({resp.status_code})"

    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, str) and detail:
        return detail
    if isinstance(detail, list) and detail:
        parts = []
        for item in detail:
            if not isinstance(item, dict):
                continue
            loc = [str(p) for p in item.get("loc", []) if p != "body"]
            msg = item.get("msg", "invalid value")
            parts.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
        if parts:
            return "; ".join(parts)
    return f"{fallback} ({resp.status_code})"


def api_request(
    method: Literal["GET", "POST", "PATCH", "DELETE"],
    path: str,
    json: Optional[Dict[str, Any]] = None,
    params: Optional[Dict[str, Any]] = None,
    timeout: int = 20,
) -> Optional[requests.Response]:
    """
    Make a backend call with the auth header attached.

    Returns the Response for the caller to inspect (including 4xx), or None
    when the backend could not be reached or the session has expired. Shows
    a user-facing message in those cases instead of raising.
    """
    try:
        base_url = get_api_base_url()
    except (RuntimeError, ValueError) as e:
        st.error(f"Configuration error: {e}")
        return None

    url = f"{base_url}{path}"
    headers = {"Accept": "application/json"}

    if not is_public_endpoint(path):
        auth_headers = get_auth_header()
        if not auth_headers:
            st.error("Authentication required. Please log in.")
            return None
        headers.update(auth_headers)

    try:
        resp = requests.request(method, url, json=json, params=params, headers=headers, timeout=timeout)
    except requests.exceptions.Timeout:
        print(f"[API] Timeout on {method} {path}")
        st.error(f"Request timed out after {timeout}s. Please try again.")
        _update_backend_status("timeout")
        return None
    except requests.exceptions.ConnectionError:
        print(f"[API] Connection error on {method} {path}")
        st.error(f"Cannot connect to backend at {base_url}.")
        _update_backend_status("connection_error")
        return None
    except requests.exceptions.RequestException as e:
        print(f"[API] Request error on {method} {path}: {type(e).__name__}")
        st.error("Unexpected error talking to the backend.")
        _update_backend_status("error")
        return None

    _update_backend_status("ok")

    if resp.status_code == 401 and not is_public_endpoint(path):
        if IS_DEV:
            print(f"[API] 401 on {path}, session expired")
        _handle_session_expired()
        return None

    if resp.status_code == 403:
        if IS_DEV:
            print(f"[API] 403 Forbidden on {path}")
        st.error("You don't have permission to perform this action.")

    return resp


def _handle_session_expired() -> None:
    st.warning("Your session has expired. Please log in again.")
    clear_auth()
    st.session_state["nav_page"] = "Login"
    st.rerun()


def _update_backend_status(status: str) -> None:
    ss = st.session_state
    ss["_backend_status"] = status
    ss["_backend_last_ping_time"] = time.time()
