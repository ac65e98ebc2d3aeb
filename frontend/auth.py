"""
frontend/auth.py
Authentication state for the RentWise dashboard.

Streamlit reruns the whole script on every interaction, so auth state lives
in st.session_state and init_auth_state() must run at the top of main()
on every rerun. Every protected API call takes its header from
get_auth_header().
"""

from typing import Any, Dict, Optional

import streamlit as st


def init_auth_state() -> None:
    """Ensure auth keys exist. Idempotent."""
    ss = st.session_state
    ss.setdefault("auth_token", None)
    ss.setdefault("current_user", None)
    ss.setdefault("is_authenticated", False)
    ss.setdefault("role", None)

    # Keep the flag in sync with the token
    ss["is_authenticated"] = bool(ss["auth_token"])


def set_auth(auth_token: str, current_user: Dict[str, Any]) -> None:
    """
    Store the session after login or registration.

    Args:
        auth_token: JWT access token
        current_user: user profile from the backend (id, name, email, role)
    """
    ss = st.session_state
    ss["auth_token"] = auth_token
    ss["current_user"] = current_user
    ss["is_authenticated"] = True
    ss["role"] = current_user.get("role") if isinstance(current_user, dict) else None


def clear_auth() -> None:
    """Wipe auth state (logout or expired session). Safe to call repeatedly."""
    ss = st.session_state
    ss["auth_token"] = None
    ss["current_user"] = None
    ss["is_authenticated"] = False
    ss["role"] = None


def is_authenticated() -> bool:
    return bool(st.session_state.get("auth_token"))


def get_current_user() -> Optional[Dict[str, Any]]:
    return st.session_state.get("current_user")


def get_role() -> Optional[str]:
    user = get_current_user()
    if user and isinstance(user, dict):
        return user.get("role")
    return st.session_state.get("role")


def is_admin() -> bool:
    return get_role() == "admin"


def get_auth_header() -> Dict[str, str]:
    """{"Authorization": "Bearer <token>"} when logged in, {} otherwise."""
    token = st.session_state.get("auth_token")
    if token:
        return {"Authorization": f"Bearer {token}"}
    return {}
