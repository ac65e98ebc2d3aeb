# frontend/config.py
# Environment-aware configuration for the RentWise dashboard

import os
from typing import Literal

# Environment detection - normalize to lowercase
_raw_env = os.environ.get("ENV", "production").lower()
ENV: Literal["local", "staging", "production"] = _raw_env if _raw_env in ("local", "staging", "production") else "production"  # type: ignore

IS_LOCAL = (ENV == "local")
IS_STAGING = (ENV == "staging")
IS_PROD = (ENV == "production")
IS_DEV = IS_LOCAL

LOCAL_BACKEND_URL = "http://127.0.0.1:8000"


def validate_api_url(url: str, env: str) -> None:
    """
    Validate a backend base URL for the given environment.

    Raises:
        ValueError: empty URL, or plain HTTP / localhost outside local development
    """
    if not url:
        raise ValueError("API base URL cannot be empty")

    if env in ("staging", "production"):
        if not url.startswith("https://"):
            raise ValueError(f"Production/staging must use HTTPS. Got: {url}")
        if "127.0.0.1" in url or "localhost" in url:
            raise ValueError(f"Production/staging cannot use localhost URLs. Got: {url}")


def get_api_base_url() -> str:
    """
    Resolve the backend base URL.

    Priority: BACKEND_URL, then API_BASE_URL, then the local default
    (only when ENV == "local"). Trailing slashes are stripped.

    Raises:
        RuntimeError: staging/production with no URL configured
    """
    for var in ("BACKEND_URL", "API_BASE_URL"):
        value = os.environ.get(var, "").strip()
        if value:
            url = value.rstrip("/")
            validate_api_url(url, ENV)
            return url

    if ENV == "local":
        return LOCAL_BACKEND_URL

    raise RuntimeError(
        f"Backend URL not configured for {ENV.upper()} environment. "
        f"Set BACKEND_URL to the RentWise API (HTTPS, not localhost)."
    )


try:
    BACKEND_URL = get_api_base_url()
except (RuntimeError, ValueError) as e:
    print(f"[CONFIG] CRITICAL: {e}")
    BACKEND_URL = ""

# Rows shown in the overview activity feed
ACTIVITY_FEED_LIMIT = int(os.environ.get("ACTIVITY_FEED_LIMIT", "3"))

ENABLE_DEBUG_UI = IS_DEV

print(f"[CONFIG] Environment: {ENV}")
print(f"[CONFIG] Backend URL: {BACKEND_URL or '(not configured)'}")
