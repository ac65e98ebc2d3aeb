# backend/config.py
# Environment-aware configuration for RentWise backend

import os
from typing import Literal

# Environment detection
ENV: Literal["dev", "staging", "prod"] = os.environ.get("ENV", "dev")  # type: ignore
IS_DEV = (ENV == "dev")
IS_STAGING = (ENV == "staging")
IS_PROD = (ENV == "prod")

# JWT configuration
SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")
ALGORITHM = "HS256"

if IS_PROD and SECRET_KEY == "dev-secret-key-change-me":
    raise ValueError("SECRET_KEY environment variable must be set in production")

# Token lifetimes
ACCESS_TOKEN_MINUTES = int(os.environ.get("ACCESS_TOKEN_MINUTES", "60"))
RESET_TOKEN_MINUTES = int(os.environ.get("RESET_TOKEN_MINUTES", "60"))

# Database configuration (relative paths resolve against backend/)
DATABASE_PATH = os.environ.get("DATABASE_PATH", "rentwise.db")

# Lease lifecycle: days before end_date at which an Active lease is flagged
EXPIRING_SOON_DAYS = int(os.environ.get("EXPIRING_SOON_DAYS", "30"))

# Password reset links point at the dashboard
CLIENT_URL = os.environ.get("CLIENT_URL", "http://localhost:8501").rstrip("/")

# Outgoing mail (SMTP). Empty SMTP_HOST disables delivery; messages are logged instead.
SMTP_HOST = os.environ.get("SMTP_HOST", "").strip()
SMTP_PORT = int(os.environ.get("SMTP_PORT", "587"))
SMTP_USERNAME = os.environ.get("SMTP_USERNAME", "")
SMTP_PASSWORD = os.environ.get("SMTP_PASSWORD", "")
SMTP_USE_TLS = os.environ.get("SMTP_USE_TLS", "true").lower() == "true"
MAIL_FROM = os.environ.get("MAIL_FROM", "RentWise Support <support@rentwise.local>")

# CORS origins (expand for staging/prod)
CORS_ORIGINS = [
    "http://localhost:8501",  # Streamlit default
    "http://127.0.0.1:8501",
]

if IS_STAGING or IS_PROD:
    extra_origins = os.environ.get("CORS_ORIGINS", "")
    if extra_origins:
        CORS_ORIGINS.extend(o.strip() for o in extra_origins.split(",") if o.strip())

print(f"[CONFIG] Environment: {ENV}")
print(f"[CONFIG] Database: SQLite ({DATABASE_PATH})")
print(f"[CONFIG] Access token: {ACCESS_TOKEN_MINUTES} minutes")
print(f"[CONFIG] Expiring-soon window: {EXPIRING_SOON_DAYS} days")
print(f"[CONFIG] Mail delivery: {'SMTP ' + SMTP_HOST if SMTP_HOST else 'disabled (log only)'}")
