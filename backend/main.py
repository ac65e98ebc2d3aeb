# ---------------------------------------------------------
# backend/main.py
# RentWise - Property Management Backend
#
# Run: uvicorn backend.main:app --reload (from repo root)
#
# - FastAPI + SQLite
# - /auth/*             : register, login, me, forgot/reset password
# - /api/listings       : listing CRUD, status counts, tenant browse
# - /api/bookings       : tenant bookings, admin actions, revenue history
# - /api/leases         : lease lifecycle (Activate / Cancel / Renew)
# - /api/invoices       : invoices per lease, fetch one, mark paid, stats
# - /api/maintenance    : tenant requests, admin triage, caretakers, counters
# - /api/reviews        : tenant reviews, admin review feed
# - /api/dashboard, /api/activity : overview stats and activity feed
# ---------------------------------------------------------

from __future__ import annotations

import sqlite3
from typing import Dict

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

try:
    from backend.config import CORS_ORIGINS, IS_DEV, IS_PROD
    from backend.db import init_db
    from backend.errors import RentWiseError
    from backend.routes_auth import router as auth_router
    from backend.routes_bookings import router as bookings_router
    from backend.routes_dashboard import router as dashboard_router
    from backend.routes_invoices import router as invoices_router
    from backend.routes_leases import router as leases_router
    from backend.routes_listings import router as listings_router
    from backend.routes_maintenance import router as maintenance_router
    from backend.routes_reviews import router as reviews_router
except ModuleNotFoundError:
    from config import CORS_ORIGINS, IS_DEV, IS_PROD
    from db import init_db
    from errors import RentWiseError
    from routes_auth import router as auth_router
    from routes_bookings import router as bookings_router
    from routes_dashboard import router as dashboard_router
    from routes_invoices import router as invoices_router
    from routes_leases import router as leases_router
    from routes_listings import router as listings_router
    from routes_maintenance import router as maintenance_router
    from routes_reviews import router as reviews_router


app = FastAPI(title="RentWise Backend", version="0.1")

# CORS configuration from config module
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS if IS_PROD else ["*"],  # Restrict origins in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

init_db()


# ---------------------------------------------------------
# Error handling
# ---------------------------------------------------------
@app.exception_handler(RentWiseError)
def handle_domain_error(request: Request, exc: RentWiseError) -> JSONResponse:
    if IS_DEV or exc.status_code >= 409:
        print(f"[ERROR] {request.method} {request.url.path} -> {exc.status_code} {exc.code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.code},
    )


@app.exception_handler(sqlite3.Error)
def handle_database_error(request: Request, exc: sqlite3.Error) -> JSONResponse:
    print(f"[DB] {request.method} {request.url.path} failed: {type(exc).__name__}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Database error", "error": "database_error"},
    )


# ---------------------------------------------------------
# Routes
# ---------------------------------------------------------
@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


app.include_router(auth_router)
app.include_router(listings_router)
app.include_router(bookings_router)
app.include_router(leases_router)
app.include_router(invoices_router)
app.include_router(maintenance_router)
app.include_router(reviews_router)
app.include_router(dashboard_router)
