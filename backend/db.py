# backend/db.py
# SQLite persistence layer: connections, schema bootstrap and row helpers

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path as FsPath
from typing import Any, Dict, Iterator, List, Optional

try:
    from backend import config
except ModuleNotFoundError:
    import config


def db_path() -> str:
    """Resolve the configured database path (relative paths live beside this module)."""
    return str(FsPath(__file__).resolve().parent / config.DATABASE_PATH)


def get_db() -> sqlite3.Connection:
    """
    Create and return a SQLite connection with Row factory.

    Each request opens its own connection and closes it when done.
    Foreign keys are enforced per-connection.
    """
    conn = sqlite3.connect(db_path())
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def db_session() -> Iterator[sqlite3.Connection]:
    """
    Connection scope for one request: commit on success, roll back on error.

    Usage:
        with db_session() as conn:
            listing = listings.create_listing(conn, ...)
    """
    conn = get_db()
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def row_to_dict(row: Optional[sqlite3.Row]) -> Dict[str, Any]:
    """
    Safely convert a sqlite3.Row to dict.

    This is the single boundary for converting DB rows to dicts.
    Use this whenever you need .get() behavior on a row.
    """
    if row is None:
        return {}
    return dict(row)


def rows_to_dicts(rows: List[sqlite3.Row]) -> List[Dict[str, Any]]:
    return [dict(r) for r in rows]


def now_iso() -> str:
    return datetime.utcnow().isoformat() + "Z"


SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        email TEXT UNIQUE NOT NULL,
        password_hash TEXT NOT NULL,
        role TEXT NOT NULL DEFAULT 'admin' CHECK (role IN ('admin', 'tenant')),
        is_active INTEGER NOT NULL DEFAULT 1,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS password_resets (
        token_hash TEXT PRIMARY KEY,
        user_id INTEGER NOT NULL,
        created_at TEXT NOT NULL,
        expires_at TEXT NOT NULL,
        used_at TEXT NULL,
        FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS listings (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        owner_id INTEGER NOT NULL,
        title TEXT NOT NULL,
        address TEXT NOT NULL,
        description TEXT NOT NULL,
        price REAL NOT NULL,
        amenities_json TEXT NOT NULL DEFAULT '[]',
        images_json TEXT NOT NULL DEFAULT '[]',
        status TEXT NOT NULL DEFAULT 'Available',
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        FOREIGN KEY (owner_id) REFERENCES users (id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS bookings (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        tenant_id INTEGER NOT NULL,
        listing_id INTEGER NOT NULL,
        check_in TEXT NOT NULL,
        check_out TEXT NOT NULL,
        guests INTEGER NOT NULL DEFAULT 1,
        rent_amount REAL NOT NULL,
        status TEXT NOT NULL DEFAULT 'Pending',
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        FOREIGN KEY (tenant_id) REFERENCES users (id),
        FOREIGN KEY (listing_id) REFERENCES listings (id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS leases (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        admin_id INTEGER NOT NULL,
        tenant_id INTEGER NOT NULL,
        listing_id INTEGER NOT NULL,
        booking_id INTEGER NOT NULL UNIQUE,
        start_date TEXT NOT NULL,
        end_date TEXT NOT NULL,
        rent_amount REAL NOT NULL,
        status TEXT NOT NULL DEFAULT 'Pending',
        renewal_count INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        last_status_update TEXT NOT NULL,
        FOREIGN KEY (booking_id) REFERENCES bookings (id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS invoices (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        admin_id INTEGER NOT NULL,
        lease_id INTEGER NOT NULL,
        description TEXT NOT NULL,
        amount REAL NOT NULL,
        due_date TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'Pending',
        created_at TEXT NOT NULL,
        paid_at TEXT NULL,
        last_status_update TEXT NOT NULL,
        FOREIGN KEY (lease_id) REFERENCES leases (id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS maintenance_requests (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        listing_id INTEGER NOT NULL,
        tenant_id INTEGER NOT NULL,
        issue TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        priority TEXT NOT NULL DEFAULT 'Medium',
        status TEXT NOT NULL DEFAULT 'Pending',
        caretaker TEXT NULL,
        caretaker_id INTEGER NULL REFERENCES caretakers (id) ON DELETE SET NULL,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        FOREIGN KEY (listing_id) REFERENCES listings (id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS caretakers (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        admin_id INTEGER NOT NULL,
        first_name TEXT NOT NULL,
        surname TEXT NOT NULL,
        email TEXT NOT NULL,
        phone_number TEXT NOT NULL,
        profession TEXT NOT NULL,
        created_at TEXT NOT NULL,
        UNIQUE (admin_id, email),
        FOREIGN KEY (admin_id) REFERENCES users (id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS reviews (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        listing_id INTEGER NOT NULL,
        tenant_id INTEGER NOT NULL,
        rating INTEGER NOT NULL CHECK (rating BETWEEN 1 AND 5),
        comment TEXT NOT NULL DEFAULT '',
        created_at TEXT NOT NULL,
        UNIQUE (listing_id, tenant_id),
        FOREIGN KEY (listing_id) REFERENCES listings (id) ON DELETE CASCADE,
        FOREIGN KEY (tenant_id) REFERENCES users (id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS activity_logs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        admin_id INTEGER NOT NULL,
        action TEXT NOT NULL,
        detail TEXT NOT NULL,
        created_at TEXT NOT NULL
    )
    """,
]

INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_listings_owner ON listings(owner_id)",
    "CREATE INDEX IF NOT EXISTS idx_bookings_listing ON bookings(listing_id)",
    "CREATE INDEX IF NOT EXISTS idx_bookings_tenant ON bookings(tenant_id)",
    "CREATE INDEX IF NOT EXISTS idx_leases_admin_status ON leases(admin_id, status)",
    "CREATE INDEX IF NOT EXISTS idx_leases_listing ON leases(listing_id)",
    "CREATE INDEX IF NOT EXISTS idx_invoices_admin ON invoices(admin_id)",
    "CREATE INDEX IF NOT EXISTS idx_maintenance_listing ON maintenance_requests(listing_id)",
    "CREATE INDEX IF NOT EXISTS idx_caretakers_admin ON caretakers(admin_id)",
    "CREATE INDEX IF NOT EXISTS idx_reviews_listing ON reviews(listing_id)",
    "CREATE INDEX IF NOT EXISTS idx_activity_admin_created ON activity_logs(admin_id, created_at)",
]


def get_table_columns(conn: sqlite3.Connection, table_name: str) -> set[str]:
    """Return set of column names for a table using PRAGMA table_info."""
    return {row["name"] for row in conn.execute(f"PRAGMA table_info({table_name})").fetchall()}


def ensure_column(conn: sqlite3.Connection, table_name: str, column_name: str, ddl_fragment: str) -> bool:
    """Add a column to a table created by an older schema. Returns True if it was added."""
    if column_name in get_table_columns(conn, table_name):
        return False
    conn.execute(f"ALTER TABLE {table_name} ADD COLUMN {column_name} {ddl_fragment}")
    print(f"[MIGRATION] Added column {table_name}.{column_name} ({ddl_fragment})")
    return True


# Columns added after the first release: (table, column, ddl)
LATE_COLUMNS = [
    ("maintenance_requests", "caretaker_id", "INTEGER NULL REFERENCES caretakers (id) ON DELETE SET NULL"),
]


def init_db() -> None:
    """Create tables and indexes if missing. Idempotent."""
    conn = get_db()
    try:
        cur = conn.cursor()
        for ddl in SCHEMA:
            cur.execute(ddl)
        for table, column, ddl in LATE_COLUMNS:
            ensure_column(conn, table, column, ddl)
        for ddl in INDEXES:
            cur.execute(ddl)
        conn.commit()
    finally:
        conn.close()

    if config.IS_DEV:
        print(f"[DB] Schema ensured at {db_path()}")
