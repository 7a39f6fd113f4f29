"""
infrastructure.persistence.migrations - Database schema creation.

Called once at startup by the factory (REST lifespan, CLI commands).
"""

from __future__ import annotations

import logging

from infrastructure.persistence.connection import AsyncSQLiteConnection

logger = logging.getLogger(__name__)

_TABLES = [
    """CREATE TABLE IF NOT EXISTS identities (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT NOT NULL UNIQUE,
        email TEXT UNIQUE,
        phone_number TEXT UNIQUE,
        password_hash TEXT,
        age INTEGER,
        medical_history TEXT,
        created_at TEXT,
        updated_at TEXT
    )""",
    """CREATE TABLE IF NOT EXISTS medication_records (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL,
        medicines TEXT NOT NULL,
        created_at TEXT,
        FOREIGN KEY (user_id) REFERENCES identities(id)
    )""",
    # One row per login value across username, email and phone_number.
    """CREATE TABLE IF NOT EXISTS identifiers (
        value TEXT PRIMARY KEY,
        identity_id INTEGER NOT NULL,
        FOREIGN KEY (identity_id) REFERENCES identities(id)
    )""",
    """CREATE INDEX IF NOT EXISTS idx_medication_records_user_created
        ON medication_records (user_id, created_at DESC)""",
    # Backfill for databases created before the identifiers table existed.
    """INSERT OR IGNORE INTO identifiers (value, identity_id)
        SELECT username, id FROM identities
        UNION ALL SELECT email, id FROM identities WHERE email IS NOT NULL
        UNION ALL SELECT phone_number, id FROM identities WHERE phone_number IS NOT NULL""",
]


async def run_migrations(connection: AsyncSQLiteConnection) -> None:
    """Create all tables if they don't exist.

    Safe to call multiple times (uses IF NOT EXISTS).
    """
    async with connection.acquire() as conn:
        for ddl in _TABLES:
            await conn.execute(ddl)
    logger.info("All tables created (or already exist).")
