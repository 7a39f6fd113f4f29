"""
infrastructure.persistence.identity_repo - SQLite identity repository.

Implements IdentityRepository port.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

import aiosqlite

from domain.entities import Identity
from domain.exceptions import DuplicateIdentifierError
from infrastructure.persistence.connection import AsyncSQLiteConnection

logger = logging.getLogger(__name__)


class SQLiteIdentityRepository:
    """Async SQLite implementation of IdentityRepository."""

    def __init__(self, connection: AsyncSQLiteConnection):
        self._conn = connection

    async def find_by_any_identifier(self, identifier: str) -> Optional[Identity]:
        # save() keeps every value unique across the three columns, so at
        # most one row can match.
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                """SELECT * FROM identities
                   WHERE username = ? OR email = ? OR phone_number = ?
                   ORDER BY id ASC LIMIT 1""",
                (identifier, identifier, identifier),
            )
            return self._row_to_identity(rows[0]) if rows else None

    async def get_by_id(self, user_id: int) -> Optional[Identity]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                "SELECT * FROM identities WHERE id = ?",
                (user_id,),
            )
            return self._row_to_identity(rows[0]) if rows else None

    async def save(self, identity: Identity) -> int:
        """Insert *identity* and claim each of its login values.

        The identity row and its identifiers rows are written in one
        transaction; a value already claimed by any identity, in any of the
        three columns, rolls back both and raises DuplicateIdentifierError.
        """
        now = datetime.now().isoformat()
        try:
            async with self._conn.acquire() as conn:
                cursor = await conn.execute(
                    """INSERT INTO identities
                       (username, email, phone_number, password_hash, age,
                        medical_history, created_at, updated_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                    (identity.username, identity.email or None,
                     identity.phone_number or None, identity.password_hash,
                     identity.age, identity.medical_history, now, now),
                )
                user_id = cursor.lastrowid
                await conn.executemany(
                    "INSERT INTO identifiers (value, identity_id) VALUES (?, ?)",
                    [(value, user_id) for value in dict.fromkeys(identity.identifiers())],
                )
                return user_id
        except aiosqlite.IntegrityError as exc:
            logger.info("Rejected registration: identifier already in use")
            raise DuplicateIdentifierError(
                "Username, email or phone number is already registered."
            ) from exc

    async def update_profile(
        self,
        user_id: int,
        age: Optional[int],
        medical_history: Optional[str],
    ) -> None:
        async with self._conn.acquire() as conn:
            await conn.execute(
                """UPDATE identities
                   SET age = ?, medical_history = ?, updated_at = ?
                   WHERE id = ?""",
                (age, medical_history, datetime.now().isoformat(), user_id),
            )

    @staticmethod
    def _row_to_identity(row) -> Identity:
        return Identity(
            id=row["id"],
            username=row["username"],
            email=row["email"],
            phone_number=row["phone_number"],
            password_hash=row["password_hash"] or "",
            age=row["age"],
            medical_history=row["medical_history"],
            created_at=row["created_at"] or "",
            updated_at=row["updated_at"] or "",
        )
