"""
infrastructure.persistence.medication_repo - SQLite medication record repository.

Implements MedicationRecordRepository port. Records are append-only; the
medicine payload is stored as a JSON array.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime

import aiosqlite

from domain.entities import MedicationRecord
from domain.exceptions import RepositoryError
from infrastructure.persistence.connection import AsyncSQLiteConnection

logger = logging.getLogger(__name__)


class SQLiteMedicationRecordRepository:
    """Async SQLite implementation of MedicationRecordRepository."""

    def __init__(self, connection: AsyncSQLiteConnection):
        self._conn = connection

    async def save(self, record: MedicationRecord) -> int:
        if not record.created_at:
            record.created_at = datetime.now().isoformat()
        try:
            async with self._conn.acquire() as conn:
                cursor = await conn.execute(
                    """INSERT INTO medication_records (user_id, medicines, created_at)
                       VALUES (?, ?, ?)""",
                    (record.user_id, json.dumps(record.medicines), record.created_at),
                )
                return cursor.lastrowid
        except aiosqlite.IntegrityError as exc:
            raise RepositoryError(f"No identity with id {record.user_id}.") from exc

    async def list_recent(self, user_id: int, limit: int) -> list[MedicationRecord]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                """SELECT * FROM medication_records WHERE user_id = ?
                   ORDER BY created_at DESC, id DESC LIMIT ?""",
                (user_id, limit),
            )
            return [self._row_to_record(r) for r in rows]

    async def get_by_user(self, user_id: int) -> list[MedicationRecord]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                """SELECT * FROM medication_records WHERE user_id = ?
                   ORDER BY created_at DESC, id DESC""",
                (user_id,),
            )
            return [self._row_to_record(r) for r in rows]

    @staticmethod
    def _row_to_record(row) -> MedicationRecord:
        try:
            medicines = json.loads(row["medicines"] or "[]")
        except json.JSONDecodeError:
            logger.warning("Unreadable medicines payload on record %s", row["id"])
            medicines = []
        if isinstance(medicines, dict):
            medicines = [medicines]
        return MedicationRecord(
            id=row["id"],
            user_id=row["user_id"],
            medicines=medicines,
            created_at=row["created_at"] or "",
        )
