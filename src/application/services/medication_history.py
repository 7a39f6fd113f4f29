"""
application.services.medication_history - Append-only medication records.

``record`` is the entry point for the prescription extraction pipeline;
``list_history`` backs the patient's history view.
"""

from __future__ import annotations

import logging
from typing import Any

from domain.entities import MedicationRecord
from domain.ports import MedicationRecordRepository

logger = logging.getLogger(__name__)


class MedicationHistoryService:
    """Stores and lists a patient's extracted medication records."""

    def __init__(self, record_repo: MedicationRecordRepository):
        self._record_repo = record_repo

    async def record(
        self, user_id: int, medicines: list[dict[str, Any]],
    ) -> MedicationRecord:
        """Append one extraction result for *user_id*."""
        if not medicines:
            raise ValueError("A medication record needs at least one medicine entry.")

        record = MedicationRecord(user_id=user_id, medicines=list(medicines))
        record.id = await self._record_repo.save(record)
        logger.info(
            "Stored medication record %d for user %d (%d medicine(s))",
            record.id, user_id, len(medicines),
        )
        return record

    async def list_history(self, user_id: int) -> list[MedicationRecord]:
        """All records for *user_id*, newest first."""
        return await self._record_repo.get_by_user(user_id)
