"""
application.services.personalization - Patient context for consultations.

Loads the authenticated patient's profile and their most recent medication
records and renders them as a fixed-shape text block. The block always has
the same lines in the same order; absent values render a marker instead of
disappearing, so the surrounding prompt keeps a stable shape.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from domain.entities import Identity, MedicationRecord
from domain.exceptions import RepositoryError
from domain.models import PersonalizationBlock
from domain.ports import IdentityRepository, MedicationRecordRepository

logger = logging.getLogger(__name__)

RECENT_RECORD_LIMIT = 3

AGE_NOT_SPECIFIED = "Not specified"
HISTORY_NOT_DOCUMENTED = "None documented"
NO_RECENT_PRESCRIPTIONS = "None recorded"

MEDICINE_SEPARATOR = ", "
RECORD_SEPARATOR = "; "

_NAME_KEYS = ("name", "medicineName", "medicine_name")


class PersonalizationService:
    """Builds the PersonalizationBlock for one consultation request."""

    def __init__(
        self,
        identity_repo: IdentityRepository,
        record_repo: MedicationRecordRepository,
        record_limit: int = RECENT_RECORD_LIMIT,
    ):
        self._identity_repo = identity_repo
        self._record_repo = record_repo
        self._record_limit = record_limit

    async def assemble(self, user_id: Optional[int]) -> PersonalizationBlock:
        """Return the personalization block for *user_id*.

        Anonymous requests (user_id None) and identities that no longer exist
        get the empty block, as does a storage failure; the consultation then
        proceeds unpersonalized.
        """
        if user_id is None:
            return PersonalizationBlock.empty()

        try:
            identity = await self._identity_repo.get_by_id(user_id)
            records = (
                await self._record_repo.list_recent(user_id, self._record_limit)
                if identity is not None else []
            )
        except RepositoryError as exc:
            logger.error(
                "Could not load context for user %d; continuing without personalization: %s",
                user_id, exc,
            )
            return PersonalizationBlock.empty()

        if identity is None:
            logger.warning(
                "Identity %d not found while assembling context; continuing without personalization",
                user_id,
            )
            return PersonalizationBlock.empty()

        logger.debug(
            "Assembled context for user %d with %d recent record(s)",
            user_id, len(records),
        )
        return PersonalizationBlock(
            text=render_profile(identity, records),
            user_id=user_id,
        )


def render_profile(identity: Identity, records: list[MedicationRecord]) -> str:
    age = str(identity.age) if identity.age else AGE_NOT_SPECIFIED
    history = (identity.medical_history or "").strip() or HISTORY_NOT_DOCUMENTED
    prescriptions = render_records(records) or NO_RECENT_PRESCRIPTIONS
    return "\n".join([
        "PATIENT PROFILE:",
        f"- Name: {identity.display_name}",
        f"- Age: {age}",
        f"- Medical Conditions: {history}",
        f"- Recent Prescriptions: {prescriptions}",
    ])


def render_records(records: list[MedicationRecord]) -> str:
    """Flatten records (newest first) into one delimited line."""
    rendered = []
    for record in records:
        medicines = MEDICINE_SEPARATOR.join(
            text for text in (render_medicine(m) for m in record.medicines) if text
        )
        if medicines:
            rendered.append(medicines)
    return RECORD_SEPARATOR.join(rendered)


def render_medicine(entry: Any) -> str:
    """``Name (key: value, ...)`` with the remaining keys in sorted order."""
    if not isinstance(entry, dict):
        return str(entry).strip()

    name = next((str(entry[k]).strip() for k in _NAME_KEYS if entry.get(k)), "")
    details = [
        f"{key}: {_flatten_value(value)}"
        for key, value in sorted(entry.items())
        if key not in _NAME_KEYS and value not in (None, "", [], {})
    ]
    if name and details:
        return f"{name} ({', '.join(details)})"
    return name or ", ".join(details)


def _flatten_value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return "/".join(_flatten_value(v) for v in value)
    if isinstance(value, dict):
        return ", ".join(f"{k}: {_flatten_value(v)}" for k, v in sorted(value.items()))
    return str(value)
