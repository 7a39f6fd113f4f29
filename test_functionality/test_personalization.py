from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from application.services.personalization import (
    PersonalizationService,
    render_medicine,
    render_profile,
)
from domain.entities import Identity, MedicationRecord
from domain.exceptions import RepositoryError
from infrastructure.persistence.identity_repo import SQLiteIdentityRepository
from infrastructure.persistence.medication_repo import SQLiteMedicationRecordRepository

from conftest import make_identity


def _service(connection) -> PersonalizationService:
    return PersonalizationService(
        SQLiteIdentityRepository(connection),
        SQLiteMedicationRecordRepository(connection),
    )


async def _seed_records(connection, user_id: int, batches: list[list[dict]]) -> None:
    repo = SQLiteMedicationRecordRepository(connection)
    for i, medicines in enumerate(batches):
        await repo.save(MedicationRecord(
            user_id=user_id,
            medicines=medicines,
            created_at=f"2026-01-0{i + 1}T09:00:00",
        ))


@pytest.mark.asyncio
async def test_anonymous_gets_empty_block(connection) -> None:
    block = await _service(connection).assemble(None)
    assert block.is_empty
    assert str(block) == ""


@pytest.mark.asyncio
async def test_unknown_identity_gets_empty_block(connection) -> None:
    block = await _service(connection).assemble(999)
    assert block.is_empty


@pytest.mark.asyncio
async def test_profile_without_details_uses_markers(connection) -> None:
    user_id = await SQLiteIdentityRepository(connection).save(make_identity("alice"))

    block = await _service(connection).assemble(user_id)

    assert block.user_id == user_id
    assert block.text.splitlines() == [
        "PATIENT PROFILE:",
        "- Name: alice",
        "- Age: Not specified",
        "- Medical Conditions: None documented",
        "- Recent Prescriptions: None recorded",
    ]


@pytest.mark.asyncio
async def test_only_three_most_recent_records_newest_first(connection) -> None:
    user_id = await SQLiteIdentityRepository(connection).save(
        make_identity("bob", age=61, medical_history="Type 2 diabetes"),
    )
    await _seed_records(
        connection, user_id,
        [[{"name": "Old1"}], [{"name": "Old2"}], [{"name": "Aspirin"}],
         [{"name": "Lisinopril"}], [{"name": "Metformin", "dosage": "500mg"}]],
    )

    block = await _service(connection).assemble(user_id)

    lines = block.text.splitlines()
    assert lines[2] == "- Age: 61"
    assert lines[3] == "- Medical Conditions: Type 2 diabetes"
    assert lines[4] == (
        "- Recent Prescriptions: Metformin (dosage: 500mg); Lisinopril; Aspirin"
    )
    assert "Old" not in block.text


def test_zero_age_and_blank_history_count_as_missing() -> None:
    identity = Identity(id=1, username="carol", age=0, medical_history="   ")
    text = render_profile(identity, [])
    assert "- Age: Not specified" in text
    assert "- Medical Conditions: None documented" in text


def test_render_medicine_orders_details_and_skips_empty_values() -> None:
    entry = {
        "medicineName": "Amoxicillin",
        "timing": ["morning", "night"],
        "dosage": "250mg",
        "notes": "",
    }
    assert render_medicine(entry) == "Amoxicillin (dosage: 250mg, timing: morning/night)"


def test_render_medicine_without_name() -> None:
    assert render_medicine({"dosage": "5ml"}) == "dosage: 5ml"
    assert render_medicine("Paracetamol ") == "Paracetamol"


@pytest.mark.asyncio
async def test_storage_failure_degrades_to_empty_block() -> None:
    identity_repo = AsyncMock()
    identity_repo.get_by_id.side_effect = RepositoryError("database is locked")
    record_repo = AsyncMock()

    block = await PersonalizationService(identity_repo, record_repo).assemble(1)

    assert block.is_empty
    record_repo.list_recent.assert_not_awaited()


@pytest.mark.asyncio
async def test_record_failure_degrades_to_empty_block() -> None:
    identity_repo = AsyncMock()
    identity_repo.get_by_id.return_value = Identity(id=1, username="alice")
    record_repo = AsyncMock()
    record_repo.list_recent.side_effect = RepositoryError("disk I/O error")

    block = await PersonalizationService(identity_repo, record_repo).assemble(1)

    assert block.is_empty
