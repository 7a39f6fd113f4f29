"""
Login-then-consult flow through the HTTP surface, with a seeded patient and
a recording stand-in for the language model.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from adapters.rest.app import create_app
from domain.entities import MedicationRecord
from factory import ServiceFactory
from infrastructure.persistence.identity_repo import SQLiteIdentityRepository
from infrastructure.persistence.medication_repo import SQLiteMedicationRecordRepository

from conftest import make_identity, run_sync


@pytest.fixture
def alice_id(connection) -> int:
    async def _seed() -> int:
        user_id = await SQLiteIdentityRepository(connection).save(make_identity(
            "alice", "pw",
            email="alice@example.com",
            age=61,
            medical_history="Type 2 diabetes, hypertension",
        ))
        await SQLiteMedicationRecordRepository(connection).save(MedicationRecord(
            user_id=user_id,
            medicines=[{"name": "Metformin"}],
        ))
        return user_id

    return run_sync(_seed())


def test_login_then_personalized_consultation(settings, fake_inference, alice_id) -> None:
    app = create_app(ServiceFactory(settings, inference=fake_inference))
    with TestClient(app) as client:
        login = client.post("/auth/login", json={"identifier": "alice", "password": "pw"})
        assert login.status_code == 200
        assert login.json()["user_id"] == alice_id
        identity = ServiceFactory(settings).create_session_issuer().verify(
            login.json()["access_token"],
        )
        assert (identity.user_id, identity.display_name) == (alice_id, "alice")

        resp = client.post(
            "/consult",
            headers={"Authorization": f"Bearer {login.json()['access_token']}"},
            json={
                "message": "What is this for?",
                "history": [
                    {"role": "user", "content": "What is Metformin for?"},
                    {"role": "assistant", "content": "It lowers blood sugar."},
                ],
            },
        )

    assert resp.status_code == 200
    assert resp.json()["reply"] == fake_inference.reply
    assert len(fake_inference.prompts) == 1

    prompt = fake_inference.prompts[0]
    assert "- Name: alice" in prompt
    assert "- Age: 61" in prompt
    assert "- Medical Conditions: Type 2 diabetes, hypertension" in prompt
    assert "- Recent Prescriptions: Metformin" in prompt
    assert "user: What is Metformin for?\nassistant: It lowers blood sugar." in prompt
    assert "User Message: What is this for?" in prompt
    assert fake_inference.timeouts == [settings.inference_timeout_seconds]
    assert "password" not in prompt.lower()


def test_profile_edit_changes_next_consultation(settings, fake_inference, alice_id) -> None:
    app = create_app(ServiceFactory(settings, inference=fake_inference))
    with TestClient(app) as client:
        token = client.post(
            "/auth/login", json={"identifier": "alice@example.com", "password": "pw"},
        ).json()["access_token"]
        headers = {"Authorization": f"Bearer {token}"}

        client.put("/profile", headers=headers, json={"age": 62, "medical_history": ""})
        client.post("/consult", headers=headers, json={"message": "Any interactions?"})

    prompt = fake_inference.prompts[-1]
    assert "- Age: 62" in prompt
    assert "- Medical Conditions: None documented" in prompt
