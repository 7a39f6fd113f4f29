"""
domain.ports - Abstract interfaces (Protocols) for all system boundaries.

These define WHAT the system needs without specifying HOW. Infrastructure
modules provide concrete implementations. Application services depend only
on these protocols, never on concrete classes.

Using typing.Protocol (structural typing) instead of ABC: any class that
implements the methods satisfies the port without explicit inheritance.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from domain.entities import Identity, MedicationRecord


# ---------------------------------------------------------------------------
# AI Component Ports
# ---------------------------------------------------------------------------

@runtime_checkable
class InferencePort(Protocol):
    """Opaque text-completion service."""

    async def complete(self, prompt: str, timeout: Optional[float] = None) -> str: ...


# ---------------------------------------------------------------------------
# Repository Ports
# ---------------------------------------------------------------------------

@runtime_checkable
class IdentityRepository(Protocol):
    """Credential store for Identity entities.

    find_by_any_identifier matches username, email OR phone number. The
    uniqueness of those values across all three columns is enforced at
    write time, so at most one identity can match.
    """

    async def find_by_any_identifier(self, identifier: str) -> Identity | None: ...
    async def get_by_id(self, user_id: int) -> Identity | None: ...
    async def save(self, identity: Identity) -> int: ...
    async def update_profile(
        self, user_id: int, age: int | None, medical_history: str | None,
    ) -> None: ...


@runtime_checkable
class MedicationRecordRepository(Protocol):
    """Append-only store for MedicationRecord entities."""

    async def save(self, record: MedicationRecord) -> int: ...
    async def list_recent(self, user_id: int, limit: int) -> list[MedicationRecord]: ...
    async def get_by_user(self, user_id: int) -> list[MedicationRecord]: ...

