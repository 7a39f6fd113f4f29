"""
domain.entities - Persistence-aware types (have IDs, timestamps).

Decoupled from any persistence strategy: no SQL concerns, no DB imports.
Timestamps are set by the repository implementations, not by the entities
themselves.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class Identity:
    """A registered patient account.

    username, email and phone_number are alternate login identifiers and are
    unique across all three columns. Only age and medical_history change after
    registration (profile edit).
    """
    id: Optional[int] = None
    username: str = ""
    email: Optional[str] = None
    phone_number: Optional[str] = None
    password_hash: str = ""
    age: Optional[int] = None
    medical_history: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

    @property
    def display_name(self) -> str:
        return self.username

    def identifiers(self) -> list[str]:
        """Non-empty login identifiers, in username/email/phone order."""
        return [
            value for value in (self.username, self.email, self.phone_number)
            if value
        ]


@dataclass
class MedicationRecord:
    """One extraction result (a scanned prescription or voice query).

    Append-only. ``medicines`` is the opaque payload produced upstream: one
    dict per medicine entry, usually with a ``name`` key.
    """
    id: Optional[int] = None
    user_id: Optional[int] = None
    medicines: list[dict[str, Any]] = field(default_factory=list)
    created_at: str = ""
