"""
domain.models - Value objects for authentication and consultation.

These are immutable data containers with no business logic and no
dependencies on infrastructure (no LangChain, no JWT library, no SQLite).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


# ---------------------------------------------------------------------------
# Identity / Session
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class IdentityProjection:
    """Minimal view of an authenticated identity.

    This is the only identity shape that leaves the authentication and
    session services. It never carries secret material.
    """
    user_id: int
    display_name: str
    email: Optional[str] = None


@dataclass(frozen=True)
class SessionClaims:
    """Claims embedded in a session token, built once at issuance."""
    user_id: int
    display_name: str
    issued_at: datetime
    expires_at: datetime
    email: Optional[str] = None

    def to_projection(self) -> IdentityProjection:
        return IdentityProjection(
            user_id=self.user_id,
            display_name=self.display_name,
            email=self.email,
        )


# ---------------------------------------------------------------------------
# Consultation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ConversationTurn:
    """One caller-supplied chat turn ("user" or "assistant")."""
    role: str
    content: str

    def render(self) -> str:
        return f"{self.role}: {self.content}"


@dataclass(frozen=True)
class PersonalizationBlock:
    """Rendered patient profile + recent prescriptions for the prompt.

    An empty block (no text) means the consultation is not personalized.
    """
    text: str = ""
    user_id: Optional[int] = None

    @classmethod
    def empty(cls) -> PersonalizationBlock:
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.text

    def __str__(self) -> str:
        return self.text
