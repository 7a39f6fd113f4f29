"""
application.dto - Data Transfer Objects for service input/output.

These are the structured values that services exchange with callers
(REST endpoints, CLI adapters).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class RegisterRequest:
    """Input for patient registration."""
    username: str
    password: str
    email: Optional[str] = None
    phone_number: Optional[str] = None
    age: Optional[int] = None
    medical_history: Optional[str] = None


@dataclass(frozen=True)
class LoginRequest:
    """Input for login. ``identifier`` is a username, email or phone number."""
    identifier: str
    password: str


@dataclass(frozen=True)
class AuthToken:
    """Signed session token returned after login, registration or refresh."""
    access_token: str
    user_id: int
    display_name: str
    expires_at: datetime
    token_type: str = "bearer"
