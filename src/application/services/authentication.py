"""
application.services.authentication - Patient registration and login.

Resolves a login identifier (username, email or phone number) to an
Identity and verifies the password with bcrypt. Token handling lives in
application.services.session.
"""

from __future__ import annotations

import logging

import bcrypt as _bcrypt

from domain.entities import Identity
from domain.models import IdentityProjection
from domain.ports import IdentityRepository
from domain.exceptions import (
    DuplicateIdentifierError,
    IdentityNotFound,
    InvalidSecret,
    MissingCredentials,
)
from application.dto import LoginRequest, RegisterRequest

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """Salted bcrypt hash of *password*."""
    return _bcrypt.hashpw(password.encode(), _bcrypt.gensalt()).decode()


MAX_PASSWORD_BYTES = 72


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time bcrypt comparison. A hash bcrypt cannot parse never matches.

    Passwords longer than bcrypt's 72-byte limit were never accepted at
    registration, so they cannot match either.
    """
    if len(password.encode()) > MAX_PASSWORD_BYTES:
        logger.info("Rejected password longer than %d bytes", MAX_PASSWORD_BYTES)
        return False
    try:
        return _bcrypt.checkpw(password.encode(), password_hash.encode())
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class AuthenticationService:
    """Handles registration and credential verification."""

    def __init__(self, identity_repo: IdentityRepository):
        self._identity_repo = identity_repo

    async def authenticate(self, identifier: str, secret: str) -> IdentityProjection:
        """Verify credentials and return the identity projection.

        Raises:
            MissingCredentials: identifier or secret is empty (no lookup made).
            IdentityNotFound:   nothing matches, or the identity has no password.
            InvalidSecret:      password does not match.
        """
        if not identifier or not identifier.strip() or not secret:
            raise MissingCredentials("Missing credentials.")

        identity = await self._identity_repo.find_by_any_identifier(identifier.strip())
        if identity is None or not identity.password_hash:
            logger.info("Login failed: no usable identity for identifier")
            raise IdentityNotFound()

        if not verify_password(secret, identity.password_hash):
            logger.info("Login failed: invalid password for user %d", identity.id)
            raise InvalidSecret()

        logger.info("User %d authenticated", identity.id)
        return _project(identity)

    async def login(self, request: LoginRequest) -> IdentityProjection:
        return await self.authenticate(request.identifier, request.password)

    async def register(self, request: RegisterRequest) -> IdentityProjection:
        """Create a new identity and return its projection.

        Every provided identifier must be unused in ALL identifier columns,
        so a later login by that value can only ever resolve to one identity.
        """
        username = _clean(request.username)
        if not username or not request.password:
            raise MissingCredentials("Username and password are required.")
        if len(request.password.encode()) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")

        identity = Identity(
            username=username,
            email=_clean(request.email),
            phone_number=_clean(request.phone_number),
            password_hash=hash_password(request.password),
            age=request.age,
            medical_history=_clean(request.medical_history),
        )

        for value in identity.identifiers():
            if await self._identity_repo.find_by_any_identifier(value) is not None:
                raise DuplicateIdentifierError(f"'{value}' is already registered.")

        identity.id = await self._identity_repo.save(identity)
        logger.info("Registered user %d with username '%s'", identity.id, username)
        return _project(identity)


def _project(identity: Identity) -> IdentityProjection:
    return IdentityProjection(
        user_id=identity.id,
        display_name=identity.display_name,
        email=identity.email,
    )
