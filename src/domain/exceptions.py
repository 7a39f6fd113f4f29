"""
domain.exceptions - Custom exception hierarchy for the CareScan assistant.

All domain-level errors inherit from DomainError so callers can catch
broad or specific exceptions as needed. Adapters (REST, CLI) translate
them into status codes or messages; services never swallow them.
"""


class DomainError(Exception):
    """Base exception for all domain-level errors."""


class RepositoryError(DomainError):
    """Raised when a database operation fails."""


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

_GENERIC_AUTH_MESSAGE = "Invalid credentials."


class AuthenticationError(DomainError):
    """Raised when authentication fails."""


class MissingCredentials(AuthenticationError):
    """Identifier or secret was empty."""


class IdentityNotFound(AuthenticationError):
    """No identity matches the identifier, or it has no secret set.

    Shares its message with InvalidSecret so the two are indistinguishable
    to anyone who only sees str(exc).
    """

    def __init__(self, message: str = _GENERIC_AUTH_MESSAGE):
        super().__init__(message)


class InvalidSecret(AuthenticationError):
    """The secret does not match the stored hash."""

    def __init__(self, message: str = _GENERIC_AUTH_MESSAGE):
        super().__init__(message)


class DuplicateIdentifierError(DomainError):
    """Raised when registering with a username/email/phone already in use."""


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

class SessionError(DomainError):
    """Raised when a session token cannot be accepted."""


class InvalidSignature(SessionError):
    """Token signature does not verify (or the token cannot be decoded)."""


class Expired(SessionError):
    """Token signature is valid but the token is past its expiry."""


class Malformed(SessionError):
    """Token verifies but required claims are missing or invalid."""


# ---------------------------------------------------------------------------
# Consultation
# ---------------------------------------------------------------------------

class ConsultationError(DomainError):
    """Raised when a consultation request cannot be answered."""


class MissingMessage(ConsultationError):
    """The consultation message was empty."""


class InferenceUnavailable(ConsultationError):
    """The inference service failed, timed out, or returned no usable text.

    ``detail`` holds the upstream error for diagnostics; it is never part of
    the reply shown to the patient.
    """

    def __init__(self, message: str = "The assistant is unavailable.", detail: str = ""):
        super().__init__(message)
        self.detail = detail
