"""
application.services.session - Signed session tokens.

Issues HS256 JWTs (python-jose) carrying the identity id and display name,
and turns a presented token back into an IdentityProjection. Nothing is
stored server-side: a token is valid exactly while its signature verifies
against the process-wide secret and it has not expired.
"""

from __future__ import annotations

import base64
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from jose import jwt, ExpiredSignatureError, JWTError
from jose.exceptions import JWTClaimsError

from domain.models import IdentityProjection, SessionClaims
from domain.exceptions import Expired, InvalidSignature, Malformed
from application.dto import AuthToken

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionIssuer:
    """Issues, verifies and refreshes session tokens."""

    def __init__(
        self,
        secret: str,
        ttl_hours: int = 720,
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = _utcnow,
    ):
        if not secret:
            raise ValueError("A non-empty signing secret is required.")
        self._secret = secret
        self._ttl = timedelta(hours=ttl_hours)
        self._algorithm = algorithm
        self._clock = clock

    def issue(self, identity: IdentityProjection) -> AuthToken:
        """Sign a new token for *identity*."""
        issued_at = self._clock()
        claims = SessionClaims(
            user_id=identity.user_id,
            display_name=identity.display_name,
            email=identity.email,
            issued_at=issued_at,
            expires_at=issued_at + self._ttl,
        )
        token = jwt.encode(_encode_claims(claims), self._secret, algorithm=self._algorithm)
        return AuthToken(
            access_token=token,
            user_id=claims.user_id,
            display_name=claims.display_name,
            expires_at=claims.expires_at,
        )

    def verify(self, token: str) -> IdentityProjection:
        """Validate *token* and return the identity it asserts.

        Raises:
            InvalidSignature: signature mismatch or undecodable token.
            Expired:          valid signature, past expiry.
            Malformed:        valid signature, required claims missing.
        """
        return self._decode(token).to_projection()

    def refresh(self, token: str) -> AuthToken:
        """Re-issue a still-valid token with a fresh expiry window."""
        claims = self._decode(token)
        logger.debug("Session refreshed for user %d", claims.user_id)
        return self.issue(claims.to_projection())

    def _decode(self, token: str) -> SessionClaims:
        if not token or not _has_canonical_signature(token):
            raise InvalidSignature("Token signature is invalid.")
        try:
            payload = jwt.decode(
                token, self._secret, algorithms=[self._algorithm],
                options={"leeway": 0},
            )
        except ExpiredSignatureError as exc:
            raise Expired("Session has expired.") from exc
        except JWTClaimsError as exc:
            raise Malformed(f"Invalid session claims: {exc}") from exc
        except JWTError as exc:
            raise InvalidSignature(f"Token verification failed: {exc}") from exc
        return _decode_claims(payload)


def _encode_claims(claims: SessionClaims) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "sub": str(claims.user_id),
        "name": claims.display_name,
        "iat": claims.issued_at,
        "exp": claims.expires_at,
    }
    if claims.email:
        payload["email"] = claims.email
    return payload


def _decode_claims(payload: dict[str, Any]) -> SessionClaims:
    sub = payload.get("sub")
    name = payload.get("name")
    if not sub or not name:
        raise Malformed("Session token is missing required claims.")
    try:
        user_id = int(sub)
    except (TypeError, ValueError) as exc:
        raise Malformed("Session subject is not a valid identity id.") from exc

    return SessionClaims(
        user_id=user_id,
        display_name=str(name),
        email=payload.get("email") or None,
        issued_at=_from_timestamp(payload.get("iat")),
        expires_at=_from_timestamp(payload.get("exp")),
    )


def _from_timestamp(value: Optional[Any]) -> datetime:
    if value is None:
        raise Malformed("Session token is missing time claims.")
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError) as exc:
        raise Malformed("Session token has invalid time claims.") from exc


def _has_canonical_signature(token: str) -> bool:
    """Reject signatures whose base64url text is not the canonical encoding.

    base64 decoding ignores the unused low bits of the final character, so
    without this check some single-character edits to the signature would
    still verify.
    """
    parts = token.split(".")
    if len(parts) != 3 or not parts[2]:
        return False
    segment = parts[2]
    try:
        raw = base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))
    except (ValueError, TypeError):
        return False
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii") == segment
