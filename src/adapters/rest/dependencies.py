"""
Shared FastAPI dependencies.

- get_factory(): returns the initialized ServiceFactory (set at startup).
- get_current_user(): bearer session token, required (401 otherwise).
- get_optional_user(): bearer session token, anonymous when absent/invalid.

Every successfully verified request gets a refreshed token back in the
X-Session-Token response header (sliding session).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Response, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from factory import ServiceFactory
from domain.exceptions import SessionError

logger = logging.getLogger(__name__)

SESSION_HEADER = "X-Session-Token"

# Module-level reference set by app lifespan
_factory: ServiceFactory | None = None


def set_factory(factory: ServiceFactory | None) -> None:
    global _factory
    _factory = factory


def get_factory() -> ServiceFactory:
    if _factory is None:
        raise RuntimeError("ServiceFactory not initialized.")
    return _factory


# --- Session bearer ---

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    """Extracted from the session token. Passed to route handlers."""
    user_id: int
    display_name: str
    email: Optional[str] = None


def _resolve_user(
    credentials: Optional[HTTPAuthorizationCredentials],
    response: Response,
    factory: ServiceFactory,
) -> Optional[CurrentUser]:
    if credentials is None:
        return None
    issuer = factory.create_session_issuer()
    try:
        identity = issuer.verify(credentials.credentials)
    except SessionError as exc:
        logger.info("Rejected session token: %s", type(exc).__name__)
        return None

    response.headers[SESSION_HEADER] = issuer.issue(identity).access_token
    return CurrentUser(
        user_id=identity.user_id,
        display_name=identity.display_name,
        email=identity.email,
    )


async def get_optional_user(
    response: Response,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    factory: ServiceFactory = Depends(get_factory),
) -> Optional[CurrentUser]:
    """Session user, or None: an invalid session is treated as anonymous."""
    return _resolve_user(credentials, response, factory)


async def get_current_user(
    response: Response,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    factory: ServiceFactory = Depends(get_factory),
) -> CurrentUser:
    """Validate the session token and return CurrentUser. Raises 401 on failure."""
    user = _resolve_user(credentials, response, factory)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
