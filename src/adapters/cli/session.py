"""
adapters.cli.session - Local session credential storage.

The signed session token is stored in ~/.carescan/session.json so the
patient stays logged in between CLI invocations. The token is verified on
every command; an expired or invalid one is discarded.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, asdict
from pathlib import Path

logger = logging.getLogger(__name__)

_SESSION_DIR  = Path.home() / ".carescan"
_SESSION_FILE = _SESSION_DIR / "session.json"


@dataclass
class Session:
    user_id: int
    access_token: str
    display_name: str = ""


def load_session() -> Session | None:
    """Return the stored session, or None if the user is not logged in."""
    if not _SESSION_FILE.exists():
        return None
    try:
        data = json.loads(_SESSION_FILE.read_text(encoding="utf-8"))
        return Session(**data)
    except (OSError, ValueError, TypeError):
        logger.warning("Ignoring unreadable session file %s", _SESSION_FILE)
        return None


def save_session(session: Session) -> None:
    """Persist session credentials to disk (owner-readable only)."""
    _SESSION_DIR.mkdir(parents=True, exist_ok=True)
    _SESSION_FILE.write_text(
        json.dumps(asdict(session), indent=2), encoding="utf-8"
    )
    _SESSION_FILE.chmod(0o600)


def clear_session() -> None:
    """Delete stored credentials (logout)."""
    if _SESSION_FILE.exists():
        _SESSION_FILE.unlink()
