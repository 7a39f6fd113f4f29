"""
Pytest config.

The project uses a src/ layout with top-level packages (domain, application,
infrastructure, adapters). When the project is not pip-installed, pin src/
onto sys.path so tests can always import them.
"""

from __future__ import annotations

import asyncio
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional

import bcrypt
import pytest

_SRC = Path(__file__).resolve().parents[1] / "src"
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

from domain.entities import Identity  # noqa: E402
from infrastructure.config import Settings  # noqa: E402
from infrastructure.persistence.connection import AsyncSQLiteConnection  # noqa: E402
from infrastructure.persistence.migrations import run_migrations  # noqa: E402

TEST_SECRET = "test-secret-key-for-testing-purposes-only"


class FakeInference:
    """Records every prompt; replies with a canned text or raises."""

    def __init__(self, reply: str = "Metformin lowers blood sugar. Please consult your doctor.",
                 error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.prompts: list[str] = []
        self.timeouts: list[Optional[float]] = []

    async def complete(self, prompt: str, timeout: Optional[float] = None) -> str:
        self.prompts.append(prompt)
        self.timeouts.append(timeout)
        if self.error is not None:
            raise self.error
        return self.reply


def run_sync(coro):
    """Run *coro* to completion on a worker thread, leaving this thread's loop alone."""
    with ThreadPoolExecutor(max_workers=1) as pool:
        return pool.submit(asyncio.run, coro).result()


def fast_hash(password: str) -> str:
    # Low cost factor keeps the suite fast; verification is identical.
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=4)).decode()


def make_identity(username: str, password: Optional[str] = "pw", **fields) -> Identity:
    return Identity(
        username=username,
        password_hash=fast_hash(password) if password else "",
        **fields,
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        project_root=tmp_path,
        db_path=str(tmp_path / "carescan-test.db"),
        session_secret=TEST_SECRET,
        inference_timeout_seconds=5,
    )


@pytest.fixture
def connection(settings) -> AsyncSQLiteConnection:
    conn = AsyncSQLiteConnection(settings.db_path)
    run_sync(run_migrations(conn))
    return conn


@pytest.fixture
def fake_inference() -> FakeInference:
    return FakeInference()
