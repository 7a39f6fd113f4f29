from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from application.services.session import SessionIssuer
from domain.exceptions import Expired, InvalidSignature, Malformed, SessionError
from domain.models import IdentityProjection

from conftest import TEST_SECRET

ALICE = IdentityProjection(user_id=1, display_name="alice", email="alice@example.com")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _raw_token(payload: dict, secret: str = TEST_SECRET) -> str:
    return jwt.encode(payload, secret, algorithm="HS256")


def test_issue_then_verify_round_trips_identity() -> None:
    issuer = SessionIssuer(TEST_SECRET)
    token = issuer.issue(ALICE)

    assert token.user_id == 1
    assert token.display_name == "alice"
    assert token.token_type == "bearer"
    assert issuer.verify(token.access_token) == ALICE


def test_expiry_follows_ttl() -> None:
    fixed = datetime(2026, 1, 1, tzinfo=timezone.utc)
    issuer = SessionIssuer(TEST_SECRET, ttl_hours=2, clock=lambda: fixed)

    assert issuer.issue(ALICE).expires_at == fixed + timedelta(hours=2)


def test_expired_token() -> None:
    past = _now() - timedelta(days=31)
    stale = SessionIssuer(TEST_SECRET, ttl_hours=720, clock=lambda: past).issue(ALICE)

    with pytest.raises(Expired):
        SessionIssuer(TEST_SECRET).verify(stale.access_token)


def test_token_from_another_secret_is_rejected() -> None:
    token = SessionIssuer("some-other-secret").issue(ALICE).access_token
    with pytest.raises(InvalidSignature):
        SessionIssuer(TEST_SECRET).verify(token)


def test_every_single_character_alteration_is_rejected() -> None:
    issuer = SessionIssuer(TEST_SECRET)
    token = issuer.issue(ALICE).access_token

    for i, char in enumerate(token):
        tampered = token[:i] + ("A" if char != "A" else "B") + token[i + 1:]
        with pytest.raises(InvalidSignature):
            issuer.verify(tampered)


@pytest.mark.parametrize("token", ["", "garbage", "a.b", "a.b.c.d"])
def test_undecodable_tokens(token) -> None:
    with pytest.raises(InvalidSignature):
        SessionIssuer(TEST_SECRET).verify(token)


@pytest.mark.parametrize("payload", [
    {"sub": "1"},
    {"name": "alice"},
    {"sub": "not-a-number", "name": "alice"},
    {"sub": "1", "name": "alice", "iat": "yesterday"},
])
def test_signed_but_malformed_claims(payload) -> None:
    exp = int((_now() + timedelta(hours=1)).timestamp())
    token = _raw_token({"exp": exp, **payload})

    with pytest.raises(Malformed):
        SessionIssuer(TEST_SECRET).verify(token)


def test_refresh_extends_expiry_and_keeps_identity() -> None:
    start = _now()
    clock = iter([start, start + timedelta(hours=1)])
    issuer = SessionIssuer(TEST_SECRET, ttl_hours=24, clock=lambda: next(clock))

    original = issuer.issue(ALICE)
    refreshed = issuer.refresh(original.access_token)

    assert refreshed.expires_at > original.expires_at
    assert issuer.verify(refreshed.access_token) == ALICE


def test_refresh_rejects_invalid_tokens() -> None:
    with pytest.raises(SessionError):
        SessionIssuer(TEST_SECRET).refresh("not.a.token")


def test_empty_secret_is_refused() -> None:
    with pytest.raises(ValueError):
        SessionIssuer("")
