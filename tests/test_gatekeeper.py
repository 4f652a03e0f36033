"""Tests for bearer-token authorization."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from app.auth.gatekeeper import Gatekeeper, extract_bearer_token
from app.auth.results import AuthErrorKind, AuthFailure, Identity
from app.auth.session import as_utc

T0 = datetime(2026, 2, 1, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def gatekeeper(codec, sessions):
    return Gatekeeper(codec, sessions)


async def issue_with_session(codec, sessions, user, now=T0, session_expires_at=None):
    token = codec.issue(user.id, user.email, now=now)
    await sessions.create(
        user.id, token, "pytest", "127.0.0.1", session_expires_at or now + timedelta(days=7), now=now
    )
    return token


class TestHeaderParsing:
    def test_extract_bearer_token(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    def test_missing_or_wrong_scheme(self):
        assert extract_bearer_token(None) is None
        assert extract_bearer_token("") is None
        assert extract_bearer_token("Basic dXNlcjpwYXNz") is None
        assert extract_bearer_token("bearer abc") is None
        assert extract_bearer_token("Bearer ") is None

    async def test_no_header(self, gatekeeper):
        result = await gatekeeper.authorize(None, now=T0)

        assert isinstance(result, AuthFailure)
        assert result.kind is AuthErrorKind.NO_TOKEN
        assert result.status_code == 401

    async def test_wrong_scheme(self, gatekeeper):
        result = await gatekeeper.authorize("Token abc", now=T0)

        assert result.kind is AuthErrorKind.NO_TOKEN


class TestAuthorize:
    async def test_valid_token(self, gatekeeper, codec, sessions, test_user):
        token = await issue_with_session(codec, sessions, test_user)

        result = await gatekeeper.authorize(f"Bearer {token}", now=T0 + timedelta(hours=1))

        assert result == Identity(user_id=test_user.id, email=test_user.email)

    async def test_updates_last_used(self, gatekeeper, codec, sessions, test_user, test_db):
        token = await issue_with_session(codec, sessions, test_user)
        later = T0 + timedelta(hours=5)

        await gatekeeper.authorize(f"Bearer {token}", now=later)

        session = await sessions.find_by_token(token)
        await test_db.refresh(session)
        assert as_utc(session.last_used_at) == later

    async def test_malformed_token(self, gatekeeper):
        result = await gatekeeper.authorize("Bearer not-a-jwt", now=T0)

        assert result.kind is AuthErrorKind.INVALID_TOKEN
        assert result.message == "Invalid token"

    async def test_token_never_issued_through_login(self, gatekeeper, codec, test_user):
        # Correctly signed, but no session row was ever created for it
        token = codec.issue(test_user.id, test_user.email, now=T0)

        result = await gatekeeper.authorize(f"Bearer {token}", now=T0)

        assert result.kind is AuthErrorKind.REVOKED_TOKEN

    async def test_revoked_token(self, gatekeeper, codec, sessions, test_user):
        token = await issue_with_session(codec, sessions, test_user)
        await sessions.delete_by_token(token)

        result = await gatekeeper.authorize(f"Bearer {token}", now=T0)

        assert result.kind is AuthErrorKind.REVOKED_TOKEN
        assert result.message == "Token not found or revoked"


class TestExpiry:
    async def test_token_claim_expired_purges_session(self, gatekeeper, codec, sessions, test_user):
        token = await issue_with_session(
            codec, sessions, test_user, session_expires_at=T0 + timedelta(days=30)
        )

        result = await gatekeeper.authorize(f"Bearer {token}", now=T0 + timedelta(days=7, seconds=1))

        assert result.kind is AuthErrorKind.INVALID_TOKEN
        assert result.message == "Token expired"
        assert await sessions.find_by_token(token) is None

    async def test_session_row_expired(self, gatekeeper, codec, sessions, test_user):
        # Session window shorter than the token's own window
        token = await issue_with_session(
            codec, sessions, test_user, session_expires_at=T0 + timedelta(days=1)
        )

        result = await gatekeeper.authorize(f"Bearer {token}", now=T0 + timedelta(days=2))

        assert result.kind is AuthErrorKind.EXPIRED_TOKEN
        assert result.status_code == 401
        assert await sessions.find_by_token(token) is None

    async def test_expired_is_terminal(self, gatekeeper, codec, sessions, test_user):
        token = await issue_with_session(
            codec, sessions, test_user, session_expires_at=T0 + timedelta(days=1)
        )
        await gatekeeper.authorize(f"Bearer {token}", now=T0 + timedelta(days=2))

        # Going back in time does not revive the purged session
        result = await gatekeeper.authorize(f"Bearer {token}", now=T0)

        assert result.kind is AuthErrorKind.REVOKED_TOKEN


class TestTouchFailure:
    async def test_touch_failure_does_not_reject(
        self, gatekeeper, codec, sessions, test_user, monkeypatch
    ):
        token = await issue_with_session(codec, sessions, test_user)
        expected = Identity(user_id=test_user.id, email=test_user.email)

        async def broken_touch(session_id, now=None):
            raise OperationalError("UPDATE sessions", {}, Exception("database is locked"))

        monkeypatch.setattr(sessions, "touch_last_used", broken_touch)

        result = await gatekeeper.authorize(f"Bearer {token}", now=T0)

        assert result == expected
