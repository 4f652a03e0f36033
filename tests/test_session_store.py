"""Tests for the persisted session store."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from app.auth.session import as_utc
from app.models.session import Session

pytestmark = pytest.mark.asyncio

NOW = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)


async def _count_sessions(test_db) -> int:
    result = await test_db.execute(select(func.count()).select_from(Session))
    return result.scalar_one()


async def test_create_and_find(sessions, test_user):
    created = await sessions.create(
        test_user.id, "token-a", "Firefox", "10.0.0.1", NOW + timedelta(days=7), now=NOW
    )

    found = await sessions.find_by_token("token-a")

    assert found is not None
    assert found.id == created.id
    assert found.user_id == test_user.id
    assert found.device_info == "Firefox"
    assert found.ip_address == "10.0.0.1"
    assert as_utc(found.expires_at) == NOW + timedelta(days=7)
    assert as_utc(found.last_used_at) == NOW
    assert as_utc(found.created_at) == NOW


async def test_find_unknown_token(sessions):
    assert await sessions.find_by_token("missing") is None
    assert await sessions.find_by_token("") is None


async def test_token_is_unique(sessions, test_user, test_db):
    await sessions.create(test_user.id, "dup", "ua", "ip", NOW + timedelta(days=7), now=NOW)

    with pytest.raises(IntegrityError):
        await sessions.create(test_user.id, "dup", "ua", "ip", NOW + timedelta(days=7), now=NOW)
    await test_db.rollback()


async def test_touch_last_used(sessions, test_user, test_db):
    created = await sessions.create(
        test_user.id, "token-a", "ua", "ip", NOW + timedelta(days=7), now=NOW
    )
    later = NOW + timedelta(hours=3)

    await sessions.touch_last_used(created.id, now=later)

    await test_db.refresh(created)
    assert as_utc(created.last_used_at) == later


async def test_delete_by_token(sessions, test_user):
    await sessions.create(test_user.id, "token-a", "ua", "ip", NOW + timedelta(days=7), now=NOW)

    assert await sessions.delete_by_token("token-a") == 1
    assert await sessions.delete_by_token("token-a") == 0
    assert await sessions.find_by_token("token-a") is None


async def test_delete_by_id(sessions, test_user):
    created = await sessions.create(
        test_user.id, "token-a", "ua", "ip", NOW + timedelta(days=7), now=NOW
    )

    assert await sessions.delete_by_id(created.id) == 1
    assert await sessions.find_by_token("token-a") is None


async def test_delete_all_for_user(sessions, users, test_user, test_db):
    other = await users.create("Other", "other@example.com", "hash")
    for token in ("t1", "t2", "t3"):
        await sessions.create(test_user.id, token, "ua", "ip", NOW + timedelta(days=7), now=NOW)
    await sessions.create(other.id, "t-other", "ua", "ip", NOW + timedelta(days=7), now=NOW)

    assert await sessions.delete_all_for_user(test_user.id) == 3

    assert await sessions.list_for_user(test_user.id) == []
    assert await sessions.find_by_token("t-other") is not None
    assert await _count_sessions(test_db) == 1


async def test_delete_expired_before(sessions, test_user, test_db):
    await sessions.create(test_user.id, "old", "ua", "ip", NOW - timedelta(minutes=1), now=NOW)
    await sessions.create(test_user.id, "edge", "ua", "ip", NOW, now=NOW)
    await sessions.create(test_user.id, "fresh", "ua", "ip", NOW + timedelta(days=1), now=NOW)

    assert await sessions.delete_expired_before(NOW) == 2

    remaining = await sessions.list_for_user(test_user.id)
    assert [s.token for s in remaining] == ["fresh"]


async def test_list_for_user(sessions, test_user):
    await sessions.create(test_user.id, "first", "ua", "ip", NOW + timedelta(days=7), now=NOW)
    await sessions.create(
        test_user.id, "second", "ua", "ip", NOW + timedelta(days=7), now=NOW + timedelta(seconds=5)
    )

    listed = await sessions.list_for_user(test_user.id)

    assert [s.token for s in listed] == ["first", "second"]
