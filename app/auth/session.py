"""Persisted session records, one row per issued token."""

from datetime import datetime, timezone
from typing import Optional
import uuid

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.logging_config import log_database_event
from app.models.session import Session


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to timestamps that come back naive (SQLite drops tzinfo)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SessionStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        user_id: uuid.UUID,
        token: str,
        device_info: str,
        ip_address: str,
        expires_at: datetime,
        now: Optional[datetime] = None,
    ) -> Session:
        """Persist a new session for ``token``; last-used starts at creation time."""
        now = now or utcnow()
        db_session = Session(
            user_id=user_id,
            token=token,
            device_info=device_info,
            ip_address=ip_address,
            expires_at=expires_at,
            last_used_at=now,
            created_at=now,
        )
        self.db.add(db_session)
        await self.db.commit()
        await self.db.refresh(db_session)
        log_database_event("create", "sessions", str(db_session.id), str(user_id))
        return db_session

    async def find_by_token(self, token: str) -> Optional[Session]:
        if not token:
            return None
        result = await self.db.execute(select(Session).where(Session.token == token))
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: uuid.UUID) -> list[Session]:
        result = await self.db.execute(
            select(Session).where(Session.user_id == user_id).order_by(Session.created_at)
        )
        return list(result.scalars().all())

    async def touch_last_used(self, session_id: uuid.UUID, now: Optional[datetime] = None) -> None:
        """Advance last-used. Idempotent, last writer wins."""
        await self.db.execute(
            update(Session).where(Session.id == session_id).values(last_used_at=now or utcnow())
        )
        await self.db.commit()

    async def delete_by_id(self, session_id: uuid.UUID) -> int:
        result = await self.db.execute(delete(Session).where(Session.id == session_id))
        await self.db.commit()
        return result.rowcount

    async def delete_by_token(self, token: str) -> int:
        result = await self.db.execute(delete(Session).where(Session.token == token))
        await self.db.commit()
        return result.rowcount

    async def delete_all_for_user(self, user_id: uuid.UUID) -> int:
        result = await self.db.execute(delete(Session).where(Session.user_id == user_id))
        await self.db.commit()
        if result.rowcount:
            log_database_event(
                "delete", "sessions", user_id=str(user_id), extra_data={"count": result.rowcount}
            )
        return result.rowcount

    async def delete_expired_before(self, now: Optional[datetime] = None) -> int:
        """Purge sessions whose expiry is at or before ``now``."""
        # Loaded rows may hold naive timestamps, so skip in-Python evaluation
        result = await self.db.execute(
            delete(Session)
            .where(Session.expires_at <= (now or utcnow()))
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        if result.rowcount:
            log_database_event("sweep", "sessions", extra_data={"count": result.rowcount})
        return result.rowcount
