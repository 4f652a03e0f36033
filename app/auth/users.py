"""Persisted user credentials."""

from typing import Optional
import uuid

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.logging_config import log_database_event
from app.models.user import User


class CredentialStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_email(self, email: str) -> Optional[User]:
        # Exact match: emails are case-sensitive as stored
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def find_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def list_all(self) -> list[User]:
        result = await self.db.execute(select(User).order_by(User.created_at))
        return list(result.scalars().all())

    async def create(self, name: str, email: str, password_hash: str) -> User:
        """Insert a user. Callers must check email uniqueness first.

        Raises:
            sqlalchemy.exc.IntegrityError: If the email is already taken.
        """
        user = User(name=name, email=email, password=password_hash)
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        log_database_event("create", "users", str(user.id))
        return user

    async def update_password_hash(self, user_id: uuid.UUID, new_hash: str) -> None:
        await self.db.execute(update(User).where(User.id == user_id).values(password=new_hash))
        await self.db.commit()
        log_database_event("update", "users", str(user_id), extra_data={"field": "password"})
