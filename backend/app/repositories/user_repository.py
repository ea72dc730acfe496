"""User Repository — persistence queries for User."""

from typing import Sequence
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import DocumentType, UserStatus
from app.models.user import User


class SqlUserRepository:
    """UserRepository backed by an AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, user: User) -> User:
        self.db.add(user)
        return user

    async def get(self, user_id: UUID) -> User | None:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_for_update(self, user_id: UUID) -> User | None:
        """Load the user and lock its row until the transaction ends."""
        result = await self.db.execute(
            select(User).where(User.id == user_id).with_for_update(),
        )
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_by_document(
        self, document_type: DocumentType, document_number: str,
    ) -> User | None:
        result = await self.db.execute(
            select(User)
            .where(User.document_type == DocumentType(document_type).value)
            .where(User.document_number == document_number)
        )
        return result.scalar_one_or_none()

    async def list(
        self, limit: int, offset: int, status: UserStatus | None = None,
    ) -> Sequence[User]:
        """Newest first. Deleted users only appear when asked for explicitly."""
        query = _filter_status(select(User), status)
        query = query.order_by(User.created_at.desc()).limit(limit).offset(offset)
        result = await self.db.execute(query)
        return result.scalars().all()

    async def count(self, status: UserStatus | None = None) -> int:
        query = _filter_status(select(func.count()).select_from(User), status)
        result = await self.db.execute(query)
        return result.scalar_one()


def _filter_status(query, status: UserStatus | None):
    if status is None:
        return query.where(User.status != UserStatus.DELETED.value)
    return query.where(User.status == UserStatus(status).value)
