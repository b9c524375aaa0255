"""Base repository with common CRUD operations."""

from typing import Any, TypeVar

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from cirrus.db.base import Base

T = TypeVar("T", bound=Base)


class BaseRepository:
    """Generic async repository for SQLAlchemy models."""

    def __init__(self, session: AsyncSession, model_class: type[T]):
        self.session = session
        self.model_class = model_class

    async def get_by_id(self, pk_field: str, pk_value: Any) -> T | None:
        """Get a single record by primary key."""
        stmt = select(self.model_class).where(
            getattr(self.model_class, pk_field) == pk_value
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    def locking_select(self, pk_field: str, pk_value: Any) -> Select:
        """Build a SELECT ... FOR UPDATE for a single record."""
        return (
            select(self.model_class)
            .where(getattr(self.model_class, pk_field) == pk_value)
            .with_for_update()
        )

    async def get_for_update(self, pk_field: str, pk_value: Any) -> T | None:
        """Fetch a record holding an exclusive row lock until the transaction ends.

        The row is refreshed from the store so a caller never acts on a
        snapshot loaded before the lock was granted.
        """
        stmt = self.locking_select(pk_field, pk_value).execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, **kwargs: Any) -> T:
        """Create and persist a new record."""
        row = self.model_class(**kwargs)
        self.session.add(row)
        await self.session.flush()
        return row

    async def delete(self, row: T) -> None:
        await self.session.delete(row)
        await self.session.flush()

    async def list_by_field(self, field: str, value: Any) -> list[T]:
        """List records matching a field value."""
        stmt = select(self.model_class).where(
            getattr(self.model_class, field) == value
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
