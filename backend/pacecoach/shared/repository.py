"""
Base repository with common data-access operations.

Uses SQLAlchemy async session for non-blocking database access.

Usage:
    class CompetitionRepository(BaseRepository[Competition]):
        def __init__(self, db: AsyncSession):
            super().__init__(db, Competition)

        async def list_for_season(self, season_id: str) -> list[Competition]:
            return await self.list_by(order_by=[Competition.date], season_id=season_id)
"""

from typing import Any, Generic, Sequence, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Base repository for one model class.

    Feature repositories inherit the lookups and add their own queries.
    Writes are flushed, not committed; the session owner commits.
    """

    def __init__(self, db: AsyncSession, model: Type[T]):
        """
        Initialize repository.

        Args:
            db: Async database session
            model: SQLAlchemy model class
        """
        self.db = db
        self.model = model

    async def get_by_id(self, id: str) -> T | None:
        """Get entity by primary key, or None."""
        return await self.db.get(self.model, id)

    async def list_by(self, order_by: Sequence[Any] = (), **filters: Any) -> list[T]:
        """
        Get all entities matching field values.

        Args:
            order_by: Column expressions to sort by
            **filters: Field name-value pairs to filter by
        """
        query = self._select(**filters).order_by(*order_by)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def add(self, entity: T) -> T:
        """Add entity to the session and flush to assign defaults."""
        self.db.add(entity)
        await self.db.flush()
        return entity

    def _select(self, **filters: Any):
        query = select(self.model)
        for key, value in filters.items():
            query = query.where(getattr(self.model, key) == value)
        return query
