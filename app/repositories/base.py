from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository:
    """Holds the request's ``AsyncSession``.

    Repositories built from one request share the session, so a lead
    insert, its scoring UPDATE and the automation log rows commit (or
    roll back) together.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def _insert(self, instance: ModelT) -> ModelT:
        """Add *instance* and reload it with its server defaults and id."""
        self._db.add(instance)
        await self._db.flush()
        await self._db.refresh(instance)
        return instance

    async def refresh(self, instance: Base) -> None:
        await self._db.refresh(instance)

    async def flush(self) -> None:
        await self._db.flush()

    async def commit(self) -> None:
        await self._db.commit()

    async def rollback(self) -> None:
        """Roll back; instances loaded in this session are expired."""
        await self._db.rollback()
