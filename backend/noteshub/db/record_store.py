"""
Record store.

Thin async wrapper over the SQLAlchemy session factory offering the
capabilities the flows need: equality-filtered queries ordered by a
timestamp column, inserts that read back the stored row, and keyed
lookups. Inserts are announced on the realtime channel after commit.
"""

from typing import Any, Dict, Iterable, List, Optional, Type

from sqlalchemy import select, inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker
import structlog

from noteshub.core.exceptions import RemoteServiceError
from noteshub.services.realtime import RealtimeChannel

logger = structlog.get_logger()


def row_to_dict(row) -> Dict[str, Any]:
    return {attr.key: getattr(row, attr.key) for attr in inspect(row).mapper.column_attrs}


class RecordStore:
    def __init__(self, session_factory: async_sessionmaker, channel: Optional[RealtimeChannel] = None):
        self.session_factory = session_factory
        self.channel = channel

    async def select(
        self,
        model: Type,
        filters: Optional[Dict[str, Any]] = None,
        order_by: str = "created_at",
        descending: bool = False,
    ) -> List[Any]:
        column = getattr(model, order_by)
        stmt = select(model)
        for name, value in (filters or {}).items():
            stmt = stmt.where(getattr(model, name) == value)
        # Primary key breaks timestamp ties
        pk = inspect(model).primary_key[0]
        if descending:
            stmt = stmt.order_by(column.desc(), pk.desc())
        else:
            stmt = stmt.order_by(column.asc(), pk.asc())

        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("record_store_query_failed", table=model.__tablename__, error=str(e))
            raise RemoteServiceError(f"Could not load {model.__tablename__}", service="record_store")

    async def get(self, model: Type, key: Any) -> Optional[Any]:
        try:
            async with self.session_factory() as session:
                return await session.get(model, key)
        except SQLAlchemyError as e:
            logger.error("record_store_get_failed", table=model.__tablename__, error=str(e))
            raise RemoteServiceError(f"Could not load {model.__tablename__}", service="record_store")

    async def lookup(self, model: Type, keys: Iterable[Any], key_column: str = "id") -> Dict[Any, Any]:
        keys = {k for k in keys if k is not None}
        if not keys:
            return {}
        column = getattr(model, key_column)
        try:
            async with self.session_factory() as session:
                result = await session.execute(select(model).where(column.in_(keys)))
                return {getattr(row, key_column): row for row in result.scalars().all()}
        except SQLAlchemyError as e:
            logger.error("record_store_lookup_failed", table=model.__tablename__, error=str(e))
            raise RemoteServiceError(f"Could not load {model.__tablename__}", service="record_store")

    async def first(self, model: Type, **filters) -> Optional[Any]:
        stmt = select(model)
        for name, value in filters.items():
            stmt = stmt.where(getattr(model, name) == value)
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt.limit(1))
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("record_store_query_failed", table=model.__tablename__, error=str(e))
            raise RemoteServiceError(f"Could not load {model.__tablename__}", service="record_store")

    async def insert(self, row: Any, publish: bool = True) -> Any:
        table = row.__tablename__
        try:
            async with self.session_factory() as session:
                session.add(row)
                await session.commit()
                await session.refresh(row)
        except SQLAlchemyError as e:
            logger.error("record_store_insert_failed", table=table, error=str(e))
            raise RemoteServiceError(f"Could not save to {table}", service="record_store")

        if publish and self.channel is not None:
            await self.channel.publish_insert(table, row_to_dict(row))
        return row

    async def update(self, model: Type, key: Any, values: Dict[str, Any]) -> Optional[Any]:
        try:
            async with self.session_factory() as session:
                row = await session.get(model, key)
                if row is None:
                    return None
                for name, value in values.items():
                    setattr(row, name, value)
                await session.commit()
                await session.refresh(row)
                return row
        except SQLAlchemyError as e:
            logger.error("record_store_update_failed", table=model.__tablename__, error=str(e))
            raise RemoteServiceError(f"Could not update {model.__tablename__}", service="record_store")


async def create_tables(engine) -> None:
    from noteshub.db.base import Base
    # Trigger model registration
    from noteshub.models import resource, message, profile, auth_user  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
