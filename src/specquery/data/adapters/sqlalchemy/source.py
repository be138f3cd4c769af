# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Data source over an async SQLAlchemy session."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, TypeVar

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from specquery.data.adapters.sqlalchemy.queryable import SqlAlchemyQueryable
from specquery.kernel.exceptions import InfrastructureException, InvalidArgumentException

T = TypeVar("T")

logger = logging.getLogger(__name__)


class SqlAlchemyDataSource:
    """Unit of work backed by an :class:`AsyncSession`.

    Adds and removes go to the session; :meth:`save_changes` flushes them.
    Committing stays with whoever owns the session.

    Usage:
        async with session_factory() as session:
            source = SqlAlchemyDataSource(session)
            repo = WriteRepository(source)
            await repo.create(Order(status="Paid"))
            await session.commit()
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @property
    def session(self) -> AsyncSession:
        return self._session

    def query(self, entity_type: type[T]) -> SqlAlchemyQueryable[T]:
        return SqlAlchemyQueryable(self._session, entity_type)

    def primary_key(self, entity_type: type) -> str:
        """Attribute name of the single-column primary key of *entity_type*."""
        mapper = inspect(entity_type, raiseerr=False)
        if mapper is None:
            raise InvalidArgumentException(
                f"{entity_type.__name__} is not a mapped class",
                code="SPEC_INVALID_ARGUMENT",
            )
        if len(mapper.primary_key) != 1:
            raise InvalidArgumentException(
                f"{entity_type.__name__} needs a single-column primary key",
                code="SPEC_INVALID_ARGUMENT",
                context={"columns": [column.name for column in mapper.primary_key]},
            )
        return mapper.get_property_by_column(mapper.primary_key[0]).key

    async def find(self, entity_type: type[T], id: Any) -> T | None:
        return await self._session.get(entity_type, id)

    async def add(self, entity: Any) -> None:
        self._session.add(entity)

    async def add_all(self, entities: Sequence[Any]) -> None:
        self._session.add_all(entities)

    async def remove(self, entity: Any) -> None:
        await self._session.delete(entity)

    async def remove_all(self, entities: Sequence[Any]) -> None:
        for entity in entities:
            await self._session.delete(entity)

    async def save_changes(self) -> None:
        """Flush pending changes.

        Raises:
            InfrastructureException: If the database rejects the flush.
        """
        try:
            await self._session.flush()
        except SQLAlchemyError as exc:
            raise InfrastructureException(
                f"Flushing pending changes failed: {exc}",
                code="DATA_SOURCE_FLUSH_FAILED",
            ) from exc
        logger.debug("Flushed session changes")
