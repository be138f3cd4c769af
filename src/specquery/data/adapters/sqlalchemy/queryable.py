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
"""Queryable backed by an async SQLAlchemy session."""

from __future__ import annotations

from typing import Any, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import RelationshipProperty, selectinload
from sqlalchemy.orm.strategy_options import _AbstractLoad

from specquery.data.adapters.sqlalchemy.compiler import SqlAlchemyExpressionCompiler, _clause
from specquery.data.plan import QueryStage, StagedQueryable, StageKind
from specquery.kernel.exceptions import InvalidArgumentException

T = TypeVar("T")


class SqlAlchemyQueryable(StagedQueryable[T]):
    """Translates stages into one ``select()`` statement.

    * ``where`` -> ``WHERE`` through :class:`SqlAlchemyExpressionCompiler`
    * ``include`` -> ``selectinload`` chains along relationships
    * ``order_by`` -> ``ORDER BY``
    * ``skip``/``take`` -> ``OFFSET``/``LIMIT``
    * ``no_tracking`` -> entities this query brought into the session, rows
      and included relations alike, are expunged after loading; entities the
      session already tracked stay attached
    """

    def __init__(
        self,
        session: AsyncSession,
        entity_type: type[T],
        stages: tuple[QueryStage, ...] = (),
    ) -> None:
        super().__init__(entity_type, stages)
        self._session = session
        self._compiler = SqlAlchemyExpressionCompiler(entity_type)

    def _with_stages(self, stages: tuple[QueryStage, ...]) -> SqlAlchemyQueryable[T]:
        return SqlAlchemyQueryable(self._session, self.entity_type, stages)

    def statement(self, with_loaders: bool = True) -> Select[Any]:
        """Build the ``select()`` for the current stages."""
        stmt = select(self.entity_type)
        for stage in self.stages:
            if stage.kind is StageKind.WHERE:
                stmt = stmt.where(_clause(self._compiler.compile(stage.argument)))
            elif stage.kind is StageKind.INCLUDE:
                if with_loaders:
                    stmt = stmt.options(self._loader(stage.argument))
            elif stage.kind is StageKind.ORDER_BY:
                column = self._compiler.compile(stage.argument)
                stmt = stmt.order_by(column.asc() if stage.ascending else column.desc())
            elif stage.kind is StageKind.SKIP:
                stmt = stmt.offset(stage.argument)
            elif stage.kind is StageKind.TAKE:
                stmt = stmt.limit(stage.argument)
        return stmt

    def _loader(self, path: str) -> _AbstractLoad:
        owner: Any = self.entity_type
        loader: Any = None
        for part in path.split("."):
            attribute = getattr(owner, part, None)
            prop = getattr(attribute, "property", None)
            if not isinstance(prop, RelationshipProperty):
                raise InvalidArgumentException(
                    f"'{part}' in include path '{path}' is not a relationship of {owner.__name__}",
                    code="SPEC_INVALID_INCLUDE",
                    context={"path": path},
                )
            loader = selectinload(attribute) if loader is None else loader.selectinload(attribute)
            owner = prop.mapper.class_
        return loader

    async def to_list(self) -> list[T]:
        identity_map = self._session.sync_session.identity_map
        tracked = set(identity_map.keys()) if self.is_untracked else set()
        result = await self._session.execute(self.statement())
        rows = list(result.scalars().all())
        if self.is_untracked:
            self._detach_loaded(identity_map, tracked)
        return rows

    def _detach_loaded(self, identity_map: Any, tracked: set[Any]) -> None:
        for key in set(identity_map.keys()) - tracked:
            instance = identity_map.get(key)
            if instance is not None and instance in self._session:
                self._session.expunge(instance)

    async def count(self) -> int:
        stmt = select(func.count()).select_from(self.statement(with_loaders=False).subquery())
        result = await self._session.execute(stmt)
        return result.scalar_one()
