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
"""Query plans as an ordered list of stages.

Data source adapters build on :class:`StagedQueryable`: every fluent call
appends a stage and returns a new queryable, and nothing runs until one
of the async terminal methods is awaited. Adapters translate the stages,
in order, into their own execution.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from specquery.expressions.nodes import DeferredQuery, Lambda
from specquery.kernel.exceptions import (
    ConflictException,
    InvalidArgumentException,
    ResourceNotFoundException,
)

T = TypeVar("T")
Q = TypeVar("Q", bound="StagedQueryable[Any]")


class StageKind(str, Enum):
    WHERE = "where"
    INCLUDE = "include"
    ORDER_BY = "order_by"
    NO_TRACKING = "no_tracking"
    SKIP = "skip"
    TAKE = "take"


@dataclass(frozen=True)
class QueryStage:
    """One step of a query plan.

    ``argument`` is a :class:`Lambda` for ``WHERE``/``ORDER_BY``, a dotted
    path for ``INCLUDE``, a row count for ``SKIP``/``TAKE`` and ``None``
    for ``NO_TRACKING``. ``ascending`` only matters for ``ORDER_BY``.
    """

    kind: StageKind
    argument: Any = None
    ascending: bool = True


class StagedQueryable(DeferredQuery, ABC, Generic[T]):
    """Immutable, lazily executed query over entities of one type."""

    def __init__(self, entity_type: type[T], stages: Sequence[QueryStage] = ()) -> None:
        self.entity_type = entity_type
        self.stages: tuple[QueryStage, ...] = tuple(stages)

    @abstractmethod
    def _with_stages(self: Q, stages: tuple[QueryStage, ...]) -> Q:
        """Return a copy of this queryable carrying *stages*."""

    def _append(self: Q, stage: QueryStage) -> Q:
        return self._with_stages(self.stages + (stage,))

    @property
    def kinds(self) -> list[StageKind]:
        return [stage.kind for stage in self.stages]

    @property
    def is_untracked(self) -> bool:
        return any(stage.kind is StageKind.NO_TRACKING for stage in self.stages)

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------

    def where(self: Q, predicate: Lambda) -> Q:
        return self._append(QueryStage(StageKind.WHERE, predicate))

    def include(self: Q, path: str) -> Q:
        return self._append(QueryStage(StageKind.INCLUDE, path))

    def order_by(self: Q, key: Lambda, ascending: bool = True) -> Q:
        return self._append(QueryStage(StageKind.ORDER_BY, key, ascending))

    def as_no_tracking(self: Q) -> Q:
        return self._append(QueryStage(StageKind.NO_TRACKING))

    def skip(self: Q, count: int) -> Q:
        if count < 0:
            raise InvalidArgumentException(f"skip must be >= 0, got {count}")
        return self._append(QueryStage(StageKind.SKIP, count))

    def take(self: Q, count: int) -> Q:
        if count < 0:
            raise InvalidArgumentException(f"take must be >= 0, got {count}")
        return self._append(QueryStage(StageKind.TAKE, count))

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    @abstractmethod
    async def to_list(self) -> list[T]: ...

    @abstractmethod
    async def count(self) -> int: ...

    async def _first_two(self) -> list[T]:
        return (await self.to_list())[:2]

    async def single_or_none(self) -> T | None:
        """Return the only match, ``None`` when nothing matches.

        Raises:
            ConflictException: If more than one row matches.
        """
        rows = await self._first_two()
        if len(rows) > 1:
            raise ConflictException(
                f"Expected at most one {self.entity_type.__name__}, found several",
                code="QUERY_NOT_UNIQUE",
                context={"entity": self.entity_type.__name__},
            )
        return rows[0] if rows else None

    async def single(self) -> T:
        """Return the only match.

        Raises:
            ResourceNotFoundException: If nothing matches.
            ConflictException: If more than one row matches.
        """
        row = await self.single_or_none()
        if row is None:
            raise ResourceNotFoundException(
                f"No {self.entity_type.__name__} matches the query",
                code="QUERY_NO_RESULT",
                context={"entity": self.entity_type.__name__},
            )
        return row
