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
"""Queryable over Python objects held in memory."""

from __future__ import annotations

import copy
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from specquery.data.plan import QueryStage, StagedQueryable, StageKind
from specquery.expressions.interpreter import compile_lambda

T = TypeVar("T")


def _sort_key(value: Any) -> tuple[bool, Any]:
    # None sorts first ascending, last descending
    return (value is not None, value)


class InMemoryQueryable(StagedQueryable[T]):
    """Runs each stage with the expression interpreter over a row snapshot.

    Includes are no-ops: related objects are plain attributes already.
    Untracked results are deep copies, so changes to them never reach the
    stored objects.
    """

    def __init__(
        self,
        entity_type: type[T],
        rows: Callable[[], Iterable[T]],
        stages: tuple[QueryStage, ...] = (),
    ) -> None:
        super().__init__(entity_type, stages)
        self._rows = rows

    def _with_stages(self, stages: tuple[QueryStage, ...]) -> InMemoryQueryable[T]:
        return InMemoryQueryable(self.entity_type, self._rows, stages)

    def _run(self) -> list[T]:
        rows = list(self._rows())
        for stage in self.stages:
            if stage.kind is StageKind.WHERE:
                predicate = compile_lambda(stage.argument)
                rows = [row for row in rows if predicate(row)]
            elif stage.kind is StageKind.ORDER_BY:
                key = compile_lambda(stage.argument)
                rows = sorted(rows, key=lambda row: _sort_key(key(row)), reverse=not stage.ascending)
            elif stage.kind is StageKind.SKIP:
                rows = rows[stage.argument :]
            elif stage.kind is StageKind.TAKE:
                rows = rows[: stage.argument]
        return rows

    async def to_list(self) -> list[T]:
        rows = self._run()
        if self.is_untracked:
            return [copy.deepcopy(row) for row in rows]
        return rows

    async def count(self) -> int:
        return len(self._run())
