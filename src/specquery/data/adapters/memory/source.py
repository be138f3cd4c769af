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
"""In-memory data source.

Suitable for development, testing, and single-process applications.
Adds and removes are staged and applied by :meth:`save_changes`, like a
unit of work; queries only see saved entities.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterator, Mapping, Sequence
from typing import Any, TypeVar

from specquery.data.adapters.memory.queryable import InMemoryQueryable

T = TypeVar("T")

logger = logging.getLogger(__name__)

DEFAULT_PRIMARY_KEY = "id"


class InMemoryDataSource:
    """Tables of plain Python objects keyed by primary key, per entity type.

    The primary key attribute is looked up in *primary_keys*, then in the
    entity class's ``__primary_key__`` attribute, then defaults to ``id``.
    Entities saved with a ``None`` key get the next integer.
    """

    def __init__(self, primary_keys: Mapping[type, str] | None = None) -> None:
        self._primary_keys = dict(primary_keys or {})
        self._tables: dict[type, dict[Any, Any]] = {}
        self._sequences: dict[type, Iterator[int]] = {}
        self._pending_adds: list[Any] = []
        self._pending_removes: list[Any] = []

    def primary_key(self, entity_type: type) -> str:
        if entity_type in self._primary_keys:
            return self._primary_keys[entity_type]
        return getattr(entity_type, "__primary_key__", DEFAULT_PRIMARY_KEY)

    def query(self, entity_type: type[T]) -> InMemoryQueryable[T]:
        return InMemoryQueryable(entity_type, lambda: list(self._table(entity_type).values()))

    async def find(self, entity_type: type[T], id: Any) -> T | None:
        return self._table(entity_type).get(id)

    async def add(self, entity: Any) -> None:
        self._pending_adds.append(entity)

    async def add_all(self, entities: Sequence[Any]) -> None:
        self._pending_adds.extend(entities)

    async def remove(self, entity: Any) -> None:
        self._pending_removes.append(entity)

    async def remove_all(self, entities: Sequence[Any]) -> None:
        self._pending_removes.extend(entities)

    async def save_changes(self) -> None:
        """Apply staged adds, then staged removes."""
        adds, removes = self._pending_adds, self._pending_removes
        self._pending_adds, self._pending_removes = [], []
        for entity in adds:
            self._insert(entity)
        for entity in removes:
            key = getattr(entity, self.primary_key(type(entity)))
            self._table(type(entity)).pop(key, None)
        logger.debug("Saved changes: %d added, %d removed", len(adds), len(removes))

    def seed(self, *entities: Any) -> None:
        """Store *entities* immediately, bypassing the unit of work."""
        for entity in entities:
            self._insert(entity)

    def _table(self, entity_type: type) -> dict[Any, Any]:
        return self._tables.setdefault(entity_type, {})

    def _insert(self, entity: Any) -> None:
        entity_type = type(entity)
        table = self._table(entity_type)
        key_name = self.primary_key(entity_type)
        key = getattr(entity, key_name, None)
        if key is None:
            sequence = self._sequences.setdefault(entity_type, itertools.count(1))
            key = next(sequence)
            while key in table:
                key = next(sequence)
            setattr(entity, key_name, key)
        table[key] = entity
