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
"""Specification-driven repositories.

Usage:
    source = SqlAlchemyDataSource(session)
    orders = CachedReadOnlyRepository(ReadOnlyRepository(source), InMemoryCacheProvider())
    recent = await orders.list(Specification(Order).where(lambda o: o.status == "Paid").cached(30))
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, TypeVar

from specquery.cache.ports.outbound import CacheProvider
from specquery.config.properties.cache import CacheProperties
from specquery.data.evaluator import get_query
from specquery.data.ports.outbound import DataSourcePort, ReadRepositoryPort
from specquery.data.specification import Specification

T = TypeVar("T")

logger = logging.getLogger(__name__)


class _SpecificationReader:
    """Reads shared by the read-only and write repositories."""

    def __init__(self, data_source: DataSourcePort) -> None:
        self._data_source = data_source

    @property
    def data_source(self) -> DataSourcePort:
        return self._data_source

    def _prepare(self, spec: Specification[T]) -> Specification[T]:
        return spec

    async def get_single_or_none(self, spec: Specification[T]) -> T | None:
        """Return the only match of *spec*, or ``None`` when nothing matches.

        Raises:
            ConflictException: If several entities match.
        """
        return await get_query(self._prepare(spec), self._data_source).single_or_none()

    async def get_single(self, spec: Specification[T]) -> T:
        """Return the only match of *spec*.

        Raises:
            ResourceNotFoundException: If nothing matches.
            ConflictException: If several entities match.
        """
        return await get_query(self._prepare(spec), self._data_source).single()

    async def list(self, spec: Specification[T]) -> list[T]:
        return await get_query(self._prepare(spec), self._data_source).to_list()

    async def list_all(self, entity_type: type[T]) -> list[T]:
        return await self.list(Specification(entity_type))

    async def count(self, spec: Specification[T]) -> int:
        """Number of rows the planned query returns, paging included."""
        return await get_query(self._prepare(spec), self._data_source).count()


class ReadOnlyRepository(_SpecificationReader):
    """Read-only access; every read is untracked."""

    def _prepare(self, spec: Specification[T]) -> Specification[T]:
        return spec.untracked()


class WriteRepository(_SpecificationReader):
    """Tracked reads plus creation and deletion.

    Creation and deletion go through the data source's unit of work and
    are applied by :meth:`save`.
    """

    async def create(self, entity: T) -> T:
        await self._data_source.add(entity)
        return entity

    async def create_all(self, entities: Sequence[T]) -> Sequence[T]:
        await self._data_source.add_all(entities)
        return entities

    async def delete_by_id(self, entity_type: type, id: Any) -> None:
        """Delete the entity with primary key *id*; a missing entity is ignored."""
        entity = await self._data_source.find(entity_type, id)
        if entity is not None:
            await self._data_source.remove(entity)

    async def delete(self, entity: Any) -> None:
        await self._data_source.remove(entity)

    async def delete_all(self, entities: Sequence[Any]) -> None:
        await self._data_source.remove_all(entities)

    async def save(self) -> None:
        await self._data_source.save_changes()


class CachedReadOnlyRepository:
    """Serves ``list`` reads of cached specifications from a cache provider.

    A specification marked with :meth:`Specification.cached` is looked up by
    its cache key; on a miss the inner repository runs once for all
    concurrent callers and the result is kept, as a tuple, for the
    specification's cache duration. Each caller gets its own list. Other
    reads delegate to *inner*.
    """

    def __init__(
        self,
        inner: ReadRepositoryPort,
        cache: CacheProvider,
        properties: CacheProperties | None = None,
    ) -> None:
        self._inner = inner
        self._cache = cache
        self._properties = properties or CacheProperties()

    async def list(self, spec: Specification[T]) -> list[T]:
        if not (spec.should_cache and self._properties.enabled):
            return await self._inner.list(spec)
        key = spec.cache_key
        logger.debug("Cached read for %s", key)
        rows = await self._cache.get_or_create_async(key, lambda: self._rows(spec), spec.cache_duration)
        return list(rows)

    async def _rows(self, spec: Specification[T]) -> tuple[T, ...]:
        return tuple(await self._inner.list(spec))

    async def get_single_or_none(self, spec: Specification[T]) -> T | None:
        return await self._inner.get_single_or_none(spec)

    async def get_single(self, spec: Specification[T]) -> T:
        return await self._inner.get_single(spec)

    async def list_all(self, entity_type: type[T]) -> list[T]:
        return await self._inner.list_all(entity_type)

    async def count(self, spec: Specification[T]) -> int:
        return await self._inner.count(spec)

    def evict(self, spec: Specification[Any]) -> None:
        """Drop the cached result of *spec*, if any."""
        self._cache.remove(spec.cache_key)
