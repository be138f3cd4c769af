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
"""Outbound ports: data source, queryable and repository interfaces."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, TypeVar, runtime_checkable

from specquery.data.specification import Specification
from specquery.expressions.nodes import Lambda

T = TypeVar("T")


@runtime_checkable
class QueryablePort(Protocol[T]):
    """A lazily executed query; every composition method returns a new query.

    Stages run in the order they were added.
    """

    def where(self, predicate: Lambda) -> QueryablePort[T]: ...

    def include(self, path: str) -> QueryablePort[T]: ...

    def order_by(self, key: Lambda, ascending: bool = True) -> QueryablePort[T]: ...

    def as_no_tracking(self) -> QueryablePort[T]: ...

    def skip(self, count: int) -> QueryablePort[T]: ...

    def take(self, count: int) -> QueryablePort[T]: ...

    async def to_list(self) -> list[T]: ...

    async def count(self) -> int: ...

    async def single_or_none(self) -> T | None: ...

    async def single(self) -> T: ...


@runtime_checkable
class DataSourcePort(Protocol):
    """Unit-of-work style access to stored entities."""

    def query(self, entity_type: type[T]) -> QueryablePort[T]: ...

    def primary_key(self, entity_type: type) -> str: ...

    async def find(self, entity_type: type[T], id: Any) -> T | None: ...

    async def add(self, entity: Any) -> None: ...

    async def add_all(self, entities: Sequence[Any]) -> None: ...

    async def remove(self, entity: Any) -> None: ...

    async def remove_all(self, entities: Sequence[Any]) -> None: ...

    async def save_changes(self) -> None: ...


@runtime_checkable
class ReadRepositoryPort(Protocol):
    """Specification-driven reads."""

    async def get_single_or_none(self, spec: Specification[T]) -> T | None: ...

    async def get_single(self, spec: Specification[T]) -> T: ...

    async def list(self, spec: Specification[T]) -> list[T]: ...

    async def list_all(self, entity_type: type[T]) -> list[T]: ...

    async def count(self, spec: Specification[T]) -> int: ...


@runtime_checkable
class WriteRepositoryPort(ReadRepositoryPort, Protocol):
    """Reads plus creation and deletion."""

    async def create(self, entity: T) -> T: ...

    async def create_all(self, entities: Sequence[T]) -> Sequence[T]: ...

    async def delete_by_id(self, entity_type: type, id: Any) -> None: ...

    async def delete(self, entity: Any) -> None: ...

    async def delete_all(self, entities: Sequence[Any]) -> None: ...

    async def save(self) -> None: ...
