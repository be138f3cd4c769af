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
"""Declarative, immutable query descriptions.

A ``Specification`` captures everything needed to run a read: filter,
related data to load, ordering, paging, tracking mode and cache policy.
Every fluent method returns a new instance, so a specification can be
shared freely once built.

Example::

    recent_paid = (
        Specification(Order)
        .where(lambda o: o.status == "Paid")
        .include(lambda o: o.customer)
        .order_by_descending(lambda o: o.created_at)
        .paged(skip=0, take=10)
        .cached(30)
    )

    orders = await repository.list(recent_paid)

Two specifications are equal when their cache keys are equal.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from datetime import timedelta
from functools import cached_property
from typing import Any, Generic, TypeVar

from specquery.data.keys import build_cache_key
from specquery.expressions.builder import Expr, lambda_
from specquery.expressions.nodes import Lambda
from specquery.kernel.exceptions import InvalidArgumentException

E = TypeVar("E")

DEFAULT_CACHE_DURATION = timedelta(seconds=300)

Selector = Callable[[Expr], Any] | Lambda


@dataclass(frozen=True, eq=False)
class Specification(Generic[E]):
    """Immutable description of a query over entities of type ``E``.

    Attributes:
        entity_type: The entity class queried.
        criteria: Filter predicate, or ``None`` for every row.
        includes: Related members to load, as member-access lambdas.
        include_strings: Related members to load, as dotted paths.
        order_key: Sort key selector, or ``None``.
        order_ascending: Sort direction of ``order_key``.
        skip: Rows skipped when paging is enabled.
        take: Rows returned when paging is enabled.
        is_paging_enabled: Whether ``skip``/``take`` apply.
        is_untracked: Whether results are detached from the data source.
        should_cache: Whether cached reads go through the cache.
        cache_duration: Time-to-live of cached results.
    """

    entity_type: type[E]
    criteria: Lambda | None = None
    includes: tuple[Lambda, ...] = ()
    include_strings: tuple[str, ...] = ()
    order_key: Lambda | None = None
    order_ascending: bool = True
    skip: int = 0
    take: int = 0
    is_paging_enabled: bool = False
    is_untracked: bool = False
    should_cache: bool = False
    cache_duration: timedelta = timedelta(0)

    def __post_init__(self) -> None:
        if not isinstance(self.entity_type, type):
            raise InvalidArgumentException(
                "entity_type must be a class",
                code="SPEC_INVALID_ARGUMENT",
                context={"entity_type": repr(self.entity_type)},
            )
        if self.skip < 0 or self.take < 0:
            raise InvalidArgumentException(
                f"skip and take must be >= 0, got skip={self.skip}, take={self.take}",
                code="SPEC_INVALID_ARGUMENT",
            )

    # ------------------------------------------------------------------
    # Builder
    # ------------------------------------------------------------------

    def where(self, predicate: Selector) -> Specification[E]:
        """Add a filter; successive calls are combined with ``and``."""
        expression = lambda_(predicate, self.entity_type)
        if self.criteria is not None:
            expression = self.criteria.and_also(expression)
        return replace(self, criteria=expression)

    def include(self, selector: Selector) -> Specification[E]:
        """Load the related member selected by *selector* (``lambda o: o.customer``)."""
        return replace(self, includes=self.includes + (lambda_(selector, self.entity_type),))

    def include_path(self, path: str) -> Specification[E]:
        """Load related members by dotted path (``"lines.product"``)."""
        if not path:
            raise InvalidArgumentException("Include path must not be empty", code="SPEC_INVALID_ARGUMENT")
        return replace(self, include_strings=self.include_strings + (path,))

    def order_by(self, selector: Selector, ascending: bool = True) -> Specification[E]:
        return replace(self, order_key=lambda_(selector, self.entity_type), order_ascending=ascending)

    def order_by_descending(self, selector: Selector) -> Specification[E]:
        return self.order_by(selector, ascending=False)

    def paged(self, skip: int, take: int) -> Specification[E]:
        return replace(self, skip=skip, take=take, is_paging_enabled=True)

    def untracked(self) -> Specification[E]:
        if self.is_untracked:
            return self
        return replace(self, is_untracked=True)

    def cached(self, duration: int | float | timedelta | None = None) -> Specification[E]:
        """Enable caching for *duration* (seconds or a timedelta).

        ``None`` or a non-positive duration falls back to
        :data:`DEFAULT_CACHE_DURATION`.
        """
        if duration is not None and not isinstance(duration, timedelta):
            duration = timedelta(seconds=duration)
        if duration is None or duration <= timedelta(0):
            duration = DEFAULT_CACHE_DURATION
        return replace(self, should_cache=True, cache_duration=duration)

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def by_id(cls, entity_type: type[E], id: Any, key: str = "id") -> Specification[E]:
        """Match the entity whose primary key *key* equals *id*."""
        return cls(entity_type).where(lambda e: getattr(e, key) == id)

    @classmethod
    def by_ids(cls, entity_type: type[E], ids: Iterable[Any], key: str = "id") -> Specification[E]:
        """Match entities whose primary key *key* is one of *ids*."""
        values = list(ids)
        return cls(entity_type).where(lambda e: getattr(e, key).is_in(values))

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @cached_property
    def cache_key(self) -> str:
        return build_cache_key(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Specification):
            return NotImplemented
        return self.cache_key == other.cache_key

    def __hash__(self) -> int:
        return hash(self.cache_key)
