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
"""Cache provider protocol."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Any, Protocol, TypeVar, runtime_checkable

V = TypeVar("V")


@runtime_checkable
class CacheProvider(Protocol):
    """Get-or-create cache with per-entry expiration.

    ``get_or_create`` and ``get_or_create_async`` run *compute* at most once
    per key among concurrent callers. Implementations must not hold a lock
    over unrelated keys while a computation is in flight.
    """

    def add(self, key: str, value: Any) -> None: ...

    def get(self, key: str, default: Any = None) -> Any: ...

    def remove(self, key: str) -> None: ...

    def get_or_create(self, key: str, compute: Callable[[], V], ttl: timedelta | None) -> V: ...

    async def get_or_create_async(
        self, key: str, compute: Callable[[], Awaitable[V]], ttl: timedelta | None
    ) -> V: ...

    def clear(self) -> None: ...

    def purge_expired(self) -> int: ...
