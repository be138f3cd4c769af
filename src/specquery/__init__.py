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
"""specquery: declarative, cacheable query specifications.

A :class:`Specification` describes a query (filter, related data, order,
paging, tracking, cache policy) as one immutable value with a canonical
cache key. Repositories plan it against a data source and, when asked,
serve it from a TTL cache with single-flight computation.
"""

from specquery.cache import CacheProvider, InMemoryCacheProvider
from specquery.core.config import Config
from specquery.data import (
    CachedReadOnlyRepository,
    ReadOnlyRepository,
    Specification,
    SpecificationEvaluator,
    WriteRepository,
    get_query,
)
from specquery.kernel.exceptions import SpecQueryException

__version__ = "0.1.0"

__all__ = [
    "CacheProvider",
    "CachedReadOnlyRepository",
    "Config",
    "InMemoryCacheProvider",
    "ReadOnlyRepository",
    "SpecQueryException",
    "Specification",
    "SpecificationEvaluator",
    "WriteRepository",
    "get_query",
]
