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
"""specquery data: specifications, query planning and repositories.

Adapters:
    - ``specquery.data.adapters.memory``: plain Python objects, for tests and single-process use.
    - ``specquery.data.adapters.sqlalchemy``: SQLAlchemy 2.0 async ORM.
"""

from specquery.data.evaluator import SpecificationEvaluator, get_query, member_path
from specquery.data.keys import CacheKeyAssembler, build_cache_key, canonicalize, entity_full_name
from specquery.data.plan import QueryStage, StagedQueryable, StageKind
from specquery.data.ports.outbound import (
    DataSourcePort,
    QueryablePort,
    ReadRepositoryPort,
    WriteRepositoryPort,
)
from specquery.data.repository import CachedReadOnlyRepository, ReadOnlyRepository, WriteRepository
from specquery.data.specification import DEFAULT_CACHE_DURATION, Specification

__all__ = [
    "DEFAULT_CACHE_DURATION",
    "CacheKeyAssembler",
    "CachedReadOnlyRepository",
    "DataSourcePort",
    "QueryStage",
    "QueryablePort",
    "ReadOnlyRepository",
    "ReadRepositoryPort",
    "Specification",
    "SpecificationEvaluator",
    "StageKind",
    "StagedQueryable",
    "WriteRepository",
    "WriteRepositoryPort",
    "build_cache_key",
    "canonicalize",
    "entity_full_name",
    "get_query",
    "member_path",
]
