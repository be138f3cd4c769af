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
"""Canonical cache keys for specifications.

A key is stable across rebuilding a specification from scratch, renaming
the lambda parameter, and capturing equal constants in different ways::

    {entity full name}-{criteria}-{order key}-{True|False}-{includes}-Take{n}-Skip{n}
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from specquery.expressions.expander import expand_local_collections
from specquery.expressions.nodes import Lambda
from specquery.expressions.partial import partial_eval
from specquery.expressions.rendering import render
from specquery.expressions.visitor import ParameterCollector

if TYPE_CHECKING:
    from specquery.data.specification import Specification


def entity_full_name(entity_type: type) -> str:
    return f"{entity_type.__module__}.{entity_type.__qualname__}"


def canonicalize(expression: Lambda, entity_type: type | None = None) -> str:
    """Canonical text of a lambda body.

    Independent subtrees are folded into constants, constant collections are
    printed element by element, and every parameter of the original tree is
    printed as the entity type's simple name.
    """
    alias = (entity_type or expression.entity_type).__name__
    collector = ParameterCollector()
    collector.visit(expression.body)
    names = {expression.parameter.name, *(p.name for p in collector.parameters)}

    reduced = expand_local_collections(partial_eval(expression.body))
    return render(reduced, {name: alias for name in names})


class CacheKeyAssembler:
    """Assemble the cache key of a :class:`Specification`."""

    separator = "-"

    def assemble(self, spec: Specification[Any]) -> str:
        entity_type = spec.entity_type
        criteria = canonicalize(spec.criteria, entity_type) if spec.criteria is not None else ""
        order = canonicalize(spec.order_key, entity_type) if spec.order_key is not None else ""
        includes = [canonicalize(include, entity_type) for include in spec.includes]
        includes.extend(spec.include_strings)

        parts = [
            entity_full_name(entity_type),
            criteria,
            order,
            str(spec.order_ascending),
            self.separator.join(includes),
            f"Take{max(spec.take, 0)}",
            f"Skip{max(spec.skip, 0)}",
        ]
        return self.separator.join(parts)


_default_assembler = CacheKeyAssembler()


def build_cache_key(spec: Specification[Any]) -> str:
    return _default_assembler.assemble(spec)
