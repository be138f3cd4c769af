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
"""Turn a Specification into an executable query.

Stages are applied in a fixed order:

1. criteria filter
2. typed includes, then include strings
3. explicit order, or primary key ascending when paging without one
4. no-tracking
5. skip, then take (paging only)

Every stage is optional; an empty specification yields every row.
"""

from __future__ import annotations

from typing import Any, TypeVar

from specquery.data.ports.outbound import DataSourcePort, QueryablePort
from specquery.data.specification import Specification
from specquery.expressions.nodes import Convert, FieldAccess, Lambda, Parameter
from specquery.kernel.exceptions import InvalidArgumentException

T = TypeVar("T")


def member_path(selector: Lambda) -> str:
    """Dotted path of a member-access lambda: ``o => o.customer.address`` -> ``customer.address``."""
    parts: list[str] = []
    node = selector.body
    while isinstance(node, Convert):
        node = node.operand
    while isinstance(node, FieldAccess):
        parts.append(node.field)
        node = node.target
    if node is not selector.parameter or not parts:
        raise InvalidArgumentException(
            "Include selectors must be member accesses on the lambda parameter",
            code="SPEC_INVALID_INCLUDE",
        )
    return ".".join(reversed(parts))


def primary_key_selector(entity_type: type, primary_key: str) -> Lambda:
    parameter = Parameter("e", entity_type)
    return Lambda(parameter, FieldAccess(parameter, primary_key))


def unwrap_convert(selector: Lambda) -> Lambda:
    """Strip a top-level conversion from a sort key selector."""
    body = selector.body
    if not isinstance(body, Convert):
        return selector
    while isinstance(body, Convert):
        body = body.operand
    return Lambda(selector.parameter, body)


class SpecificationEvaluator:
    """Apply a :class:`Specification` to a queryable."""

    @staticmethod
    def get_query(
        source: QueryablePort[T],
        spec: Specification[T],
        primary_key: str = "id",
    ) -> QueryablePort[T]:
        query = source

        if spec.criteria is not None:
            query = query.where(spec.criteria)

        for include in spec.includes:
            query = query.include(member_path(include))

        for path in spec.include_strings:
            query = query.include(path)

        if spec.order_key is not None:
            query = query.order_by(unwrap_convert(spec.order_key), spec.order_ascending)
        elif spec.is_paging_enabled:
            query = query.order_by(primary_key_selector(spec.entity_type, primary_key), True)

        if spec.is_untracked:
            query = query.as_no_tracking()

        if spec.is_paging_enabled:
            query = query.skip(spec.skip).take(spec.take)

        return query


def get_query(spec: Specification[T] | None, data_source: DataSourcePort | Any) -> QueryablePort[T]:
    """Plan *spec* against *data_source*.

    Raises:
        InvalidArgumentException: If either argument is ``None``.
    """
    if spec is None:
        raise InvalidArgumentException("spec must not be None", code="SPEC_INVALID_ARGUMENT")
    if data_source is None:
        raise InvalidArgumentException("data_source must not be None", code="SPEC_INVALID_ARGUMENT")

    source = data_source.query(spec.entity_type)
    return SpecificationEvaluator.get_query(source, spec, data_source.primary_key(spec.entity_type))
