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
"""Canonical text rendering of predicate trees.

The text form is what cache keys are made of, so it must be a pure
function of the tree: no ``id()``, no default ``object.__repr__``, no
dependence on hash-table ordering. Values that cannot be rendered that way
raise :class:`CanonicalizationException`.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from specquery.expressions.nodes import (
    BinaryOp,
    Conditional,
    Constant,
    Convert,
    FieldAccess,
    Lambda,
    MethodCall,
    New,
    Node,
    Parameter,
    UnaryOp,
    UnaryOperator,
)
from specquery.expressions.visitor import NodeVisitor
from specquery.kernel.exceptions import CanonicalizationException


def canonical_text(value: Any) -> str:
    """Render a constant value deterministically.

    Objects may opt in by defining ``__canonical__(self) -> str``.
    """
    canonical = getattr(value, "__canonical__", None)
    if callable(canonical) and not isinstance(value, type):
        return canonical()
    if value is None or isinstance(value, bool):
        return str(value)
    if isinstance(value, Enum):
        return f"{type(value).__name__}.{value.name}"
    if isinstance(value, (int, Decimal, UUID, timedelta)):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, bytes):
        return repr(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, type):
        return value.__qualname__
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(canonical_text(item) for item in value) + "]"
    if isinstance(value, (set, frozenset)):
        return "set(" + ", ".join(sorted(canonical_text(item) for item in value)) + ")"
    raise CanonicalizationException(
        f"Value of type {type(value).__qualname__} has no canonical text form",
        code="CANONICAL_TEXT_UNSUPPORTED",
        context={"type": type(value).__qualname__},
    )


class _Renderer(NodeVisitor):
    def __init__(self, aliases: Mapping[str, str]) -> None:
        self._aliases = aliases

    def _join(self, nodes: tuple[Node, ...]) -> str:
        return ", ".join(self.visit(node) for node in nodes)

    def visit_Constant(self, node: Constant) -> str:
        return canonical_text(node.value)

    def visit_Parameter(self, node: Parameter) -> str:
        return self._aliases.get(node.name, node.name)

    def visit_FieldAccess(self, node: FieldAccess) -> str:
        return f"{self.visit(node.target)}.{node.field}"

    def visit_MethodCall(self, node: MethodCall) -> str:
        if node.target is None:
            return f"{node.method}({self._join(node.arguments)})"
        return f"{self.visit(node.target)}.{node.method}({self._join(node.arguments)})"

    def visit_BinaryOp(self, node: BinaryOp) -> str:
        return f"({self.visit(node.left)} {node.op.value} {self.visit(node.right)})"

    def visit_UnaryOp(self, node: UnaryOp) -> str:
        if node.op is UnaryOperator.NOT:
            return f"not({self.visit(node.operand)})"
        return f"-({self.visit(node.operand)})"

    def visit_New(self, node: New) -> str:
        return f"new {node.cls.__qualname__}({self._join(node.arguments)})"

    def visit_Conditional(self, node: Conditional) -> str:
        return f"({self.visit(node.if_true)} if {self.visit(node.test)} else {self.visit(node.if_false)})"

    def visit_Convert(self, node: Convert) -> str:
        return f"convert({self.visit(node.operand)}, {node.target_type.__qualname__})"


def render(node: Node, aliases: Mapping[str, str] | None = None) -> str:
    """Render *node*; parameters named in *aliases* print as their alias."""
    return _Renderer(aliases or {}).visit(node)


def render_lambda(expression: Lambda) -> str:
    """Render ``param => body`` for logs and plan descriptions."""
    return f"{expression.parameter.name} => {render(expression.body)}"
