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
"""Tree-walking interpreter for predicate trees.

Used by the partial evaluator to compute independent subtrees and by the
in-memory data source to run filters and sort keys against entities.
"""

from __future__ import annotations

import operator
from collections.abc import Callable, Mapping
from typing import Any

from specquery.expressions.nodes import (
    BinaryOp,
    BinaryOperator,
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
from specquery.kernel.exceptions import ExpressionEvaluationException

_BINARY: dict[BinaryOperator, Callable[[Any, Any], Any]] = {
    BinaryOperator.EQ: operator.eq,
    BinaryOperator.NE: operator.ne,
    BinaryOperator.LT: operator.lt,
    BinaryOperator.LE: operator.le,
    BinaryOperator.GT: operator.gt,
    BinaryOperator.GE: operator.ge,
    BinaryOperator.ADD: operator.add,
    BinaryOperator.SUB: operator.sub,
    BinaryOperator.MUL: operator.mul,
    BinaryOperator.DIV: operator.truediv,
    BinaryOperator.MOD: operator.mod,
}

#: Target-less calls (``call("len", x)``), resolved by name.
FUNCTIONS: dict[str, Callable[..., Any]] = {
    "contains": lambda collection, item: item in collection,
    "len": len,
    "abs": abs,
    "lower": lambda value: value.lower(),
    "upper": lambda value: value.upper(),
}

#: Methods with the same meaning on every backend; anything else is looked up on the target.
TARGET_METHODS: dict[str, Callable[..., Any]] = {
    "contains": lambda target, item: item in target,
    "startswith": lambda target, prefix: target.startswith(prefix),
    "endswith": lambda target, suffix: target.endswith(suffix),
    "lower": lambda target: target.lower(),
    "upper": lambda target: target.upper(),
    "strip": lambda target: target.strip(),
}


class _Interpreter(NodeVisitor):
    def __init__(self, bindings: Mapping[str, Any]) -> None:
        self._bindings = bindings

    def visit_Constant(self, node: Constant) -> Any:
        return node.value

    def visit_Parameter(self, node: Parameter) -> Any:
        try:
            return self._bindings[node.name]
        except KeyError:
            raise ExpressionEvaluationException(
                f"Parameter '{node.name}' is not bound",
                code="EXPRESSION_UNBOUND_PARAMETER",
                context={"parameter": node.name},
            ) from None

    def visit_FieldAccess(self, node: FieldAccess) -> Any:
        target = self.visit(node.target)
        if isinstance(target, Mapping):
            return target[node.field]
        return getattr(target, node.field)

    def visit_MethodCall(self, node: MethodCall) -> Any:
        arguments = [self.visit(argument) for argument in node.arguments]
        if node.target is None:
            function = FUNCTIONS.get(node.method)
            if function is None:
                raise ExpressionEvaluationException(
                    f"Unknown function '{node.method}'",
                    code="EXPRESSION_UNKNOWN_FUNCTION",
                    context={"function": node.method},
                )
            return function(*arguments)
        target = self.visit(node.target)
        portable = TARGET_METHODS.get(node.method)
        if portable is not None:
            return portable(target, *arguments)
        return getattr(target, node.method)(*arguments)

    def visit_BinaryOp(self, node: BinaryOp) -> Any:
        # and/or short-circuit like Python does
        if node.op is BinaryOperator.AND:
            return bool(self.visit(node.left)) and bool(self.visit(node.right))
        if node.op is BinaryOperator.OR:
            return bool(self.visit(node.left)) or bool(self.visit(node.right))
        return _BINARY[node.op](self.visit(node.left), self.visit(node.right))

    def visit_UnaryOp(self, node: UnaryOp) -> Any:
        operand = self.visit(node.operand)
        if node.op is UnaryOperator.NOT:
            return not operand
        return -operand

    def visit_New(self, node: New) -> Any:
        return node.cls(*(self.visit(argument) for argument in node.arguments))

    def visit_Conditional(self, node: Conditional) -> Any:
        if self.visit(node.test):
            return self.visit(node.if_true)
        return self.visit(node.if_false)

    def visit_Convert(self, node: Convert) -> Any:
        value = self.visit(node.operand)
        if node.target_type is object or isinstance(value, node.target_type):
            return value
        return node.target_type(value)


def evaluate(node: Node, bindings: Mapping[str, Any] | None = None) -> Any:
    """Evaluate *node* with parameters resolved from *bindings* (by name).

    Raises:
        ExpressionEvaluationException: If evaluation fails for any reason.
    """
    try:
        return _Interpreter(bindings or {}).visit(node)
    except ExpressionEvaluationException:
        raise
    except Exception as exc:
        raise ExpressionEvaluationException(
            f"Failed to evaluate {type(node).__name__} node: {exc}",
            code="EXPRESSION_EVALUATION_FAILED",
            context={"node": type(node).__name__},
        ) from exc


def compile_lambda(expression: Lambda) -> Callable[[Any], Any]:
    """Turn a lambda into a plain Python callable over one entity."""
    name = expression.parameter.name
    body = expression.body

    def invoke(entity: Any) -> Any:
        return evaluate(body, {name: entity})

    return invoke
