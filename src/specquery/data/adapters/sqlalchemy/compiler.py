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
"""Compile predicate trees into SQLAlchemy column expressions.

The tree is partially evaluated first, so captured values arrive as plain
constants and only parameter-dependent nodes need a SQL translation.
Supported: comparisons, ``and``/``or``/``not``, arithmetic, membership
(``IN`` for constant collections, ``LIKE`` for string columns),
``startswith``/``endswith``/``lower``/``upper``/``strip``, ``len``,
``abs``, conditionals (``CASE``) and conversions to basic types (``CAST``).
Member access is limited to the entity's own columns.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from sqlalchemy import Boolean, Float, Integer, String, case, cast, false, func, not_, true
from sqlalchemy.sql.elements import ColumnElement

from specquery.expressions.expander import is_local_collection
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
    Parameter,
    UnaryOp,
    UnaryOperator,
)
from specquery.expressions.partial import partial_eval
from specquery.expressions.visitor import NodeVisitor
from specquery.kernel.exceptions import ExpressionCompilationException

_CASTS: dict[type, Any] = {int: Integer, float: Float, str: String, bool: Boolean}

_BINARY: dict[BinaryOperator, Callable[[Any, Any], Any]] = {
    BinaryOperator.EQ: lambda a, b: a == b,
    BinaryOperator.NE: lambda a, b: a != b,
    BinaryOperator.LT: lambda a, b: a < b,
    BinaryOperator.LE: lambda a, b: a <= b,
    BinaryOperator.GT: lambda a, b: a > b,
    BinaryOperator.GE: lambda a, b: a >= b,
    BinaryOperator.ADD: lambda a, b: a + b,
    BinaryOperator.SUB: lambda a, b: a - b,
    BinaryOperator.MUL: lambda a, b: a * b,
    BinaryOperator.DIV: lambda a, b: a / b,
    BinaryOperator.MOD: lambda a, b: a % b,
}

_FUNCTIONS: dict[str, Callable[[Any], Any]] = {
    "len": func.length,
    "abs": func.abs,
    "lower": func.lower,
    "upper": func.upper,
}


def _clause(value: Any) -> Any:
    if isinstance(value, bool):
        return true() if value else false()
    return value


def _is_sql(value: Any) -> bool:
    return isinstance(value, ColumnElement) or hasattr(value, "__clause_element__")


class _EntityRoot:
    __slots__ = ("entity",)

    def __init__(self, entity: type) -> None:
        self.entity = entity


class SqlAlchemyExpressionCompiler(NodeVisitor):
    """Translate a lambda over a mapped entity into a SQLAlchemy expression."""

    def __init__(self, entity: type) -> None:
        self._entity = entity
        self._parameter: Parameter | None = None

    def compile(self, expression: Lambda) -> Any:
        self._parameter = expression.parameter
        try:
            return self.visit(partial_eval(expression.body))
        finally:
            self._parameter = None

    def _unsupported(self, node: Any, reason: str) -> ExpressionCompilationException:
        return ExpressionCompilationException(
            f"Cannot translate {type(node).__name__} to SQL: {reason}",
            code="SQL_UNSUPPORTED_EXPRESSION",
            context={"entity": self._entity.__name__, "node": type(node).__name__},
        )

    def visit_Constant(self, node: Constant) -> Any:
        return node.value

    def visit_Parameter(self, node: Parameter) -> Any:
        if node is not self._parameter:
            raise self._unsupported(node, f"unknown parameter '{node.name}'")
        return _EntityRoot(self._entity)

    def visit_FieldAccess(self, node: FieldAccess) -> Any:
        target = self.visit(node.target)
        if not isinstance(target, _EntityRoot):
            raise self._unsupported(node, f"member '{node.field}' is not a column of {self._entity.__name__}")
        column = getattr(target.entity, node.field, None)
        if column is None:
            raise self._unsupported(node, f"{self._entity.__name__} has no attribute '{node.field}'")
        return column

    def visit_MethodCall(self, node: MethodCall) -> Any:
        arguments = [self.visit(argument) for argument in node.arguments]
        if node.target is None:
            if node.method == "contains":
                collection, item = arguments
                return self._membership(node, collection, item)
            function = _FUNCTIONS.get(node.method)
            if function is None:
                raise self._unsupported(node, f"no SQL function for '{node.method}'")
            return function(*arguments)

        target = self.visit(node.target)
        if node.method == "contains":
            return self._membership(node, target, arguments[0])
        if node.method == "startswith":
            return target.startswith(arguments[0])
        if node.method == "endswith":
            return target.endswith(arguments[0])
        if node.method == "strip":
            return func.trim(target)
        if node.method in ("lower", "upper"):
            return _FUNCTIONS[node.method](target)
        raise self._unsupported(node, f"no SQL translation for method '{node.method}'")

    def _membership(self, node: MethodCall, collection: Any, item: Any) -> Any:
        if _is_sql(item) and not _is_sql(collection) and is_local_collection(collection):
            return item.in_(list(collection))
        if _is_sql(collection) and not _is_sql(item):
            return collection.contains(item)
        raise self._unsupported(node, "membership needs a column on one side and a value on the other")

    def visit_BinaryOp(self, node: BinaryOp) -> Any:
        left = self.visit(node.left)
        right = self.visit(node.right)
        if node.op is BinaryOperator.AND:
            return _clause(left) & _clause(right)
        if node.op is BinaryOperator.OR:
            return _clause(left) | _clause(right)
        return _BINARY[node.op](left, right)

    def visit_UnaryOp(self, node: UnaryOp) -> Any:
        operand = self.visit(node.operand)
        if node.op is UnaryOperator.NOT:
            return not_(_clause(operand))
        return -operand

    def visit_Conditional(self, node: Conditional) -> Any:
        return case((_clause(self.visit(node.test)), self.visit(node.if_true)), else_=self.visit(node.if_false))

    def visit_Convert(self, node: Convert) -> Any:
        operand = self.visit(node.operand)
        if node.target_type is object or not _is_sql(operand):
            return operand
        sql_type = _CASTS.get(node.target_type)
        if sql_type is None:
            raise self._unsupported(node, f"no SQL type for {node.target_type.__qualname__}")
        return cast(operand, sql_type)

    def visit_New(self, node: New) -> Any:
        raise self._unsupported(node, "object construction depends on the entity")
