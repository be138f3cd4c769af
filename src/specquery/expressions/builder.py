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
"""Fluent construction of predicate trees.

Python lambdas are turned into trees by calling them once with an
:class:`Expr` proxy standing in for the entity::

    paid = lambda_(lambda o: (o.status == "Paid") & (o.total > threshold), Order)
    some = lambda_(lambda o: o.id.is_in([1, 2, 3]), Order)
    named = lambda_(lambda o: o.name.startswith("A"), Customer)

Use ``&``, ``|`` and ``~`` instead of ``and``, ``or`` and ``not``: those
keywords force a ``bool()`` which an ``Expr`` refuses.

A value read from an enclosing scope at build time becomes a plain
constant. :func:`capture` keeps the read inside the tree instead (a field
access on the scope object), which the partial evaluator later folds back
into the same constant.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Iterator
from typing import Any

from specquery.expressions.nodes import (
    TARGET,
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
from specquery.kernel.exceptions import InvalidArgumentException


def to_node(value: Any) -> Node:
    """Coerce an ``Expr``, a node or a plain value to a node."""
    if isinstance(value, Expr):
        return value.node
    if isinstance(value, Node):
        return value
    if isinstance(value, Lambda):
        raise InvalidArgumentException("A lambda cannot be embedded in another expression")
    return Constant(value)


class Expr:
    """Operator-overloading proxy that builds nodes instead of computing values."""

    __slots__ = ("node",)

    def __init__(self, node: Node) -> None:
        self.node = node

    def __getattr__(self, name: str) -> Expr:
        if name == "node" or (name.startswith("__") and name.endswith("__")):
            raise AttributeError(name)
        return Expr(FieldAccess(self.node, name))

    def __call__(self, *args: Any) -> Expr:
        if not isinstance(self.node, FieldAccess):
            raise TypeError("Only a member access can be called")
        arguments = tuple(to_node(a) for a in args)
        return Expr(MethodCall(self.node.target, self.node.field, arguments))

    def __bool__(self) -> bool:
        raise TypeError("Expressions cannot be used as booleans; combine them with &, | and ~")

    def __repr__(self) -> str:
        return f"Expr({type(self.node).__name__})"

    def _binary(self, op: BinaryOperator, other: Any, static_type: type = object) -> Expr:
        return Expr(BinaryOp(op, self.node, to_node(other), static_type))

    def _reflected(self, op: BinaryOperator, other: Any) -> Expr:
        return Expr(BinaryOp(op, to_node(other), self.node))

    # comparisons
    def __eq__(self, other: Any) -> Expr:  # type: ignore[override]
        return self._binary(BinaryOperator.EQ, other, bool)

    def __ne__(self, other: Any) -> Expr:  # type: ignore[override]
        return self._binary(BinaryOperator.NE, other, bool)

    def __lt__(self, other: Any) -> Expr:
        return self._binary(BinaryOperator.LT, other, bool)

    def __le__(self, other: Any) -> Expr:
        return self._binary(BinaryOperator.LE, other, bool)

    def __gt__(self, other: Any) -> Expr:
        return self._binary(BinaryOperator.GT, other, bool)

    def __ge__(self, other: Any) -> Expr:
        return self._binary(BinaryOperator.GE, other, bool)

    __hash__ = None  # type: ignore[assignment]

    # logic
    def __and__(self, other: Any) -> Expr:
        return self._binary(BinaryOperator.AND, other, bool)

    def __rand__(self, other: Any) -> Expr:
        return self._reflected(BinaryOperator.AND, other)

    def __or__(self, other: Any) -> Expr:
        return self._binary(BinaryOperator.OR, other, bool)

    def __ror__(self, other: Any) -> Expr:
        return self._reflected(BinaryOperator.OR, other)

    def __invert__(self) -> Expr:
        return Expr(UnaryOp(UnaryOperator.NOT, self.node, bool))

    # arithmetic
    def __neg__(self) -> Expr:
        return Expr(UnaryOp(UnaryOperator.NEG, self.node))

    def __add__(self, other: Any) -> Expr:
        return self._binary(BinaryOperator.ADD, other)

    def __radd__(self, other: Any) -> Expr:
        return self._reflected(BinaryOperator.ADD, other)

    def __sub__(self, other: Any) -> Expr:
        return self._binary(BinaryOperator.SUB, other)

    def __rsub__(self, other: Any) -> Expr:
        return self._reflected(BinaryOperator.SUB, other)

    def __mul__(self, other: Any) -> Expr:
        return self._binary(BinaryOperator.MUL, other)

    def __rmul__(self, other: Any) -> Expr:
        return self._reflected(BinaryOperator.MUL, other)

    def __truediv__(self, other: Any) -> Expr:
        return self._binary(BinaryOperator.DIV, other)

    def __rtruediv__(self, other: Any) -> Expr:
        return self._reflected(BinaryOperator.DIV, other)

    def __mod__(self, other: Any) -> Expr:
        return self._binary(BinaryOperator.MOD, other)

    # membership and null checks
    def is_in(self, collection: Any) -> Expr:
        """``self in collection``; the collection side is tagged for expansion.

        A one-shot iterator is copied into a tuple here, so the predicate can
        be rendered and run any number of times.
        """
        if isinstance(collection, Iterator):
            collection = tuple(collection)
        return Expr(MethodCall(None, "contains", (to_node(collection), self.node), (0,), bool))

    def contains(self, item: Any) -> Expr:
        """``item in self`` (substring test when ``self`` is a string)."""
        return Expr(MethodCall(self.node, "contains", (to_node(item),), (TARGET,), bool))

    def is_none(self) -> Expr:
        return self._binary(BinaryOperator.EQ, None, bool)

    def is_not_none(self) -> Expr:
        return self._binary(BinaryOperator.NE, None, bool)


def param(name: str, entity_type: type = object) -> Expr:
    return Expr(Parameter(name, entity_type))


def const(value: Any) -> Expr:
    return Expr(Constant(value))


def capture(scope: Any, name: str, static_type: type = object) -> Expr:
    """Read *name* from *scope* (an object or a mapping) when the tree is evaluated."""
    return Expr(FieldAccess(Constant(scope), name, static_type))


def field(target: Any, name: str) -> Expr:
    """Member access for names that clash with ``Expr`` helpers (``contains``, ``is_in``...)."""
    return Expr(FieldAccess(to_node(target), name))


def call(function: str, *args: Any) -> Expr:
    """Call a registered function (see ``interpreter.FUNCTIONS``)."""
    slots = (0,) if function == "contains" else ()
    return Expr(MethodCall(None, function, tuple(to_node(a) for a in args), slots))


def new(cls: type, *args: Any) -> Expr:
    return Expr(New(cls, tuple(to_node(a) for a in args)))


def iif(test: Any, if_true: Any, if_false: Any) -> Expr:
    return Expr(Conditional(to_node(test), to_node(if_true), to_node(if_false)))


def convert(value: Any, target_type: type) -> Expr:
    return Expr(Convert(target_type, to_node(value)))


def lambda_(fn: Callable[[Expr], Any] | Lambda, entity_type: type = object) -> Lambda:
    """Build a :class:`Lambda` by calling *fn* once with a parameter proxy.

    The parameter takes the name of *fn*'s single argument.
    """
    if isinstance(fn, Lambda):
        return fn
    if not callable(fn):
        raise InvalidArgumentException(f"Expected a callable, got {type(fn).__name__}")
    try:
        names = list(inspect.signature(fn).parameters)
    except (TypeError, ValueError):
        names = []
    if len(names) != 1:
        raise InvalidArgumentException(
            "An expression lambda takes exactly one parameter",
            context={"parameters": names},
        )
    parameter = Parameter(names[0], entity_type)
    return Lambda(parameter, to_node(fn(Expr(parameter))))
