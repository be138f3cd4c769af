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
"""Predicate expression tree.

A predicate is an explicit tree of immutable nodes over a single entity
parameter. Nodes compare by identity, not by structure: two structurally
equal subtrees built independently are different nodes, and the shared
``Parameter`` instance is what ties every use of the entity together.

Transformations (partial evaluation, collection expansion, parameter
rebinding) always build new trees through :meth:`Node.with_children`.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

#: Slot index naming the call target in :attr:`MethodCall.collection_slots`.
TARGET = -1


class BinaryOperator(str, Enum):
    """Binary operators; the value is the rendered symbol."""

    EQ = "=="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="
    AND = "and"
    OR = "or"
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    MOD = "%"


class UnaryOperator(str, Enum):
    """Unary operators; the value is the rendered symbol."""

    NOT = "not"
    NEG = "-"


class DeferredQuery:
    """Marker base for lazily executed remote queries.

    Subtrees typed as a deferred query are never collapsed into constants,
    so query fragments embedded in a predicate stay deferred.
    """


class Node:
    """Base class for every predicate tree node."""

    static_type: type

    def children(self) -> tuple[Node, ...]:
        """Child nodes, in evaluation order."""
        return ()

    def with_children(self, children: Sequence[Node]) -> Node:
        """Return a copy of this node with *children* replacing its own."""
        return self


@dataclass(frozen=True, eq=False)
class Constant(Node):
    """A literal value. The static type defaults to the value's type."""

    value: Any
    static_type: type = object

    def __post_init__(self) -> None:
        if self.static_type is object and self.value is not None:
            object.__setattr__(self, "static_type", type(self.value))


@dataclass(frozen=True, eq=False)
class Parameter(Node):
    """The entity parameter of a lambda."""

    name: str
    static_type: type = object


@dataclass(frozen=True, eq=False)
class FieldAccess(Node):
    """``target.field``; item lookup when the target is a mapping."""

    target: Node
    field: str
    static_type: type = object

    def children(self) -> tuple[Node, ...]:
        return (self.target,)

    def with_children(self, children: Sequence[Node]) -> Node:
        (target,) = children
        return FieldAccess(target, self.field, self.static_type)


@dataclass(frozen=True, eq=False)
class MethodCall(Node):
    """``target.method(*arguments)``, or a registered function when *target* is ``None``.

    ``collection_slots`` lists the argument positions (``TARGET`` for the
    call target) that hold the collection side of a membership test. It is
    set by the builder when the call is made.
    """

    target: Node | None
    method: str
    arguments: tuple[Node, ...] = ()
    collection_slots: tuple[int, ...] = ()
    static_type: type = object

    def children(self) -> tuple[Node, ...]:
        if self.target is None:
            return self.arguments
        return (self.target, *self.arguments)

    def with_children(self, children: Sequence[Node]) -> Node:
        if self.target is None:
            return MethodCall(None, self.method, tuple(children), self.collection_slots, self.static_type)
        target, *arguments = children
        return MethodCall(target, self.method, tuple(arguments), self.collection_slots, self.static_type)

    def slot(self, index: int) -> Node | None:
        """Return the node held by a collection slot."""
        if index == TARGET:
            return self.target
        return self.arguments[index]


@dataclass(frozen=True, eq=False)
class BinaryOp(Node):
    op: BinaryOperator
    left: Node
    right: Node
    static_type: type = object

    def children(self) -> tuple[Node, ...]:
        return (self.left, self.right)

    def with_children(self, children: Sequence[Node]) -> Node:
        left, right = children
        return BinaryOp(self.op, left, right, self.static_type)


@dataclass(frozen=True, eq=False)
class UnaryOp(Node):
    op: UnaryOperator
    operand: Node
    static_type: type = object

    def children(self) -> tuple[Node, ...]:
        return (self.operand,)

    def with_children(self, children: Sequence[Node]) -> Node:
        (operand,) = children
        return UnaryOp(self.op, operand, self.static_type)


@dataclass(frozen=True, eq=False)
class New(Node):
    """Construction of a new instance of *cls*."""

    cls: type
    arguments: tuple[Node, ...] = ()
    static_type: type = field(default=object)

    def __post_init__(self) -> None:
        if self.static_type is object:
            object.__setattr__(self, "static_type", self.cls)

    def children(self) -> tuple[Node, ...]:
        return self.arguments

    def with_children(self, children: Sequence[Node]) -> Node:
        return New(self.cls, tuple(children), self.static_type)


@dataclass(frozen=True, eq=False)
class Conditional(Node):
    test: Node
    if_true: Node
    if_false: Node
    static_type: type = object

    def children(self) -> tuple[Node, ...]:
        return (self.test, self.if_true, self.if_false)

    def with_children(self, children: Sequence[Node]) -> Node:
        test, if_true, if_false = children
        return Conditional(test, if_true, if_false, self.static_type)


@dataclass(frozen=True, eq=False)
class Convert(Node):
    """Conversion of *operand* to *target_type*."""

    target_type: type
    operand: Node
    static_type: type = field(default=object)

    def __post_init__(self) -> None:
        if self.static_type is object:
            object.__setattr__(self, "static_type", self.target_type)

    def children(self) -> tuple[Node, ...]:
        return (self.operand,)

    def with_children(self, children: Sequence[Node]) -> Node:
        (operand,) = children
        return Convert(self.target_type, operand, self.static_type)


@dataclass(frozen=True, eq=False)
class Lambda:
    """A predicate or selector: *body* over a single entity *parameter*."""

    parameter: Parameter
    body: Node

    @property
    def entity_type(self) -> type:
        return self.parameter.static_type

    def and_also(self, other: Lambda) -> Lambda:
        """Combine with *other* using ``and``, rebinding its parameter to this one."""
        from specquery.expressions.visitor import ParameterRebinder

        rebound = ParameterRebinder(other.parameter, self.parameter).visit(other.body)
        return Lambda(self.parameter, BinaryOp(BinaryOperator.AND, self.body, rebound, bool))
