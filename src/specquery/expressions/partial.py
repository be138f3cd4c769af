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
"""Partial evaluation of predicate trees.

Every maximal subtree that depends neither on the entity parameter nor on
a deferred query is computed once and replaced by a :class:`Constant`.
Two predicates that differ only in how a value was captured (a literal, a
local variable, an attribute of some scope object) come out structurally
identical.

The algorithm runs in two passes over an *arena*: each position visited in
pre-order gets an integer index, the size of its subtree and a candidate
flag. Candidates are tracked per position, never by structural hash, so two
equal-looking but independent subtrees cannot be merged by accident.

1. Nominate (bottom-up): a position is a candidate when none of its
   descendants is tainted and the policy accepts it; a rejection taints
   every ancestor up to the root.
2. Substitute (top-down): the first candidate position reached is replaced
   by its computed value and its subtree is skipped.
"""

from __future__ import annotations

from collections.abc import Callable

from specquery.expressions.interpreter import evaluate
from specquery.expressions.nodes import Constant, DeferredQuery, New, Node, Parameter

LocalPolicy = Callable[[Node], bool]


def is_deferred_query(node: Node) -> bool:
    """Whether *node* stands for a lazily executed remote query."""
    if isinstance(node, Constant) and isinstance(node.value, DeferredQuery):
        return True
    return isinstance(node.static_type, type) and issubclass(node.static_type, DeferredQuery)


def can_evaluate_locally(node: Node) -> bool:
    """Default policy: no construction, no parameters, no deferred queries."""
    if isinstance(node, (New, Parameter)):
        return False
    return not is_deferred_query(node)


class _Arena:
    __slots__ = ("nodes", "sizes", "candidates")

    def __init__(self) -> None:
        self.nodes: list[Node] = []
        self.sizes: list[int] = []
        self.candidates = bytearray()

    def nominate(self, node: Node, policy: LocalPolicy) -> bool:
        """Index *node*'s subtree; return whether it is tainted."""
        index = len(self.nodes)
        self.nodes.append(node)
        self.sizes.append(1)
        self.candidates.append(0)

        tainted = False
        for child in node.children():
            tainted |= self.nominate(child, policy)
        self.sizes[index] = len(self.nodes) - index

        if not tainted:
            if policy(node):
                self.candidates[index] = 1
            else:
                tainted = True
        return tainted

    def substitute(self, index: int) -> tuple[Node, int]:
        """Rewrite the subtree at *index*; return it and the next sibling index."""
        node = self.nodes[index]
        if self.candidates[index]:
            return _collapse(node), index + self.sizes[index]

        children = node.children()
        if not children:
            return node, index + 1

        position = index + 1
        rewritten: list[Node] = []
        for _ in children:
            child, position = self.substitute(position)
            rewritten.append(child)
        if all(new is old for new, old in zip(rewritten, children)):
            return node, position
        return node.with_children(rewritten), position


def _collapse(node: Node) -> Node:
    if isinstance(node, Constant):
        return node
    return Constant(evaluate(node), node.static_type)


def partial_eval(root: Node, policy: LocalPolicy = can_evaluate_locally) -> Node:
    """Replace every independent subtree of *root* with its value.

    Raises:
        ExpressionEvaluationException: If computing a nominated subtree
            fails. There is no fallback value.
    """
    arena = _Arena()
    arena.nominate(root, policy)
    result, _ = arena.substitute(0)
    return result
