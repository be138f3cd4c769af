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
"""Visitor and transformer bases for predicate trees (``ast``-module style)."""

from __future__ import annotations

from typing import Any

from specquery.expressions.nodes import Node, Parameter


class NodeVisitor:
    """Dispatch to ``visit_<ClassName>`` methods, falling back to :meth:`generic_visit`."""

    def visit(self, node: Node) -> Any:
        method = getattr(self, f"visit_{type(node).__name__}", self.generic_visit)
        return method(node)

    def generic_visit(self, node: Node) -> Any:
        for child in node.children():
            self.visit(child)
        return None


class NodeTransformer(NodeVisitor):
    """A visitor that returns a (possibly new) node for every node visited.

    Unchanged subtrees are returned as the same instances, so node
    identity survives a transformation that touches nothing.
    """

    def generic_visit(self, node: Node) -> Node:
        children = node.children()
        if not children:
            return node
        rewritten = [self.visit(child) for child in children]
        if all(new is old for new, old in zip(rewritten, children)):
            return node
        return node.with_children(rewritten)


class ParameterRebinder(NodeTransformer):
    """Replace every use of one parameter instance with another."""

    def __init__(self, source: Parameter, replacement: Parameter) -> None:
        self._source = source
        self._replacement = replacement

    def visit_Parameter(self, node: Parameter) -> Node:
        return self._replacement if node is self._source else node


class ParameterCollector(NodeVisitor):
    """Collect the distinct parameter instances referenced by a tree."""

    def __init__(self) -> None:
        self.parameters: list[Parameter] = []

    def visit_Parameter(self, node: Parameter) -> None:
        if not any(p is node for p in self.parameters):
            self.parameters.append(node)
