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
"""Local collection expansion.

After partial evaluation, membership tests against an in-memory collection
hold that collection as an opaque constant. This pass swaps it for a
:class:`PrintableCollection`, which behaves exactly like the list it copies
but renders its elements as ``{e1|e2|...}``.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from specquery.expressions.nodes import Constant, MethodCall, Node
from specquery.expressions.rendering import canonical_text
from specquery.expressions.visitor import NodeTransformer
from specquery.kernel.exceptions import CanonicalizationException

SEPARATOR = "|"


class PrintableCollection(list):
    """A list whose text form lists its elements in order (sets sorted).

    Every element must have a canonical text form; rendering fails with
    :class:`CanonicalizationException` otherwise.
    """

    def __canonical__(self) -> str:
        return "{" + SEPARATOR.join(canonical_text(item) for item in self) + "}"

    def __str__(self) -> str:
        return self.__canonical__()

    __repr__ = __str__


def is_local_collection(value: Any) -> bool:
    """Whether *value* is an in-memory collection (strings and mappings are not)."""
    if isinstance(value, (str, bytes, bytearray, Mapping, PrintableCollection)):
        return False
    return isinstance(value, Iterable)


class LocalCollectionExpander(NodeTransformer):
    """Rewrite tagged collection slots that hold constant collections."""

    def visit_MethodCall(self, node: MethodCall) -> Node:
        node = self.generic_visit(node)  # type: ignore[assignment]
        if not node.collection_slots:
            return node

        replacements: dict[int, Node] = {}
        for slot in node.collection_slots:
            held = node.slot(slot)
            if isinstance(held, Constant) and is_local_collection(held.value):
                replacements[slot] = Constant(printable(held.value), held.static_type)
        if not replacements:
            return node

        children = list(node.children())
        offset = 0 if node.target is None else 1
        for slot, replacement in replacements.items():
            children[0 if slot < 0 else slot + offset] = replacement
        return node.with_children(children)


def printable(collection: Iterable[Any]) -> PrintableCollection:
    """Copy *collection* into a :class:`PrintableCollection`.

    Sets keep no source order, so their elements are sorted by canonical
    text. One-shot iterators are rejected: expanding one would exhaust it
    before the query runs.
    """
    if isinstance(collection, Iterator):
        raise CanonicalizationException(
            f"Cannot expand a one-shot {type(collection).__qualname__}; pass a list, tuple or set",
            code="CANONICAL_ONE_SHOT_COLLECTION",
            context={"type": type(collection).__qualname__},
        )
    if isinstance(collection, (set, frozenset)):
        return PrintableCollection(sorted(collection, key=canonical_text))
    return PrintableCollection(collection)


def expand_local_collections(root: Node) -> Node:
    return LocalCollectionExpander().visit(root)
