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
"""specquery expressions: predicate trees, their builder and their canonical form."""

from specquery.expressions.builder import (
    Expr,
    call,
    capture,
    const,
    convert,
    field,
    iif,
    lambda_,
    new,
    param,
    to_node,
)
from specquery.expressions.expander import (
    LocalCollectionExpander,
    PrintableCollection,
    expand_local_collections,
)
from specquery.expressions.interpreter import compile_lambda, evaluate
from specquery.expressions.nodes import (
    TARGET,
    BinaryOp,
    BinaryOperator,
    Conditional,
    Constant,
    Convert,
    DeferredQuery,
    FieldAccess,
    Lambda,
    MethodCall,
    New,
    Node,
    Parameter,
    UnaryOp,
    UnaryOperator,
)
from specquery.expressions.partial import can_evaluate_locally, partial_eval
from specquery.expressions.rendering import canonical_text, render, render_lambda

__all__ = [
    "TARGET",
    "BinaryOp",
    "BinaryOperator",
    "Conditional",
    "Constant",
    "Convert",
    "DeferredQuery",
    "Expr",
    "FieldAccess",
    "Lambda",
    "LocalCollectionExpander",
    "MethodCall",
    "New",
    "Node",
    "Parameter",
    "PrintableCollection",
    "UnaryOp",
    "UnaryOperator",
    "call",
    "can_evaluate_locally",
    "canonical_text",
    "capture",
    "compile_lambda",
    "const",
    "convert",
    "evaluate",
    "expand_local_collections",
    "field",
    "iif",
    "lambda_",
    "new",
    "param",
    "partial_eval",
    "render",
    "render_lambda",
    "to_node",
]
