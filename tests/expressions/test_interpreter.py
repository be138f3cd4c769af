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
"""Tests for the expression interpreter."""

from dataclasses import dataclass

import pytest

from specquery.expressions.builder import call, capture, convert, iif, lambda_, new, param
from specquery.expressions.interpreter import compile_lambda, evaluate
from specquery.expressions.nodes import MethodCall, Parameter
from specquery.kernel.exceptions import ExpressionEvaluationException


@dataclass
class Product:
    name: str
    price: float
    tags: list


class TestEvaluate:
    def test_field_access_on_object_and_mapping(self):
        product = Product("Lamp", 20.0, [])
        assert evaluate(param("p").name.node, {"p": product}) == "Lamp"
        assert evaluate(param("p").name.node, {"p": {"name": "Desk"}}) == "Desk"

    def test_arithmetic_and_comparison(self):
        node = ((param("p").price * 2) > 30).node
        assert evaluate(node, {"p": Product("Lamp", 20.0, [])}) is True

    def test_and_short_circuits(self):
        # the right side would fail on a missing attribute
        node = ((param("p").price > 100) & (param("p").missing == 1)).node
        assert evaluate(node, {"p": Product("Lamp", 20.0, [])}) is False

    def test_portable_methods(self):
        p = param("p")
        product = Product("  Lamp ", 20.0, ["new"])
        assert evaluate(p.name.strip().node, {"p": product}) == "Lamp"
        assert evaluate(p.tags.contains("new").node, {"p": product}) is True
        assert evaluate(p.name.upper().node, {"p": product}) == "  LAMP "

    def test_other_methods_resolved_on_target(self):
        node = param("p").name.replace("a", "o").node
        assert evaluate(node, {"p": Product("Lamp", 1.0, [])}) == "Lomp"

    def test_functions(self):
        p = param("p")
        product = Product("Lamp", -3.0, [])
        assert evaluate(call("len", p.name).node, {"p": product}) == 4
        assert evaluate(call("abs", p.price).node, {"p": product}) == 3.0
        assert evaluate(p.name.is_in(["Lamp", "Desk"]).node, {"p": product}) is True

    def test_conditional_new_and_convert(self):
        p = param("p")
        product = Product("Lamp", 20.0, [])
        assert evaluate(iif(p.price > 10, "big", "small").node, {"p": product}) == "big"
        assert evaluate(new(Product, "Desk", 5.0, []).node) == Product("Desk", 5.0, [])
        assert evaluate(convert(p.price, int).node, {"p": product}) == 20

    def test_capture_reads_scope(self):
        assert evaluate(capture({"limit": 7}, "limit").node) == 7

    def test_unbound_parameter(self):
        with pytest.raises(ExpressionEvaluationException) as exc_info:
            evaluate(Parameter("p"))
        assert exc_info.value.code == "EXPRESSION_UNBOUND_PARAMETER"

    def test_unknown_function(self):
        with pytest.raises(ExpressionEvaluationException) as exc_info:
            evaluate(MethodCall(None, "nope"))
        assert exc_info.value.code == "EXPRESSION_UNKNOWN_FUNCTION"

    def test_failures_are_wrapped_with_cause(self):
        with pytest.raises(ExpressionEvaluationException) as exc_info:
            evaluate((param("p").price / 0).node, {"p": Product("Lamp", 1.0, [])})
        assert isinstance(exc_info.value.__cause__, ZeroDivisionError)


class TestCompileLambda:
    def test_callable_over_entity(self):
        predicate = compile_lambda(lambda_(lambda p: p.price < 10, Product))
        assert predicate(Product("Pen", 2.0, [])) is True
        assert predicate(Product("Lamp", 20.0, [])) is False
