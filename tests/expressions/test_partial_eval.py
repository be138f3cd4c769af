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
"""Tests for partial evaluation."""

import pytest

from specquery.expressions.builder import capture, const, new, param
from specquery.expressions.nodes import (
    BinaryOp,
    BinaryOperator,
    Constant,
    DeferredQuery,
    FieldAccess,
    MethodCall,
    Parameter,
)
from specquery.expressions.partial import can_evaluate_locally, is_deferred_query, partial_eval
from specquery.expressions.rendering import render
from specquery.kernel.exceptions import ExpressionEvaluationException


class Scope:
    def __init__(self, **values):
        self.__dict__.update(values)


class RemoteOrders(DeferredQuery):
    def __canonical__(self) -> str:
        return "RemoteOrders"


class TestPolicy:
    def test_default_policy(self):
        assert can_evaluate_locally(Constant(1))
        assert not can_evaluate_locally(Parameter("o"))
        assert not can_evaluate_locally(new(Scope).node)
        assert not can_evaluate_locally(Constant(RemoteOrders()))

    def test_deferred_by_static_type(self):
        node = FieldAccess(Constant(Scope()), "orders", RemoteOrders)
        assert is_deferred_query(node)


class TestPartialEval:
    def test_captured_values_collapse_to_constants(self):
        scope = Scope(limit=10)
        node = (param("o").total > capture(scope, "limit")).node
        reduced = partial_eval(node)
        assert isinstance(reduced, BinaryOp)
        assert isinstance(reduced.right, Constant)
        assert reduced.right.value == 10
        assert reduced.right.static_type is int
        assert render(reduced) == "(o.total > 10)"

    def test_independent_arithmetic_folded(self):
        node = (param("o").total > (const(2) * capture({"x": 5}, "x"))).node
        assert render(partial_eval(node)) == "(o.total > 10)"

    def test_parameter_dependent_nodes_kept(self):
        o = param("o")
        node = ((o.total * 2) > 5).node
        reduced = partial_eval(node)
        assert reduced is node

    def test_whole_tree_without_parameter_collapses(self):
        node = (capture({"a": 1}, "a") == 1).node
        reduced = partial_eval(node)
        assert isinstance(reduced, Constant)
        assert reduced.value is True

    def test_constants_returned_as_is(self):
        constant = Constant(3)
        assert partial_eval(constant) is constant

    def test_new_is_not_collapsed(self):
        node = (param("o").created == new(Scope)).node
        reduced = partial_eval(node)
        assert render(reduced.right) == "new Scope()"

    def test_arguments_of_new_still_collapse(self):
        node = new(Scope, capture({"a": 4}, "a")).node
        reduced = partial_eval(node)
        assert isinstance(reduced.arguments[0], Constant)
        assert reduced.arguments[0].value == 4

    def test_deferred_query_not_collapsed(self):
        remote = Constant(RemoteOrders())
        node = MethodCall(None, "contains", (FieldAccess(remote, "ids"), param("o").id.node), (0,))
        reduced = partial_eval(node)
        assert isinstance(reduced.arguments[0], FieldAccess)
        assert reduced.arguments[0].target is remote

    def test_deferred_static_type_blocks_collapse(self):
        node = FieldAccess(Constant(Scope(orders=[1])), "orders", RemoteOrders)
        assert partial_eval(node) is node

    def test_shared_subtree_handled_per_position(self):
        shared = capture(Scope(x=1), "x").node
        p = Parameter("o")
        dependent = BinaryOp(BinaryOperator.EQ, FieldAccess(p, "a"), shared, bool)
        independent = BinaryOp(BinaryOperator.EQ, shared, Constant(1), bool)
        node = BinaryOp(BinaryOperator.AND, dependent, independent, bool)

        reduced = partial_eval(node)
        assert render(reduced) == "((o.a == 1) and True)"
        assert isinstance(reduced.left.right, Constant)
        assert isinstance(reduced.right, Constant)

    def test_equal_looking_subtrees_stay_independent(self):
        o = param("o")
        node = ((o.a == capture({"v": 1}, "v")) | (capture({"v": 2}, "v") == capture({"v": 2}, "v"))).node
        assert render(partial_eval(node)) == "((o.a == 1) or True)"

    def test_custom_policy(self):
        node = (param("o").a == (const(1) + 1)).node
        reduced = partial_eval(node, policy=lambda n: isinstance(n, Constant))
        assert render(reduced) == "(o.a == (1 + 1))"

    def test_evaluation_failure_propagates(self):
        node = (param("o").a == capture(Scope(), "missing")).node
        with pytest.raises(ExpressionEvaluationException) as exc_info:
            partial_eval(node)
        assert isinstance(exc_info.value.__cause__, AttributeError)

    def test_division_by_zero_propagates(self):
        node = (param("o").a > (const(1) / 0)).node
        with pytest.raises(ExpressionEvaluationException):
            partial_eval(node)

    def test_input_tree_not_mutated(self):
        scope = Scope(limit=3)
        node = (param("o").total > capture(scope, "limit")).node
        partial_eval(node)
        assert isinstance(node.right, FieldAccess)
