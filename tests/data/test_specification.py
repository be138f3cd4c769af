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
"""Tests for Specification."""

from dataclasses import FrozenInstanceError, dataclass
from datetime import timedelta

import pytest

from specquery.data.specification import DEFAULT_CACHE_DURATION, Specification
from specquery.expressions.builder import lambda_
from specquery.expressions.interpreter import compile_lambda
from specquery.expressions.nodes import BinaryOperator
from specquery.kernel.exceptions import InvalidArgumentException


@dataclass
class Product:
    id: int
    name: str = ""
    price: float = 0.0


class TestDefaults:
    def test_empty_specification(self):
        spec = Specification(Product)
        assert spec.criteria is None
        assert spec.includes == ()
        assert spec.include_strings == ()
        assert spec.order_key is None
        assert spec.order_ascending is True
        assert (spec.skip, spec.take) == (0, 0)
        assert spec.is_paging_enabled is False
        assert spec.is_untracked is False
        assert spec.should_cache is False

    def test_entity_type_must_be_a_class(self):
        with pytest.raises(InvalidArgumentException):
            Specification("Product")  # type: ignore[arg-type]


class TestBuilder:
    def test_fluent_calls_return_new_instances(self):
        base = Specification(Product)
        filtered = base.where(lambda p: p.price > 5)
        assert filtered is not base
        assert base.criteria is None
        assert filtered.criteria is not None

    def test_frozen(self):
        with pytest.raises(FrozenInstanceError):
            Specification(Product).skip = 3  # type: ignore[misc]

    def test_successive_where_combined_with_and(self):
        spec = Specification(Product).where(lambda p: p.price > 5).where(lambda item: item.name == "Lamp")
        assert spec.criteria.body.op is BinaryOperator.AND
        predicate = compile_lambda(spec.criteria)
        assert predicate(Product(1, "Lamp", 10.0)) is True
        assert predicate(Product(2, "Lamp", 1.0)) is False
        assert predicate(Product(3, "Desk", 10.0)) is False

    def test_combined_criteria_share_one_parameter(self):
        spec = Specification(Product).where(lambda p: p.price > 5).where(lambda item: item.name == "Lamp")
        right = spec.criteria.body.right
        assert right.left.target is spec.criteria.parameter

    def test_where_accepts_prebuilt_lambda(self):
        expression = lambda_(lambda p: p.price > 5, Product)
        assert Specification(Product).where(expression).criteria is expression

    def test_include_and_include_path(self):
        spec = Specification(Product).include(lambda p: p.category).include_path("supplier.address")
        assert len(spec.includes) == 1
        assert spec.include_strings == ("supplier.address",)

    def test_empty_include_path_rejected(self):
        with pytest.raises(InvalidArgumentException):
            Specification(Product).include_path("")

    def test_order_by(self):
        spec = Specification(Product).order_by(lambda p: p.name)
        assert spec.order_ascending is True
        assert spec.order_by_descending(lambda p: p.price).order_ascending is False

    def test_paged(self):
        spec = Specification(Product).paged(20, 10)
        assert (spec.skip, spec.take, spec.is_paging_enabled) == (20, 10, True)

    @pytest.mark.parametrize(("skip", "take"), [(-1, 10), (0, -5)])
    def test_negative_paging_rejected(self, skip, take):
        with pytest.raises(InvalidArgumentException):
            Specification(Product).paged(skip, take)

    def test_untracked(self):
        spec = Specification(Product).untracked()
        assert spec.is_untracked is True
        assert spec.untracked() is spec


class TestCached:
    def test_seconds(self):
        spec = Specification(Product).cached(30)
        assert spec.should_cache is True
        assert spec.cache_duration == timedelta(seconds=30)

    def test_timedelta(self):
        assert Specification(Product).cached(timedelta(minutes=2)).cache_duration == timedelta(minutes=2)

    @pytest.mark.parametrize("duration", [None, 0, -3, timedelta(0)])
    def test_default_duration(self, duration):
        assert Specification(Product).cached(duration).cache_duration == DEFAULT_CACHE_DURATION

    def test_default_duration_is_five_minutes(self):
        assert DEFAULT_CACHE_DURATION == timedelta(seconds=300)


class TestFactories:
    def test_by_id(self):
        predicate = compile_lambda(Specification.by_id(Product, 7).criteria)
        assert predicate(Product(7)) is True
        assert predicate(Product(8)) is False

    def test_by_ids(self):
        spec = Specification.by_ids(Product, [1, 3])
        predicate = compile_lambda(spec.criteria)
        assert [predicate(Product(i)) for i in (1, 2, 3)] == [True, False, True]
        assert "contains({1|3}, Product.id)" in spec.cache_key

    def test_by_ids_accepts_generators(self):
        spec = Specification.by_ids(Product, (i for i in (1, 2)))
        assert "{1|2}" in spec.cache_key

    def test_custom_key_name(self):
        spec = Specification.by_id(Product, "Lamp", key="name")
        assert '(Product.name == "Lamp")' in spec.cache_key


class TestIdentity:
    def test_equal_when_keys_equal(self):
        first = Specification(Product).where(lambda p: p.price > 5).paged(0, 10)
        second = Specification(Product).where(lambda x: x.price > 5).paged(0, 10)
        assert first == second
        assert hash(first) == hash(second)
        assert len({first, second}) == 1

    def test_different_specifications_differ(self):
        assert Specification(Product).paged(0, 10) != Specification(Product).paged(0, 20)

    def test_not_equal_to_other_types(self):
        assert Specification(Product) != "Product"

    def test_cache_key_computed_once(self):
        spec = Specification(Product).where(lambda p: p.price > 5)
        assert spec.cache_key is spec.cache_key
