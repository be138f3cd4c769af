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
"""Tests for the specquery exception hierarchy."""

import pytest

from specquery.kernel.exceptions import (
    BusinessException,
    CanonicalizationException,
    ConflictException,
    ExpressionCompilationException,
    ExpressionEvaluationException,
    ExpressionException,
    InfrastructureException,
    InvalidArgumentException,
    ResourceNotFoundException,
    SpecQueryException,
    ValidationException,
)


class TestSpecQueryException:
    def test_basic_creation(self):
        exc = SpecQueryException("something went wrong")
        assert str(exc) == "something went wrong"
        assert exc.code is None
        assert exc.context == {}

    def test_code_and_context(self):
        exc = SpecQueryException("no match", code="QUERY_NO_RESULT", context={"entity": "Order"})
        assert exc.code == "QUERY_NO_RESULT"
        assert exc.context["entity"] == "Order"

    def test_context_not_shared(self):
        exc = SpecQueryException("a")
        exc.context["key"] = "value"
        assert SpecQueryException("b").context == {}


class TestExceptionHierarchy:
    @pytest.mark.parametrize(
        ("child", "parent"),
        [
            (BusinessException, SpecQueryException),
            (ValidationException, BusinessException),
            (InvalidArgumentException, ValidationException),
            (ResourceNotFoundException, BusinessException),
            (ConflictException, BusinessException),
            (ExpressionException, SpecQueryException),
            (ExpressionEvaluationException, ExpressionException),
            (CanonicalizationException, ExpressionException),
            (ExpressionCompilationException, ExpressionException),
            (InfrastructureException, SpecQueryException),
        ],
    )
    def test_subclassing(self, child, parent):
        assert issubclass(child, parent)

    def test_catch_all(self):
        exceptions = [
            InvalidArgumentException("bad"),
            ResourceNotFoundException("missing"),
            CanonicalizationException("no text"),
            InfrastructureException("down"),
        ]
        for exc in exceptions:
            with pytest.raises(SpecQueryException):
                raise exc
