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
"""Unified exception hierarchy for specquery.

All library exceptions inherit from SpecQueryException, so callers can
catch one type for every failure raised by specifications, expressions,
repositories and caches.

Categories:
- BusinessException: Misuse of the public API and query outcome errors
- ExpressionException: Predicate evaluation, canonicalization and compilation
- InfrastructureException: Data source and cache store failures
"""

from __future__ import annotations

# =============================================================================
# Base Exception
# =============================================================================


class SpecQueryException(Exception):
    """Base exception for all specquery errors.

    Carries an optional error code and context dict for structured error data.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "SPEC_INVALID_ARGUMENT").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Business Exceptions
# =============================================================================


class BusinessException(SpecQueryException):
    """API misuse and query outcome errors."""


class ValidationException(BusinessException):
    """Input validation failures."""


class InvalidArgumentException(ValidationException):
    """A required argument was missing or out of range."""


class ResourceNotFoundException(BusinessException):
    """A query expected a record but none matched."""


class ConflictException(BusinessException):
    """A query expected exactly one record but several matched."""


# =============================================================================
# Expression Exceptions
# =============================================================================


class ExpressionException(SpecQueryException):
    """Failures while evaluating, rendering or translating a predicate tree."""


class ExpressionEvaluationException(ExpressionException):
    """Local evaluation of a subtree raised."""


class CanonicalizationException(ExpressionException):
    """A value has no canonical text form and cannot take part in a cache key."""


class ExpressionCompilationException(ExpressionException):
    """A backend compiler cannot translate a node into its query language."""


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class InfrastructureException(SpecQueryException):
    """Infrastructure failures: data source or cache store."""
