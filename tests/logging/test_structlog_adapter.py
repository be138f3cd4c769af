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
"""Tests for StructlogAdapter, the default LoggingPort implementation."""

import logging

import pytest

from specquery.cache.adapters.memory import InMemoryCacheProvider
from specquery.core.config import Config
from specquery.logging.port import LoggingPort
from specquery.logging.structlog_adapter import StructlogAdapter


@pytest.fixture
def adapter():
    adapter = StructlogAdapter()
    yield adapter
    logging.getLogger().setLevel(logging.WARNING)


class TestStructlogAdapterConformance:
    def test_implements_logging_port(self, adapter):
        assert isinstance(adapter, LoggingPort)


class TestStructlogAdapterConfigure:
    def test_defaults(self, adapter):
        adapter.configure(Config({}))
        assert adapter.format == "console"
        assert adapter.root_level == "INFO"

    def test_packaged_defaults(self, adapter):
        adapter.configure(Config.defaults())
        assert adapter.format == "console"
        assert logging.getLogger().level == logging.INFO

    def test_reads_root_level(self, adapter):
        adapter.configure(Config({"specquery": {"logging": {"level": {"root": "debug"}}}}))
        assert adapter.root_level == "DEBUG"
        assert logging.getLogger().level == logging.DEBUG

    def test_reads_format(self, adapter):
        adapter.configure(Config({"specquery": {"logging": {"format": "JSON"}}}))
        assert adapter.format == "json"

    def test_per_logger_levels(self, adapter):
        config = Config({"specquery": {"logging": {"level": {"root": "INFO", "specquery.cache": "DEBUG"}}}})
        adapter.configure(config)
        assert adapter._logger_levels == {"specquery.cache": "DEBUG"}
        assert logging.getLogger("specquery.cache").level == logging.DEBUG
        logging.getLogger("specquery.cache").setLevel(logging.NOTSET)

    def test_env_level_string(self, adapter, monkeypatch):
        monkeypatch.setenv("SPECQUERY_LOGGING_LEVEL", "warning")
        adapter.configure(Config({}))
        assert adapter.root_level == "WARNING"


class TestStructlogAdapterLoggers:
    def test_get_logger_returns_bound_logger(self, adapter):
        adapter.configure(Config({}))
        logger = adapter.get_logger("specquery.test")
        assert callable(getattr(logger, "info", None))
        assert callable(getattr(logger, "debug", None))

    def test_set_level(self, adapter):
        adapter.configure(Config({}))
        adapter.set_level("specquery.data", "DEBUG")
        assert logging.getLogger("specquery.data").level == logging.DEBUG
        adapter.set_level("specquery.data", "NOTSET")

    def test_set_root_level(self, adapter):
        adapter.configure(Config({}))
        adapter.set_level("root", "ERROR")
        assert logging.getLogger().level == logging.ERROR

    def test_library_debug_events_reach_handlers(self, adapter):
        adapter.configure(Config({"specquery": {"logging": {"level": {"root": "DEBUG"}}}}))
        records: list[logging.LogRecord] = []
        handler = logging.Handler()
        handler.emit = records.append  # type: ignore[method-assign]
        logger = logging.getLogger("specquery.cache.adapters.memory")
        logger.addHandler(handler)
        try:
            InMemoryCacheProvider().get_or_create("k", lambda: 1, None)
        finally:
            logger.removeHandler(handler)
        assert any("Cache miss" in record.getMessage() for record in records)
