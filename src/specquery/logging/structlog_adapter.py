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
"""StructlogAdapter: default LoggingPort implementation using structlog."""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from specquery.config.properties.logging import LoggingProperties
from specquery.core.config import Config


class StructlogAdapter:
    """Logging adapter backed by structlog.

    Reads ``specquery.logging.format`` (``console`` or ``json``) and
    ``specquery.logging.level`` (``root`` plus per-logger levels).
    """

    def __init__(self) -> None:
        self._root_level: str = "INFO"
        self._format: str = "console"
        self._logger_levels: dict[str, str] = {}

    @property
    def format(self) -> str:
        return self._format

    @property
    def root_level(self) -> str:
        return self._root_level

    def configure(self, config: Config) -> None:
        """Configure structlog and stdlib logging from *config*."""
        properties = config.bind(LoggingProperties)
        levels = properties.level
        if isinstance(levels, str):
            levels = {"root": levels}
        levels = dict(levels)
        self._root_level = str(levels.pop("root", "INFO")).upper()
        self._logger_levels = {name: str(level).upper() for name, level in levels.items()}
        self._format = str(properties.format).lower()

        self._setup_structlog()
        for name, level in self._logger_levels.items():
            self.set_level(name, level)

    def get_logger(self, name: str) -> Any:
        """Get a structlog BoundLogger by name."""
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        """Set the level of a stdlib logger (``root`` is the root logger)."""
        log_level = getattr(logging, level.upper(), logging.INFO)
        logging.getLogger(None if name == "root" else name).setLevel(log_level)

    def _setup_structlog(self) -> None:
        log_level = getattr(logging, self._root_level, logging.INFO)

        processors: list[structlog.types.Processor] = [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
        ]

        if self._format == "json":
            processors.append(structlog.processors.JSONRenderer())
        else:
            processors.append(structlog.dev.ConsoleRenderer())

        structlog.configure(
            processors=processors,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

        logging.basicConfig(
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
            stream=sys.stdout,
            level=log_level,
            force=True,
        )
