"""
Environment-backed configuration.

Settings live in environment variables so that subprocesses and the CLI see
the same values. `env` reads them lazily; assigning an attribute writes the
variable back.
"""

from __future__ import annotations

import logging
import os

ENV_FERROJS_NODE = "FERROJS_NODE"
ENV_FERROJS_RUN_TIMEOUT = "FERROJS_RUN_TIMEOUT"
ENV_FERROJS_LOG_LEVEL = "FERROJS_LOG_LEVEL"

DEFAULT_NODE = "node"
DEFAULT_RUN_TIMEOUT = 10.0
DEFAULT_LOG_LEVEL = "WARNING"


class FerroEnv:
	@property
	def node(self) -> str:
		return os.environ.get(ENV_FERROJS_NODE) or DEFAULT_NODE

	@node.setter
	def node(self, value: str) -> None:
		os.environ[ENV_FERROJS_NODE] = value

	@property
	def run_timeout(self) -> float:
		raw = os.environ.get(ENV_FERROJS_RUN_TIMEOUT)
		if not raw:
			return DEFAULT_RUN_TIMEOUT
		try:
			return float(raw)
		except ValueError:
			raise ValueError(
				f"{ENV_FERROJS_RUN_TIMEOUT} must be a number of seconds, got {raw!r}"
			) from None

	@run_timeout.setter
	def run_timeout(self, value: float) -> None:
		os.environ[ENV_FERROJS_RUN_TIMEOUT] = str(value)

	@property
	def log_level(self) -> int:
		name = (os.environ.get(ENV_FERROJS_LOG_LEVEL) or DEFAULT_LOG_LEVEL).upper()
		level = logging.getLevelName(name)
		if not isinstance(level, int):
			raise ValueError(f"{ENV_FERROJS_LOG_LEVEL} is not a logging level: {name!r}")
		return level

	@log_level.setter
	def log_level(self, value: str) -> None:
		os.environ[ENV_FERROJS_LOG_LEVEL] = value


env = FerroEnv()
