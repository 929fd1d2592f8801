from __future__ import annotations

import shutil
from collections.abc import Callable

import pytest
from ferrojs.unit import transpile_source


def pytest_configure(config: pytest.Config) -> None:
	config.addinivalue_line("markers", "node: needs a node binary on PATH")


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
	if shutil.which("node") is not None:
		return
	skip = pytest.mark.skip(reason="node is not installed")
	for item in items:
		if "node" in item.keywords:
			item.add_marker(skip)


@pytest.fixture
def compile_source() -> Callable[[str], str]:
	"""Translate source text and return the assembled program."""

	def compile(text: str) -> str:
		return transpile_source(text).check().code

	return compile
