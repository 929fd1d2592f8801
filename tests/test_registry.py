"""Tests for the explicit fragment registry."""

from __future__ import annotations

import pytest
from ferrojs.errors import TranspileError
from ferrojs.registry import Registry
from ferrojs.syntax import Block, FnDecl, InertItem, StructDecl
from ferrojs.unit import HEADER


class TestRegister:
	def test_keeps_registration_order(self):
		registry = Registry()
		registry.register(FnDecl("b", (), Block()))
		registry.register(FnDecl("a", (), Block()))
		assert registry.fragments() == ["function b() {}", "function a() {}"]
		assert len(registry) == 2

	def test_returns_fragments(self):
		registry = Registry()
		assert registry.register(InertItem("fmt", "use")) == ["// Skipped use: fmt"]

	def test_struct_fields_reach_later_declarations(self):
		registry = Registry()
		registry.register(StructDecl("Point", ("x", "y")))
		registry.register_source("fn origin() -> Point { Point { y: 0, x: 0 } }")
		assert "return new Point(0, 0);" in registry.fragments()[-1]

	def test_failure_leaves_registry_unchanged(self):
		registry = Registry()
		registry.register_source("fn ok() {}")
		with pytest.raises(TranspileError, match="Unsupported macro"):
			registry.register_source("fn a() {}\nfn b() { sql!(x); }")
		assert registry.fragments() == ["function ok() {}"]

	def test_enum_names_reach_later_impls(self):
		registry = Registry()
		registry.register_source("enum Color { Red, Green }")
		with pytest.raises(TranspileError, match="on an enum"):
			registry.register_source("impl Color { fn is_red(&self) -> bool { true } }")
		assert len(registry) == 1

	def test_iteration(self):
		registry = Registry()
		registry.register_source("fn a() {}\nfn b() {}")
		assert list(registry) == ["function a() {}", "function b() {}"]

	def test_clear(self):
		registry = Registry()
		registry.register_source("fn a() {}")
		registry.clear()
		assert len(registry) == 0
		assert registry.assemble(preamble=False) == f"{HEADER}\n"


class TestItemDecorator:
	def test_registers_docstring_source(self):
		registry = Registry()

		@registry.item
		def point():
			"""
			struct Point { x: i32, y: i32 }
			"""

		assert callable(point)
		assert registry.fragments()[0].startswith("class Point {")

	def test_missing_docstring(self):
		registry = Registry()

		def nothing():
			pass

		with pytest.raises(TranspileError, match="docstring"):
			registry.item(nothing)
		assert len(registry) == 0

	def test_assemble(self):
		registry = Registry()

		@registry.item
		def answer():
			"""const ANSWER: i32 = 42;"""

		assert registry.assemble(preamble=False) == f"{HEADER}\nconst ANSWER = 42;\n"
