"""Tests for lexical scopes and binding renames."""

from __future__ import annotations

import pytest
from ferrojs.scope import Scopes, js_name


class TestJsName:
	def test_plain_name_unchanged(self):
		assert js_name("count") == "count"

	def test_reserved_word_gets_suffix(self):
		assert js_name("this") == "this_"
		assert js_name("new") == "new_"
		assert js_name("function") == "function_"

	def test_raw_identifier_prefix_stripped(self):
		assert js_name("r#type") == "type"


class TestScopes:
	def test_declare_returns_source_name(self):
		scopes = Scopes()
		assert scopes.declare("x") == "x"
		assert scopes.resolve("x") == "x"
		assert scopes.renames == 0

	def test_redeclare_in_same_scope_renames(self):
		scopes = Scopes()
		scopes.declare("x")
		assert scopes.declare("x") == "x_1"
		assert scopes.declare("x") == "x_2"
		assert scopes.resolve("x") == "x_2"
		assert scopes.renames == 2

	def test_inner_scope_shadowing_renames(self):
		scopes = Scopes()
		scopes.declare("x")
		with scopes.scope():
			assert scopes.declare("x") == "x_1"
			assert scopes.resolve("x") == "x_1"
		assert scopes.resolve("x") == "x"

	def test_sibling_scopes_reuse_name(self):
		scopes = Scopes()
		with scopes.scope():
			assert scopes.declare("x") == "x"
		with scopes.scope():
			assert scopes.declare("x") == "x"

	def test_shadowed_name_stays_taken(self):
		scopes = Scopes()
		scopes.declare("x")
		scopes.declare("x")
		with scopes.scope():
			# Both `x` and `x_1` are live in the enclosing scope
			assert scopes.declare("x") == "x_2"

	def test_reserve_then_bind(self):
		scopes = Scopes()
		scopes.declare("x")
		target = scopes.reserve("x")
		assert target == "x_1"
		# Not visible until bound
		assert scopes.resolve("x") == "x"
		scopes.bind("x", target)
		assert scopes.resolve("x") == "x_1"

	def test_free_name_resolves_to_itself(self):
		scopes = Scopes()
		assert scopes.resolve("helper") == "helper"
		assert scopes.resolve("delete") == "delete_"
		assert not scopes.is_live("helper")

	def test_reserved_word_binding(self):
		scopes = Scopes()
		assert scopes.declare("default") == "default_"
		assert scopes.resolve("default") == "default_"

	def test_seed_declares_each_name(self):
		scopes = Scopes()
		assert scopes.seed(["a", "b"]) == ["a", "b"]
		assert scopes.resolve("a") == "a"
		assert scopes.is_live("b")

	def test_cannot_pop_function_scope(self):
		scopes = Scopes()
		with pytest.raises(RuntimeError):
			scopes.pop()

	def test_seeded_parameter_is_shadowed(self):
		scopes = Scopes()
		scopes.seed(["n"])
		with scopes.scope():
			assert scopes.declare("n") == "n_1"
		assert scopes.resolve("n") == "n"
