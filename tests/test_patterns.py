"""Tests for pattern tests, destructuring and match compilation."""

from __future__ import annotations

import pytest
from ferrojs.errors import UnsupportedError
from ferrojs.patterns import compile_match, compile_pattern, destructure, has_mutable
from ferrojs.syntax import (
	Arm,
	Binary,
	Block,
	BlockExpr,
	ExprStmt,
	FieldPat,
	Ident,
	IdentPat,
	LitExpr,
	LitPat,
	Match,
	OrPat,
	PathPat,
	RangePat,
	RestPat,
	SlicePat,
	StructPat,
	TuplePat,
	TupleStructPat,
	WildPat,
)
from ferrojs.transpiler import RETURN, Transpiler


def _int(n: int) -> LitPat:
	return LitPat(LitExpr(n, "int"))


def _lines(lines: list[str]) -> str:
	return "\n".join(lines)


# =============================================================================
# Refutable patterns
# =============================================================================


class TestCompilePattern:
	def test_wildcard_is_irrefutable(self):
		test = compile_pattern(Transpiler(), WildPat(), "s")
		assert test.irrefutable
		assert test.condition == "true"
		assert test.bindings == []

	def test_binding(self):
		test = compile_pattern(Transpiler(), IdentPat("x", mutable=True), "s")
		assert test.irrefutable
		assert test.bindings == [("x", "s", True)]

	def test_literal(self):
		test = compile_pattern(Transpiler(), _int(3), "s")
		assert test.condition == "s === 3"

	def test_negative_literal(self):
		test = compile_pattern(Transpiler(), LitPat(LitExpr(1, "int"), negative=True), "s")
		assert test.condition == "s === -1"

	def test_string_literal(self):
		test = compile_pattern(Transpiler(), LitPat(LitExpr('a"b', "str")), "s")
		assert test.condition == 's === "a\\"b"'

	def test_inclusive_range(self):
		test = compile_pattern(Transpiler(), RangePat(_int(1), _int(5)), "s")
		assert test.condition == "s >= 1 && s <= 5"

	def test_exclusive_range(self):
		test = compile_pattern(Transpiler(), RangePat(_int(1), _int(5), inclusive=False), "s")
		assert test.condition == "s >= 1 && s < 5"

	def test_none(self):
		test = compile_pattern(Transpiler(), PathPat(("None",)), "s")
		assert test.condition == "(s === null || s === undefined)"

	def test_some(self):
		pat = TupleStructPat(("Some",), (IdentPat("v"),))
		test = compile_pattern(Transpiler(), pat, "s")
		assert test.condition == "s !== null && s !== undefined"
		assert test.bindings == [("v", "s", False)]

	def test_nested_some_literal(self):
		pat = TupleStructPat(("Some",), (_int(0),))
		test = compile_pattern(Transpiler(), pat, "s")
		assert test.condition == "s !== null && s !== undefined && s === 0"

	def test_ok_and_err(self):
		ok = compile_pattern(Transpiler(), TupleStructPat(("Ok",), (IdentPat("v"),)), "s")
		err = compile_pattern(Transpiler(), TupleStructPat(("Err",), (IdentPat("e"),)), "s")
		assert ok.condition == '"ok" in s'
		assert ok.bindings == [("v", "s.ok", False)]
		assert err.condition == '"error" in s'
		assert err.bindings == [("e", "s.error", False)]

	def test_unit_variant(self):
		test = compile_pattern(Transpiler(), PathPat(("Color", "Red")), "s")
		assert test.condition == 's === "Red"'

	def test_tuple_variant(self):
		pat = TupleStructPat(("Shape", "Rect"), (IdentPat("w"), IdentPat("h")))
		test = compile_pattern(Transpiler(), pat, "s")
		assert test.condition == 's.type === "Rect"'
		assert test.bindings == [("w", "s.value0", False), ("h", "s.value1", False)]

	def test_struct_variant(self):
		pat = StructPat(
			("Shape", "Circle"),
			(FieldPat("radius", IdentPat("r")), FieldPat("filled", LitPat(LitExpr(True, "bool")))),
		)
		test = compile_pattern(Transpiler(), pat, "s")
		assert test.condition == 's.type === "Circle" && s.filled === true'
		assert test.bindings == [("r", "s.radius", False)]

	def test_plain_struct_has_no_tag_test(self):
		pat = StructPat(("Point",), (FieldPat("x", _int(0)), FieldPat("y", IdentPat("y"))))
		test = compile_pattern(Transpiler(), pat, "s")
		assert test.condition == "s.x === 0"

	def test_tuple_struct_uses_slots(self):
		ctx = Transpiler(structs={"Pair": ("0", "1")})
		pat = TupleStructPat(("Pair",), (IdentPat("a"), _int(2)))
		test = compile_pattern(ctx, pat, "s")
		assert test.condition == "s[1] === 2"
		assert test.bindings == [("a", "s[0]", False)]

	def test_tuple_struct_rest(self):
		ctx = Transpiler(structs={"Triple": ("0", "1", "2")})
		pat = TupleStructPat(("Triple",), (RestPat(), IdentPat("z")))
		test = compile_pattern(ctx, pat, "s")
		assert test.irrefutable
		assert test.bindings == [("z", "s[2]", False)]

	def test_self_tuple_struct_inside_impl(self):
		ctx = Transpiler(self_type="Meters", structs={"Meters": ("0",)})
		test = compile_pattern(ctx, TupleStructPat(("Self",), (IdentPat("m"),)), "s")
		assert test.irrefutable
		assert test.bindings == [("m", "s[0]", False)]

	def test_tuple_positions(self):
		pat = TuplePat((_int(0), IdentPat("b")))
		test = compile_pattern(Transpiler(), pat, "s")
		assert test.condition == "s[0] === 0"
		assert test.bindings == [("b", "s[1]", False)]

	def test_slice_with_rest(self):
		pat = SlicePat((IdentPat("first"), RestPat(), IdentPat("last")))
		test = compile_pattern(Transpiler(), pat, "s")
		assert test.condition == "Array.isArray(s) && s.length >= 2"
		assert test.bindings == [("first", "s[0]", False), ("last", "s[s.length - 1]", False)]

	def test_exact_slice(self):
		test = compile_pattern(Transpiler(), SlicePat((_int(1), _int(2))), "s")
		assert test.condition == "Array.isArray(s) && s.length === 2 && s[0] === 1 && s[1] === 2"

	def test_or_pattern(self):
		test = compile_pattern(Transpiler(), OrPat((_int(1), _int(2))), "s")
		assert test.condition == "(s === 1 || s === 2)"

	def test_or_pattern_with_wildcard_is_irrefutable(self):
		test = compile_pattern(Transpiler(), OrPat((_int(1), WildPat())), "s")
		assert test.irrefutable

	def test_or_pattern_binding_mismatch(self):
		pat = OrPat(
			(
				TupleStructPat(("Some",), (IdentPat("a"),)),
				TupleStructPat(("Some",), (IdentPat("b"),)),
			)
		)
		with pytest.raises(UnsupportedError):
			compile_pattern(Transpiler(), pat, "s")

	def test_binding_with_subpattern(self):
		test = compile_pattern(Transpiler(), IdentPat("n", sub=RangePat(_int(1), _int(9))), "s")
		assert test.condition == "s >= 1 && s <= 9"
		assert test.bindings == [("n", "s", False)]

	def test_constant_name_compares(self):
		test = compile_pattern(Transpiler(), IdentPat("LIMIT"), "s")
		assert test.condition == "s === LIMIT"
		assert test.bindings == []


# =============================================================================
# Destructuring
# =============================================================================


class TestDestructure:
	def test_tuple(self):
		ctx = Transpiler()
		assert destructure(ctx, TuplePat((IdentPat("a"), WildPat(), IdentPat("c")))) == "[a, , c]"

	def test_trailing_rest(self):
		ctx = Transpiler()
		assert destructure(ctx, SlicePat((IdentPat("head"), RestPat()))) == "[head]"

	def test_middle_rest_fails(self):
		with pytest.raises(UnsupportedError):
			destructure(Transpiler(), TuplePat((IdentPat("a"), RestPat(), IdentPat("z"))))

	def test_struct_fields(self):
		pat = StructPat(("Point",), (FieldPat("x", IdentPat("x")), FieldPat("y", IdentPat("py"))))
		assert destructure(Transpiler(), pat) == "{ x, y: py }"

	def test_tuple_struct(self):
		pat = TupleStructPat(("Meters",), (IdentPat("m"),))
		assert destructure(Transpiler(), pat) == "{ 0: m }"

	def test_refutable_some_fails(self):
		with pytest.raises(UnsupportedError, match="let ... else"):
			destructure(Transpiler(), TupleStructPat(("Some",), (IdentPat("v"),)))

	def test_declares_renamed_binding(self):
		ctx = Transpiler()
		ctx.scopes.declare("a")
		assert destructure(ctx, TuplePat((IdentPat("a"), IdentPat("b")))) == "[a_1, b]"

	def test_has_mutable(self):
		assert has_mutable(TuplePat((IdentPat("a"), IdentPat("b", mutable=True))))
		assert not has_mutable(TuplePat((IdentPat("a"), IdentPat("b"))))


# =============================================================================
# Match
# =============================================================================


def _value(expr) -> BlockExpr:
	return BlockExpr(Block((ExprStmt(expr, semi=False),)))


class TestCompileMatch:
	def test_option_match(self):
		node = Match(
			Ident("o"),
			(
				Arm(
					TupleStructPat(("Some",), (IdentPat("x"),)),
					Binary("*", Ident("x"), LitExpr(2, "int")),
				),
				Arm(PathPat(("None",)), LitExpr(0, "int")),
			),
		)
		code = _lines(compile_match(Transpiler(), node, RETURN))
		assert code == (
			"const $match0 = o;\n"
			"if ($match0 !== null && $match0 !== undefined) {\n"
			"const x = $match0;\n"
			"return x * 2;\n"
			"} else {\n"
			"return 0;\n"
			"}"
		)

	def test_option_match_none_first(self):
		node = Match(
			Ident("o"),
			(
				Arm(PathPat(("None",)), LitExpr(0, "int")),
				Arm(TupleStructPat(("Some",), (IdentPat("x"),)), Ident("x")),
			),
		)
		code = _lines(compile_match(Transpiler(), node, RETURN))
		assert "if ($match0 !== null && $match0 !== undefined) {\nconst x = $match0;\nreturn x;" in code

	def test_literal_ladder_with_default(self):
		node = Match(
			Ident("n"),
			(
				Arm(_int(1), LitExpr("one", "str")),
				Arm(_int(2), LitExpr("two", "str")),
				Arm(WildPat(), LitExpr("many", "str")),
			),
		)
		code = _lines(compile_match(Transpiler(), node, RETURN))
		assert code == (
			"const $match0 = n;\n"
			"if ($match0 === 1) {\n"
			'return "one";\n'
			"} else if ($match0 === 2) {\n"
			'return "two";\n'
			"} else {\n"
			'return "many";\n'
			"}"
		)

	def test_arms_after_catch_all_dropped(self):
		node = Match(
			Ident("n"),
			(
				Arm(IdentPat("other"), Ident("other")),
				Arm(_int(1), LitExpr(1, "int")),
			),
		)
		code = _lines(compile_match(Transpiler(), node, RETURN))
		assert code == "const $match0 = n;\n{\nconst other = $match0;\nreturn other;\n}"

	def test_tuple_match_binds_positions(self):
		node = Match(
			Ident("p"),
			(Arm(TuplePat((IdentPat("x"), IdentPat("y"))), _value(Ident("y"))),),
		)
		code = _lines(compile_match(Transpiler(), node, RETURN))
		assert "const x = $match0[0];" in code
		assert "const y = $match0[1];" in code
		assert "return y;" in code

	def test_guarded_arms(self):
		node = Match(
			Ident("n"),
			(
				Arm(IdentPat("x"), LitExpr("pos", "str"), guard=Binary(">", Ident("x"), LitExpr(0, "int"))),
				Arm(WildPat(), LitExpr("other", "str")),
			),
		)
		code = _lines(compile_match(Transpiler(), node, RETURN))
		assert code == (
			"const $match0 = n;\n"
			"$arms1: {\n"
			"{\n"
			"const x = $match0;\n"
			"if (x > 0) {\n"
			'return "pos";\n'
			"break $arms1;\n"
			"}\n"
			"}\n"
			"{\n"
			'return "other";\n'
			"break $arms1;\n"
			"}\n"
			"}"
		)

	def test_arm_scopes_are_isolated(self):
		node = Match(
			Ident("o"),
			(
				Arm(TupleStructPat(("Ok",), (IdentPat("v"),)), Ident("v")),
				Arm(TupleStructPat(("Err",), (IdentPat("v"),)), Ident("v")),
			),
		)
		code = _lines(compile_match(Transpiler(), node, RETURN))
		assert "const v = $match0.ok;" in code
		assert "const v = $match0.error;" in code
		assert "v_1" not in code

	def test_statement_match_without_tail(self):
		node = Match(Ident("n"), (Arm(_int(1), Ident("f")), Arm(WildPat(), Ident("g"))))
		code = _lines(compile_match(Transpiler(), node, None))
		assert "if ($match0 === 1) {\nf;\n} else {\ng;\n}" in code
