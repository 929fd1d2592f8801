"""
Pattern-match compilation.

Patterns compile against a subject that is already bound to a name, so every
access path (`$match0[1].value0`) is side-effect free and can be repeated.
A pattern becomes a PatternTest: the conditions that must hold, plus the
bindings to introduce once they do.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ferrojs.errors import UnsupportedError
from ferrojs.macros import escape_string
from ferrojs.syntax import (
	Arm,
	BlockExpr,
	FieldPat,
	IdentPat,
	LitPat,
	Match,
	OrPat,
	Pat,
	PathPat,
	RangePat,
	RefPat,
	RestPat,
	SlicePat,
	StructPat,
	TuplePat,
	TupleStructPat,
	WildPat,
)

if TYPE_CHECKING:
	from ferrojs.transpiler import Tail, Transpiler

_CONST_NAME = re.compile(r"^[A-Z][A-Z0-9_]+$")


@dataclass(slots=True)
class PatternTest:
	conditions: list[str] = field(default_factory=list)
	# (source name, value expression, mutable)
	bindings: list[tuple[str, str, bool]] = field(default_factory=list)

	@property
	def irrefutable(self) -> bool:
		return not self.conditions

	@property
	def condition(self) -> str:
		if not self.conditions:
			return "true"
		return " && ".join(self.conditions)


def literal_code(pat: LitPat) -> str:
	lit = pat.lit
	if lit.lit in ("str", "char"):
		code = f'"{escape_string(str(lit.value))}"'
	elif lit.lit == "bool":
		code = "true" if lit.value else "false"
	else:
		code = str(lit.value)
	return f"-{code}" if pat.negative else code


def is_variant_path(path: tuple[str, ...]) -> bool:
	"""`Shape::Circle` names an enum variant; `geometry::Point` does not."""
	return len(path) >= 2 and path[-2][:1].isupper()


def not_null(subject: str) -> str:
	return f"{subject} !== null && {subject} !== undefined"


def is_null(subject: str) -> str:
	return f"({subject} === null || {subject} === undefined)"


# =============================================================================
# Refutable patterns
# =============================================================================
def compile_pattern(ctx: Transpiler, pat: Pat, subject: str) -> PatternTest:
	test = PatternTest()
	_compile(ctx, pat, subject, test)
	return test


def _compile(ctx: Transpiler, pat: Pat, s: str, test: PatternTest) -> None:
	if isinstance(pat, (WildPat, RestPat)):
		return
	if isinstance(pat, RefPat):
		_compile(ctx, pat.pat, s, test)
		return
	if isinstance(pat, IdentPat):
		if pat.sub is not None:
			_compile(ctx, pat.sub, s, test)
		elif pat.name == "None":
			test.conditions.append(is_null(s))
			return
		elif _CONST_NAME.match(pat.name):
			test.conditions.append(f"{s} === {ctx.emit_ident(pat.name)}")
			return
		test.bindings.append((pat.name, s, pat.mutable))
		return
	if isinstance(pat, LitPat):
		test.conditions.append(f"{s} === {literal_code(pat)}")
		return
	if isinstance(pat, RangePat):
		if pat.start is not None:
			test.conditions.append(f"{s} >= {literal_code(pat.start)}")
		if pat.end is not None:
			op = "<=" if pat.inclusive else "<"
			test.conditions.append(f"{s} {op} {literal_code(pat.end)}")
		return
	if isinstance(pat, TuplePat):
		_compile_positional(ctx, pat.elems, s, test)
		return
	if isinstance(pat, SlicePat):
		fixed = [p for p in pat.elems if not isinstance(p, RestPat)]
		op = ">=" if len(fixed) != len(pat.elems) else "==="
		test.conditions.append(f"Array.isArray({s}) && {s}.length {op} {len(fixed)}")
		_compile_positional(ctx, pat.elems, s, test)
		return
	if isinstance(pat, PathPat):
		name = pat.path[-1]
		if name == "None":
			test.conditions.append(is_null(s))
		elif len(pat.path) == 1 and _CONST_NAME.match(name):
			test.conditions.append(f"{s} === {ctx.emit_ident(name)}")
		else:
			test.conditions.append(f'{s} === "{name}"')
		return
	if isinstance(pat, TupleStructPat):
		_compile_tuple_struct(ctx, pat, s, test)
		return
	if isinstance(pat, StructPat):
		if is_variant_path(pat.path):
			test.conditions.append(f'{s}.type === "{pat.path[-1]}"')
		for fp in pat.fields:
			_compile(ctx, fp.pat, f"{s}.{fp.name}", test)
		return
	if isinstance(pat, OrPat):
		_compile_or(ctx, pat, s, test)
		return
	raise UnsupportedError("pattern", f"Unsupported pattern: {pat.kind}")


def _compile_positional(
	ctx: Transpiler, elems: tuple[Pat, ...], s: str, test: PatternTest
) -> None:
	rest = next((i for i, p in enumerate(elems) if isinstance(p, RestPat)), None)
	for i, elem in enumerate(elems):
		if isinstance(elem, RestPat):
			continue
		if rest is not None and i > rest:
			# Elements after `..` count from the end
			offset = len(elems) - i
			_compile(ctx, elem, f"{s}[{s}.length - {offset}]", test)
		else:
			_compile(ctx, elem, f"{s}[{i}]", test)


def _compile_tuple_struct(
	ctx: Transpiler, pat: TupleStructPat, s: str, test: PatternTest
) -> None:
	name = pat.path[-1]
	if name == "Some":
		test.conditions.append(not_null(s))
		for elem in pat.elems:
			_compile(ctx, elem, s, test)
		return
	if name in ("Ok", "Err"):
		key = "ok" if name == "Ok" else "error"
		test.conditions.append(f'"{key}" in {s}')
		for elem in pat.elems:
			_compile(ctx, elem, f"{s}.{key}", test)
		return
	if not is_variant_path(pat.path):
		struct = ctx.self_type if name == "Self" else name
		if struct is not None and struct in ctx.structs:
			# Tuple structs keep their slots at this[i] and carry no tag
			arity = len(ctx.structs[struct])
			index = 0
			for elem in pat.elems:
				if isinstance(elem, RestPat):
					index = arity - (len(pat.elems) - pat.elems.index(elem) - 1)
					continue
				_compile(ctx, elem, f"{s}[{index}]", test)
				index += 1
			return
	test.conditions.append(f'{s}.type === "{name}"')
	for i, elem in enumerate(pat.elems):
		_compile(ctx, elem, f"{s}.value{i}", test)


def _compile_or(ctx: Transpiler, pat: OrPat, s: str, test: PatternTest) -> None:
	alts = [compile_pattern(ctx, alt, s) for alt in pat.alts]
	if any(alt.irrefutable for alt in alts):
		return
	bindings = alts[0].bindings
	if any(alt.bindings != bindings for alt in alts[1:]):
		raise UnsupportedError(
			"pattern", "Or-pattern alternatives must bind the same values"
		)
	parts = [
		f"({alt.condition})" if len(alt.conditions) > 1 else alt.condition
		for alt in alts
	]
	test.conditions.append(f"({' || '.join(parts)})")
	test.bindings.extend(bindings)


# =============================================================================
# Irrefutable destructuring (let, params, for)
# =============================================================================
def destructure(ctx: Transpiler, pat: Pat) -> str:
	"""Declare the names bound by `pat` and return the JS binding pattern.

	A wildcard returns "", which callers turn into a hole or placeholder.
	"""
	if isinstance(pat, IdentPat):
		if pat.sub is not None:
			raise UnsupportedError(
				"pattern", f"Binding pattern `{pat.name} @ ...` cannot destructure"
			)
		return ctx.scopes.declare(pat.name)
	if isinstance(pat, (WildPat, RestPat)):
		return ""
	if isinstance(pat, RefPat):
		return destructure(ctx, pat.pat)
	if isinstance(pat, (TuplePat, SlicePat)):
		elems = list(pat.elems)
		while elems and isinstance(elems[-1], RestPat):
			elems.pop()
		if any(isinstance(p, RestPat) for p in elems):
			raise UnsupportedError("pattern", "`..` must come last when destructuring")
		return "[" + ", ".join(destructure(ctx, p) for p in elems) + "]"
	if isinstance(pat, TupleStructPat) and not is_variant_path(pat.path):
		if pat.path[-1] in ("Some", "Ok", "Err"):
			raise UnsupportedError(
				"pattern", f"Refutable pattern {pat.path[-1]}(..) needs `let ... else`"
			)
		parts = [
			f"{i}: {target}"
			for i, p in enumerate(pat.elems)
			if (target := destructure(ctx, p))
		]
		return "{ " + ", ".join(parts) + " }"
	if isinstance(pat, StructPat) and not is_variant_path(pat.path):
		return "{ " + ", ".join(_destructure_fields(ctx, pat.fields)) + " }"
	raise UnsupportedError(
		"pattern", f"Pattern {pat.kind} is refutable and cannot destructure"
	)


def _destructure_fields(ctx: Transpiler, fields: tuple[FieldPat, ...]) -> list[str]:
	out: list[str] = []
	for fp in fields:
		target = destructure(ctx, fp.pat)
		if not target:
			continue
		out.append(target if target == fp.name else f"{fp.name}: {target}")
	return out


def has_mutable(pat: Pat) -> bool:
	if isinstance(pat, IdentPat):
		return pat.mutable
	if isinstance(pat, RefPat):
		return has_mutable(pat.pat)
	if isinstance(pat, (TuplePat, SlicePat, TupleStructPat)):
		return any(has_mutable(p) for p in pat.elems)
	if isinstance(pat, StructPat):
		return any(has_mutable(fp.pat) for fp in pat.fields)
	return False


# =============================================================================
# Match
# =============================================================================
def _is_some_arm(arm: Arm) -> bool:
	pat = arm.pat
	return (
		isinstance(pat, TupleStructPat)
		and pat.path[-1] == "Some"
		and len(pat.elems) == 1
		and arm.guard is None
	)


def _is_none_arm(arm: Arm) -> bool:
	pat = arm.pat
	if arm.guard is not None:
		return False
	if isinstance(pat, PathPat):
		return pat.path[-1] == "None"
	return isinstance(pat, WildPat) or (isinstance(pat, IdentPat) and pat.name == "None")


def _option_arms(arms: tuple[Arm, ...]) -> tuple[Arm, Arm] | None:
	if len(arms) != 2:
		return None
	first, second = arms
	if _is_some_arm(first) and _is_none_arm(second):
		return first, second
	if _is_some_arm(second) and _is_none_arm(first):
		return second, first
	return None


def _arm_body(ctx: Transpiler, arm: Arm, test: PatternTest, tail: Tail | None) -> list[str]:
	with ctx.scopes.scope():
		lines = ctx.bind_pattern(test)
		if arm.guard is not None:
			# Guards see the arm's bindings; the caller breaks out on success
			guard = ctx.emit_expr(arm.guard)
			return [*lines, f"if ({guard}) {{", *_arm_value(ctx, arm, tail), "}"]
		return lines + _arm_value(ctx, arm, tail)


def _arm_value(ctx: Transpiler, arm: Arm, tail: Tail | None) -> list[str]:
	body = arm.body
	if isinstance(body, BlockExpr) and not body.is_async and body.label is None:
		return ctx.emit_block(body.block, tail)
	return ctx.emit_expr_stmt(body, tail)


def compile_match(ctx: Transpiler, node: Match, tail: Tail | None) -> list[str]:
	"""Compile a match to statements, delivering each arm's value through `tail`.

	Arms are tested in source order and the first satisfied arm wins. A
	`Some(x)` / `None` pair becomes a single null guard.
	"""
	subject = ctx.fresh_temp("match")
	lines = [f"const {subject} = {ctx.emit_expr(node.subject)};"]

	option = _option_arms(node.arms)
	if option is not None:
		some_arm, none_arm = option
		test = compile_pattern(ctx, some_arm.pat, subject)
		lines.append(f"if ({test.condition}) {{")
		lines += _arm_body(ctx, some_arm, test, tail)
		lines.append("} else {")
		lines += _arm_body(ctx, none_arm, PatternTest(), tail)
		lines.append("}")
		return lines

	if any(arm.guard is not None for arm in node.arms):
		return lines + _guarded_ladder(ctx, node.arms, subject, tail)

	opened = False
	for arm in node.arms:
		test = compile_pattern(ctx, arm.pat, subject)
		if test.irrefutable:
			if opened:
				lines.append("} else {")
				lines += _arm_body(ctx, arm, test, tail)
				lines.append("}")
			else:
				lines.append("{")
				lines += _arm_body(ctx, arm, test, tail)
				lines.append("}")
			# Later arms are unreachable
			return lines
		head = "} else if" if opened else "if"
		lines.append(f"{head} ({test.condition}) {{")
		lines += _arm_body(ctx, arm, test, tail)
		opened = True
	if opened:
		lines.append("}")
	return lines


def _guarded_ladder(
	ctx: Transpiler, arms: tuple[Arm, ...], subject: str, tail: Tail | None
) -> list[str]:
	label = ctx.fresh_temp("arms")
	lines = [f"{label}: {{"]
	for arm in arms:
		test = compile_pattern(ctx, arm.pat, subject)
		body = _arm_body(ctx, arm, test, tail)
		# Insert the break after the arm value, inside the guard when present
		if arm.guard is not None:
			body.insert(len(body) - 1, f"break {label};")
		else:
			body.append(f"break {label};")
		if test.irrefutable:
			lines += ["{", *body, "}"]
			if arm.guard is None:
				break
		else:
			lines += [f"if ({test.condition}) {{", *body, "}"]
	lines.append("}")
	return lines
