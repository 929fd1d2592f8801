"""
Source syntax tree -> JavaScript text.

Translates function bodies, expressions and statements of the source language
into JavaScript source fragments. Fragments are plain strings; statements are
emitted as lists of lines which the caller joins. Control flow that is an
expression in the source (`if`, `match`, blocks, `loop`) is emitted as a
statement whenever the surrounding code allows it, with a Tail describing
where the value goes, and as an arrow IIFE otherwise.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

from ferrojs.builtins import (
	CONSTANT_PATHS,
	FLOAT_TYPES,
	HOST_GLOBALS,
	INT_TYPES,
	emit_associated_call,
	emit_cast,
	emit_entries,
	emit_method,
)
from ferrojs.errors import TranspileError, UnsupportedError
from ferrojs.frontend import parse_expression
from ferrojs.macros import VALUE_MACROS, escape_string, escape_template, expand_macro
from ferrojs.patterns import (
	PatternTest,
	compile_match,
	compile_pattern,
	destructure,
	has_mutable,
	is_variant_path,
)
from ferrojs.scope import Scopes, js_name
from ferrojs.syntax import (
	ArrayLit,
	ArrayRepeat,
	Assign,
	Await,
	Binary,
	Block,
	BlockExpr,
	Break,
	Call,
	Cast,
	Closure,
	ConstDecl,
	Continue,
	Deref,
	Expr,
	ExprStmt,
	Field,
	FnDecl,
	ForLoop,
	Ident,
	IdentPat,
	If,
	IfLet,
	Index,
	ItemStmt,
	Let,
	LitExpr,
	Loop,
	MacroCall,
	MacroStmt,
	Match,
	MethodCall,
	Param,
	Paren,
	Path,
	Range,
	Ref,
	Return,
	Stmt,
	StructLit,
	Try,
	TupleLit,
	TuplePat,
	Unary,
	While,
	WhileLet,
	WildPat,
)

ALLOWED_BINOPS: dict[str, str] = {
	"+": "+",
	"-": "-",
	"*": "*",
	"/": "/",
	"%": "%",
	"==": "===",
	"!=": "!==",
	"<": "<",
	"<=": "<=",
	">": ">",
	">=": ">=",
	"&&": "&&",
	"||": "||",
	"&": "&",
	"|": "|",
	"^": "^",
	"<<": "<<",
	">>": ">>",
}

ALLOWED_UNOPS = frozenset({"-", "!"})

ALLOWED_ASSIGNOPS = frozenset(
	{"=", "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=", "<<=", ">>="}
)

COMPARISON_OPS = frozenset({"==", "!=", "<", "<=", ">", ">="})
# Bind tighter than comparisons in the source, looser in JS
BITWISE_OPS = frozenset({"&", "|", "^"})

# Method calls statically known to produce text
STRING_METHODS = frozenset(
	{
		"to_string",
		"to_owned",
		"to_uppercase",
		"to_lowercase",
		"to_ascii_uppercase",
		"to_ascii_lowercase",
		"trim",
		"trim_start",
		"trim_end",
		"repeat",
		"replace",
		"join",
	}
)

# Numeric associated functions with a Math equivalent: f64::max(a, b)
MATH_FUNCTIONS = frozenset(
	{"max", "min", "abs", "sqrt", "floor", "ceil", "round", "trunc", "pow"}
)

# Control flow that must be emitted as statements
_STATEMENT_EXPRS = (IfLet, Match, While, WhileLet, Loop, ForLoop, Return, Break, Continue)

_NUMERIC = re.compile(r"^\d+$")


@dataclass(slots=True, frozen=True)
class Tail:
	"""Destination of a block's trailing value: `return ` or `x = `."""

	prefix: str

	def wrap(self, code: str) -> str:
		return f"{self.prefix}{code};"

	@property
	def returns(self) -> bool:
		return self.prefix == "return "


RETURN = Tail("return ")


@dataclass(slots=True)
class _Frame:
	"""Per-function state. Closures and async blocks open their own frame."""

	is_async: bool = False
	uses_try: bool = False
	iife_depth: int = 0


@dataclass(slots=True, frozen=True)
class _LoopTarget:
	label: str | None
	tail: Tail | None
	is_block: bool = False


def braces(lines: Sequence[str]) -> str:
	if not lines:
		return "{}"
	return "{\n" + "\n".join(lines) + "\n}"


def wrap_try(lines: Sequence[str]) -> list[str]:
	"""Turn a TryPropagation thrown by `?` into an early return."""
	return [
		"try {",
		*lines,
		"} catch ($e) {",
		"if ($e instanceof TryPropagation) return $e.value;",
		"throw $e;",
		"}",
	]


def _strip_borrows(expr: Expr) -> Expr:
	while isinstance(expr, (Ref, Deref)):
		expr = expr.expr
	return expr


def is_simple(expr: Expr) -> bool:
	"""Side-effect free name or field chain that may be evaluated twice."""
	while True:
		if isinstance(expr, Field):
			expr = expr.obj
		elif isinstance(expr, (Ref, Deref, Paren)):
			expr = expr.expr
		else:
			break
	return isinstance(expr, (Ident, Path, LitExpr))


def loop_label(label: str) -> str:
	return js_name(label.lstrip("'"))


class Transpiler:
	"""Translate source syntax to JavaScript text.

	One Transpiler is created per top-level declaration and discarded
	afterwards, so renames and temporaries never leak between declarations.

	Args:
		self_type: Receiver type name while translating an impl block.
		structs: Field order of known named structs, used to order the
			arguments of `new Type(...)` for struct literals.
		parse: Expression parser used for macro arguments. Defaults to the
			tree-sitter front-end.
	"""

	scopes: Scopes
	self_type: str | None
	is_static: bool
	structs: Mapping[str, tuple[str, ...]]
	_parse: Callable[[str], Expr]
	_temp_counter: int
	_frames: list[_Frame]
	_loops: list[_LoopTarget]

	def __init__(
		self,
		*,
		self_type: str | None = None,
		structs: Mapping[str, tuple[str, ...]] | None = None,
		parse: Callable[[str], Expr] | None = None,
	) -> None:
		self.scopes = Scopes()
		self.self_type = self_type
		self.is_static = False
		self.structs = structs or {}
		self._parse = parse or parse_expression
		self._temp_counter = 0
		self._frames = [_Frame()]
		self._loops = []

	def fresh_temp(self, prefix: str = "tmp") -> str:
		"""Generate a fresh temporary name. `$` never appears in source names."""
		name = f"${prefix}{self._temp_counter}"
		self._temp_counter += 1
		return name

	def parse(self, text: str) -> Expr:
		return self._parse(text)

	@property
	def _frame(self) -> _Frame:
		return self._frames[-1]

	# --- Functions -----------------------------------------------------------

	def emit_function(self, fn: FnDecl) -> tuple[str, str]:
		"""Translate a function's parameters and body.

		Returns the parameter list (without parentheses) and the braced body.
		"""
		self._frames.append(_Frame(is_async=fn.is_async))
		saved_loops, self._loops = self._loops, []
		try:
			with self.scopes.scope():
				params = self._emit_params(fn.params)
				lines = self.emit_block(fn.body, RETURN)
			frame = self._frame
		finally:
			self._frames.pop()
			self._loops = saved_loops
		if frame.uses_try:
			lines = wrap_try(lines)
		return ", ".join(params), braces(lines)

	def _emit_params(self, params: Sequence[Param]) -> list[str]:
		plain = {
			i: param.pat.name
			for i, param in enumerate(params)
			if isinstance(param.pat, IdentPat) and param.pat.sub is None
		}
		seeded = dict(zip(plain, self.scopes.seed(plain.values())))
		out: list[str] = []
		for i, param in enumerate(params):
			if i in seeded:
				out.append(seeded[i])
				continue
			if isinstance(param.pat, WildPat):
				# Unused parameters still need a distinct name
				out.append(f"$unused{i}")
				continue
			out.append(destructure(self, param.pat) or f"$unused{i}")
		return out

	def _emit_closure(self, node: Closure) -> str:
		self._frames.append(_Frame(is_async=node.is_async))
		saved_loops, self._loops = self._loops, []
		lines: list[str] | None = None
		code = ""
		try:
			with self.scopes.scope():
				params = self._emit_params(node.params)
				body = node.body
				if isinstance(body, BlockExpr) and not body.is_async and body.label is None:
					lines = self.emit_block(body.block, RETURN)
				elif self._needs_statement(body):
					lines = self.emit_expr_stmt(body, RETURN)
				else:
					code = self.emit_expr(body)
			frame = self._frame
		finally:
			self._frames.pop()
			self._loops = saved_loops
		if frame.uses_try:
			lines = wrap_try(lines if lines is not None else [RETURN.wrap(code)])
		head = "async " if node.is_async else ""
		if lines is not None:
			return f"{head}({', '.join(params)}) => {braces(lines)}"
		if code.startswith("{"):
			# Object literal body
			code = f"({code})"
		return f"{head}({', '.join(params)}) => {code}"

	# --- Blocks and statements -----------------------------------------------

	def emit_block(self, block: Block, tail: Tail | None = None) -> list[str]:
		"""Translate a block in its own scope. `tail` receives the trailing value."""
		with self.scopes.scope():
			lines: list[str] = []
			last = len(block.stmts) - 1
			for i, stmt in enumerate(block.stmts):
				lines.extend(self.emit_stmt(stmt, tail if i == last else None))
			return lines

	def emit_stmt(self, stmt: Stmt, tail: Tail | None = None) -> list[str]:
		if isinstance(stmt, Let):
			return self._emit_let(stmt)

		if isinstance(stmt, ExprStmt):
			return self.emit_expr_stmt(stmt.expr, None if stmt.semi else tail)

		if isinstance(stmt, MacroStmt):
			code = expand_macro(self, stmt.mac)
			name = stmt.mac.name.rsplit("::", 1)[-1]
			if tail is not None and not stmt.semi and name in VALUE_MACROS:
				return [tail.wrap(code)]
			return [f"{code};"]

		if isinstance(stmt, ItemStmt):
			return self._emit_nested_item(stmt)

		raise UnsupportedError("statement", f"Unsupported statement: {stmt.kind}")

	def emit_expr_stmt(self, expr: Expr, tail: Tail | None = None) -> list[str]:
		"""Translate an expression in statement position."""
		if isinstance(expr, If):
			return self._emit_if(expr, tail)
		if isinstance(expr, IfLet):
			return self._emit_if_let(expr, tail)
		if isinstance(expr, Match):
			return compile_match(self, expr, tail)
		if isinstance(expr, BlockExpr) and not expr.is_async:
			return self._emit_block_stmt(expr, tail)
		if isinstance(expr, While):
			return self._emit_while(expr)
		if isinstance(expr, WhileLet):
			return self._emit_while_let(expr)
		if isinstance(expr, Loop):
			return self._emit_loop(expr, tail)
		if isinstance(expr, ForLoop):
			return self._emit_for(expr)
		if isinstance(expr, Return):
			return self._emit_return(expr)
		if isinstance(expr, Break):
			return self._emit_break(expr)
		if isinstance(expr, Continue):
			return self._emit_continue(expr)
		if isinstance(expr, Assign):
			return [f"{self.emit_expr(expr)};"]
		code = self.emit_expr(expr)
		if tail is not None:
			return [tail.wrap(code)]
		if code.startswith("{"):
			code = f"({code})"
		return [f"{code};"]

	def _emit_nested_item(self, stmt: ItemStmt) -> list[str]:
		item = stmt.item
		if isinstance(item, FnDecl):
			# Declared first so the body can recurse
			name = self.scopes.declare(item.ident)
			params, body = self.emit_function(item)
			head = "async function" if item.is_async else "function"
			return [f"{head} {name}({params}) {body}"]
		if isinstance(item, ConstDecl):
			value = self.emit_expr(item.value)
			return [f"const {self.scopes.declare(item.ident)} = {value};"]
		raise UnsupportedError(
			"item", f"Unsupported nested declaration: {item.kind} {item.name}"
		)

	def _emit_let(self, stmt: Let) -> list[str]:
		pat = stmt.pat
		init = stmt.init

		if stmt.orelse is not None:
			return self._emit_let_else(stmt)

		if init is None:
			if isinstance(pat, IdentPat) and pat.sub is None:
				return [f"let {self.scopes.declare(pat.name)};"]
			if isinstance(pat, WildPat):
				return []
			raise UnsupportedError(
				"let", f"Destructuring {pat.kind} needs an initializer"
			)

		if isinstance(pat, WildPat):
			return self.emit_expr_stmt(init)

		if self._needs_statement(init):
			if isinstance(pat, IdentPat) and pat.sub is None:
				# The initializer must still see any previous binding of the name
				target = self.scopes.reserve(pat.name)
				lines = [f"let {target};", *self.emit_expr_stmt(init, Tail(f"{target} = "))]
				self.scopes.bind(pat.name, target)
				return lines
			temp = self.fresh_temp()
			lines = [f"let {temp};", *self.emit_expr_stmt(init, Tail(f"{temp} = "))]
			keyword = "let" if has_mutable(pat) else "const"
			return [*lines, f"{keyword} {destructure(self, pat)} = {temp};"]

		# Initializer first: `let x = x + 1` reads the previous `x`
		value = self.emit_expr(init)
		keyword = "let" if has_mutable(pat) else "const"
		return [f"{keyword} {destructure(self, pat)} = {value};"]

	def _emit_let_else(self, stmt: Let) -> list[str]:
		assert stmt.init is not None and stmt.orelse is not None
		subject = self.emit_expr(stmt.init)
		if not is_simple(stmt.init):
			temp = self.fresh_temp()
			lines = [f"const {temp} = {subject};"]
			subject = temp
		else:
			lines = []
		test = compile_pattern(self, stmt.pat, subject)
		lines += [f"if (!({test.condition})) {{", *self.emit_block(stmt.orelse), "}"]
		return lines + self.bind_pattern(test)

	def bind_pattern(self, test: PatternTest) -> list[str]:
		"""Declare the bindings of a matched pattern in the current scope."""
		lines: list[str] = []
		for name, value, mutable in test.bindings:
			target = self.scopes.declare(name)
			keyword = "let" if mutable else "const"
			lines.append(f"{keyword} {target} = {value};")
		return lines

	def _emit_block_stmt(self, node: BlockExpr, tail: Tail | None) -> list[str]:
		if node.label is None:
			return ["{", *self.emit_block(node.block, tail), "}"]
		label = loop_label(node.label)
		self._loops.append(_LoopTarget(node.label, tail, is_block=True))
		try:
			body = self.emit_block(node.block, tail)
		finally:
			self._loops.pop()
		return [f"{label}: {{", *body, "}"]

	# --- Conditionals --------------------------------------------------------

	def _emit_if(self, node: If, tail: Tail | None) -> list[str]:
		lines = [f"if ({self.emit_expr(node.cond)}) {{", *self.emit_block(node.then, tail)]
		return lines + self._emit_else(node.orelse, tail)

	def _emit_if_let(self, node: IfLet, tail: Tail | None) -> list[str]:
		lines: list[str] = []
		subject = self.emit_expr(node.value)
		if not is_simple(node.value):
			temp = self.fresh_temp()
			lines.append(f"const {temp} = {subject};")
			subject = temp
		test = compile_pattern(self, node.pat, subject)
		lines.append(f"if ({test.condition}) {{")
		with self.scopes.scope():
			lines += self.bind_pattern(test)
			lines += self.emit_block(node.then, tail)
		return lines + self._emit_else(node.orelse, tail)

	def _emit_else(self, orelse: Expr | None, tail: Tail | None) -> list[str]:
		if orelse is None:
			return ["}"]
		if isinstance(orelse, If):
			rest = self._emit_if(orelse, tail)
			return [f"}} else {rest[0]}", *rest[1:]]
		if isinstance(orelse, BlockExpr) and not orelse.is_async:
			return ["} else {", *self.emit_block(orelse.block, tail), "}"]
		with self.scopes.scope():
			return ["} else {", *self.emit_expr_stmt(orelse, tail), "}"]

	def _block_value(self, block: Block) -> Expr | None:
		"""The block's value when it is a single expression, else None."""
		if len(block.stmts) != 1:
			return None
		stmt = block.stmts[0]
		if isinstance(stmt, ExprStmt) and not stmt.semi:
			return None if self._needs_statement(stmt.expr) else stmt.expr
		if isinstance(stmt, MacroStmt) and not stmt.semi:
			if stmt.mac.name.rsplit("::", 1)[-1] in VALUE_MACROS:
				return stmt.mac
		return None

	def _is_ternary(self, node: If) -> bool:
		if node.orelse is None or self._block_value(node.then) is None:
			return False
		orelse = node.orelse
		if isinstance(orelse, If):
			return self._is_ternary(orelse)
		if isinstance(orelse, BlockExpr) and not orelse.is_async and orelse.label is None:
			return self._block_value(orelse.block) is not None
		return False

	def _emit_ternary(self, node: If) -> str:
		then = self._block_value(node.then)
		assert then is not None and node.orelse is not None
		if isinstance(node.orelse, If):
			orelse = self._emit_ternary(node.orelse)
		else:
			assert isinstance(node.orelse, BlockExpr)
			value = self._block_value(node.orelse.block)
			assert value is not None
			orelse = self.emit_expr(value)
		return f"({self.emit_expr(node.cond)} ? {self.emit_expr(then)} : {orelse})"

	def _needs_statement(self, expr: Expr) -> bool:
		if isinstance(expr, If):
			return not self._is_ternary(expr)
		if isinstance(expr, BlockExpr):
			return not expr.is_async
		return isinstance(expr, _STATEMENT_EXPRS)

	# --- Loops ---------------------------------------------------------------

	def _loop_body(self, label: str | None, tail: Tail | None, body: Block) -> list[str]:
		self._loops.append(_LoopTarget(label, tail))
		try:
			return self.emit_block(body)
		finally:
			self._loops.pop()

	def _label_prefix(self, label: str | None) -> str:
		return f"{loop_label(label)}: " if label else ""

	def _emit_while(self, node: While) -> list[str]:
		cond = self.emit_expr(node.cond)
		body = self._loop_body(node.label, None, node.body)
		return [f"{self._label_prefix(node.label)}while ({cond}) {{", *body, "}"]

	def _emit_loop(self, node: Loop, tail: Tail | None) -> list[str]:
		body = self._loop_body(node.label, tail, node.body)
		return [f"{self._label_prefix(node.label)}while (true) {{", *body, "}"]

	def _emit_while_let(self, node: WhileLet) -> list[str]:
		temp = self.fresh_temp()
		value = self.emit_expr(node.value)
		test = compile_pattern(self, node.pat, temp)
		lines = [
			f"{self._label_prefix(node.label)}while (true) {{",
			f"const {temp} = {value};",
			f"if (!({test.condition})) break;",
		]
		self._loops.append(_LoopTarget(node.label, None))
		try:
			with self.scopes.scope():
				lines += self.bind_pattern(test)
				lines += self.emit_block(node.body)
		finally:
			self._loops.pop()
		lines.append("}")
		return lines

	def _emit_for(self, node: ForLoop) -> list[str]:
		source = node.iter
		reverse = False
		if isinstance(source, MethodCall) and source.method == "rev" and not source.args:
			inner = source.receiver
			while isinstance(inner, Paren):
				inner = inner.expr
			if isinstance(inner, Range):
				source, reverse = inner, True
		if (
			isinstance(source, Range)
			and source.start is not None
			and source.end is not None
			and isinstance(node.pat, (IdentPat, WildPat))
		):
			return self._emit_range_for(node, source, reverse)

		pat = node.pat
		if (
			isinstance(source, MethodCall)
			and source.method == "enumerate"
			and not source.args
		):
			iterable = f"Array.from({self.emit_expr(source.receiver)}).entries()"
		elif isinstance(pat, TuplePat) and len(pat.elems) == 2:
			iterable = emit_entries(self.emit_expr(source))
		else:
			iterable = self.emit_expr(source)

		with self.scopes.scope():
			binding = destructure(self, pat) or self.fresh_temp("unused")
			keyword = "let" if has_mutable(pat) else "const"
			body = self._loop_body(node.label, None, node.body)
		head = f"{self._label_prefix(node.label)}for ({keyword} {binding} of {iterable})"
		return [f"{head} {{", *body, "}"]

	def _emit_range_for(self, node: ForLoop, rng: Range, reverse: bool) -> list[str]:
		assert rng.start is not None and rng.end is not None
		start = self.emit_expr(rng.start)
		end = self.emit_expr(rng.end)
		with self.scopes.scope():
			pat = node.pat
			var = self.scopes.declare(pat.name) if isinstance(pat, IdentPat) else self.fresh_temp("i")
			if reverse:
				first = end if rng.inclusive else f"{self._wrap_operand(rng.end, end)} - 1"
				limit = start
				if not isinstance(rng.start, LitExpr):
					limit = self.fresh_temp()
					head = f"for (let {var} = {first}, {limit} = {start}; {var} >= {limit}; {var}--)"
				else:
					head = f"for (let {var} = {first}; {var} >= {limit}; {var}--)"
			else:
				op = "<=" if rng.inclusive else "<"
				if isinstance(rng.end, LitExpr):
					head = f"for (let {var} = {start}; {var} {op} {end}; {var}++)"
				else:
					# The bound is evaluated once
					limit = self.fresh_temp()
					head = f"for (let {var} = {start}, {limit} = {end}; {var} {op} {limit}; {var}++)"
			body = self._loop_body(node.label, None, node.body)
		return [f"{self._label_prefix(node.label)}{head} {{", *body, "}"]

	# --- Jumps ---------------------------------------------------------------

	def _emit_return(self, node: Return) -> list[str]:
		if self._frame.iife_depth:
			raise UnsupportedError(
				"return", "`return` inside a block used as an expression"
			)
		if node.value is None:
			return ["return;"]
		return [RETURN.wrap(self.emit_expr(node.value))]

	def _find_loop(self, label: str | None, what: str) -> _LoopTarget:
		for target in reversed(self._loops):
			if label is None and not target.is_block:
				return target
			if label is not None and target.label == label:
				return target
		if label is None:
			raise UnsupportedError(what, f"`{what}` outside of a loop")
		raise UnsupportedError(what, f"`{what}` to unknown label {label}")

	def _emit_break(self, node: Break) -> list[str]:
		target = self._find_loop(node.label, "break")
		jump = f"break {loop_label(node.label)};" if node.label else "break;"
		if node.value is None:
			return [jump]
		value = self.emit_expr(node.value)
		if target.tail is None:
			return [f"{value};", jump]
		if target.tail.returns:
			return [target.tail.wrap(value)]
		return [target.tail.wrap(value), jump]

	def _emit_continue(self, node: Continue) -> list[str]:
		self._find_loop(node.label, "continue")
		if node.label:
			return [f"continue {loop_label(node.label)};"]
		return ["continue;"]

	# --- Expressions ---------------------------------------------------------

	def emit_expr(self, node: Expr) -> str:
		"""Emit an expression."""
		if isinstance(node, LitExpr):
			return self._emit_literal(node)

		if isinstance(node, Ident):
			return self.emit_ident(node.name)

		if isinstance(node, Path):
			return self._emit_path(node)

		if isinstance(node, Paren):
			return f"({self.emit_expr(node.expr)})"

		if isinstance(node, Unary):
			return self._emit_unary(node)

		if isinstance(node, Binary):
			return self._emit_binary(node)

		if isinstance(node, Assign):
			return self._emit_assign(node)

		if isinstance(node, Call):
			return self._emit_call(node)

		if isinstance(node, MethodCall):
			return self._emit_method_call(node)

		if isinstance(node, Field):
			obj = self._member_target(node.obj)
			if _NUMERIC.match(node.name):
				return f"{obj}[{node.name}]"
			return f"{obj}.{node.name}"

		if isinstance(node, Index):
			return self._emit_index(node)

		if isinstance(node, StructLit):
			return self._emit_struct_lit(node)

		if isinstance(node, ArrayLit):
			return f"[{', '.join(self.emit_expr(e) for e in node.elems)}]"

		if isinstance(node, ArrayRepeat):
			value = self.emit_expr(node.value)
			count = self.emit_expr(node.count)
			return f"Array.from({{ length: {count} }}, () => {value})"

		if isinstance(node, TupleLit):
			if not node.elems:
				return "undefined"
			return f"[{', '.join(self.emit_expr(e) for e in node.elems)}]"

		if isinstance(node, Closure):
			return self._emit_closure(node)

		if isinstance(node, MacroCall):
			return expand_macro(self, node)

		if isinstance(node, Ref):
			inner = self.emit_expr(node.expr)
			if node.mutable and not isinstance(node.expr, Ident):
				return f"{inner} /* was &mut */"
			return inner

		if isinstance(node, Deref):
			return self.emit_expr(node.expr)

		if isinstance(node, Cast):
			return emit_cast(self.emit_expr(node.expr), node.ty)

		if isinstance(node, Try):
			if len(self._frames) == 1:
				raise UnsupportedError("try", "`?` outside of a function body")
			self._frame.uses_try = True
			return f"try_unwrap({self.emit_expr(node.expr)})"

		if isinstance(node, Await):
			return f"(await {self.emit_expr(node.expr)})"

		if isinstance(node, Range):
			return self._emit_range(node)

		if isinstance(node, BlockExpr) and node.is_async:
			return self._emit_async_block(node)

		if isinstance(node, If) and self._is_ternary(node):
			return self._emit_ternary(node)

		if isinstance(node, (Return, Break, Continue)):
			raise UnsupportedError(
				node.kind.lower(), f"`{node.kind.lower()}` used as a value"
			)

		if isinstance(node, (If, IfLet, Match, BlockExpr, While, WhileLet, Loop, ForLoop)):
			return self._iife(lambda: self.emit_expr_stmt(node, RETURN))

		raise UnsupportedError("expression", f"Unsupported expression: {node.kind}")

	def _iife(self, emit: Callable[[], list[str]]) -> str:
		frame = self._frame
		saved_loops, self._loops = self._loops, []
		frame.iife_depth += 1
		try:
			lines = emit()
		finally:
			frame.iife_depth -= 1
			self._loops = saved_loops
		if frame.is_async:
			return f"(await (async () => {braces(lines)})())"
		return f"(() => {braces(lines)})()"

	def _emit_async_block(self, node: BlockExpr) -> str:
		self._frames.append(_Frame(is_async=True))
		saved_loops, self._loops = self._loops, []
		try:
			lines = self.emit_block(node.block, RETURN)
			frame = self._frame
		finally:
			self._frames.pop()
			self._loops = saved_loops
		if frame.uses_try:
			lines = wrap_try(lines)
		return f"(async () => {braces(lines)})()"

	def _emit_literal(self, node: LitExpr) -> str:
		if node.lit == "bool":
			return "true" if node.value else "false"
		if node.lit in ("str", "char"):
			return f'"{escape_string(str(node.value))}"'
		return str(node.value)

	def emit_ident(self, name: str) -> str:
		if name == "self":
			if self.is_static:
				raise TranspileError("`self` used in an associated function without a receiver")
			return "this"
		if name == "Self":
			if self.self_type is None:
				raise TranspileError("`Self` used outside of an impl block")
			return self.self_type
		if name == "None":
			return "null"
		return self.scopes.resolve(name)

	def _type_name(self, name: str) -> str:
		if name == "Self":
			return self.emit_ident("Self")
		return name

	def _emit_path(self, node: Path) -> str:
		segs = node.segments
		if len(segs) == 1:
			return self.emit_ident(segs[0])
		const = CONSTANT_PATHS.get((segs[-2], segs[-1]))
		if const is not None:
			return const
		if segs[-1] == "None":
			return "null"
		owner = self._type_name(segs[-2])
		if owner[:1].isupper():
			return f"{owner}.{segs[-1]}"
		# Module paths flatten: `config::LIMIT` is `LIMIT`
		return js_name(segs[-1])

	def _wrap_operand(self, node: Expr, code: str) -> str:
		node = _strip_borrows(node)
		if isinstance(node, (Binary, Assign, Closure)):
			return f"({code})"
		return code

	def _member_target(self, node: Expr) -> str:
		"""Emit an expression used before `.` or `[`."""
		code = self.emit_expr(node)
		inner = _strip_borrows(node)
		if isinstance(inner, (Binary, Unary, Assign, Closure)):
			return f"({code})"
		if isinstance(inner, LitExpr) and inner.lit in ("int", "float"):
			return f"({code})"
		return code

	def _emit_unary(self, node: Unary) -> str:
		if node.op not in ALLOWED_UNOPS:
			raise UnsupportedError("operator", f"Unsupported unary operator: {node.op}")
		operand = self._wrap_operand(node.operand, self.emit_expr(node.operand))
		if node.op == "-" and operand.startswith("-"):
			return f"-({operand})"
		return f"{node.op}{operand}"

	def _emit_binary(self, node: Binary) -> str:
		op = ALLOWED_BINOPS.get(node.op)
		if op is None:
			raise UnsupportedError("operator", f"Unsupported binary operator: {node.op}")
		if node.op == "+" and (self._is_stringy(node.left) or self._is_stringy(node.right)):
			return self._emit_concat(node)
		left = self._emit_operand(node.left, node.op)
		right = self._emit_operand(node.right, node.op)
		return f"{left} {op} {right}"

	def _emit_operand(self, node: Expr, op: str) -> str:
		code = self.emit_expr(node)
		if op in COMPARISON_OPS and isinstance(node, Binary) and node.op in BITWISE_OPS:
			return f"({code})"
		return code

	def _is_stringy(self, node: Expr) -> bool:
		node = _strip_borrows(node)
		if isinstance(node, LitExpr):
			return node.lit in ("str", "char")
		if isinstance(node, MacroCall):
			return node.name.rsplit("::", 1)[-1] == "format"
		if isinstance(node, MethodCall):
			return node.method in STRING_METHODS
		if isinstance(node, Binary):
			return node.op == "+" and (
				self._is_stringy(node.left) or self._is_stringy(node.right)
			)
		if isinstance(node, Call) and isinstance(node.func, Path):
			return node.func.segments[-2:] in (("String", "from"), ("String", "new"))
		return False

	def _emit_concat(self, node: Binary) -> str:
		"""Flatten a `+` chain into one template literal."""
		parts: list[str] = []
		self._concat_parts(node, parts)
		return "`" + "".join(parts) + "`"

	def _concat_parts(self, node: Expr, parts: list[str]) -> None:
		if isinstance(node, Binary) and node.op == "+":
			self._concat_parts(node.left, parts)
			self._concat_parts(node.right, parts)
			return
		inner = _strip_borrows(node)
		if isinstance(inner, LitExpr) and inner.lit in ("str", "char"):
			parts.append(escape_template(str(inner.value)))
			return
		parts.append("${" + self.emit_expr(node) + "}")

	def _emit_assign(self, node: Assign) -> str:
		if node.op not in ALLOWED_ASSIGNOPS:
			raise UnsupportedError("operator", f"Unsupported assignment operator: {node.op}")
		target = self.emit_expr(node.target)
		return f"{target} {node.op} {self.emit_expr(node.value)}"

	def _emit_index(self, node: Index) -> str:
		obj = self._member_target(node.obj)
		index = node.index
		if isinstance(index, Range):
			start = "0" if index.start is None else self.emit_expr(index.start)
			if index.end is None:
				return f"{obj}.slice({start})"
			end = self.emit_expr(index.end)
			if index.inclusive:
				end = f"{self._wrap_operand(index.end, end)} + 1"
			return f"{obj}.slice({start}, {end})"
		return f"{obj}[{self.emit_expr(index)}]"

	def _emit_range(self, node: Range) -> str:
		if node.end is None:
			raise UnsupportedError("range", "Open-ended ranges are only supported in slices")
		end = self._wrap_operand(node.end, self.emit_expr(node.end))
		if node.start is None:
			start = "0"
		else:
			start = self._wrap_operand(node.start, self.emit_expr(node.start))
		length = end if start == "0" else f"{end} - {start}"
		if node.inclusive:
			length = f"{length} + 1"
		value = "$i" if start == "0" else f"$i + {start}"
		return f"Array.from({{ length: {length} }}, ($v, $i) => {value})"

	# --- Calls ---------------------------------------------------------------

	def _emit_args(self, args: Sequence[Expr]) -> list[str]:
		return [self.emit_expr(a) for a in args]

	def _emit_call(self, node: Call) -> str:
		func = node.func
		if isinstance(func, Ident):
			name = func.name
			if name in ("Some", "Ok", "Err") and len(node.args) == 1:
				return self._emit_wrapper(name, node.args[0])
			args = self._emit_args(node.args)
			if name == "Self" or name in self.structs:
				return f"new {self._type_name(name)}({', '.join(args)})"
			return f"{self.emit_ident(name)}({', '.join(args)})"

		if isinstance(func, Path):
			return self._emit_path_call(func.segments, node.args)

		callee = self.emit_expr(func)
		if isinstance(func, Closure):
			callee = f"({callee})"
		return f"{callee}({', '.join(self._emit_args(node.args))})"

	def _emit_wrapper(self, name: str, arg: Expr) -> str:
		value = self.emit_expr(arg)
		if name == "Some":
			return self._wrap_operand(arg, value)
		key = "ok" if name == "Ok" else "error"
		return f"{{ {key}: {value} }}"

	def _emit_path_call(self, segs: tuple[str, ...], arg_nodes: Sequence[Expr]) -> str:
		func = segs[-1]
		if func in ("Some", "Ok", "Err") and len(arg_nodes) == 1:
			return self._emit_wrapper(func, arg_nodes[0])
		args = self._emit_args(arg_nodes)
		owner = self._type_name(segs[-2])

		special = emit_associated_call(owner, func, args)
		if special is not None:
			return special

		if owner in INT_TYPES or owner in FLOAT_TYPES:
			if func in MATH_FUNCTIONS:
				return f"Math.{func}({', '.join(args)})"
			if func == "from" and len(args) == 1:
				return f"Number({args[0]})"

		if owner[:1].isupper():
			# User `fn new` is emitted as the static Type.new
			return f"{owner}.{func}({', '.join(args)})"
		return f"{js_name(func)}({', '.join(args)})"

	def _emit_method_call(self, node: MethodCall) -> str:
		recv = self._member_target(node.receiver)
		args = self._emit_args(node.args)
		inner = _strip_borrows(node.receiver)
		host = isinstance(inner, Ident) and inner.name in HOST_GLOBALS
		special = emit_method(
			recv, node.method, args, simple=is_simple(node.receiver), host=host
		)
		if special is not None:
			return special
		return f"{recv}.{node.method}({', '.join(args)})"

	# --- Struct literals -----------------------------------------------------

	def _emit_struct_lit(self, node: StructLit) -> str:
		path = node.path
		values = [(f.name, self.emit_expr(f.value)) for f in node.fields]

		if is_variant_path(path):
			parts = [f'type: "{path[-1]}"']
			parts += [name if code == name else f"{name}: {code}" for name, code in values]
			obj = "{ " + ", ".join(parts) + " }"
			if node.base is not None:
				return f"Object.assign({{}}, {self.emit_expr(node.base)}, {obj})"
			return obj

		type_name = self._type_name(path[-1])

		if node.base is not None:
			base = self.emit_expr(node.base)
			fields = ", ".join(f"{name}: {code}" for name, code in values)
			return (
				f"Object.assign(Object.create(Object.getPrototypeOf({base})), {base}, "
				f"{{ {fields} }})"
			)

		if self.self_type is not None and type_name == self.self_type:
			# Instantiate then assign keeps the prototype linkage of the impl type
			temp = self.fresh_temp("obj")
			lines = [f"const {temp} = new {type_name}();"]
			lines += [f"{temp}.{name} = {code};" for name, code in values]
			lines.append(f"return {temp};")
			return f"(() => {braces(lines)})()"

		order = self.structs.get(type_name)
		if order is None:
			args = [code for _, code in values]
		else:
			given = dict(values)
			args = [given.get(name, "undefined") for name in order]
		return f"new {type_name}({', '.join(args)})"
