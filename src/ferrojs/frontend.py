"""
tree-sitter front-end: concrete source text -> ferrojs.syntax nodes.

Uses the Rust grammar shipped with tree-sitter-language-pack. Declarations the
converter cannot express become UnknownItem so the unit driver can report
them as diagnostics without losing the rest of the file.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterator

from tree_sitter import Node
from tree_sitter_language_pack import get_parser

from ferrojs.errors import ParseError, TranspileError, UnsupportedError
from ferrojs.macros import decode_string_literal
from ferrojs.syntax import (
	Arm,
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
	EnumDecl,
	Expr,
	ExprStmt,
	Field,
	FieldInit,
	FieldPat,
	FnDecl,
	ForLoop,
	Ident,
	IdentPat,
	If,
	IfLet,
	ImplDecl,
	Index,
	InertItem,
	Item,
	ItemStmt,
	Let,
	LitExpr,
	LitPat,
	Loop,
	MacroCall,
	MacroStmt,
	Match,
	MethodCall,
	OrPat,
	Param,
	Paren,
	Pat,
	Path,
	PathPat,
	Range,
	RangePat,
	Ref,
	RefPat,
	RestPat,
	Return,
	SelfParam,
	SlicePat,
	Stmt,
	StructDecl,
	StructLit,
	StructPat,
	Try,
	TupleLit,
	TuplePat,
	TupleStructPat,
	Unary,
	UnknownItem,
	Variant,
	While,
	WhileLet,
	WildPat,
)

logger = logging.getLogger(__name__)

LANGUAGE = "rust"

COMMENT_TYPES = frozenset({"line_comment", "block_comment", "comment"})

# Top-level declarations with no runtime meaning
INERT_ITEMS: dict[str, str] = {
	"use_declaration": "use",
	"mod_item": "mod",
	"attribute_item": "attribute",
	"inner_attribute_item": "attribute",
	"trait_item": "trait",
	"type_item": "type alias",
	"extern_crate_declaration": "extern crate",
	"foreign_mod_item": "extern block",
	"macro_definition": "macro_rules",
}

_INT_LITERAL = re.compile(
	r"^(0x[0-9a-fA-F]+|0o[0-7]+|0b[01]+|\d+)([iu](?:8|16|32|64|128|size)|f32|f64)?$"
)
_GENERIC_ARGS = re.compile(r"<[^<>]*>")
_EXPR_WRAPPER = "fn __expr() {\n"


def _strip_generics(text: str) -> str:
	prev = None
	while prev != text:
		prev = text
		text = _GENERIC_ARGS.sub("", text)
	return text


def path_segments(text: str) -> tuple[str, ...]:
	"""`std::collections::HashMap::<K, V>::new` -> ("std", "collections", "HashMap", "new")."""
	segs = [s.strip() for s in _strip_generics(text).split("::")]
	segs = [s for s in segs if s]
	while len(segs) > 1 and segs[0] in ("crate", "self", "super"):
		segs = segs[1:]
	return tuple(segs)


# =============================================================================
# Parsing entry points
# =============================================================================
def _parse_tree(text: str) -> Node:
	parser = get_parser(LANGUAGE)
	tree = parser.parse(text.encode("utf8"))
	return tree.root_node


def _find_error(node: Node) -> Node:
	for child in node.children:
		if child.type == "ERROR" or child.is_missing:
			return child
		if child.has_error:
			return _find_error(child)
	return node


def _check_errors(root: Node, line_offset: int = 0) -> None:
	if not root.has_error:
		return
	bad = _find_error(root)
	row, column = bad.start_point
	message = f"Missing {bad.type}" if bad.is_missing else "Syntax error"
	raise ParseError(message, max(row - line_offset, 0), column)


def parse_source(text: str) -> list[Item]:
	"""Parse a whole source file into top-level declarations, in order."""
	root = _parse_tree(text)
	_check_errors(root)
	return _Converter().items(root)


def parse_item(text: str) -> Item:
	items = parse_source(text)
	if len(items) != 1:
		raise ParseError(f"Expected exactly one declaration, found {len(items)}")
	return items[0]


def parse_expression(text: str) -> Expr:
	"""Parse a single expression, such as a macro argument."""
	root = _parse_tree(f"{_EXPR_WRAPPER}{text}\n}}")
	_check_errors(root, line_offset=1)
	items = _Converter().items(root)
	if len(items) != 1 or not isinstance(items[0], FnDecl):
		raise ParseError(f"Expected an expression: {text!r}")
	stmts = items[0].body.stmts
	if len(stmts) == 1:
		stmt = stmts[0]
		if isinstance(stmt, ExprStmt) and not stmt.semi:
			return stmt.expr
		if isinstance(stmt, MacroStmt) and not stmt.semi:
			return stmt.mac
	raise ParseError(f"Expected a single expression: {text!r}")


# =============================================================================
# Conversion
# =============================================================================
class _Converter:
	"""Converts tree-sitter nodes into syntax nodes."""

	_expr_dispatch: dict[str, Callable[[Node], Expr]]

	def __init__(self) -> None:
		self._expr_dispatch = {
			"integer_literal": self._integer,
			"float_literal": self._float,
			"string_literal": self._string,
			"raw_string_literal": self._string,
			"char_literal": self._char,
			"boolean_literal": self._boolean,
			"identifier": self._identifier,
			"self": self._identifier,
			"type_identifier": self._identifier,
			"scoped_identifier": self._path,
			"scoped_type_identifier": self._path,
			"generic_function": lambda n: self.expr(self._field(n, "function")),
			"unary_expression": self._unary,
			"binary_expression": self._binary,
			"assignment_expression": self._assign,
			"compound_assignment_expr": self._assign,
			"call_expression": self._call,
			"field_expression": self._field_access,
			"index_expression": self._index,
			"struct_expression": self._struct,
			"array_expression": self._array,
			"tuple_expression": lambda n: TupleLit(tuple(self.expr(c) for c in self._named(n))),
			"unit_expression": lambda n: TupleLit(()),
			"parenthesized_expression": lambda n: Paren(self.expr(self._named(n)[0])),
			"closure_expression": self._closure,
			"block": self._block_expr,
			"async_block": self._async_block,
			"unsafe_block": lambda n: BlockExpr(self.block(self._child_of_type(n, "block"))),
			"if_expression": self._if,
			"if_let_expression": self._if_let_legacy,
			"while_expression": self._while,
			"while_let_expression": self._while_let_legacy,
			"loop_expression": lambda n: Loop(self.block(self._field(n, "body")), self._label(n)),
			"for_expression": self._for,
			"match_expression": self._match,
			"return_expression": self._return,
			"break_expression": self._break,
			"continue_expression": lambda n: Continue(self._label(n)),
			"macro_invocation": self.macro,
			"reference_expression": self._reference,
			"type_cast_expression": lambda n: Cast(
				self.expr(self._field(n, "value")), self.text(self._field(n, "type"))
			),
			"try_expression": lambda n: Try(self.expr(self._named(n)[0])),
			"await_expression": lambda n: Await(self.expr(self._named(n)[0])),
			"range_expression": self._range,
		}

	# --- Helpers -------------------------------------------------------------

	def text(self, node: Node) -> str:
		return (node.text or b"").decode("utf8")

	def _named(self, node: Node) -> list[Node]:
		return [
			c
			for c in node.named_children
			if c.type not in COMMENT_TYPES and c.type not in ("attribute_item", "label")
		]

	def _field(self, node: Node, name: str) -> Node:
		child = node.child_by_field_name(name)
		if child is None:
			raise UnsupportedError(node.type, f"{node.type} without {name}")
		return child

	def _child_of_type(self, node: Node, type_: str) -> Node:
		for child in node.children:
			if child.type == type_:
				return child
		raise UnsupportedError(node.type, f"{node.type} without {type_}")

	def _has_child(self, node: Node, type_: str) -> bool:
		return any(c.type == type_ for c in node.children)

	def _label(self, node: Node) -> str | None:
		for child in node.children:
			if child.type == "label":
				return self.text(child)
		return None

	# --- Items ---------------------------------------------------------------

	def items(self, root: Node) -> list[Item]:
		out: list[Item] = []
		for node in root.named_children:
			if node.type in COMMENT_TYPES or node.type == "empty_statement":
				continue
			out.append(self.item(node))
		return out

	def item(self, node: Node) -> Item:
		inert = INERT_ITEMS.get(node.type)
		if inert is not None:
			return InertItem(self._item_label(node), inert)
		try:
			if node.type == "function_item":
				return self.function(node)
			if node.type == "struct_item":
				return self._struct_item(node)
			if node.type == "enum_item":
				return self._enum_item(node)
			if node.type == "impl_item":
				return self._impl_item(node)
			if node.type in ("const_item", "static_item"):
				return ConstDecl(
					self.text(self._field(node, "name")),
					self.expr(self._field(node, "value")),
					ty=self.text(self._field(node, "type")),
					is_static=node.type == "static_item",
				)
		except TranspileError as e:
			logger.debug("Could not convert %s: %s", node.type, e)
			return UnknownItem(self._item_label(node), f"{node.type} ({e})")
		return UnknownItem(self._item_label(node), node.type)

	def _item_label(self, node: Node) -> str:
		for field in ("name", "argument", "type"):
			child = node.child_by_field_name(field)
			if child is not None:
				return self.text(child)
		return " ".join(self.text(node).split())

	def function(self, node: Node) -> FnDecl:
		is_async = any(
			c.type == "function_modifiers" and "async" in self.text(c).split()
			for c in node.children
		)
		receiver: SelfParam | None = None
		params: list[Param] = []
		for child in self._named(self._field(node, "parameters")):
			if child.type == "self_parameter":
				receiver = SelfParam(
					mutable=self._has_child(child, "mutable_specifier"),
					by_ref=self._has_child(child, "&"),
				)
			elif child.type == "parameter":
				pat = self.pat(self._field(child, "pattern"))
				if self._has_child(child, "mutable_specifier") and isinstance(pat, IdentPat):
					pat = IdentPat(pat.name, mutable=True)
				ty = child.child_by_field_name("type")
				params.append(Param(pat, self.text(ty) if ty is not None else None))
			else:
				raise UnsupportedError("parameter", f"Unsupported parameter: {child.type}")
		ret = node.child_by_field_name("return_type")
		body = node.child_by_field_name("body")
		return FnDecl(
			self.text(self._field(node, "name")),
			tuple(params),
			self.block(body) if body is not None else Block(),
			receiver=receiver,
			ret=self.text(ret) if ret is not None else None,
			is_async=is_async,
		)

	def _field_names(self, body: Node | None) -> tuple[str, tuple[str, ...]]:
		if body is None:
			return "unit", ()
		if body.type == "field_declaration_list":
			names = tuple(
				self.text(self._field(f, "name"))
				for f in body.named_children
				if f.type == "field_declaration"
			)
			return "named", names
		if body.type == "ordered_field_declaration_list":
			count = len(body.children_by_field_name("type"))
			return "tuple", tuple(str(i) for i in range(count))
		raise UnsupportedError("struct", f"Unsupported field list: {body.type}")

	def _struct_item(self, node: Node) -> StructDecl:
		shape, fields = self._field_names(node.child_by_field_name("body"))
		return StructDecl(self.text(self._field(node, "name")), fields, shape)  # pyright: ignore[reportArgumentType]

	def _enum_item(self, node: Node) -> EnumDecl:
		variants: list[Variant] = []
		for child in self._named(self._field(node, "body")):
			if child.type != "enum_variant":
				continue
			shape, fields = self._field_names(child.child_by_field_name("body"))
			variants.append(Variant(self.text(self._field(child, "name")), shape, fields))  # pyright: ignore[reportArgumentType]
		return EnumDecl(self.text(self._field(node, "name")), tuple(variants))

	def _impl_item(self, node: Node) -> ImplDecl:
		type_name = _strip_generics(self.text(self._field(node, "type"))).split("::")[-1]
		trait = node.child_by_field_name("trait")
		fns: list[FnDecl] = []
		body = node.child_by_field_name("body")
		for child in self._named(body) if body is not None else []:
			if child.type == "function_item":
				fns.append(self.function(child))
			else:
				raise UnsupportedError(
					"impl", f"Unsupported associated item in impl {type_name}: {child.type}"
				)
		return ImplDecl(
			type_name,
			tuple(fns),
			trait=self.text(trait) if trait is not None else None,
		)

	# --- Blocks and statements -----------------------------------------------

	def block(self, node: Node) -> Block:
		stmts: list[Stmt] = []
		children = [
			c
			for c in node.children
			if c.type not in COMMENT_TYPES and c.type not in ("{", "}", "label", ":")
		]
		for i, child in enumerate(children):
			if child.type in (";", "empty_statement", "attribute_item"):
				continue
			followed_by_semi = i + 1 < len(children) and children[i + 1].type in (
				";",
				"empty_statement",
			)
			stmt = self._stmt(child, followed_by_semi)
			if stmt is not None:
				stmts.append(stmt)
		return Block(tuple(stmts))

	def _stmt(self, node: Node, followed_by_semi: bool) -> Stmt | None:
		if node.type == "let_declaration":
			return self._let(node)
		if node.type == "expression_statement":
			inner = self._named(node)[0]
			semi = node.children[-1].type == ";"
			if inner.type == "macro_invocation":
				return MacroStmt(self.macro(inner), semi)
			return ExprStmt(self.expr(inner), semi)
		if node.type == "macro_invocation":
			return MacroStmt(self.macro(node), followed_by_semi)
		if node.type in INERT_ITEMS:
			return None
		if node.type in ("function_item", "const_item", "static_item", "struct_item", "enum_item", "impl_item"):
			item = self.item(node)
			if isinstance(item, UnknownItem):
				raise UnsupportedError("item", f"Unsupported nested declaration: {item.what}")
			return ItemStmt(item)
		return ExprStmt(self.expr(node), followed_by_semi)

	def _let(self, node: Node) -> Let:
		pat = self.pat(self._field(node, "pattern"))
		if self._has_child(node, "mutable_specifier") and isinstance(pat, IdentPat):
			pat = IdentPat(pat.name, mutable=True, by_ref=pat.by_ref, sub=pat.sub)
		value = node.child_by_field_name("value")
		ty = node.child_by_field_name("type")
		alternative = node.child_by_field_name("alternative")
		return Let(
			pat,
			self.expr(value) if value is not None else None,
			ty=self.text(ty) if ty is not None else None,
			orelse=self.block(alternative) if alternative is not None else None,
		)

	# --- Expressions ---------------------------------------------------------

	def expr(self, node: Node) -> Expr:
		handler = self._expr_dispatch.get(node.type)
		if handler is None:
			raise UnsupportedError(node.type, f"Unsupported expression syntax: {node.type}")
		return handler(node)

	def _integer(self, node: Node) -> LitExpr:
		text = self.text(node).replace("_", "")
		m = _INT_LITERAL.match(text)
		if m is None:
			raise UnsupportedError("literal", f"Unsupported integer literal: {text}")
		digits, suffix = m.group(1), m.group(2)
		if suffix in ("f32", "f64"):
			return LitExpr(float(digits), "float")
		value = int(digits, 0) if digits[:2] in ("0x", "0o", "0b") else int(digits, 10)
		return LitExpr(value, "int")

	def _float(self, node: Node) -> LitExpr:
		text = self.text(node).replace("_", "")
		for suffix in ("f32", "f64"):
			text = text.removesuffix(suffix)
		return LitExpr(float(text), "float")

	def _string(self, node: Node) -> LitExpr:
		return LitExpr(decode_string_literal(self.text(node)), "str")

	def _char(self, node: Node) -> LitExpr:
		inner = self.text(node).removeprefix("b")[1:-1]
		if inner == '"':
			inner = '\\"'
		return LitExpr(decode_string_literal(f'"{inner}"'), "char")

	def _boolean(self, node: Node) -> LitExpr:
		return LitExpr(self.text(node) == "true", "bool")

	def _identifier(self, node: Node) -> Expr:
		return Ident(self.text(node))

	def _path(self, node: Node) -> Expr:
		segs = path_segments(self.text(node))
		if len(segs) == 1:
			return Ident(segs[0])
		return Path(segs)

	def _unary(self, node: Node) -> Expr:
		op = self.text(node.children[0])
		operand = self.expr(self._named(node)[0])
		if op == "*":
			return Deref(operand)
		return Unary(op, operand)

	def _binary(self, node: Node) -> Binary:
		return Binary(
			self.text(self._field(node, "operator")),
			self.expr(self._field(node, "left")),
			self.expr(self._field(node, "right")),
		)

	def _assign(self, node: Node) -> Assign:
		op_node = node.child_by_field_name("operator")
		return Assign(
			self.expr(self._field(node, "left")),
			self.expr(self._field(node, "right")),
			op=self.text(op_node) if op_node is not None else "=",
		)

	def _arguments(self, node: Node) -> tuple[Expr, ...]:
		return tuple(self.expr(c) for c in self._named(node))

	def _call(self, node: Node) -> Expr:
		func = self._field(node, "function")
		args = self._arguments(self._field(node, "arguments"))
		if func.type == "generic_function":
			func = self._field(func, "function")
		if func.type == "field_expression":
			return MethodCall(
				self.expr(self._field(func, "value")),
				self.text(self._field(func, "field")),
				args,
			)
		return Call(self.expr(func), args)

	def _field_access(self, node: Node) -> Field:
		return Field(self.expr(self._field(node, "value")), self.text(self._field(node, "field")))

	def _index(self, node: Node) -> Index:
		obj, index = self._named(node)[:2]
		return Index(self.expr(obj), self.expr(index))

	def _struct(self, node: Node) -> StructLit:
		path = path_segments(self.text(self._field(node, "name")))
		fields: list[FieldInit] = []
		base: Expr | None = None
		for child in self._named(self._field(node, "body")):
			if child.type == "shorthand_field_initializer":
				name = self.text(child)
				fields.append(FieldInit(name, Ident(name)))
			elif child.type == "field_initializer":
				fields.append(
					FieldInit(
						self.text(self._field(child, "field")),
						self.expr(self._field(child, "value")),
					)
				)
			elif child.type == "base_field_initializer":
				base = self.expr(self._named(child)[0])
		return StructLit(path, tuple(fields), base)

	def _array(self, node: Node) -> Expr:
		length = node.child_by_field_name("length")
		if length is not None:
			value = next(c for c in self._named(node) if c != length)
			return ArrayRepeat(self.expr(value), self.expr(length))
		return ArrayLit(tuple(self.expr(c) for c in self._named(node)))

	def _closure(self, node: Node) -> Closure:
		params: list[Param] = []
		for child in self._field(node, "parameters").children:
			if child.type in ("|", ","):
				continue
			if child.type == "parameter":
				ty = child.child_by_field_name("type")
				params.append(
					Param(
						self.pat(self._field(child, "pattern")),
						self.text(ty) if ty is not None else None,
					)
				)
			else:
				params.append(Param(self.pat(child)))
		return Closure(
			tuple(params),
			self.expr(self._field(node, "body")),
			is_async=self._has_child(node, "async"),
		)

	def _block_expr(self, node: Node) -> BlockExpr:
		return BlockExpr(self.block(node), label=self._label(node))

	def _async_block(self, node: Node) -> BlockExpr:
		return BlockExpr(self.block(self._child_of_type(node, "block")), is_async=True)

	def _else(self, node: Node | None) -> Expr | None:
		if node is None:
			return None
		inner = self._named(node)[0] if node.type == "else_clause" else node
		return self.expr(inner)

	def _if(self, node: Node) -> Expr:
		cond = self._field(node, "condition")
		then = self.block(self._field(node, "consequence"))
		orelse = self._else(node.child_by_field_name("alternative"))
		if cond.type == "let_condition":
			return IfLet(
				self.pat(self._field(cond, "pattern")),
				self.expr(self._field(cond, "value")),
				then,
				orelse,
			)
		if cond.type == "let_chain":
			raise UnsupportedError("let_chain", "Unsupported `if let` chain")
		return If(self.expr(cond), then, orelse)

	def _if_let_legacy(self, node: Node) -> IfLet:
		return IfLet(
			self.pat(self._field(node, "pattern")),
			self.expr(self._field(node, "value")),
			self.block(self._field(node, "consequence")),
			self._else(node.child_by_field_name("alternative")),
		)

	def _while(self, node: Node) -> Expr:
		cond = self._field(node, "condition")
		body = self.block(self._field(node, "body"))
		label = self._label(node)
		if cond.type == "let_condition":
			return WhileLet(
				self.pat(self._field(cond, "pattern")),
				self.expr(self._field(cond, "value")),
				body,
				label,
			)
		return While(self.expr(cond), body, label)

	def _while_let_legacy(self, node: Node) -> WhileLet:
		return WhileLet(
			self.pat(self._field(node, "pattern")),
			self.expr(self._field(node, "value")),
			self.block(self._field(node, "body")),
			self._label(node),
		)

	def _for(self, node: Node) -> ForLoop:
		return ForLoop(
			self.pat(self._field(node, "pattern")),
			self.expr(self._field(node, "value")),
			self.block(self._field(node, "body")),
			self._label(node),
		)

	def _match(self, node: Node) -> Match:
		arms: list[Arm] = []
		for arm in self._named(self._field(node, "body")):
			if arm.type not in ("match_arm", "last_match_arm"):
				continue
			match_pattern = self._field(arm, "pattern")
			guard = match_pattern.child_by_field_name("condition")
			pattern = next(
				c
				for c in match_pattern.children
				if c != guard and (c.is_named or c.type == "_") and c.type not in COMMENT_TYPES
			)
			arms.append(
				Arm(
					self.pat(pattern),
					self.expr(self._field(arm, "value")),
					self.expr(guard) if guard is not None else None,
				)
			)
		return Match(self.expr(self._field(node, "value")), tuple(arms))

	def _return(self, node: Node) -> Return:
		named = self._named(node)
		return Return(self.expr(named[0]) if named else None)

	def _break(self, node: Node) -> Break:
		named = self._named(node)
		return Break(self._label(node), self.expr(named[0]) if named else None)

	def macro(self, node: Node) -> MacroCall:
		name = self.text(self._field(node, "macro"))
		tree = self._child_of_type(node, "token_tree")
		return MacroCall(name, self.text(tree)[1:-1])

	def _reference(self, node: Node) -> Ref:
		return Ref(
			self.expr(self._field(node, "value")),
			mutable=self._has_child(node, "mutable_specifier"),
		)

	def _range(self, node: Node) -> Range:
		start: Expr | None = None
		end: Expr | None = None
		inclusive = False
		seen_op = False
		for child in node.children:
			if child.type in ("..", "..=", "..."):
				seen_op = True
				inclusive = child.type != ".."
			elif child.is_named and child.type not in COMMENT_TYPES:
				if seen_op:
					end = self.expr(child)
				else:
					start = self.expr(child)
		return Range(start, end, inclusive)

	# --- Patterns ------------------------------------------------------------

	def _pattern_children(self, node: Node, skip: Node | None = None) -> Iterator[Node]:
		for child in node.children:
			if skip is not None and child == skip:
				continue
			if child.type == "_" or (child.is_named and child.type not in COMMENT_TYPES):
				yield child

	def pat(self, node: Node) -> Pat:
		kind = node.type
		if kind == "_":
			return WildPat()
		if kind == "remaining_field_pattern":
			return RestPat()
		if kind == "identifier":
			name = self.text(node)
			if name == "None":
				return PathPat(("None",))
			return IdentPat(name)
		if kind == "mut_pattern":
			inner = self.pat(self._named(node)[0])
			if isinstance(inner, IdentPat):
				return IdentPat(inner.name, mutable=True, by_ref=inner.by_ref, sub=inner.sub)
			return inner
		if kind == "ref_pattern":
			inner = self.pat(self._named(node)[0])
			if isinstance(inner, IdentPat):
				return IdentPat(inner.name, mutable=inner.mutable, by_ref=True, sub=inner.sub)
			return inner
		if kind == "captured_pattern":
			name_node, sub = list(self._pattern_children(node))[:2]
			return IdentPat(self.text(name_node), sub=self.pat(sub))
		if kind in ("string_literal", "raw_string_literal", "char_literal", "integer_literal", "float_literal", "boolean_literal"):
			lit = self.expr(node)
			assert isinstance(lit, LitExpr)
			return LitPat(lit)
		if kind == "negative_literal":
			lit = self.expr(self._named(node)[0])
			assert isinstance(lit, LitExpr)
			return LitPat(lit, negative=True)
		if kind == "tuple_pattern":
			return TuplePat(tuple(self.pat(c) for c in self._pattern_children(node)))
		if kind == "slice_pattern":
			return SlicePat(tuple(self.pat(c) for c in self._pattern_children(node)))
		if kind == "tuple_struct_pattern":
			type_node = self._field(node, "type")
			return TupleStructPat(
				path_segments(self.text(type_node)),
				tuple(self.pat(c) for c in self._pattern_children(node, skip=type_node)),
			)
		if kind == "struct_pattern":
			return self._struct_pattern(node)
		if kind in ("scoped_identifier", "scoped_type_identifier"):
			return PathPat(path_segments(self.text(node)))
		if kind == "reference_pattern":
			return RefPat(self.pat(next(self._pattern_children(node))))
		if kind == "or_pattern":
			alts: list[Pat] = []
			for child in self._pattern_children(node):
				alt = self.pat(child)
				alts.extend(alt.alts if isinstance(alt, OrPat) else [alt])
			return OrPat(tuple(alts))
		if kind == "range_pattern":
			return self._range_pattern(node)
		raise UnsupportedError("pattern", f"Unsupported pattern syntax: {kind}")

	def _struct_pattern(self, node: Node) -> StructPat:
		type_node = self._field(node, "type")
		fields: list[FieldPat] = []
		rest = False
		for child in self._pattern_children(node, skip=type_node):
			if child.type == "remaining_field_pattern":
				rest = True
				continue
			if child.type != "field_pattern":
				continue
			name = self.text(self._field(child, "name"))
			sub = child.child_by_field_name("pattern")
			if sub is not None:
				fields.append(FieldPat(name, self.pat(sub)))
			else:
				fields.append(
					FieldPat(
						name,
						IdentPat(
							name,
							mutable=self._has_child(child, "mutable_specifier"),
							by_ref=self._has_child(child, "ref"),
						),
					)
				)
		return StructPat(path_segments(self.text(type_node)), tuple(fields), rest)

	def _range_pattern(self, node: Node) -> RangePat:
		start: LitPat | None = None
		end: LitPat | None = None
		inclusive = True
		seen_op = False
		for child in node.children:
			if child.type in ("..", "..=", "..."):
				seen_op = True
				inclusive = child.type != ".."
				continue
			if not child.is_named or child.type in COMMENT_TYPES:
				continue
			bound = self.pat(child)
			if not isinstance(bound, LitPat):
				raise UnsupportedError("pattern", "Range pattern bounds must be literals")
			if seen_op:
				end = bound
			else:
				start = bound
		return RangePat(start, end, inclusive)
