"""
Source syntax tree consumed by the transpiler.

Nodes are produced by ferrojs.frontend (or built by hand in tests) and are
never mutated by the translation engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal as Lit
from typing import TypeAlias

LitKind: TypeAlias = Lit["int", "float", "str", "char", "bool"]
StructKind: TypeAlias = Lit["named", "tuple", "unit"]


# =============================================================================
# Base classes
# =============================================================================
class SyntaxNode:
	"""Base class for all source syntax nodes."""

	__slots__: tuple[str, ...] = ()

	@property
	def kind(self) -> str:
		return type(self).__name__


class Expr(SyntaxNode):
	__slots__: tuple[str, ...] = ()


class Stmt(SyntaxNode):
	__slots__: tuple[str, ...] = ()


class Pat(SyntaxNode):
	__slots__: tuple[str, ...] = ()


class Item(SyntaxNode):
	"""Top-level (or block-level) declaration."""

	__slots__: tuple[str, ...] = ()

	@property
	def name(self) -> str:
		return getattr(self, "ident", type(self).__name__)


# =============================================================================
# Expressions
# =============================================================================
@dataclass(slots=True, frozen=True)
class LitExpr(Expr):
	value: bool | int | float | str
	lit: LitKind


@dataclass(slots=True, frozen=True)
class Ident(Expr):
	"""Single-segment name, including `self`, `Self`, `true` and `None`."""

	name: str


@dataclass(slots=True, frozen=True)
class Path(Expr):
	"""Multi-segment path: `Color::Red`, `HashMap::new`."""

	segments: tuple[str, ...]

	@property
	def last(self) -> str:
		return self.segments[-1]


@dataclass(slots=True, frozen=True)
class Unary(Expr):
	op: str  # "!" or "-"
	operand: Expr


@dataclass(slots=True, frozen=True)
class Binary(Expr):
	op: str
	left: Expr
	right: Expr


@dataclass(slots=True, frozen=True)
class Assign(Expr):
	target: Expr
	value: Expr
	op: str = "="


@dataclass(slots=True, frozen=True)
class Call(Expr):
	func: Expr
	args: tuple[Expr, ...] = ()


@dataclass(slots=True, frozen=True)
class MethodCall(Expr):
	receiver: Expr
	method: str
	args: tuple[Expr, ...] = ()


@dataclass(slots=True, frozen=True)
class Field(Expr):
	"""Field access. Positional tuple access uses a numeric name ("0")."""

	obj: Expr
	name: str


@dataclass(slots=True, frozen=True)
class Index(Expr):
	obj: Expr
	index: Expr


@dataclass(slots=True, frozen=True)
class FieldInit:
	name: str
	value: Expr


@dataclass(slots=True, frozen=True)
class StructLit(Expr):
	path: tuple[str, ...]
	fields: tuple[FieldInit, ...] = ()
	base: Expr | None = None


@dataclass(slots=True, frozen=True)
class ArrayLit(Expr):
	elems: tuple[Expr, ...] = ()


@dataclass(slots=True, frozen=True)
class ArrayRepeat(Expr):
	value: Expr
	count: Expr


@dataclass(slots=True, frozen=True)
class TupleLit(Expr):
	elems: tuple[Expr, ...] = ()


@dataclass(slots=True, frozen=True)
class Paren(Expr):
	expr: Expr


@dataclass(slots=True, frozen=True)
class Param:
	pat: Pat
	ty: str | None = None


@dataclass(slots=True, frozen=True)
class Closure(Expr):
	params: tuple[Param, ...]
	body: Expr
	is_async: bool = False


@dataclass(slots=True, frozen=True)
class Block:
	stmts: tuple[Stmt, ...] = ()


@dataclass(slots=True, frozen=True)
class BlockExpr(Expr):
	block: Block
	is_async: bool = False
	label: str | None = None


@dataclass(slots=True, frozen=True)
class If(Expr):
	cond: Expr
	then: Block
	orelse: Expr | None = None  # BlockExpr, If or IfLet


@dataclass(slots=True, frozen=True)
class IfLet(Expr):
	pat: Pat
	value: Expr
	then: Block
	orelse: Expr | None = None


@dataclass(slots=True, frozen=True)
class While(Expr):
	cond: Expr
	body: Block
	label: str | None = None


@dataclass(slots=True, frozen=True)
class WhileLet(Expr):
	pat: Pat
	value: Expr
	body: Block
	label: str | None = None


@dataclass(slots=True, frozen=True)
class Loop(Expr):
	body: Block
	label: str | None = None


@dataclass(slots=True, frozen=True)
class ForLoop(Expr):
	pat: Pat
	iter: Expr
	body: Block
	label: str | None = None


@dataclass(slots=True, frozen=True)
class Arm:
	pat: Pat
	body: Expr
	guard: Expr | None = None


@dataclass(slots=True, frozen=True)
class Match(Expr):
	subject: Expr
	arms: tuple[Arm, ...]


@dataclass(slots=True, frozen=True)
class Return(Expr):
	value: Expr | None = None


@dataclass(slots=True, frozen=True)
class Break(Expr):
	label: str | None = None
	value: Expr | None = None


@dataclass(slots=True, frozen=True)
class Continue(Expr):
	label: str | None = None


@dataclass(slots=True, frozen=True)
class MacroCall(Expr):
	"""Macro invocation. `tokens` is the raw text between the delimiters."""

	name: str
	tokens: str = ""


@dataclass(slots=True, frozen=True)
class Ref(Expr):
	expr: Expr
	mutable: bool = False


@dataclass(slots=True, frozen=True)
class Deref(Expr):
	expr: Expr


@dataclass(slots=True, frozen=True)
class Cast(Expr):
	expr: Expr
	ty: str


@dataclass(slots=True, frozen=True)
class Try(Expr):
	expr: Expr


@dataclass(slots=True, frozen=True)
class Await(Expr):
	expr: Expr


@dataclass(slots=True, frozen=True)
class Range(Expr):
	start: Expr | None = None
	end: Expr | None = None
	inclusive: bool = False


# =============================================================================
# Statements
# =============================================================================
@dataclass(slots=True, frozen=True)
class Let(Stmt):
	pat: Pat
	init: Expr | None = None
	ty: str | None = None
	orelse: Block | None = None


@dataclass(slots=True, frozen=True)
class ExprStmt(Stmt):
	"""Expression statement. `semi` is False for a block's trailing value."""

	expr: Expr
	semi: bool = True


@dataclass(slots=True, frozen=True)
class MacroStmt(Stmt):
	mac: MacroCall
	semi: bool = True


@dataclass(slots=True, frozen=True)
class ItemStmt(Stmt):
	item: Item


# =============================================================================
# Patterns
# =============================================================================
@dataclass(slots=True, frozen=True)
class WildPat(Pat):
	pass


@dataclass(slots=True, frozen=True)
class RestPat(Pat):
	pass


@dataclass(slots=True, frozen=True)
class IdentPat(Pat):
	name: str
	mutable: bool = False
	by_ref: bool = False
	sub: Pat | None = None


@dataclass(slots=True, frozen=True)
class LitPat(Pat):
	lit: LitExpr
	negative: bool = False


@dataclass(slots=True, frozen=True)
class TuplePat(Pat):
	elems: tuple[Pat, ...]


@dataclass(slots=True, frozen=True)
class TupleStructPat(Pat):
	"""Variant with positional payload: `Some(x)`, `Shape::Circle(r)`."""

	path: tuple[str, ...]
	elems: tuple[Pat, ...]


@dataclass(slots=True, frozen=True)
class FieldPat:
	name: str
	pat: Pat


@dataclass(slots=True, frozen=True)
class StructPat(Pat):
	path: tuple[str, ...]
	fields: tuple[FieldPat, ...] = ()
	rest: bool = False


@dataclass(slots=True, frozen=True)
class PathPat(Pat):
	"""Payload-less path pattern: `None`, `Color::Red`."""

	path: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class RefPat(Pat):
	pat: Pat


@dataclass(slots=True, frozen=True)
class OrPat(Pat):
	alts: tuple[Pat, ...]


@dataclass(slots=True, frozen=True)
class RangePat(Pat):
	start: LitPat | None
	end: LitPat | None
	inclusive: bool = True


@dataclass(slots=True, frozen=True)
class SlicePat(Pat):
	elems: tuple[Pat, ...]


# =============================================================================
# Declarations
# =============================================================================
@dataclass(slots=True, frozen=True)
class SelfParam:
	mutable: bool = False
	by_ref: bool = True


@dataclass(slots=True, frozen=True)
class FnDecl(Item):
	ident: str
	params: tuple[Param, ...]
	body: Block
	receiver: SelfParam | None = None
	ret: str | None = None
	is_async: bool = False


@dataclass(slots=True, frozen=True)
class StructDecl(Item):
	ident: str
	fields: tuple[str, ...] = ()
	shape: StructKind = "named"


@dataclass(slots=True, frozen=True)
class Variant:
	name: str
	shape: StructKind = "unit"
	fields: tuple[str, ...] = ()  # field names, or one entry per positional slot


@dataclass(slots=True, frozen=True)
class EnumDecl(Item):
	ident: str
	variants: tuple[Variant, ...]


@dataclass(slots=True, frozen=True)
class ImplDecl(Item):
	ident: str  # receiver type name
	fns: tuple[FnDecl, ...]
	trait: str | None = None


@dataclass(slots=True, frozen=True)
class ConstDecl(Item):
	ident: str
	value: Expr
	ty: str | None = None
	is_static: bool = False


@dataclass(slots=True, frozen=True)
class InertItem(Item):
	"""Declaration with no runtime meaning: `use`, `mod`, attributes, traits."""

	ident: str
	what: str


@dataclass(slots=True, frozen=True)
class UnknownItem(Item):
	"""Declaration the front-end could not classify."""

	ident: str
	what: str
