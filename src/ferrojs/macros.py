"""
Macro expansion for the fixed set of recognized macros.

Macro arguments arrive as raw token text. Splitting them into arguments and
reading the format template are done by the small tokenizers below; each
argument is then parsed through the transpiler's expression parser hook and
translated like any other expression.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ferrojs.errors import TranspileError, UnsupportedError

if TYPE_CHECKING:
	from ferrojs.syntax import MacroCall
	from ferrojs.transpiler import Transpiler

_OPEN = {"(": ")", "[": "]", "{": "}"}
_CLOSE = {")", "]", "}"}
_NAMED_ARG = re.compile(r"^\s*([A-Za-z_][A-Za-z0-9_]*)\s*=(?!=)\s*(.*)$", re.DOTALL)
_RAW_STRING = re.compile(r'^(b?r)(#*)"(.*)"\2$', re.DOTALL)
_ESCAPES = {
	"n": "\n",
	"t": "\t",
	"r": "\r",
	"0": "\0",
	"\\": "\\",
	'"': '"',
	"'": "'",
}


# =============================================================================
# Tokenizers
# =============================================================================
def split_arguments(text: str, sep: str = ",") -> list[str]:
	"""Split macro tokens on top-level separators.

	Separators inside string/char literals or nested brackets do not split.
	A trailing separator is ignored.
	"""
	parts: list[str] = []
	stack: list[str] = []
	buf: list[str] = []
	i = 0
	n = len(text)
	while i < n:
		ch = text[i]
		if ch == '"' or (ch == "r" and _raw_string_start(text, i)):
			end = _skip_string(text, i)
			buf.append(text[i:end])
			i = end
			continue
		if ch == "'" and _is_char_literal(text, i):
			end = _skip_char(text, i)
			buf.append(text[i:end])
			i = end
			continue
		if ch in _OPEN:
			stack.append(_OPEN[ch])
		elif ch in _CLOSE:
			if not stack or stack.pop() != ch:
				raise TranspileError(f"Unbalanced '{ch}' in macro arguments: {text}")
		elif ch == sep and not stack:
			parts.append("".join(buf).strip())
			buf = []
			i += 1
			continue
		buf.append(ch)
		i += 1
	if stack:
		raise TranspileError(f"Unclosed '{stack[-1]}' in macro arguments: {text}")
	# A trailing separator (`vec![1, 2,]`) leaves an empty tail
	last = "".join(buf).strip()
	if last:
		parts.append(last)
	return parts


def _raw_string_start(text: str, i: int) -> bool:
	if i > 0 and (text[i - 1].isalnum() or text[i - 1] == "_"):
		return False
	j = i + 1
	while j < len(text) and text[j] == "#":
		j += 1
	return j < len(text) and text[j] == '"'


def _skip_string(text: str, i: int) -> int:
	"""Index just past the string literal starting at i."""
	if text[i] == "r":
		j = i + 1
		hashes = 0
		while text[j] == "#":
			hashes += 1
			j += 1
		closing = '"' + "#" * hashes
		end = text.find(closing, j + 1)
		if end < 0:
			raise TranspileError(f"Unterminated raw string in macro arguments: {text}")
		return end + len(closing)
	j = i + 1
	while j < len(text):
		if text[j] == "\\":
			j += 2
			continue
		if text[j] == '"':
			return j + 1
		j += 1
	raise TranspileError(f"Unterminated string in macro arguments: {text}")


def _is_char_literal(text: str, i: int) -> bool:
	# 'a', '\n', '\u{1F600}'; lifetimes like 'a are not literals
	if i + 2 < len(text) and text[i + 1] != "\\" and text[i + 2] == "'":
		return True
	return i + 1 < len(text) and text[i + 1] == "\\"


def _skip_char(text: str, i: int) -> int:
	j = i + 1
	if text[j] == "\\":
		j += 2
	while j < len(text) and text[j] != "'":
		j += 1
	return j + 1


def decode_string_literal(literal: str) -> str:
	"""Value of a source string literal, including raw and byte strings."""
	literal = literal.strip()
	m = _RAW_STRING.match(literal)
	if m:
		return m.group(3)
	if literal.startswith("b"):
		literal = literal[1:]
	if len(literal) < 2 or literal[0] not in "\"'" or literal[-1] != literal[0]:
		raise TranspileError(f"Expected a string literal, got: {literal}")
	body = literal[1:-1]
	out: list[str] = []
	i = 0
	while i < len(body):
		ch = body[i]
		if ch != "\\":
			out.append(ch)
			i += 1
			continue
		nxt = body[i + 1] if i + 1 < len(body) else ""
		if nxt in _ESCAPES:
			out.append(_ESCAPES[nxt])
			i += 2
		elif nxt == "x":
			out.append(chr(int(body[i + 2 : i + 4], 16)))
			i += 4
		elif nxt == "u":
			end = body.index("}", i)
			out.append(chr(int(body[i + 3 : end], 16)))
			i = end + 1
		elif nxt == "\n":
			# Line continuation swallows the newline and leading whitespace
			i += 2
			while i < len(body) and body[i] in " \t\n\r":
				i += 1
		else:
			raise TranspileError(f"Unknown escape '\\{nxt}' in string literal")
	return "".join(out)


@dataclass(slots=True, frozen=True)
class Placeholder:
	"""A `{...}` slot in a format template.

	key is "" for the next positional argument, a digit string for an explicit
	position, or an identifier for a named/captured argument.
	"""

	key: str = ""
	spec: str = ""

	@property
	def debug(self) -> bool:
		return self.spec in ("?", "#?")


FormatPiece = str | Placeholder


def tokenize_format(template: str) -> list[FormatPiece]:
	"""Split a format template into literal text and placeholders.

	`{{` and `}}` are literal braces. An unclosed `{` or a stray `}` raises.
	"""
	pieces: list[FormatPiece] = []
	buf: list[str] = []
	i = 0
	n = len(template)
	while i < n:
		ch = template[i]
		if ch == "{":
			if i + 1 < n and template[i + 1] == "{":
				buf.append("{")
				i += 2
				continue
			end = template.find("}", i + 1)
			if end < 0:
				raise TranspileError(f"Unclosed placeholder in format string: {template!r}")
			if buf:
				pieces.append("".join(buf))
				buf = []
			inner = template[i + 1 : end]
			key, _, spec = inner.partition(":")
			pieces.append(Placeholder(key.strip(), spec.strip()))
			i = end + 1
			continue
		if ch == "}":
			if i + 1 < n and template[i + 1] == "}":
				buf.append("}")
				i += 2
				continue
			raise TranspileError(f"Unmatched '}}' in format string: {template!r}")
		buf.append(ch)
		i += 1
	if buf:
		pieces.append("".join(buf))
	return pieces


def escape_template(s: str) -> str:
	"""Escape for template literal strings."""
	return (
		s.replace("\\", "\\\\")
		.replace("`", "\\`")
		.replace("${", "\\${")
		.replace("\n", "\\n")
		.replace("\r", "\\r")
		.replace("\t", "\\t")
		.replace("\x00", "\\x00")
		.replace("\u2028", "\\u2028")
		.replace("\u2029", "\\u2029")
	)


def escape_string(s: str) -> str:
	"""Escape for double-quoted JS string literals."""
	return (
		s.replace("\\", "\\\\")
		.replace('"', '\\"')
		.replace("\n", "\\n")
		.replace("\r", "\\r")
		.replace("\t", "\\t")
		.replace("\x00", "\\x00")
		.replace("\u2028", "\\u2028")
		.replace("\u2029", "\\u2029")
	)


# =============================================================================
# Expansion
# =============================================================================
def format_arguments(ctx: Transpiler, tokens: str) -> str:
	"""Translate `"template", args...` into a JS string or template literal."""
	parts = split_arguments(tokens)
	if not parts:
		return '""'
	template = decode_string_literal(parts[0])
	positional: list[str] = []
	named: dict[str, str] = {}
	for part in parts[1:]:
		m = _NAMED_ARG.match(part)
		if m:
			named[m.group(1)] = ctx.emit_expr(ctx.parse(m.group(2)))
		else:
			positional.append(ctx.emit_expr(ctx.parse(part)))

	pieces = tokenize_format(template)
	if not any(isinstance(p, Placeholder) for p in pieces):
		return f'"{escape_string(template)}"'

	out: list[str] = ["`"]
	next_index = 0
	for piece in pieces:
		if isinstance(piece, str):
			out.append(escape_template(piece))
			continue
		if piece.key == "":
			if next_index >= len(positional):
				raise TranspileError(
					f"Format string {template!r} has more placeholders than arguments"
				)
			value = positional[next_index]
			next_index += 1
		elif piece.key.isdigit():
			index = int(piece.key)
			if index >= len(positional):
				raise TranspileError(
					f"Format string {template!r} references missing argument {index}"
				)
			value = positional[index]
		elif piece.key in named:
			value = named[piece.key]
		else:
			# Inline capture: `{name}` reads a variable in scope
			value = ctx.emit_expr(ctx.parse(piece.key))
		out.append("${")
		out.append(_apply_spec(value, piece.spec))
		out.append("}")
	out.append("`")
	return "".join(out)


def _apply_spec(value: str, spec: str) -> str:
	if spec in ("?", "#?"):
		return f"debug_repr({value})"
	m = re.fullmatch(r"\.(\d+)", spec)
	if m:
		return f"Number({value}).toFixed({m.group(1)})"
	# Width, fill and alignment have no effect on the emitted text
	return value


def _expand_vec(ctx: Transpiler, tokens: str) -> str:
	repeat = split_arguments(tokens, sep=";")
	if len(repeat) == 2:
		value = ctx.emit_expr(ctx.parse(repeat[0]))
		count = ctx.emit_expr(ctx.parse(repeat[1]))
		return f"Array.from({{ length: {count} }}, () => {value})"
	items = [ctx.emit_expr(ctx.parse(part)) for part in split_arguments(tokens)]
	return f"[{', '.join(items)}]"


def _expand_print(target: str) -> Callable[[Transpiler, str], str]:
	def expand(ctx: Transpiler, tokens: str) -> str:
		if not tokens.strip():
			return f"{target}()"
		return f"{target}({format_arguments(ctx, tokens)})"

	return expand


def _expand_panic(default: str) -> Callable[[Transpiler, str], str]:
	def expand(ctx: Transpiler, tokens: str) -> str:
		if not tokens.strip():
			return f'panic("{default}")'
		return f"panic({format_arguments(ctx, tokens)})"

	return expand


def _expand_assert(ctx: Transpiler, tokens: str) -> str:
	parts = split_arguments(tokens)
	if not parts:
		raise TranspileError("assert! needs a condition")
	cond = ctx.emit_expr(ctx.parse(parts[0]))
	if len(parts) > 1:
		message = format_arguments(ctx, ", ".join(parts[1:]))
	else:
		message = f'"assertion failed: {escape_string(parts[0])}"'
	return f"assert({cond}, {message})"


def _expand_assert_cmp(negate: bool) -> Callable[[Transpiler, str], str]:
	def expand(ctx: Transpiler, tokens: str) -> str:
		parts = split_arguments(tokens)
		if len(parts) < 2:
			raise TranspileError("assert_eq!/assert_ne! need two operands")
		left = ctx.emit_expr(ctx.parse(parts[0]))
		right = ctx.emit_expr(ctx.parse(parts[1]))
		message = (
			format_arguments(ctx, ", ".join(parts[2:])) if len(parts) > 2 else "undefined"
		)
		return f"assert_eq({left}, {right}, {message}, {'true' if negate else 'false'})"

	return expand


MacroExpander = Callable[["Transpiler", str], str]

MACROS: dict[str, MacroExpander] = {
	"format": format_arguments,
	"println": _expand_print("console.log"),
	"print": _expand_print("write_stdout"),
	"eprintln": _expand_print("console.error"),
	"eprint": _expand_print("write_stderr"),
	"vec": _expand_vec,
	"panic": _expand_panic("explicit panic"),
	"unreachable": _expand_panic("internal error: entered unreachable code"),
	"todo": _expand_panic("not yet implemented"),
	"unimplemented": _expand_panic("not implemented"),
	"assert": _expand_assert,
	"debug_assert": _expand_assert,
	"assert_eq": _expand_assert_cmp(negate=False),
	"assert_ne": _expand_assert_cmp(negate=True),
}

# Macros whose expansion is a value worth returning from a block tail
VALUE_MACROS = frozenset({"format", "vec"})


def expand_macro(ctx: Transpiler, mac: MacroCall) -> str:
	"""Expand a recognized macro. Unknown names are a hard failure."""
	name = mac.name.rsplit("::", 1)[-1]
	expander = MACROS.get(name)
	if expander is None:
		raise UnsupportedError("macro", f"Unsupported macro: {name}!")
	return expander(ctx, mac.tokens)
