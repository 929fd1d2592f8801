"""
Translation-unit driver and output assembler.

A unit is an ordered list of top-level declarations. Each declaration is
translated independently (fresh Transpiler, no shared state), failures are
collected as diagnostics rather than aborting the whole unit, and the
resulting fragments are concatenated in declaration order behind the runtime
preamble.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection, Iterable, Mapping, Sequence
from dataclasses import dataclass, field

from ferrojs.declarations import emit_const, emit_enum, emit_fn, emit_impl, emit_struct
from ferrojs.errors import Diagnostic, TranspileError, UnsupportedError
from ferrojs.frontend import parse_source
from ferrojs.runtime import PREAMBLE
from ferrojs.syntax import (
	ConstDecl,
	EnumDecl,
	Expr,
	FnDecl,
	ImplDecl,
	InertItem,
	Item,
	StructDecl,
	UnknownItem,
)

logger = logging.getLogger(__name__)

HEADER = "// Transpiled by ferrojs"


@dataclass(slots=True)
class UnitResult:
	"""Fragments of the declarations that translated, plus one diagnostic per failure."""

	fragments: list[str] = field(default_factory=list)
	diagnostics: list[Diagnostic] = field(default_factory=list)

	@property
	def ok(self) -> bool:
		return not self.diagnostics

	@property
	def code(self) -> str:
		return assemble(self.fragments)

	def check(self) -> UnitResult:
		"""Raise a TranspileError listing every diagnostic, if there are any."""
		if self.diagnostics:
			lines = "\n".join(str(d) for d in self.diagnostics)
			raise TranspileError(f"{len(self.diagnostics)} declaration(s) failed:\n{lines}")
		return self


def collect_structs(items: Iterable[Item]) -> dict[str, tuple[str, ...]]:
	"""Field order of every struct in the unit, for struct-literal arguments."""
	structs: dict[str, tuple[str, ...]] = {}
	for item in items:
		if isinstance(item, StructDecl):
			if item.shape == "named":
				structs[item.ident] = item.fields
			else:
				structs[item.ident] = tuple(str(i) for i in range(len(item.fields)))
	return structs


def collect_enums(items: Iterable[Item]) -> set[str]:
	"""Names of the enums in the unit, whose companions have no prototype."""
	return {item.ident for item in items if isinstance(item, EnumDecl)}


def item_fragments(
	item: Item,
	*,
	structs: Mapping[str, tuple[str, ...]] | None = None,
	enums: Collection[str] = (),
	parse: Callable[[str], Expr] | None = None,
) -> list[str]:
	if isinstance(item, StructDecl):
		return [emit_struct(item)]
	if isinstance(item, EnumDecl):
		return [emit_enum(item)]
	if isinstance(item, FnDecl):
		return [emit_fn(item, structs=structs, parse=parse)]
	if isinstance(item, ImplDecl):
		return emit_impl(item, structs=structs, enums=enums, parse=parse)
	if isinstance(item, ConstDecl):
		return [emit_const(item, structs=structs, parse=parse)]
	if isinstance(item, InertItem):
		return [f"// Skipped {item.what}: {item.ident}"]
	if isinstance(item, UnknownItem):
		raise UnsupportedError("item", f"Unsupported declaration: {item.what} {item.ident}")
	raise UnsupportedError("item", f"Unsupported declaration: {item.kind}")


def transpile_item(
	item: Item,
	*,
	structs: Mapping[str, tuple[str, ...]] | None = None,
	enums: Collection[str] = (),
	parse: Callable[[str], Expr] | None = None,
) -> str:
	"""Translate one declaration. Raises TranspileError on failure."""
	return "\n".join(item_fragments(item, structs=structs, enums=enums, parse=parse))


def transpile_unit(
	items: Sequence[Item],
	*,
	parse: Callable[[str], Expr] | None = None,
) -> UnitResult:
	structs = collect_structs(items)
	enums = collect_enums(items)
	result = UnitResult()
	for item in items:
		if isinstance(item, InertItem):
			logger.warning("Skipping %s %s", item.what, item.ident)
		try:
			fragments = item_fragments(item, structs=structs, enums=enums, parse=parse)
		except TranspileError as e:
			logger.warning("Failed to transpile %s: %s", item.name, e)
			result.diagnostics.append(Diagnostic(item.name, e))
			continue
		logger.debug("Transpiled %s %s", item.kind, item.name)
		result.fragments.extend(fragments)
	return result


def transpile_source(text: str) -> UnitResult:
	"""Parse and translate a source file. A ParseError aborts the whole unit."""
	return transpile_unit(parse_source(text))


# =============================================================================
# Assembly
# =============================================================================
def assemble(fragments: Iterable[str], *, preamble: bool = True, pretty: bool = False) -> str:
	parts = [HEADER]
	if preamble:
		parts.append(PREAMBLE)
	parts.extend(fragments)
	code = ("\n\n" if pretty else "\n").join(parts) + "\n"
	if pretty:
		code = indent_code(code)
	return code


def indent_code(code: str, unit: str = "  ") -> str:
	"""Re-indent emitted code by bracket depth, skipping strings and comments."""
	out: list[str] = []
	depth = 0
	# "`" for an open template literal, "${" for an interpolation, "{" for a block
	stack: list[str] = []
	for raw in code.split("\n"):
		line = raw.strip()
		if not line:
			out.append("")
			continue
		lead, net = _scan_line(line, stack)
		out.append(unit * max(depth - lead, 0) + line)
		depth = max(depth + net, 0)
	return "\n".join(out)


def _scan_line(line: str, stack: list[str]) -> tuple[int, int]:
	"""Return (closers before any other token, net bracket change)."""
	lead = 0
	net = 0
	leading = True
	i = 0
	n = len(line)
	while i < n:
		ch = line[i]
		if stack and stack[-1] == "`":
			if ch == "\\":
				i += 2
				continue
			if ch == "`":
				stack.pop()
			elif line.startswith("${", i):
				stack.append("${")
				i += 2
				continue
			i += 1
			continue
		if ch in "\"'":
			j = i + 1
			while j < n and line[j] != ch:
				j += 2 if line[j] == "\\" else 1
			i = j + 1
			leading = False
			continue
		if line.startswith("//", i):
			break
		if line.startswith("/*", i):
			end = line.find("*/", i + 2)
			i = n if end < 0 else end + 2
			continue
		if ch == "`":
			stack.append("`")
			leading = False
		elif ch == "{":
			stack.append("{")
			net += 1
			leading = False
		elif ch == "}":
			if stack and stack[-1] == "${":
				stack.pop()
			else:
				if stack:
					stack.pop()
				net -= 1
				if leading:
					lead += 1
		elif ch in "([":
			net += 1
			leading = False
		elif ch in ")]":
			net -= 1
			if leading:
				lead += 1
		elif not ch.isspace():
			leading = False
		i += 1
	return lead, net
