"""
Scope-aware renaming of local bindings.

JavaScript `const`/`let` cannot be redeclared in one block, and a closure or
IIFE created between two shadowing bindings would capture the wrong one if
they shared a name. Each new binding whose name is already live somewhere in
the scope chain therefore gets a suffixed name (`x_1`, `x_2`, ...). Renames
die with the scope that introduced them, so sibling scopes reuse the original
name freely.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager

# Words that cannot be used as JS binding names
JS_RESERVED = frozenset(
	{
		"arguments",
		"await",
		"break",
		"case",
		"catch",
		"class",
		"const",
		"continue",
		"debugger",
		"default",
		"delete",
		"do",
		"else",
		"enum",
		"eval",
		"export",
		"extends",
		"false",
		"finally",
		"for",
		"function",
		"if",
		"implements",
		"import",
		"in",
		"instanceof",
		"interface",
		"let",
		"new",
		"null",
		"package",
		"private",
		"protected",
		"public",
		"return",
		"static",
		"super",
		"switch",
		"this",
		"throw",
		"true",
		"try",
		"typeof",
		"undefined",
		"var",
		"void",
		"while",
		"with",
		"yield",
	}
)


def js_name(name: str) -> str:
	"""Make a source identifier usable as a JS binding name."""
	if name.startswith("r#"):
		name = name[2:]
	if name in JS_RESERVED:
		return f"{name}_"
	return name


class Scopes:
	"""Stack of lexical scopes mapping source names to live target names."""

	__slots__: tuple[str, ...] = ("_stack", "_taken", "renames")
	_stack: list[dict[str, str]]
	# Every target name handed out per layer, including shadowed ones
	_taken: list[set[str]]
	renames: int

	def __init__(self) -> None:
		self._stack = [{}]
		self._taken = [set()]
		self.renames = 0

	def push(self) -> None:
		self._stack.append({})
		self._taken.append(set())

	def pop(self) -> None:
		if len(self._stack) == 1:
			raise RuntimeError("Cannot pop the function scope")
		self._stack.pop()
		self._taken.pop()

	@contextmanager
	def scope(self) -> Iterator[None]:
		self.push()
		try:
			yield
		finally:
			self.pop()

	def seed(self, names: Iterable[str]) -> list[str]:
		"""Mark parameter names as live in the current scope."""
		return [self.declare(name) for name in names]

	def is_live(self, target: str) -> bool:
		return any(target in taken for taken in self._taken)

	def declare(self, name: str) -> str:
		"""Bind `name` in the innermost scope and return its target name."""
		target = self.reserve(name)
		self.bind(name, target)
		return target

	def reserve(self, name: str) -> str:
		"""Claim a target name for `name` without making it visible yet.

		Used when a binding's initializer is emitted after its declaration
		(`let x; ...; x = value;`) and must still see the previous `x`.
		"""
		base = js_name(name)
		target = base
		n = 1
		while self.is_live(target):
			target = f"{base}_{n}"
			n += 1
		if target != base:
			self.renames += 1
		self._taken[-1].add(target)
		return target

	def bind(self, name: str, target: str) -> None:
		self._stack[-1][name] = target
		self._taken[-1].add(target)

	def resolve(self, name: str) -> str:
		"""Target name for a reference to `name`. Free names map to themselves."""
		for layer in reversed(self._stack):
			if name in layer:
				return layer[name]
		return js_name(name)
