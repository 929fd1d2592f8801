from __future__ import annotations

from dataclasses import dataclass


class TranspileError(Exception):
	"""Error during transpilation."""


class UnsupportedError(TranspileError):
	"""A construct with no translation. Aborts the enclosing declaration."""

	kind: str

	def __init__(self, kind: str, detail: str | None = None) -> None:
		self.kind = kind
		super().__init__(detail or f"Unsupported {kind}")


class ParseError(TranspileError):
	"""The front-end could not parse the source text."""

	line: int
	column: int

	def __init__(self, message: str, line: int = 0, column: int = 0) -> None:
		self.line = line
		self.column = column
		super().__init__(f"{message} at line {line + 1}, column {column + 1}")


class ExecutionError(Exception):
	"""Translated code failed when run by the JavaScript engine.

	Not a TranspileError: translation succeeded, the emitted program did not.
	"""

	stdout: str
	stderr: str
	returncode: int | None

	def __init__(
		self,
		message: str,
		*,
		stdout: str = "",
		stderr: str = "",
		returncode: int | None = None,
	) -> None:
		self.stdout = stdout
		self.stderr = stderr
		self.returncode = returncode
		super().__init__(message)


@dataclass(slots=True)
class Diagnostic:
	"""One failed top-level declaration, collected by the unit driver."""

	item: str
	error: TranspileError

	@property
	def message(self) -> str:
		return str(self.error)

	def __str__(self) -> str:
		return f"{self.item}: {self.error}"
