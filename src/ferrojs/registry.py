"""
Explicit fragment registry.

Collects translated declarations in registration order so a program can be
assembled from declarations registered across several modules. A Registry is
an ordinary object owned by the caller; there is no process-wide instance.
"""

from __future__ import annotations

import inspect
import logging
import threading
from collections.abc import Callable, Iterator
from typing import Any, TypeVar

from ferrojs.errors import TranspileError
from ferrojs.frontend import parse_source
from ferrojs.syntax import EnumDecl, Item, StructDecl
from ferrojs.unit import assemble, collect_enums, collect_structs, item_fragments

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class Registry:
	"""Ordered, thread-safe collection of translated fragments.

	Example:
		registry = Registry()

		@registry.item
		def point():
			'''
			struct Point { x: i32, y: i32 }
			'''

		registry.assemble()
	"""

	__slots__ = ("_fragments", "_structs", "_enums", "_lock")
	_fragments: list[str]
	_structs: dict[str, tuple[str, ...]]
	_enums: set[str]
	_lock: threading.Lock

	def __init__(self) -> None:
		self._fragments = []
		self._structs = {}
		self._enums = set()
		self._lock = threading.Lock()

	def register(self, item: Item) -> list[str]:
		"""Translate one declaration and append its fragments.

		Raises TranspileError without registering anything on failure.
		"""
		with self._lock:
			if isinstance(item, StructDecl):
				self._structs.update(collect_structs([item]))
			elif isinstance(item, EnumDecl):
				self._enums.add(item.ident)
			fragments = item_fragments(
				item, structs=dict(self._structs), enums=set(self._enums)
			)
			self._fragments.extend(fragments)
		logger.debug("Registered %s %s", item.kind, item.name)
		return fragments

	def register_source(self, text: str) -> list[str]:
		"""Parse source text and register every declaration in it, in order.

		All declarations are translated before any is registered, so a failure
		leaves the registry unchanged.
		"""
		items = parse_source(text)
		with self._lock:
			structs = {**self._structs, **collect_structs(items)}
			enums = self._enums | collect_enums(items)
			fragments: list[str] = []
			for item in items:
				fragments.extend(item_fragments(item, structs=structs, enums=enums))
			self._structs = structs
			self._enums = enums
			self._fragments.extend(fragments)
		return fragments

	def item(self, fn: F) -> F:
		"""Decorator registering the source text held in a function's docstring."""
		source = inspect.getdoc(fn)
		if not source:
			raise TranspileError(
				f"@item on {fn.__qualname__} needs a docstring holding the source"
			)
		self.register_source(source)
		return fn

	def fragments(self) -> list[str]:
		with self._lock:
			return list(self._fragments)

	def assemble(self, *, preamble: bool = True, pretty: bool = False) -> str:
		return assemble(self.fragments(), preamble=preamble, pretty=pretty)

	def clear(self) -> None:
		with self._lock:
			self._fragments.clear()
			self._structs.clear()
			self._enums.clear()

	def __len__(self) -> int:
		with self._lock:
			return len(self._fragments)

	def __iter__(self) -> Iterator[str]:
		return iter(self.fragments())
