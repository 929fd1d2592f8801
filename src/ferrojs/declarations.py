"""
Top-level declaration codegen: structs, enums, impl blocks, functions, consts.
"""

from __future__ import annotations

from collections.abc import Callable, Collection, Mapping

from ferrojs.errors import UnsupportedError
from ferrojs.scope import js_name
from ferrojs.syntax import ConstDecl, EnumDecl, Expr, FnDecl, ImplDecl, StructDecl, Variant
from ferrojs.transpiler import Transpiler, braces

ParseHook = Callable[[str], Expr]

# Discriminant field of tagged enum objects
TAG_FIELD = "type"


# =============================================================================
# Structs
# =============================================================================
def emit_struct(decl: StructDecl) -> str:
	"""Struct -> class with constructor, toJSON and fromJSON in field order.

	Named structs keep their field names as properties; tuple structs store
	slot i at `this[i]` and serialize to an array.
	"""
	name = decl.ident
	if decl.shape == "unit":
		members = [
			"toJSON() {\nreturn {};\n}",
			f"static fromJSON(json) {{\nreturn new {name}();\n}}",
		]
		return f"class {name} {braces(members)}"

	if decl.shape == "tuple":
		params = [f"_{i}" for i in range(len(decl.fields))]
		assigns = [f"this[{i}] = {p};" for i, p in enumerate(params)]
		to_json = f"return [{', '.join(f'this[{i}]' for i in range(len(params)))}];"
		from_json = f"return new {name}({', '.join(f'json[{i}]' for i in range(len(params)))});"
	else:
		params = [js_name(field) for field in decl.fields]
		assigns = [f"this.{field} = {p};" for field, p in zip(decl.fields, params)]
		props = ", ".join(f"{field}: this.{field}" for field in decl.fields)
		to_json = f"return {{ {props} }};" if props else "return {};"
		from_json = f"return new {name}({', '.join(f'json.{field}' for field in decl.fields)});"

	members = [
		f"constructor({', '.join(params)}) {braces(assigns)}",
		f"toJSON() {braces([to_json])}",
		f"static fromJSON(json) {braces([from_json])}",
	]
	return f"class {name} {braces(members)}"


# =============================================================================
# Enums
# =============================================================================
def _variant_member(variant: Variant) -> str:
	if variant.shape == "unit":
		return f'{variant.name}: "{variant.name}"'
	if variant.shape == "tuple":
		slots = [f"value{i}" for i in range(len(variant.fields))]
		params = slots
		props = slots
	else:
		if TAG_FIELD in variant.fields:
			raise UnsupportedError(
				"enum", f"Variant {variant.name} has a field named `{TAG_FIELD}`"
			)
		params = [js_name(field) for field in variant.fields]
		props = [
			field if field == param else f"{field}: {param}"
			for field, param in zip(variant.fields, params)
		]
	obj = "{ " + ", ".join([f'{TAG_FIELD}: "{variant.name}"', *props]) + " }"
	return f"{variant.name}: function({', '.join(params)}) {{\nreturn {obj};\n}}"


def emit_enum(decl: EnumDecl) -> str:
	"""Enum -> companion object plus an `is{Enum}` predicate.

	Unit variants are their own name as a string; payload variants are
	factories returning `{ type: "Variant", ... }` with positional payloads
	in `value0`, `value1`, ...
	"""
	name = decl.ident
	names = "[" + ", ".join(f'"{v.name}"' for v in decl.variants) + "]"
	members = [_variant_member(v) for v in decl.variants]
	members.append(
		"fromJSON(json) {\n"
		f"if (!is{name}(json)) throw new Error(`Invalid {name}: ${{JSON.stringify(json)}}`);\n"
		"return json;\n"
		"}"
	)
	members.append("toJSON(value) {\nreturn value;\n}")
	companion = "const " + name + " = {\n" + ",\n".join(members) + "\n};"
	predicate = (
		f"function is{name}(value) {{\n"
		'if (typeof value === "string") {\n'
		f"return {names}.includes(value);\n"
		"}\n"
		f'return value !== null && typeof value === "object" && {names}.includes(value.{TAG_FIELD});\n'
		"}"
	)
	return f"{companion}\n{predicate}"


# =============================================================================
# Functions and impl blocks
# =============================================================================
def emit_fn(
	decl: FnDecl,
	*,
	structs: Mapping[str, tuple[str, ...]] | None = None,
	parse: ParseHook | None = None,
) -> str:
	if decl.receiver is not None:
		raise UnsupportedError("function", f"Free function {decl.ident} takes `self`")
	ctx = Transpiler(structs=structs, parse=parse)
	params, body = ctx.emit_function(decl)
	head = "async function" if decl.is_async else "function"
	return f"{head} {js_name(decl.ident)}({params}) {body}"


def emit_impl(
	decl: ImplDecl,
	*,
	structs: Mapping[str, tuple[str, ...]] | None = None,
	enums: Collection[str] = (),
	parse: ParseHook | None = None,
) -> list[str]:
	"""One fragment per associated function.

	Functions with a receiver attach to the prototype; the rest are static
	members of the type. The first fragment carries the `// Methods for T`
	marker. Enum companions are plain objects without a prototype, so an impl
	on a name in `enums` may only hold receiver-less functions.
	"""
	type_name = decl.ident
	if type_name in enums:
		for fn in decl.fns:
			if fn.receiver is not None:
				raise UnsupportedError(
					"impl", f"Method {type_name}::{fn.ident} takes `self` on an enum"
				)
	ctx = Transpiler(self_type=type_name, structs=structs, parse=parse)
	fragments: list[str] = []
	for fn in decl.fns:
		ctx.is_static = fn.receiver is None
		params, body = ctx.emit_function(fn)
		owner = type_name if ctx.is_static else f"{type_name}.prototype"
		head = "async function" if fn.is_async else "function"
		fragments.append(f"{owner}.{fn.ident} = {head}({params}) {body};")
	if not fragments:
		return [f"// Methods for {type_name}"]
	fragments[0] = f"// Methods for {type_name}\n{fragments[0]}"
	return fragments


def emit_const(
	decl: ConstDecl,
	*,
	structs: Mapping[str, tuple[str, ...]] | None = None,
	parse: ParseHook | None = None,
) -> str:
	ctx = Transpiler(structs=structs, parse=parse)
	return f"const {js_name(decl.ident)} = {ctx.emit_expr(decl.value)};"
