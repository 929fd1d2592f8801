"""
Source library names and their JavaScript idioms.

Holds the fixed name-mapping tables the transpiler consults for method calls,
associated-function calls and host (browser stub) properties, plus the
universal dispatchers used for container operations.

Vec and HashMap both erase to plain JS values (arrays and objects), so no
container operation may assume one runtime shape. Each dispatcher binds its
receiver once through an arrow function, calls a method of the same name when
the receiver has one (impl methods, host APIs), and otherwise probes for an
array capability (`splice`, `length`) before falling back to the object/Map
path.
"""

from __future__ import annotations

from collections.abc import Sequence

# Methods renamed one to one
METHOD_RENAMES: dict[str, str] = {
	"to_uppercase": "toUpperCase",
	"to_lowercase": "toLowerCase",
	"to_ascii_uppercase": "toUpperCase",
	"to_ascii_lowercase": "toLowerCase",
	"trim": "trim",
	"trim_start": "trimStart",
	"trim_end": "trimEnd",
	"starts_with": "startsWith",
	"ends_with": "endsWith",
	"replace": "replaceAll",
	"split": "split",
	"join": "join",
	"push": "push",
	"pop": "pop",
	"map": "map",
	"filter": "filter",
	"find": "find",
	"any": "some",
	"all": "every",
	"for_each": "forEach",
	"position": "findIndex",
	"concat": "concat",
	"repeat": "repeat",
	"char_at": "charAt",
	"find_index": "findIndex",
}

# Iterator adaptors and ownership helpers with no runtime meaning
IDENTITY_METHODS = frozenset(
	{
		"iter",
		"iter_mut",
		"into_iter",
		"clone",
		"cloned",
		"copied",
		"collect",
		"as_str",
		"as_ref",
		"as_mut",
		"as_slice",
		"to_owned",
		"to_vec",
		"into",
		"borrow",
		"borrow_mut",
		"by_ref",
	}
)

# Zero-argument accessor methods on the host stubs that are properties in JS
HOST_PROPERTIES = frozenset(
	{
		"body",
		"head",
		"title",
		"documentElement",
		"URL",
		"readyState",
		"location",
		"innerWidth",
		"innerHeight",
	}
)

# Receivers whose accessor methods map to HOST_PROPERTIES
HOST_GLOBALS = frozenset({"document", "window", "navigator", "location"})

# Type::function(...) with a fixed JS idiom; {0} is the first argument
ASSOCIATED_CALLS: dict[tuple[str, str], str] = {
	("Vec", "new"): "[]",
	("Vec", "with_capacity"): "[]",
	("Vec", "from"): "Array.from({0})",
	("VecDeque", "new"): "[]",
	("HashMap", "new"): "{{}}",
	("HashMap", "with_capacity"): "{{}}",
	("BTreeMap", "new"): "{{}}",
	("HashSet", "new"): "new Set()",
	("BTreeSet", "new"): "new Set()",
	("String", "new"): '""',
	("String", "from"): "String({0})",
	("Box", "new"): "{0}",
	("Rc", "new"): "{0}",
	("Arc", "new"): "{0}",
	("RefCell", "new"): "{0}",
	("Cell", "new"): "{0}",
	("env", "args"): "env.args()",
}

# Constant paths: i32::MAX, std::f64::consts::PI
CONSTANT_PATHS: dict[tuple[str, str], str] = {
	("consts", "PI"): "Math.PI",
	("consts", "E"): "Math.E",
	("f64", "MAX"): "Number.MAX_VALUE",
	("f64", "MIN"): "-Number.MAX_VALUE",
	("f64", "INFINITY"): "Infinity",
	("f64", "NEG_INFINITY"): "-Infinity",
	("f64", "NAN"): "NaN",
	("f32", "MAX"): "Number.MAX_VALUE",
	("i32", "MAX"): "2147483647",
	("i32", "MIN"): "-2147483648",
	("u32", "MAX"): "4294967295",
	("i64", "MAX"): "Number.MAX_SAFE_INTEGER",
	("i64", "MIN"): "Number.MIN_SAFE_INTEGER",
	("u64", "MAX"): "Number.MAX_SAFE_INTEGER",
	("usize", "MAX"): "Number.MAX_SAFE_INTEGER",
}

INT_TYPES = frozenset(
	{
		"i8",
		"i16",
		"i32",
		"i64",
		"i128",
		"isize",
		"u8",
		"u16",
		"u32",
		"u64",
		"u128",
		"usize",
	}
)
FLOAT_TYPES = frozenset({"f32", "f64"})


# =============================================================================
# Universal dispatch
# =============================================================================
def _dispatch(params: str, body: str, args: Sequence[str]) -> str:
	return f"(({params}) => {body})({', '.join(args)})"


def _own(method: str, params: str, fallback: str) -> str:
	"""Prefer a method the receiver defines itself (an impl method, a host API)."""
	return f'typeof obj.{method} === "function" ? obj.{method}({params}) : {fallback}'


_LENGTH = "obj.length !== undefined ? obj.length : obj.size !== undefined ? obj.size : Object.keys(obj).length"


def emit_len(recv: str, method: str = "len") -> str:
	"""len()/count(): arrays and strings by length, Sets/Maps by size, objects by keys."""
	return _dispatch("obj", _own(method, "", _LENGTH), [recv])


def emit_is_empty(recv: str) -> str:
	return _dispatch("obj", _own("is_empty", "", f"({_LENGTH}) === 0"), [recv])


def emit_contains(recv: str, item: str) -> str:
	return _dispatch(
		"obj, item",
		_own(
			"contains",
			"item",
			'typeof obj.includes === "function" ? obj.includes(item) : typeof obj.has === "function" ? obj.has(item) : Object.prototype.hasOwnProperty.call(obj, item)',
		),
		[recv, item],
	)


def emit_contains_key(recv: str, key: str) -> str:
	return _dispatch(
		"obj, key",
		_own(
			"contains_key",
			"key",
			'typeof obj.has === "function" ? obj.has(key) : Object.prototype.hasOwnProperty.call(obj, key)',
		),
		[recv, key],
	)


def emit_get(recv: str, key: str) -> str:
	return _dispatch(
		"obj, key",
		'typeof obj.get === "function" ? obj.get(key) : obj[key]',
		[recv, key],
	)


def emit_insert(recv: str, args: Sequence[str]) -> str:
	"""insert(k, v) on Vec/HashMap, insert(v) on HashSet."""
	if len(args) == 1:
		return _dispatch(
			"obj, value",
			_own(
				"insert",
				"value",
				'typeof obj.add === "function" ? obj.add(value) : obj.includes(value) ? false : (obj.push(value), true)',
			),
			[recv, args[0]],
		)
	return _dispatch(
		"obj, key, value",
		_own(
			"insert",
			"key, value",
			'typeof obj.splice === "function" ? obj.splice(key, 0, value) : typeof obj.set === "function" ? obj.set(key, value) : (obj[key] = value)',
		),
		[recv, args[0], args[1]],
	)


def emit_remove(recv: str, key: str) -> str:
	"""remove(i) on Vec returns the element; remove(k) on maps returns the old value."""
	return _dispatch(
		"obj, key",
		_own(
			"remove",
			"key",
			'typeof obj.splice === "function" ? obj.splice(key, 1)[0] : typeof obj.delete === "function" ? obj.delete(key) : ((value) => (delete obj[key], value))(obj[key])',
		),
		[recv, key],
	)


def emit_keys(recv: str) -> str:
	return _dispatch(
		"obj",
		'typeof obj.keys === "function" && !Array.isArray(obj) ? Array.from(obj.keys()) : Object.keys(obj)',
		[recv],
	)


def emit_values(recv: str) -> str:
	return _dispatch(
		"obj",
		'typeof obj.values === "function" && !Array.isArray(obj) ? Array.from(obj.values()) : Object.values(obj)',
		[recv],
	)


def emit_entries(recv: str) -> str:
	"""Iteration source for `for (k, v) in map`: iterables pass through, plain objects yield entries."""
	return _dispatch(
		"obj",
		'typeof obj[Symbol.iterator] === "function" ? obj : Object.entries(obj)',
		[recv],
	)


# =============================================================================
# Optional values
# =============================================================================
def emit_is_some(recv: str, simple: bool) -> str:
	"""Not-null guard. A receiver with side effects is evaluated once."""
	if simple:
		return f"({recv} !== null && {recv} !== undefined)"
	return _dispatch("value", "value !== null && value !== undefined", [recv])


def emit_is_none(recv: str, simple: bool) -> str:
	if simple:
		return f"({recv} === null || {recv} === undefined)"
	return _dispatch("value", "value === null || value === undefined", [recv])


# =============================================================================
# Method calls
# =============================================================================
def emit_method(
	recv: str,
	method: str,
	args: list[str],
	*,
	simple: bool,
	host: bool = False,
) -> str | None:
	"""Translate a method call with a known JS idiom.

	Args:
		recv: Emitted receiver.
		method: Source method name.
		args: Emitted arguments.
		simple: Whether the receiver is a side-effect free name or field chain.
		host: Whether the receiver is one of the host globals (document, window).

	Returns:
		The JS expression, or None when the call should be emitted as-is.
	"""
	nargs = len(args)
	if host and nargs == 0 and method in HOST_PROPERTIES:
		return f"{recv}.{method}"
	if method in IDENTITY_METHODS and nargs <= 1:
		return recv
	if method == "unwrap" and nargs == 0:
		return f"unwrap({recv})"
	if method == "expect" and nargs == 1:
		return f"unwrap({recv}, {args[0]})"
	if method in ("len", "count") and nargs == 0:
		return emit_len(recv, method)
	if method == "is_empty" and nargs == 0:
		return emit_is_empty(recv)
	if method == "contains" and nargs == 1:
		return emit_contains(recv, args[0])
	if method == "contains_key" and nargs == 1:
		return emit_contains_key(recv, args[0])
	if method == "get" and nargs == 1:
		return emit_get(recv, args[0])
	if method == "insert" and nargs in (1, 2):
		return emit_insert(recv, args)
	if method == "remove" and nargs == 1:
		return emit_remove(recv, args[0])
	if method == "keys" and nargs == 0:
		return emit_keys(recv)
	if method == "values" and nargs == 0:
		return emit_values(recv)
	if method == "is_some" and nargs == 0:
		return emit_is_some(recv, simple)
	if method == "is_none" and nargs == 0:
		return emit_is_none(recv, simple)
	if method == "is_ok" and nargs == 0:
		return f'("ok" in {recv})'
	if method == "is_err" and nargs == 0:
		return f'("error" in {recv})'
	if method in ("unwrap_or", "unwrap_or_else") and nargs == 1:
		fallback = f"({args[0]})()" if method == "unwrap_or_else" else args[0]
		return f"({recv} ?? {fallback})"
	if method == "to_string" and nargs == 0:
		return f"String({recv})"
	if method == "chars" and nargs == 0:
		return f"Array.from({recv})"
	if method == "rev" and nargs == 0:
		return f"Array.from({recv}).reverse()"
	if method == "enumerate" and nargs == 0:
		return f"Array.from({recv}).map(($v, $i) => [$i, $v])"
	if method == "sum" and nargs == 0:
		return f"{recv}.reduce(($a, $b) => $a + $b, 0)"
	if method == "first" and nargs == 0:
		return f"{recv}[0]"
	if method == "last" and nargs == 0:
		return _dispatch("arr", "arr[arr.length - 1]", [recv])
	if method == "push_str" and nargs == 1 and simple:
		return f"({recv} += {args[0]})"
	if method == "extend" and nargs == 1:
		return f"{recv}.push(...{args[0]})"
	if method == "abs" and nargs == 0:
		return f"Math.abs({recv})"
	if method in ("max", "min") and nargs == 1:
		return f"Math.{method}({recv}, {args[0]})"
	if method in ("pow", "powi", "powf") and nargs == 1:
		return f"({recv} ** {args[0]})"
	if method in ("floor", "ceil", "round", "sqrt", "trunc") and nargs == 0:
		return f"Math.{method}({recv})"
	if method == "clear" and nargs == 0:
		return _dispatch(
			"obj",
			'Array.isArray(obj) ? (obj.length = 0, undefined) : typeof obj.clear === "function" ? obj.clear() : Object.keys(obj).forEach((key) => delete obj[key])',
			[recv],
		)
	if method == "sort" and nargs == 0:
		return f"{recv}.sort(($a, $b) => ($a < $b ? -1 : $a > $b ? 1 : 0))"
	if method in METHOD_RENAMES:
		return f"{recv}.{METHOD_RENAMES[method]}({', '.join(args)})"
	return None


def emit_associated_call(type_name: str, func: str, args: list[str]) -> str | None:
	"""Translate `Type::func(args)` for standard library types."""
	template = ASSOCIATED_CALLS.get((type_name, func))
	if template is None:
		return None
	if "{0}" in template and not args:
		return None
	return template.format(*args)


def emit_cast(value: str, ty: str) -> str:
	ty = ty.strip()
	if ty in INT_TYPES:
		return f"Math.trunc({value})"
	if ty in FLOAT_TYPES:
		return f"Number({value})"
	if ty in ("String", "str", "&str"):
		return f"String({value})"
	if ty == "bool":
		return f"Boolean({value})"
	if ty == "char":
		return f"String.fromCharCode({value})"
	return f"{value} /* as {ty} */"
