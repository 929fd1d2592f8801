"""
Runtime preamble prepended to every assembled program.

Defines the helpers that translated code calls by name: `debug_repr` for
`{:?}` formatting, `panic`/`assert`/`assert_eq` for the aborting macros,
`try_unwrap` with `TryPropagation` for the `?` operator, `unwrap` for
`unwrap()`/`expect()` on both optional and fallible values, `write_stdout`/
`write_stderr` for the newline-free `print!`/`eprint!` (console.log outside
node), and `env.args()`.
"""

from __future__ import annotations

PREAMBLE = """\
function debug_repr(value) {
if (value === null || value === undefined) return "None";
if (typeof value === "string") return JSON.stringify(value);
if (Array.isArray(value)) return "[" + value.map(debug_repr).join(", ") + "]";
if (value instanceof Map) return "{" + Array.from(value, ([k, v]) => debug_repr(k) + ": " + debug_repr(v)).join(", ") + "}";
if (value instanceof Set) return "{" + Array.from(value, debug_repr).join(", ") + "}";
if (typeof value === "object") {
const name = value.constructor && value.constructor !== Object ? value.constructor.name + " " : "";
const fields = Object.keys(value).map((key) => key + ": " + debug_repr(value[key]));
return name + "{ " + fields.join(", ") + " }";
}
return String(value);
}
function panic(message) {
throw new Error("Rust panic: " + (message === undefined ? "explicit panic" : message));
}
function assert(condition, message) {
if (!condition) panic(message === undefined ? "assertion failed" : message);
}
function assert_eq(left, right, message, negate) {
const same = debug_repr(left) === debug_repr(right);
if (same === !negate) return;
const op = negate ? "!=" : "==";
const detail = `assertion \\`left ${op} right\\` failed\\n  left: ${debug_repr(left)}\\n right: ${debug_repr(right)}`;
panic(message === undefined ? detail : message + "\\n" + detail);
}
class TryPropagation {
constructor(value) {
this.value = value;
}
}
function try_unwrap(value) {
if (value === null || value === undefined) throw new TryPropagation(null);
if (typeof value === "object" && "error" in value) throw new TryPropagation(value);
if (typeof value === "object" && "ok" in value) return value.ok;
return value;
}
function unwrap(value, message) {
if (value === null || value === undefined) panic(message === undefined ? "called `Option::unwrap()` on a `None` value" : message);
if (typeof value === "object" && "error" in value) panic((message === undefined ? "called `Result::unwrap()` on an `Err` value" : message) + ": " + debug_repr(value.error));
if (typeof value === "object" && "ok" in value) return value.ok;
return value;
}
function write_stdout(text) {
if (typeof process !== "undefined" && process.stdout) process.stdout.write(String(text ?? ""));
else console.log(text);
}
function write_stderr(text) {
if (typeof process !== "undefined" && process.stderr) process.stderr.write(String(text ?? ""));
else console.error(text);
}
const env = {
args() {
return ["program", ...(globalThis.__rust_args || [])];
}
};"""
