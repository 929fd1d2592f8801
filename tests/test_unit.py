"""End-to-end tests: source text -> assembled program.

Tests marked `node` also execute the result and are skipped without node.
"""

from __future__ import annotations

from collections.abc import Callable

import pytest
from ferrojs.errors import ExecutionError, TranspileError
from ferrojs.runner import evaluate, run_js
from ferrojs.syntax import Block, FnDecl, InertItem, UnknownItem
from ferrojs.unit import HEADER, assemble, indent_code, transpile_item, transpile_source, transpile_unit

Compile = Callable[[str], str]

OPTION_MATCH = """
fn double(o: Option<i32>) -> i32 {
    match o {
        Some(x) => x * 2,
        None => 0,
    }
}
"""

POINT = """
struct Point {
    x: i32,
    y: i32,
}

impl Point {
    fn new(x: i32, y: i32) -> Self {
        Point { x, y }
    }

    fn sum(&self) -> i32 {
        self.x + self.y
    }
}
"""

SHAPE = """
enum Shape {
    Circle(f64),
    Rect { w: f64, h: f64 },
    Empty,
}

fn area(s: &Shape) -> f64 {
    match s {
        Shape::Circle(r) => 3.0 * r * r,
        Shape::Rect { w, h } => w * h,
        Shape::Empty => 0.0,
    }
}
"""

STACK = """
struct Stack {
    items: Vec<i32>,
}

impl Stack {
    fn new() -> Self {
        Stack { items: Vec::new() }
    }

    fn push(&mut self, v: i32) {
        self.items.push(v);
    }

    fn len(&self) -> usize {
        self.items.len()
    }

    fn contains(&self, v: i32) -> bool {
        self.items.contains(&v)
    }
}

fn fill(n: i32) -> Stack {
    let mut s = Stack::new();
    for i in 0..n {
        s.push(i);
    }
    s
}

fn size(s: &Stack) -> usize {
    s.len()
}

fn has(s: &Stack, v: i32) -> bool {
    s.contains(v)
}
"""

HALF = """
fn half(n: i32) -> Result<i32, String> {
    if n % 2 == 0 { Ok(n / 2) } else { Err(format!("odd: {}", n)) }
}

fn plus_one(n: i32) -> i32 {
    half(n).unwrap() + 1
}

fn or_panic(o: Option<i32>) -> i32 {
    o.expect("missing value")
}
"""

SHADOWING = """
fn main() {
    let x = 1;
    let x = x + 1;
    println!("{}", x);
    {
        let x = x * 10;
        println!("{}", x);
    }
    {
        let x = 5;
        println!("{}", x);
    }
    println!("{}", x);
}
"""


# =============================================================================
# Translation units
# =============================================================================


class TestTranspileUnit:
	def test_precedence(self, compile_source: Compile):
		code = compile_source("fn f() -> i32 { 2 - 3 * 2 }")
		assert "function f() {\nreturn 2 - 3 * 2;\n}" in code

	def test_deterministic(self):
		first = transpile_source(POINT + SHAPE).check().code
		second = transpile_source(POINT + SHAPE).check().code
		assert first == second

	def test_fragments_follow_declaration_order(self):
		result = transpile_source(POINT)
		assert result.ok
		assert result.fragments[0].startswith("class Point {")
		assert result.fragments[1].startswith("// Methods for Point\nPoint.new = function(x, y) {")
		assert result.fragments[2].startswith("Point.prototype.sum = function() {")

	def test_option_match(self, compile_source: Compile):
		code = compile_source(OPTION_MATCH)
		assert (
			"const $match0 = o;\n"
			"if ($match0 !== null && $match0 !== undefined) {\n"
			"const x = $match0;\n"
			"return x * 2;\n"
			"} else {\n"
			"return 0;\n"
			"}"
		) in code

	def test_shadowing(self, compile_source: Compile):
		code = compile_source("fn f() -> i32 { let x = 1; let x = x + 1; x }")
		assert "const x = 1;\nconst x_1 = x + 1;\nreturn x_1;" in code

	def test_sibling_scopes(self, compile_source: Compile):
		code = compile_source("fn f() { { let x = 1; } { let x = 2; } }")
		assert "const x = 1;" in code
		assert "const x = 2;" in code
		assert "x_1" not in code

	def test_enum_match(self, compile_source: Compile):
		code = compile_source(SHAPE)
		assert 'if ($match0.type === "Circle") {\nconst r = $match0.value0;' in code
		assert '} else if ($match0.type === "Rect") {\nconst w = $match0.w;\nconst h = $match0.h;' in code
		assert '} else if ($match0 === "Empty") {' in code

	def test_unknown_macro_is_a_diagnostic(self):
		result = transpile_source("fn ok() {}\nfn bad() { sql!(SELECT 1); }\n")
		assert not result.ok
		assert result.fragments == ["function ok() {}"]
		assert len(result.diagnostics) == 1
		assert result.diagnostics[0].item == "bad"
		assert "Unsupported macro: sql!" in result.diagnostics[0].message

	def test_check_raises_with_every_diagnostic(self):
		result = transpile_source("fn a() { x!(); }\nfn b() { y!(); }\n")
		with pytest.raises(TranspileError, match="2 declaration"):
			result.check()

	def test_inert_item_is_skipped_with_comment(self):
		result = transpile_source("use std::fmt;\nfn f() {}\n")
		assert result.ok
		assert result.fragments == ["// Skipped use: std::fmt", "function f() {}"]

	def test_unknown_item_is_a_diagnostic(self):
		result = transpile_unit([UnknownItem("U", "union_item")])
		assert result.diagnostics[0].item == "U"
		assert "Unsupported declaration" in result.diagnostics[0].message

	def test_receiver_method_on_enum_is_a_diagnostic(self):
		result = transpile_source(
			"enum Color { Red, Green }\n"
			"impl Color { fn is_red(&self) -> bool { true } }\n"
		)
		assert result.fragments[0].startswith("const Color = {")
		assert len(result.fragments) == 1
		assert result.diagnostics[0].item == "Color"
		assert "takes `self` on an enum" in result.diagnostics[0].message

	def test_transpile_item(self):
		assert transpile_item(InertItem("Debug", "attribute")) == "// Skipped attribute: Debug"
		assert transpile_item(FnDecl("f", (), Block())) == "function f() {}"

	def test_struct_literal_outside_impl_uses_constructor(self, compile_source: Compile):
		code = compile_source(POINT + "fn make() -> Point { Point { y: 2, x: 1 } }")
		assert "return new Point(1, 2);" in code

	def test_env_args(self, compile_source: Compile):
		code = compile_source("fn main() { let args: Vec<String> = std::env::args().collect(); }")
		assert "const args = env.args();" in code


class TestAssemble:
	def test_header_and_preamble(self):
		code = assemble(["const A = 1;"])
		assert code.startswith(HEADER + "\nfunction debug_repr(value) {")
		assert code.endswith("const A = 1;\n")

	def test_without_preamble(self):
		assert assemble(["a;"], preamble=False) == f"{HEADER}\na;\n"

	def test_pretty(self):
		code = assemble(["function f() {\nreturn 1;\n}"], preamble=False, pretty=True)
		assert code == f"{HEADER}\n\nfunction f() {{\n  return 1;\n}}\n"

	def test_indent_ignores_braces_in_strings(self):
		assert indent_code('if (a) {\nf("}");\n}') == 'if (a) {\n  f("}");\n}'

	def test_indent_ignores_braces_in_templates(self):
		assert indent_code("{\nconst s = `{${x}`;\n}") == "{\n  const s = `{${x}`;\n}"

	def test_indent_closing_before_else(self):
		code = indent_code("if (a) {\nf();\n} else {\ng();\n}")
		assert code == "if (a) {\n  f();\n} else {\n  g();\n}"


# =============================================================================
# Execution
# =============================================================================


@pytest.mark.node
class TestExecution:
	def test_precedence_value(self, compile_source: Compile):
		assert evaluate(compile_source("fn f() -> i32 { 2 - 3 * 2 }"), "f()") == -4

	def test_option_match_values(self, compile_source: Compile):
		assert evaluate(compile_source(OPTION_MATCH), "[double(42), double(null)]") == [84, 0]

	def test_tuple_match_values(self, compile_source: Compile):
		code = compile_source(
			"fn first(p: (i32, i32)) -> i32 { match p { (x, _) => x } }\n"
			"fn second(p: (i32, i32)) -> i32 { match p { (_, y) => y } }\n"
		)
		assert evaluate(code, "[first([1, 2]), second([1, 2])]") == [1, 2]

	def test_struct_round_trip(self, compile_source: Compile):
		code = compile_source(POINT)
		value = evaluate(code, "Point.fromJSON(JSON.parse(JSON.stringify(Point.new(10, 20))))")
		assert value == {"x": 10, "y": 20}
		assert evaluate(code, "Point.fromJSON({ x: 10, y: 20 }).sum()") == 30

	def test_enum_predicate(self, compile_source: Compile):
		code = compile_source(SHAPE)
		checks = '[isShape(Shape.Circle(1.5)), isShape(Shape.Empty), isShape("Nope"), isShape({ type: "Square" }), isShape(null)]'
		assert evaluate(code, checks) == [True, True, False, False, False]

	def test_enum_match_values(self, compile_source: Compile):
		code = compile_source(SHAPE)
		assert evaluate(code, "[area(Shape.Rect(2, 3)), area(Shape.Empty)]") == [6, 0]

	def test_len_dispatch(self, compile_source: Compile):
		code = compile_source("fn size(v: Vec<i32>) -> usize { v.len() }")
		assert evaluate(code, "[size([1, 2, 3, 4, 5]), size({ a: 1, b: 2, c: 3 })]") == [5, 3]

	def test_println_main(self, compile_source: Compile):
		code = compile_source('fn main() { let n = 1 + 2; println!("sum = {}", n); }')
		assert run_js(code).stdout == "sum = 3\n"

	def test_try_operator(self, compile_source: Compile):
		code = compile_source(
			"fn half(n: i32) -> Result<i32, String> {\n"
			'    if n % 2 == 0 { Ok(n / 2) } else { Err(format!("odd: {}", n)) }\n'
			"}\n"
			"fn quarter(n: i32) -> Result<i32, String> {\n"
			"    let h = half(n)?;\n"
			"    Ok(half(h)?)\n"
			"}\n"
		)
		assert evaluate(code, "[quarter(8), quarter(6)]") == [{"ok": 2}, {"error": "odd: 3"}]

	def test_args(self, compile_source: Compile):
		code = compile_source(
			'fn main() { let args: Vec<String> = std::env::args().collect(); println!("{}", args.len()); }'
		)
		assert run_js(code, args=["a", "b"]).stdout == "3\n"

	def test_tuple_struct_match(self, compile_source: Compile):
		code = compile_source(
			"struct Pair(i32, i32);\n"
			"fn sum(p: Pair) -> i32 { match p { Pair(a, b) => a + b } }\n"
			"fn pick(p: Pair) -> i32 { match p { Pair(0, b) => b, Pair(a, _) => a } }\n"
		)
		assert evaluate(code, "sum(new Pair(1, 2))") == 3
		assert evaluate(code, "[pick(new Pair(0, 5)), pick(new Pair(4, 5))]") == [5, 4]

	def test_own_methods_win_over_container_dispatch(self, compile_source: Compile):
		code = compile_source(STACK)
		assert evaluate(code, "[size(fill(5)), has(fill(3), 2), has(fill(3), 7)]") == [5, True, False]

	def test_host_method_wins_over_container_dispatch(self, compile_source: Compile):
		code = compile_source("fn has(list: &ClassList, name: &str) -> bool { list.contains(name) }")
		assert evaluate(code, 'has({ contains: (name) => name === "a" }, "a")') is True

	def test_unwrap_and_expect(self, compile_source: Compile):
		code = compile_source(HALF)
		assert evaluate(code, "[plus_one(8), or_panic(3)]") == [5, 3]

	def test_unwrap_err_panics(self, compile_source: Compile):
		with pytest.raises(ExecutionError) as info:
			evaluate(compile_source(HALF), "plus_one(3)")
		assert "called `Result::unwrap()` on an `Err` value" in info.value.stderr
		assert "odd: 3" in info.value.stderr

	def test_expect_none_panics(self, compile_source: Compile):
		with pytest.raises(ExecutionError) as info:
			evaluate(compile_source(HALF), "or_panic(null)")
		assert "missing value" in info.value.stderr

	def test_sibling_branches_bind_same_name(self, compile_source: Compile):
		code = compile_source(
			"fn pick(flag: bool) {\n"
			'    if flag { let x = "then"; println!("{}", x); } else { let x = "else"; println!("{}", x); }\n'
			"}\n"
			"fn main() { pick(true); pick(false); }\n"
		)
		assert run_js(code).stdout == "then\nelse\n"

	def test_shadowing_sequence(self, compile_source: Compile):
		code = compile_source(SHADOWING)
		assert "const x_2 = x_1 * 10;" in code
		assert run_js(code).stdout == "2\n20\n5\n2\n"

	def test_print_without_newline(self, compile_source: Compile):
		code = compile_source('fn main() { print!("a"); print!("{}", 1 + 1); println!("!"); }')
		assert run_js(code).stdout == "a2!\n"
