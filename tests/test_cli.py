"""Tests for the ferrojs command line."""

from __future__ import annotations

from pathlib import Path

import pytest
from ferrojs.cli import cli
from ferrojs.unit import HEADER
from typer.testing import CliRunner

runner = CliRunner()


def _write(tmp_path: Path, text: str) -> Path:
	path = tmp_path / "main.rs"
	path.write_text(text, encoding="utf8")
	return path


class TestTranslateCommand:
	def test_writes_to_stdout(self, tmp_path: Path):
		source = _write(tmp_path, "fn add(a: i32, b: i32) -> i32 { a + b }")
		result = runner.invoke(cli, [str(source), "--no-preamble"])
		assert result.exit_code == 0
		assert result.stdout == f"{HEADER}\nfunction add(a, b) {{\nreturn a + b;\n}}\n"

	def test_pretty(self, tmp_path: Path):
		source = _write(tmp_path, "fn one() -> i32 { 1 }")
		result = runner.invoke(cli, [str(source), "--no-preamble", "--pretty"])
		assert result.exit_code == 0
		assert "function one() {\n  return 1;\n}" in result.stdout

	def test_output_file(self, tmp_path: Path):
		source = _write(tmp_path, "fn f() {}")
		target = tmp_path / "out.js"
		result = runner.invoke(cli, [str(source), "-o", str(target)])
		assert result.exit_code == 0
		code = target.read_text(encoding="utf8")
		assert code.startswith(HEADER)
		assert code.endswith("function f() {}\n")

	def test_missing_input(self, tmp_path: Path):
		result = runner.invoke(cli, [str(tmp_path / "nope.rs")])
		assert result.exit_code == 1

	def test_parse_error(self, tmp_path: Path):
		source = _write(tmp_path, "fn f( {")
		result = runner.invoke(cli, [str(source)])
		assert result.exit_code == 1

	def test_unknown_macro(self, tmp_path: Path):
		source = _write(tmp_path, "fn f() { sql!(SELECT 1); }")
		result = runner.invoke(cli, [str(source)])
		assert result.exit_code == 1
		assert "function f" not in result.stdout

	@pytest.mark.node
	def test_run(self, tmp_path: Path):
		source = _write(tmp_path, 'fn main() { println!("{} {}", 1 + 2, "ok"); }')
		result = runner.invoke(cli, [str(source), "--run"])
		assert result.exit_code == 0
		assert result.stdout == "3 ok\n"

	@pytest.mark.node
	def test_run_args(self, tmp_path: Path):
		source = _write(
			tmp_path,
			'fn main() { let args: Vec<String> = std::env::args().collect(); println!("{}", args[1]); }',
		)
		result = runner.invoke(cli, [str(source), "--run", "--arg", "hello"])
		assert result.exit_code == 0
		assert result.stdout == "hello\n"
