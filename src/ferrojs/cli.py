"""
Command-line interface for ferrojs.

`ferrojs INPUT` translates a source file and writes the assembled program to
stdout or `--output`. `--run` additionally executes it with node.
"""
# typer relies on function calls used as default values
# pyright: reportCallInDefaultInitializer=false

from __future__ import annotations

import logging
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from ferrojs.env import env
from ferrojs.errors import ExecutionError, ParseError
from ferrojs.frontend import parse_source
from ferrojs.runner import run_js
from ferrojs.unit import assemble, transpile_unit

cli = typer.Typer(
	name="ferrojs",
	help="ferrojs - translate Rust-like source files to JavaScript",
	no_args_is_help=True,
)


def _configure_logging(console: Console) -> None:
	logging.basicConfig(
		level=env.log_level,
		format="%(message)s",
		handlers=[RichHandler(console=console, show_path=False)],
		force=True,
	)


@cli.command()
def translate(
	input: Path = typer.Argument(..., help="Source file to translate"),
	output: Path | None = typer.Option(
		None, "--output", "-o", help="Write JavaScript here instead of stdout"
	),
	run: bool = typer.Option(False, "--run", help="Execute the program with node"),
	entry: str | None = typer.Option(
		None, "--entry", help="Function to call with --run (default: main)"
	),
	args: list[str] = typer.Option([], "--arg", help="Value passed to env::args()"),
	pretty: bool = typer.Option(False, "--pretty", "-p", help="Indent the output"),
	preamble: bool = typer.Option(
		True, "--preamble/--no-preamble", help="Include the runtime helpers"
	),
):
	"""Translate INPUT and print or run the result."""
	console = Console(stderr=True)
	_configure_logging(console)

	try:
		text = input.read_text(encoding="utf8")
	except OSError as exc:
		console.print(f"❌ Could not read {input}: {exc}")
		raise typer.Exit(1) from None

	try:
		items = parse_source(text)
	except ParseError as exc:
		console.print(f"❌ {input}: {exc}")
		raise typer.Exit(1) from None

	result = transpile_unit(items)
	if not result.ok:
		for diagnostic in result.diagnostics:
			console.print(f"❌ {input}: {diagnostic}")
		raise typer.Exit(1)

	code = assemble(result.fragments, preamble=preamble or run, pretty=pretty)

	if output is not None:
		try:
			output.write_text(code, encoding="utf8")
		except OSError as exc:
			console.print(f"❌ Could not write {output}: {exc}")
			raise typer.Exit(1) from None
		console.print(f"✅ Wrote {len(result.fragments)} declarations to {output}")
	elif not run:
		sys.stdout.write(code)

	if run:
		try:
			proc = run_js(code, entry=entry, args=args)
		except ExecutionError as exc:
			sys.stdout.write(exc.stdout)
			console.print(f"❌ {exc}")
			raise typer.Exit(1) from None
		sys.stdout.write(proc.stdout)
		if proc.stderr:
			sys.stderr.write(proc.stderr)


def main():
	"""Main CLI entry point."""
	cli()


if __name__ == "__main__":
	main()
