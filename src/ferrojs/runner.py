"""
Run emitted JavaScript through a `node` subprocess.

Execution failures raise ExecutionError, which is deliberately not a
TranspileError: the translation succeeded, the emitted program did not.
"""

from __future__ import annotations

import json
import logging
import re
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from ferrojs.env import env
from ferrojs.errors import ExecutionError

logger = logging.getLogger(__name__)

_ENTRY = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*(\.[A-Za-z_$][A-Za-z0-9_$]*)*$")


@dataclass(slots=True)
class RunResult:
	stdout: str
	stderr: str
	returncode: int


def _entry_call(entry: str | None) -> str:
	if entry is None:
		return 'typeof main === "function" ? main() : undefined'
	if not _ENTRY.match(entry):
		raise ValueError(f"Invalid entry function name: {entry!r}")
	return f"{entry}()"


def _report_errors(promise: str) -> str:
	return (
		f"Promise.resolve().then(() => {promise}).catch((e) => {{\n"
		"console.error(e && e.stack ? e.stack : String(e));\n"
		"process.exitCode = 1;\n"
		"});"
	)


def _execute(script: str, *, timeout: float | None, node: str | None) -> RunResult:
	binary = node or env.node
	limit = env.run_timeout if timeout is None else timeout
	logger.debug("Running %d bytes of JavaScript with %s", len(script), binary)
	try:
		proc = subprocess.run(
			[binary, "-"],
			input=script,
			capture_output=True,
			text=True,
			timeout=limit,
		)
	except FileNotFoundError:
		raise ExecutionError(f"JavaScript engine not found: {binary}") from None
	except subprocess.TimeoutExpired as e:
		raise ExecutionError(
			f"Program did not finish within {limit} seconds",
			stdout=_text(e.stdout),
			stderr=_text(e.stderr),
		) from None
	if proc.returncode != 0:
		raise ExecutionError(
			f"Program exited with status {proc.returncode}: {proc.stderr.strip()}",
			stdout=proc.stdout,
			stderr=proc.stderr,
			returncode=proc.returncode,
		)
	return RunResult(proc.stdout, proc.stderr, proc.returncode)


def _text(value: str | bytes | None) -> str:
	if value is None:
		return ""
	if isinstance(value, bytes):
		return value.decode(errors="replace")
	return value


def run_js(
	code: str,
	*,
	entry: str | None = None,
	args: Sequence[str] = (),
	timeout: float | None = None,
	node: str | None = None,
) -> RunResult:
	"""Run an assembled program and call its entry function.

	Args:
		code: Assembled program (with preamble).
		entry: Function to call. Defaults to `main` when the program defines it.
		args: Values returned by `env.args()` after the program name.
		timeout: Seconds before the run is killed. Defaults to FERROJS_RUN_TIMEOUT.
		node: Engine binary. Defaults to FERROJS_NODE.
	"""
	script = "\n".join(
		[
			f"globalThis.__rust_args = {json.dumps(list(args))};",
			code,
			_report_errors(_entry_call(entry)),
		]
	)
	return _execute(script, timeout=timeout, node=node)


def evaluate(
	code: str,
	expression: str,
	*,
	timeout: float | None = None,
	node: str | None = None,
) -> Any:
	"""Evaluate a JS expression after `code` and return its JSON-decoded value.

	Promises are awaited. `undefined` decodes to None.
	"""
	marker = "__ferrojs_result__"
	show = (
		f"(($v) => console.log({json.dumps(marker)} + "
		"JSON.stringify($v === undefined ? null : $v)))"
	)
	script = "\n".join(
		[code, _report_errors(f"Promise.resolve({expression}).then({show})")]
	)
	result = _execute(script, timeout=timeout, node=node)
	for line in reversed(result.stdout.splitlines()):
		if line.startswith(marker):
			return json.loads(line[len(marker) :])
	raise ExecutionError(
		f"Expression produced no result: {expression}",
		stdout=result.stdout,
		stderr=result.stderr,
		returncode=result.returncode,
	)
