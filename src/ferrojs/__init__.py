"""Translate a Rust-like source language to JavaScript."""

# Configuration
from ferrojs.env import env as env

# Errors
from ferrojs.errors import Diagnostic as Diagnostic
from ferrojs.errors import ExecutionError as ExecutionError
from ferrojs.errors import ParseError as ParseError
from ferrojs.errors import TranspileError as TranspileError
from ferrojs.errors import UnsupportedError as UnsupportedError

# Front-end
from ferrojs.frontend import parse_expression as parse_expression
from ferrojs.frontend import parse_item as parse_item
from ferrojs.frontend import parse_source as parse_source

# Registry
from ferrojs.registry import Registry as Registry

# Execution
from ferrojs.runner import RunResult as RunResult
from ferrojs.runner import evaluate as evaluate
from ferrojs.runner import run_js as run_js

# Runtime helpers
from ferrojs.runtime import PREAMBLE as PREAMBLE

# Translation engine
from ferrojs.transpiler import Transpiler as Transpiler

# Translation units and output assembly
from ferrojs.unit import UnitResult as UnitResult
from ferrojs.unit import assemble as assemble
from ferrojs.unit import transpile_item as transpile_item
from ferrojs.unit import transpile_source as transpile_source
from ferrojs.unit import transpile_unit as transpile_unit
