"""Synthesize WebAssembly text that stresses control-flow instructions.

Two scenarios are provided:

- ``br``: three nested blocks escaped by a single ``br 2``.
- ``br_table``: ``table_size`` nested blocks and a ``br_table`` whose
  selector is always one past the last index, so every dispatch takes the
  default target.

A scenario writes ``ops_per_iteration`` self-contained units into a
``WatBuilder``. The builder tracks nesting depth and checks that each unit
leaves it where it started. Indentation is cosmetic only.
"""

import textwrap
from contextlib import contextmanager
from pathlib import Path
from typing import Callable

import wasmtime

from .errors import CompileError
from .native import DEFAULT_WIDTH
from .types import ScenarioParams

INDENT = "    "


class WatBuilder:
    """Accumulates WAT lines while tracking block nesting."""

    def __init__(self, indent: str = INDENT):
        self.indent = indent
        self.depth = 0
        self.opens = 0
        self.closes = 0
        self._lines: list[str] = []

    def _write(self, line: str) -> None:
        self._lines.append(self.indent * self.depth + line)

    def emit_open(self, kind: str = "block") -> None:
        self._write(f"({kind}")
        self.depth += 1
        self.opens += 1

    def emit_close(self) -> None:
        if self.depth == 0:
            raise ValueError("close marker without a matching open")
        self.depth -= 1
        self.closes += 1
        self._write(")")

    def emit_instruction(self, *parts) -> None:
        self._write(" ".join(str(p) for p in parts))

    @contextmanager
    def unit(self):
        """Scope one operation unit; it must leave the depth unchanged."""
        start = self.depth
        yield self
        if self.depth != start:
            raise ValueError(
                f"unbalanced unit: depth {self.depth} after starting at {start}"
            )

    def text(self) -> str:
        if not self._lines:
            return ""
        return "\n".join(self._lines) + "\n"


def write_br_ops(builder: WatBuilder, ops_per_iteration: int) -> None:
    """Emit units that leave three nested blocks with one ``br``."""
    if ops_per_iteration < 0:
        raise ValueError(f"ops_per_iteration must be non-negative, got {ops_per_iteration}")
    for _ in range(ops_per_iteration):
        with builder.unit():
            for _ in range(3):
                builder.emit_open()
            # Depth 2 is the outermost of the three blocks
            builder.emit_instruction("br", 2)
            for _ in range(3):
                builder.emit_close()


def write_br_table_ops(builder: WatBuilder, ops_per_iteration: int, table_size: int) -> None:
    """Emit units dispatching through a ``br_table`` of ``table_size`` targets.

    The selector equals ``table_size``, which is out of range, so the
    default (last listed) target is always taken.
    """
    if ops_per_iteration < 0:
        raise ValueError(f"ops_per_iteration must be non-negative, got {ops_per_iteration}")
    if table_size < 1:
        raise ValueError(f"table_size must be at least 1, got {table_size}")
    for _ in range(ops_per_iteration):
        with builder.unit():
            for _ in range(table_size):
                builder.emit_open()
            builder.emit_instruction("i32.const", table_size)
            builder.emit_instruction("br_table", *range(table_size))
            for _ in range(table_size):
                builder.emit_close()


def nested_branch_fragment(ops_per_iteration: int) -> str:
    builder = WatBuilder()
    write_br_ops(builder, ops_per_iteration)
    return builder.text()


def branch_table_fragment(ops_per_iteration: int, table_size: int) -> str:
    builder = WatBuilder()
    write_br_table_ops(builder, ops_per_iteration, table_size)
    return builder.text()


def _br_scenario(builder: WatBuilder, params: ScenarioParams) -> None:
    write_br_ops(builder, params.ops_per_iteration)


def _br_table_scenario(builder: WatBuilder, params: ScenarioParams) -> None:
    write_br_table_ops(builder, params.ops_per_iteration, params.table_size)


SCENARIOS: dict[str, Callable[[WatBuilder, ScenarioParams], None]] = {
    "br": _br_scenario,
    "br_table": _br_table_scenario,
}


def scenario_fragment(name: str, params: ScenarioParams) -> str:
    try:
        write_ops = SCENARIOS[name]
    except KeyError:
        raise ValueError(f"unknown scenario: {name}") from None
    builder = WatBuilder()
    write_ops(builder, params)
    return builder.text()


def generic_program(fragment: str) -> str:
    """Wrap a fragment into a module exporting ``main(n, seed) -> n + seed``.

    The fragment runs once per loop iteration, ``n`` times in total.
    """
    body = textwrap.indent(fragment, INDENT * 4)
    return (
        "(module\n"
        '  (func (export "main") (param $n i32) (param $seed i32) (result i32)\n'
        "    (local $i i32)\n"
        "    (block $done\n"
        "      (loop $next\n"
        "        (br_if $done (i32.ge_u (local.get $i) (local.get $n)))\n"
        f"{body}"
        "        (local.set $i (i32.add (local.get $i) (i32.const 1)))\n"
        "        (br $next)))\n"
        "    (i32.add (local.get $i) (local.get $seed))))\n"
    )


def environment_program(fragment: str, width: int = DEFAULT_WIDTH) -> str:
    """Wrap a fragment into a module for the target execution environment.

    The arguments are one iteration count byte followed by a ``width`` byte
    buffer. Each iteration runs the fragment and bumps one buffer byte. The
    buffer is handed back through ``write_result``.
    """
    body = textwrap.indent(fragment, INDENT * 4)
    return (
        "(module\n"
        '  (import "vm_hooks" "read_args" (func $read_args (param i32)))\n'
        '  (import "vm_hooks" "write_result" (func $write_result (param i32 i32)))\n'
        '  (memory (export "memory") 1 1)\n'
        '  (func (export "user_main") (param $len i32) (result i32)\n'
        "    (local $n i32) (local $i i32) (local $addr i32)\n"
        "    (call $read_args (i32.const 0))\n"
        "    (local.set $n (i32.load8_u (i32.const 0)))\n"
        "    (block $done\n"
        "      (loop $next\n"
        "        (br_if $done (i32.ge_u (local.get $i) (local.get $n)))\n"
        f"{body}"
        "        (local.set $addr\n"
        f"          (i32.add (i32.const 1) (i32.rem_u (local.get $i) (i32.const {width}))))\n"
        "        (i32.store8 (local.get $addr)\n"
        "          (i32.add (i32.load8_u (local.get $addr)) (i32.const 1)))\n"
        "        (local.set $i (i32.add (local.get $i) (i32.const 1)))\n"
        "        (br $next)))\n"
        f"    (call $write_result (i32.const 1) (i32.const {width}))\n"
        "    (i32.const 0)))\n"
    )


def synthesize(
    name: str,
    params: ScenarioParams,
    program: Callable[[str], str] = generic_program,
) -> str:
    """Full module text for a named scenario."""
    return program(scenario_fragment(name, params))


def compile_wat(text: str) -> bytes:
    """Translate WAT text to binary bytecode."""
    try:
        return wasmtime.wat2wasm(text)
    except wasmtime.WasmtimeError as err:
        raise CompileError(f"invalid WAT: {err}") from err


def write_program(path: str | Path, text: str) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path
