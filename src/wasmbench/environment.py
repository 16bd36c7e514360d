"""Target execution environment.

Programs for this environment do not take their inputs as call arguments.
The host holds a flattened byte buffer of arguments, the guest copies it
into its own memory through ``vm_hooks.read_args``, and it hands its output
back through ``vm_hooks.write_result``. The entry point ``user_main`` is
called with the argument length and returns a status code, zero meaning
success.
"""

from dataclasses import dataclass, field
from pathlib import Path

import wasmtime

from .backends import ExecutionStore, build_store
from .errors import ConfigurationError, ExecutionTrapError
from .native import DEFAULT_WIDTH
from .timer import (
    HostImports,
    ModuleSource,
    compile_module,
    instantiate_module,
    invoke_timed,
    load_module_bytes,
    resolve_entry,
)
from .types import ENVIRONMENT_ENTRY, BackendKind, EntrySignature, VALTYPE_I32

HOST_MODULE = "vm_hooks"
ENTRY_NAME = "user_main"


@dataclass(frozen=True)
class ProgramConfig:
    """How the environment compiles and runs a program."""

    backend: BackendKind = BackendKind.MID_TIER_OPTIMIZING
    memory_export: str = "memory"
    max_result_len: int = 1024


@dataclass
class ProgramEnv:
    """Host-side state of one program run."""

    configuration: ProgramConfig
    ordered_input_words: list[int]
    outs: bytes = b""
    _args: bytes = field(init=False, repr=False)

    def __post_init__(self):
        # bytes() rejects words outside 0..255
        self._args = bytes(self.ordered_input_words)

    @property
    def args(self) -> bytes:
        return self._args

    def _memory(self, caller: wasmtime.Caller) -> wasmtime.Memory:
        memory = caller.get(self.configuration.memory_export)
        if not isinstance(memory, wasmtime.Memory):
            raise wasmtime.Trap(
                f"program does not export memory {self.configuration.memory_export!r}"
            )
        return memory

    def read_args(self, caller: wasmtime.Caller, ptr: int) -> None:
        self._memory(caller).write(caller, self._args, ptr)

    def write_result(self, caller: wasmtime.Caller, ptr: int, length: int) -> None:
        if length > self.configuration.max_result_len:
            raise wasmtime.Trap(
                f"result of {length} bytes exceeds {self.configuration.max_result_len}"
            )
        self.outs = bytes(self._memory(caller).read(caller, ptr, ptr + length))

    def imports(self) -> HostImports:
        return {
            (HOST_MODULE, "read_args"): (
                EntrySignature((VALTYPE_I32,), ()),
                self.read_args,
            ),
            (HOST_MODULE, "write_result"): (
                EntrySignature((VALTYPE_I32, VALTYPE_I32), ()),
                self.write_result,
            ),
        }


def environment_inputs(iterations: int, width: int = DEFAULT_WIDTH) -> list[int]:
    """Argument words: the iteration count followed by a zeroed buffer."""
    if not 0 <= iterations <= 0xFF:
        raise ConfigurationError(
            f"iterations must fit in one byte, got {iterations}", label="Env"
        )
    return [iterations] + [0] * width


def instantiate(
    path: ModuleSource, env: ProgramEnv, interruptible: bool = False
) -> tuple[wasmtime.Instance, wasmtime.Module, ExecutionStore]:
    """Compile and link a program against the environment's host functions.

    The returned store is already claimed by this program run.
    """
    store = build_store(env.configuration.backend, interruptible=interruptible)
    store.claim()
    wasm = load_module_bytes(path)
    module = compile_module(store, wasm)
    instance = instantiate_module(store, module, env.imports(), access_caller=True)
    return instance, module, store


def run_program(
    path: ModuleSource, env: ProgramEnv, timeout: float | None = None
) -> tuple[float, int]:
    """Run a program's entry point once and return ``(elapsed, status)``."""
    instance, _, store = instantiate(path, env, interruptible=timeout is not None)
    entry = resolve_entry(store, instance, ENTRY_NAME, ENVIRONMENT_ENTRY)
    elapsed, status = invoke_timed(store, entry, [len(env.args)], timeout=timeout)
    if status != 0:
        raise ExecutionTrapError(
            f"program exited with status {status}", label=store.label
        )
    return elapsed, status


def measure_environment(
    path: str | Path, env: ProgramEnv, timeout: float | None = None
) -> float:
    elapsed, _ = run_program(path, env, timeout=timeout)
    return elapsed
