"""Load, compile, instantiate, invoke and time a WebAssembly module.

Each step is exposed on its own so that other collaborators (such as the
target execution environment) can reuse the parts they need. ``measure``
composes all of them into a single measurement.
"""

import logging
import os
import threading
import time
from pathlib import Path
from typing import Any, Callable, Mapping, Sequence

import wasmtime

from .backends import ExecutionStore
from .errors import (
    CompileError,
    ConfigurationError,
    ExecutionTrapError,
    ExportLookupError,
    InstantiationError,
    InvocationTimeoutError,
    IoError,
)
from .types import EntrySignature, ValType

logger = logging.getLogger(__name__)

# (module, name) -> (signature, python callable)
HostImports = Mapping[tuple[str, str], tuple[EntrySignature, Callable[..., Any]]]

ModuleSource = bytes | str | os.PathLike

_VALTYPES = {
    "i32": wasmtime.ValType.i32,
    "i64": wasmtime.ValType.i64,
    "f32": wasmtime.ValType.f32,
    "f64": wasmtime.ValType.f64,
}


def wasm_valtype(name: ValType) -> wasmtime.ValType:
    """Map a value type name to its wasmtime type."""
    try:
        return _VALTYPES[name]()
    except KeyError:
        raise ValueError(f"unsupported value type: {name}") from None


def wasm_functype(signature: EntrySignature) -> wasmtime.FuncType:
    return wasmtime.FuncType(
        [wasm_valtype(p) for p in signature.params],
        [wasm_valtype(r) for r in signature.results],
    )


def load_module_bytes(source: ModuleSource) -> bytes:
    """Return module bytes from memory or from a file on disk."""
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    path = Path(source)
    try:
        return path.read_bytes()
    except OSError as err:
        raise IoError(f"cannot read module {path}: {err}") from err


def compile_module(store: ExecutionStore, wasm: bytes) -> wasmtime.Module:
    try:
        return wasmtime.Module(store.engine, wasm)
    except wasmtime.WasmtimeError as err:
        raise CompileError(f"module rejected: {err}", label=store.label) from err


def instantiate_module(
    store: ExecutionStore,
    module: wasmtime.Module,
    imports: HostImports | None = None,
    access_caller: bool = False,
) -> wasmtime.Instance:
    """Instantiate ``module`` with the given host functions.

    With ``access_caller`` every host callable receives the wasmtime caller
    as its first argument, which host functions touching guest memory need.
    """
    linker = wasmtime.Linker(store.engine)
    try:
        for (module_name, field), (signature, func) in (imports or {}).items():
            linker.define_func(
                module_name,
                field,
                wasm_functype(signature),
                func,
                access_caller=access_caller,
            )
        return linker.instantiate(store.store, module)
    except (wasmtime.WasmtimeError, wasmtime.Trap) as err:
        raise InstantiationError(
            f"cannot instantiate module: {err}", label=store.label
        ) from err


def resolve_entry(
    store: ExecutionStore,
    instance: wasmtime.Instance,
    name: str,
    signature: EntrySignature,
) -> wasmtime.Func:
    """Find the exported function ``name`` and check its exact signature."""
    exports = instance.exports(store.store)
    try:
        extern = exports[name]
    except KeyError:
        raise ExportLookupError(f"no export named {name!r}", label=store.label) from None
    if not isinstance(extern, wasmtime.Func):
        raise ExportLookupError(
            f"export {name!r} is not a function", label=store.label
        )

    func_type = extern.type(store.store)
    actual = EntrySignature(
        tuple(str(p) for p in func_type.params),
        tuple(str(r) for r in func_type.results),
    )
    if actual != signature:
        raise ExportLookupError(
            f"export {name!r} has signature {actual}, expected {signature}",
            label=store.label,
        )
    return extern


def invoke_timed(
    store: ExecutionStore,
    func: wasmtime.Func,
    args: Sequence[Any],
    timeout: float | None = None,
) -> tuple[float, Any]:
    """Call ``func`` and return ``(elapsed_seconds, result)``.

    The clock is read immediately before the call and immediately after a
    successful return. With a ``timeout`` the engine epoch is bumped once the
    budget runs out, which interrupts the guest.
    """
    timer = None
    expired = threading.Event()
    if timeout is not None:
        if not store.interruptible:
            raise ConfigurationError(
                "a timeout needs a store built with interruptible=True",
                label=store.label,
            )

        def interrupt():
            expired.set()
            store.engine.increment_epoch()

        store.store.set_epoch_deadline(1)
        timer = threading.Timer(timeout, interrupt)
        timer.daemon = True
        timer.start()

    try:
        start = time.perf_counter()
        result = func(store.store, *args)
        elapsed = time.perf_counter() - start
    except wasmtime.Trap as err:
        if expired.is_set():
            raise InvocationTimeoutError(
                f"invocation exceeded {timeout}s", label=store.label
            ) from err
        raise ExecutionTrapError(f"trap: {err}", label=store.label) from err
    finally:
        if timer is not None:
            timer.cancel()
    return elapsed, result


def execute(
    source: ModuleSource,
    store: ExecutionStore,
    entry_name: str,
    signature: EntrySignature,
    imports: HostImports | None = None,
    args: Sequence[Any] = (),
    timeout: float | None = None,
) -> tuple[float, Any]:
    """Run one full measurement and return ``(elapsed_seconds, result)``."""
    store.claim()
    wasm = load_module_bytes(source)
    module = compile_module(store, wasm)
    instance = instantiate_module(store, module, imports)
    func = resolve_entry(store, instance, entry_name, signature)
    elapsed, result = invoke_timed(store, func, args, timeout=timeout)
    logger.debug("%s: %s returned %r in %.6fs", store.label, entry_name, result, elapsed)
    return elapsed, result


def measure(
    source: ModuleSource,
    store: ExecutionStore,
    entry_name: str,
    signature: EntrySignature,
    imports: HostImports | None = None,
    args: Sequence[Any] = (),
    timeout: float | None = None,
) -> float:
    """Run one full measurement and return the elapsed seconds."""
    elapsed, _ = execute(
        source, store, entry_name, signature, imports, args, timeout=timeout
    )
    return elapsed
