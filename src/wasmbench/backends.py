"""Backend configuration factory.

Every backend is a wasmtime engine configured with a different compilation
strategy. All of them canonicalize NaNs and run the code verifier so that
floating point results agree across backends and malformed modules are
rejected at compile time rather than trapping unpredictably later.
"""

import logging

import wasmtime
from wasmtime import _ffi as ffi

from .errors import ConfigurationError
from .types import BackendKind, BackendSettings

logger = logging.getLogger(__name__)

# Winch is a single-pass baseline compiler and has no optimization knob.
# Cranelift's levels are "none", "speed" and "speed_and_size".
BACKEND_TABLE: dict[BackendKind, BackendSettings] = {
    BackendKind.NON_OPTIMIZING: BackendSettings(
        kind=BackendKind.NON_OPTIMIZING,
        strategy="winch",
        label="Winch",
    ),
    BackendKind.MID_TIER_OPTIMIZING: BackendSettings(
        kind=BackendKind.MID_TIER_OPTIMIZING,
        strategy="cranelift",
        label="Cranelift",
        opt_level="speed",
    ),
    BackendKind.AGGRESSIVE_OPTIMIZING: BackendSettings(
        kind=BackendKind.AGGRESSIVE_OPTIMIZING,
        strategy="cranelift",
        label="Cranelift+",
        opt_level="speed_and_size",
    ),
}

# Ticks granted to interruptible stores outside of a timed invocation.
_UNBOUNDED_TICKS = 1 << 62


def backend_settings(kind: BackendKind) -> BackendSettings:
    """Look up the settings for a backend kind."""
    try:
        return BACKEND_TABLE[kind]
    except KeyError:
        raise ConfigurationError(f"unknown backend kind: {kind!r}") from None


# Strategy codes of the C API; the Python setter only knows auto and cranelift.
_STRATEGY_CODES = {"auto": 0, "cranelift": 1, "winch": 2}


def _set_strategy(config: wasmtime.Config, strategy: str) -> None:
    try:
        code = _STRATEGY_CODES[strategy]
    except KeyError:
        raise ConfigurationError(f"unknown strategy: {strategy}") from None
    ffi.wasmtime_config_strategy_set(config.ptr(), code)


def make_config(settings: BackendSettings, interruptible: bool = False) -> wasmtime.Config:
    """Translate backend settings into a fresh wasmtime configuration."""
    config = wasmtime.Config()
    _set_strategy(config, settings.strategy)
    config.cranelift_debug_verifier = settings.verifier
    if settings.canonicalize_nans:
        config.cranelift_nan_canonicalization = True
    if settings.opt_level is not None:
        config.cranelift_opt_level = settings.opt_level
    if interruptible:
        config.epoch_interruption = True
    return config


class ExecutionStore:
    """A backend-bound engine and store, good for exactly one measurement."""

    def __init__(
        self,
        settings: BackendSettings,
        engine: wasmtime.Engine,
        store: wasmtime.Store,
        interruptible: bool = False,
    ):
        self.settings = settings
        self.engine = engine
        self.store = store
        self.interruptible = interruptible
        self._claimed = False

    @property
    def label(self) -> str:
        return self.settings.label

    @property
    def claimed(self) -> bool:
        return self._claimed

    def claim(self) -> None:
        """Mark the store as used, refusing a second measurement."""
        if self._claimed:
            raise ConfigurationError(
                "store was already used by another measurement", label=self.label
            )
        self._claimed = True

    def __repr__(self) -> str:
        state = "claimed" if self._claimed else "fresh"
        return f"<ExecutionStore {self.label} {state}>"


def build_store(kind: BackendKind, interruptible: bool = False) -> ExecutionStore:
    """Build a fresh store for the given backend.

    ``interruptible`` enables epoch interruption, which bounded invocations
    need to stop a runaway entry point.
    """
    settings = backend_settings(kind)
    try:
        config = make_config(settings, interruptible=interruptible)
        engine = wasmtime.Engine(config)
        store = wasmtime.Store(engine)
        if interruptible:
            store.set_epoch_deadline(_UNBOUNDED_TICKS)
    except wasmtime.WasmtimeError as err:
        raise ConfigurationError(
            f"cannot construct backend: {err}", label=settings.label
        ) from err
    logger.debug(
        "Built %s store (strategy=%s, opt_level=%s, interruptible=%s)",
        settings.label,
        settings.strategy,
        settings.opt_level,
        interruptible,
    )
    return ExecutionStore(settings, engine, store, interruptible=interruptible)
