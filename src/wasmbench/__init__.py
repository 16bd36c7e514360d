"""WebAssembly backend benchmark harness.

Times one workload across several wasmtime compilation strategies and a
native baseline, and synthesizes WAT programs that stress ``br`` and
``br_table`` dispatch.
"""

from .backends import BACKEND_TABLE, ExecutionStore, backend_settings, build_store
from .errors import (
    BenchError,
    BenchmarkRunError,
    CompileError,
    ConfigurationError,
    ExecutionTrapError,
    ExportLookupError,
    InstantiationError,
    InvalidMeasurementError,
    InvocationTimeoutError,
    IoError,
)
from .native import run_native
from .report import format_duration, format_report, print_report
from .runner import backend_measurement, default_measurements, run_measurements
from .timer import execute, measure
from .types import (
    BackendKind,
    BackendSettings,
    BenchmarkResult,
    EntrySignature,
    Measurement,
    ScenarioParams,
)
from .wat import (
    WatBuilder,
    branch_table_fragment,
    compile_wat,
    nested_branch_fragment,
    synthesize,
)

__version__ = "0.1.0"

__all__ = [
    # Main API
    "build_store",
    "measure",
    "execute",
    "run_native",
    "run_measurements",
    "backend_measurement",
    "default_measurements",
    "print_report",
    "format_report",
    "format_duration",
    # Backends
    "BACKEND_TABLE",
    "ExecutionStore",
    "backend_settings",
    # Synthesizers
    "WatBuilder",
    "nested_branch_fragment",
    "branch_table_fragment",
    "synthesize",
    "compile_wat",
    # Types
    "BackendKind",
    "BackendSettings",
    "BenchmarkResult",
    "EntrySignature",
    "Measurement",
    "ScenarioParams",
    # Errors
    "BenchError",
    "BenchmarkRunError",
    "ConfigurationError",
    "IoError",
    "CompileError",
    "InstantiationError",
    "ExportLookupError",
    "ExecutionTrapError",
    "InvocationTimeoutError",
    "InvalidMeasurementError",
]
