"""Type definitions shared across the harness."""

import enum
from dataclasses import dataclass
from typing import Callable


# Value type constants
VALTYPE_I32 = "i32"
VALTYPE_I64 = "i64"
VALTYPE_F32 = "f32"
VALTYPE_F64 = "f64"

ValType = str  # One of the VALTYPE_* constants


class BackendKind(enum.Enum):
    """Compilation strategy a module is measured under."""

    NON_OPTIMIZING = "non-optimizing"
    MID_TIER_OPTIMIZING = "mid-tier-optimizing"
    AGGRESSIVE_OPTIMIZING = "aggressive-optimizing"


@dataclass(frozen=True)
class BackendSettings:
    """Resolved configuration for one backend.

    ``opt_level`` is drawn from the backend's own vocabulary; backends
    without an optimization knob carry ``None``.
    """

    kind: BackendKind
    strategy: str
    label: str
    opt_level: str | None = None
    canonicalize_nans: bool = True
    verifier: bool = True


@dataclass(frozen=True)
class EntrySignature:
    """Expected signature of an exported entry point."""

    params: tuple[ValType, ...]
    results: tuple[ValType, ...]

    def __str__(self) -> str:
        params = ", ".join(self.params)
        results = ", ".join(self.results)
        return f"({params}) -> ({results})"


GENERIC_ENTRY = EntrySignature((VALTYPE_I32, VALTYPE_I32), (VALTYPE_I32,))
ENVIRONMENT_ENTRY = EntrySignature((VALTYPE_I32,), (VALTYPE_I32,))


@dataclass(frozen=True)
class BenchmarkResult:
    """One labeled wall-clock duration, in seconds."""

    label: str
    elapsed: float


@dataclass(frozen=True)
class Measurement:
    """A labeled thunk returning elapsed seconds."""

    label: str
    run: Callable[[], float]


@dataclass(frozen=True)
class ScenarioParams:
    """Parameters of a synthesized control-flow scenario.

    ``table_size`` only matters to the branch-table scenario; ``iterations``
    is the default loop count baked into generated programs.
    """

    ops_per_iteration: int
    table_size: int = 1
    iterations: int = 1

    def __post_init__(self):
        if self.ops_per_iteration < 0:
            raise ValueError(
                f"ops_per_iteration must be non-negative, got {self.ops_per_iteration}"
            )
        if self.table_size < 1:
            raise ValueError(f"table_size must be at least 1, got {self.table_size}")
        if self.iterations < 0:
            raise ValueError(f"iterations must be non-negative, got {self.iterations}")
