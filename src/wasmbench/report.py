"""Human-readable report of benchmark results."""

import sys
from typing import Iterable, TextIO

from .types import BenchmarkResult

_UNITS = ["ns", "μs", "ms", "s", "min", "h"]
_SCALE = [1000.0, 1000.0, 1000.0, 60.0, 60.0]


def format_duration(seconds: float) -> str:
    """Format a duration with the largest unit that keeps it above one.

    >>> format_duration(0.0123)
    '12.3ms'
    """
    span = seconds * 1e9
    unit = 0
    # Compare the rounded value so 999.96ns moves up to 1.0μs
    while unit < len(_SCALE) and round(span, 1) >= _SCALE[unit]:
        span /= _SCALE[unit]
        unit += 1
    return f"{span:.1f}{_UNITS[unit]}"


def format_report(results: Iterable[BenchmarkResult]) -> list[str]:
    """One ``<label>:  <duration>`` line per result, in the given order."""
    results = list(results)
    if not results:
        return []
    width = max(len(r.label) for r in results) + 3
    return [
        f"{(r.label + ':').ljust(width)}{format_duration(r.elapsed)}" for r in results
    ]


def print_report(results: Iterable[BenchmarkResult], file: TextIO | None = None) -> None:
    out = file if file is not None else sys.stdout
    for line in format_report(results):
        print(line, file=out)
