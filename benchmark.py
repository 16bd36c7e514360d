#!/usr/bin/env python3
"""Compare wasmtime backends against a native baseline.

Generated programs are written under programs/ the first time this runs,
then every backend is measured in turn and one line per measurement is
printed in a fixed order.
"""

import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from wasmbench import BenchmarkRunError, ScenarioParams, compile_wat, print_report, synthesize
from wasmbench.runner import default_measurements, run_measurements
from wasmbench.wat import environment_program, write_program

PROGRAMS_DIR = Path(__file__).parent / "programs"
SCENARIO = "br_table"
PARAMS = ScenarioParams(ops_per_iteration=100, table_size=8, iterations=100)


def ensure_program(name: str, text: str) -> Path:
    """Write ``<name>.wat`` and ``<name>.wasm`` unless the binary exists."""
    wasm_path = PROGRAMS_DIR / f"{name}.wasm"
    if not wasm_path.exists():
        write_program(PROGRAMS_DIR / f"{name}.wat", text)
        wasm_path.write_bytes(compile_wat(text))
    return wasm_path


def run_benchmarks():
    """Run all measurements and print results."""
    generic = ensure_program(SCENARIO, synthesize(SCENARIO, PARAMS))
    environment = ensure_program(
        f"{SCENARIO}_env", synthesize(SCENARIO, PARAMS, program=environment_program)
    )

    measurements = default_measurements(
        generic, environment, iterations=PARAMS.iterations, scenario=SCENARIO
    )
    try:
        results = run_measurements(measurements)
    except BenchmarkRunError as e:
        for label, error in e.failures:
            print(f"{label}: ERROR: {error}", file=sys.stderr)
        return 1

    print_report(results)
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    sys.exit(run_benchmarks())
