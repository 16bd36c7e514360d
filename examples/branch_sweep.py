#!/usr/bin/env python3
"""Sweep the br_table scenario over several table sizes on every backend.

Larger tables mean deeper block nesting and a longer dispatch list, while
the selector still always falls through to the default target. The table
printed here shows how each backend's cost grows with the table size.
"""

import wasmbench
from wasmbench import BackendKind, ConfigurationError, ScenarioParams
from wasmbench.types import GENERIC_ENTRY

TABLE_SIZES = [1, 4, 16, 64]
OPS_PER_ITERATION = 50
ITERATIONS = 200


def main():
    kinds = list(BackendKind)
    labels = [wasmbench.backend_settings(kind).label for kind in kinds]
    print("  size | " + " | ".join(f"{label:>10}" for label in labels))
    print("-------|-" + "-|-".join("-" * 10 for _ in labels))

    for table_size in TABLE_SIZES:
        params = ScenarioParams(OPS_PER_ITERATION, table_size=table_size)
        wasm = wasmbench.compile_wat(wasmbench.synthesize("br_table", params))
        cells = []
        for kind in kinds:
            try:
                store = wasmbench.build_store(kind)
            except ConfigurationError:
                cells.append(f"{'n/a':>10}")
                continue
            elapsed = wasmbench.measure(wasm, store, "main", GENERIC_ENTRY, args=(ITERATIONS, 0))
            cells.append(f"{wasmbench.format_duration(elapsed):>10}")
        print(f"  {table_size:4} | " + " | ".join(cells))
    return 0


if __name__ == "__main__":
    exit(main())
