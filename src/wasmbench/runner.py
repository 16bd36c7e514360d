"""Run an ordered list of measurements one after another."""

import logging
from pathlib import Path
from typing import Any, Iterable, Sequence

from .backends import backend_settings, build_store
from .environment import ProgramConfig, ProgramEnv, environment_inputs, measure_environment
from .errors import BenchError, BenchmarkRunError
from .native import NATIVE_ITERATIONS, run_native
from .timer import HostImports, ModuleSource, measure
from .types import GENERIC_ENTRY, BackendKind, BenchmarkResult, EntrySignature, Measurement

logger = logging.getLogger(__name__)

GENERIC_ENTRY_NAME = "main"


def run_measurements(measurements: Iterable[Measurement]) -> list[BenchmarkResult]:
    """Run each measurement to completion before starting the next.

    A failed measurement does not stop the others, but the run as a whole
    raises BenchmarkRunError instead of returning an incomplete table.
    """
    results: list[BenchmarkResult] = []
    failures: list[tuple[str, BenchError]] = []
    for measurement in measurements:
        logger.info("Running %s", measurement.label)
        try:
            elapsed = measurement.run()
        except BenchError as err:
            if err.label is None:
                err.label = measurement.label
            logger.error("%s failed: %s", measurement.label, err)
            failures.append((measurement.label, err))
            continue
        logger.info("%s finished in %.6fs", measurement.label, elapsed)
        results.append(BenchmarkResult(measurement.label, elapsed))
    if failures:
        raise BenchmarkRunError(failures)
    return results


def backend_measurement(
    kind: BackendKind,
    source: ModuleSource,
    signature: EntrySignature = GENERIC_ENTRY,
    args: Sequence[Any] = (0, 0),
    entry_name: str = GENERIC_ENTRY_NAME,
    imports: HostImports | None = None,
    timeout: float | None = None,
    scenario: str | None = None,
) -> Measurement:
    """A measurement of ``source`` under one backend, on a store of its own."""
    settings = backend_settings(kind)

    def run() -> float:
        store = build_store(kind, interruptible=timeout is not None)
        try:
            return measure(
                source, store, entry_name, signature, imports, args, timeout=timeout
            )
        except BenchError as err:
            err.scenario = err.scenario or scenario
            raise

    return Measurement(settings.label, run)


def native_measurement(iterations: int = NATIVE_ITERATIONS) -> Measurement:
    return Measurement("Native", lambda: run_native(iterations))


def environment_measurement(
    path: str | Path,
    iterations: int = NATIVE_ITERATIONS,
    config: ProgramConfig | None = None,
    timeout: float | None = None,
    label: str = "Env",
) -> Measurement:
    def run() -> float:
        env = ProgramEnv(config or ProgramConfig(), environment_inputs(iterations))
        return measure_environment(path, env, timeout=timeout)

    return Measurement(label, run)


def default_measurements(
    generic_path: str | Path,
    environment_path: str | Path,
    iterations: int = NATIVE_ITERATIONS,
    timeout: float | None = None,
    scenario: str | None = None,
) -> list[Measurement]:
    """Native baseline, every backend in declaration order, then the environment."""
    measurements = [native_measurement(iterations)]
    for kind in BackendKind:
        measurements.append(
            backend_measurement(
                kind,
                generic_path,
                args=(iterations, 0),
                timeout=timeout,
                scenario=scenario,
            )
        )
    measurements.append(
        environment_measurement(environment_path, iterations, timeout=timeout)
    )
    return measurements
