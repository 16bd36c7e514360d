"""Tests for the sequential measurement runner."""

import pytest
from wasmbench import (
    BackendKind,
    BenchmarkResult,
    BenchmarkRunError,
    ConfigurationError,
    ExecutionTrapError,
    IoError,
    Measurement,
    ScenarioParams,
    backend_measurement,
    compile_wat,
    default_measurements,
    run_measurements,
    synthesize,
)
from wasmbench.runner import environment_measurement
from wasmbench.wat import environment_program


class TestRunMeasurements:
    def test_results_keep_input_order(self):
        measurements = [
            Measurement("Native", lambda: 0.3),
            Measurement("Winch", lambda: 0.1),
            Measurement("Cranelift", lambda: 0.2),
        ]
        assert run_measurements(measurements) == [
            BenchmarkResult("Native", 0.3),
            BenchmarkResult("Winch", 0.1),
            BenchmarkResult("Cranelift", 0.2),
        ]

    def test_empty(self):
        assert run_measurements([]) == []

    def test_runs_sequentially(self):
        calls = []

        def thunk(label):
            def run():
                calls.append(label)
                return 0.0

            return run

        run_measurements([Measurement(label, thunk(label)) for label in "abc"])
        assert calls == ["a", "b", "c"]

    def test_failure_does_not_stop_later_measurements(self):
        calls = []

        def broken():
            calls.append("broken")
            raise ExecutionTrapError("trap: unreachable")

        def fine():
            calls.append("fine")
            return 0.5

        with pytest.raises(BenchmarkRunError) as excinfo:
            run_measurements([Measurement("Broken", broken), Measurement("Fine", fine)])
        assert calls == ["broken", "fine"]
        failures = excinfo.value.failures
        assert [label for label, _ in failures] == ["Broken"]
        assert failures[0][1].label == "Broken"
        assert "Broken" in str(excinfo.value)

    def test_other_exceptions_propagate(self):
        def boom():
            raise RuntimeError("harness bug")

        with pytest.raises(RuntimeError, match="harness bug"):
            run_measurements([Measurement("Boom", boom)])


class TestBackendMeasurement:
    def test_label_from_backend(self):
        measurement = backend_measurement(BackendKind.AGGRESSIVE_OPTIMIZING, b"")
        assert measurement.label == "Cranelift+"

    def test_each_run_uses_a_fresh_store(self):
        wasm = compile_wat(synthesize("br", ScenarioParams(ops_per_iteration=2)))
        measurement = backend_measurement(
            BackendKind.MID_TIER_OPTIMIZING, wasm, args=(3, 0)
        )
        results = run_measurements([measurement, measurement])
        assert [r.label for r in results] == ["Cranelift", "Cranelift"]

    def test_failure_carries_scenario(self, tmp_path):
        measurement = backend_measurement(
            BackendKind.MID_TIER_OPTIMIZING, tmp_path / "missing.wasm", scenario="br"
        )
        with pytest.raises(BenchmarkRunError) as excinfo:
            run_measurements([measurement])
        label, error = excinfo.value.failures[0]
        assert label == "Cranelift"
        assert isinstance(error, IoError)
        assert error.scenario == "br"
        assert str(error).startswith("[Cranelift / br]")


class TestDefaultMeasurements:
    def test_declared_order(self, tmp_path):
        measurements = default_measurements(tmp_path / "a.wasm", tmp_path / "b.wasm")
        assert [m.label for m in measurements] == [
            "Native",
            "Winch",
            "Cranelift",
            "Cranelift+",
            "Env",
        ]

    def test_environment_measurement(self, wasm_file):
        text = synthesize(
            "br", ScenarioParams(ops_per_iteration=1), environment_program
        )
        path = wasm_file(text, "env.wasm")
        results = run_measurements([environment_measurement(path, iterations=4)])
        assert results[0].label == "Env"
        assert results[0].elapsed >= 0

    def test_oversized_count_fails_only_the_environment(self, wasm_file):
        generic = wasm_file(synthesize("br", ScenarioParams(ops_per_iteration=1)), "g.wasm")
        env = wasm_file(
            synthesize("br", ScenarioParams(ops_per_iteration=1), environment_program),
            "e.wasm",
        )
        with pytest.raises(BenchmarkRunError) as excinfo:
            run_measurements(default_measurements(generic, env, iterations=300))
        failures = excinfo.value.failures
        assert [label for label, _ in failures] == ["Env"]
        assert isinstance(failures[0][1], ConfigurationError)
