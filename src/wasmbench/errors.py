"""Exception classes for the benchmark harness."""


class BenchError(Exception):
    """Base class for all harness errors.

    ``label`` names the backend or measurement that failed and ``scenario``
    the workload it was running, so a failure can be traced back to a row
    of the comparison table.
    """

    def __init__(self, message: str, label: str | None = None, scenario: str | None = None):
        super().__init__(message)
        self.message = message
        self.label = label
        self.scenario = scenario

    def __str__(self) -> str:
        context = [part for part in (self.label, self.scenario) if part]
        if not context:
            return self.message
        return f"[{' / '.join(context)}] {self.message}"


class ConfigurationError(BenchError):
    """A backend could not be constructed, or a store was reused."""

    pass


class IoError(BenchError):
    """A module artifact could not be read."""

    pass


class CompileError(BenchError):
    """Bytecode is invalid or unsupported by the chosen backend."""

    pass


class InstantiationError(BenchError):
    """Imports could not be satisfied while instantiating a module."""

    pass


class ExportLookupError(BenchError):
    """The entry point is missing or has the wrong signature."""

    pass


class ExecutionTrapError(BenchError):
    """Runtime trap during invocation of the entry point."""

    pass


class InvocationTimeoutError(BenchError, TimeoutError):
    """The entry point did not return within its time budget."""

    pass


class InvalidMeasurementError(BenchError):
    """The native baseline produced no observable output."""

    pass


class BenchmarkRunError(BenchError):
    """One or more measurements of a run failed.

    ``failures`` holds ``(label, error)`` pairs in measurement order.
    """

    def __init__(self, failures: list[tuple[str, BenchError]]):
        labels = ", ".join(label for label, _ in failures)
        super().__init__(f"{len(failures)} measurement(s) failed: {labels}")
        self.failures = failures
