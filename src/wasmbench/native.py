"""Native baseline: the reference workload run directly in the host.

The workload is a chain of 256-bit hashes over a zeroed buffer. Its output
is checked against the initial state before the timing is handed back, so
a run whose work was skipped can never be reported as a fast one.
"""

import hashlib
import time
from typing import Callable

from .errors import InvalidMeasurementError

NATIVE_ITERATIONS = 100
DEFAULT_WIDTH = 32

Digest = Callable[[bytes], bytes]


def sha3_256(data: bytes) -> bytes:
    """SHA3-256 (FIPS 202) digest of ``data``."""
    return hashlib.sha3_256(data).digest()


def hash_chain(iterations: int, data: bytes | None = None, digest: Digest = sha3_256) -> bytes:
    """Feed ``data`` through ``digest`` ``iterations`` times."""
    if data is None:
        data = bytes(DEFAULT_WIDTH)
    for _ in range(iterations):
        data = digest(data)
    return data


def run_native(
    iterations: int = NATIVE_ITERATIONS,
    digest: Digest = sha3_256,
    width: int = DEFAULT_WIDTH,
) -> float:
    """Time the hash chain and return elapsed seconds.

    Raises InvalidMeasurementError if the buffer is still all zeroes.
    """
    initial = bytes(width)
    start = time.perf_counter()
    data = hash_chain(iterations, initial, digest)
    elapsed = time.perf_counter() - start
    if data == initial:
        raise InvalidMeasurementError(
            f"output unchanged after {iterations} iterations", label="Native"
        )
    return elapsed
