import pytest

from wasmbench import ConfigurationError, build_store, compile_wat


@pytest.fixture
def store_for():
    """Build a fresh store, skipping backends this host cannot construct."""

    def make(kind, interruptible=False):
        try:
            return build_store(kind, interruptible=interruptible)
        except ConfigurationError as e:
            pytest.skip(f"{kind.name} backend unavailable: {e}")

    return make


@pytest.fixture
def wasm_file(tmp_path):
    """Compile WAT text into a .wasm file under tmp_path."""

    def write(text, name="module.wasm"):
        path = tmp_path / name
        path.write_bytes(compile_wat(text))
        return path

    return write
