"""Tests for the backend configuration factory."""

import pytest
import wasmtime
from wasmbench import (
    BACKEND_TABLE,
    BackendKind,
    BackendSettings,
    ConfigurationError,
    ExecutionStore,
    backend_settings,
    build_store,
)
from wasmbench.backends import make_config


class TestBackendSettings:
    """Test the backend lookup table."""

    def test_every_kind_has_settings(self):
        assert set(BACKEND_TABLE) == set(BackendKind)

    @pytest.mark.parametrize("kind", list(BackendKind))
    def test_canonicalization_and_verifier_always_on(self, kind):
        settings = backend_settings(kind)
        assert settings.kind is kind
        assert settings.canonicalize_nans is True
        assert settings.verifier is True

    @pytest.mark.parametrize("kind", list(BackendKind))
    def test_settings_are_deterministic(self, kind):
        assert backend_settings(kind) == backend_settings(kind)

    def test_non_optimizing_has_no_level(self):
        assert backend_settings(BackendKind.NON_OPTIMIZING).opt_level is None

    def test_optimizing_backends_use_their_highest_level(self):
        assert backend_settings(BackendKind.MID_TIER_OPTIMIZING).opt_level == "speed"
        assert (
            backend_settings(BackendKind.AGGRESSIVE_OPTIMIZING).opt_level
            == "speed_and_size"
        )

    def test_labels_are_distinct(self):
        labels = [backend_settings(kind).label for kind in BackendKind]
        assert len(set(labels)) == len(labels)

    def test_unknown_kind(self):
        with pytest.raises(ConfigurationError, match="unknown backend"):
            backend_settings("llvm")

    @pytest.mark.parametrize("kind", list(BackendKind))
    def test_make_config(self, kind):
        assert isinstance(make_config(backend_settings(kind)), wasmtime.Config)


class TestBuildStore:
    """Test store construction and single use."""

    @pytest.mark.parametrize("kind", list(BackendKind))
    def test_fresh_store_per_call(self, store_for, kind):
        first = store_for(kind)
        second = store_for(kind)
        assert isinstance(first, ExecutionStore)
        assert first is not second
        assert first.store is not second.store
        assert first.settings == second.settings
        assert not first.claimed

    def test_non_optimizing_backend_builds(self):
        store = build_store(BackendKind.NON_OPTIMIZING)
        assert store.label == "Winch"
        assert store.settings.strategy == "winch"

    def test_unknown_strategy(self):
        settings = BackendSettings(BackendKind.NON_OPTIMIZING, "lightbeam", "Old")
        with pytest.raises(ConfigurationError, match="unknown strategy"):
            make_config(settings)

    def test_label_comes_from_settings(self, store_for):
        store = store_for(BackendKind.MID_TIER_OPTIMIZING)
        assert store.label == "Cranelift"
        assert "Cranelift" in repr(store)

    def test_claim_is_single_use(self, store_for):
        store = store_for(BackendKind.MID_TIER_OPTIMIZING)
        store.claim()
        assert store.claimed
        with pytest.raises(ConfigurationError, match="already used"):
            store.claim()

    def test_interruptible_store(self, store_for):
        store = store_for(BackendKind.AGGRESSIVE_OPTIMIZING, interruptible=True)
        assert store.interruptible
