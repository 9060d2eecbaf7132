"""Tests for YAML configuration loading and resolution."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from facility_sim import ConfigLoader, DispatchPolicy, RandomGenerator


def write_config(root: Path, run_yaml: str, defaults_yaml: str = "") -> ConfigLoader:
    (root / "runs").mkdir(parents=True, exist_ok=True)
    if defaults_yaml:
        (root / "defaults.yaml").write_text(defaults_yaml)
    (root / "runs" / "custom.yaml").write_text(run_yaml)
    return ConfigLoader(root)


class TestProductionConfig:
    """Tests against the shipped config directory."""

    def test_lists_runs(self, loader):
        assert {"baseline", "most_loaded", "quick"} <= set(loader.list_runs())

    def test_baseline_uses_defaults(self, loader):
        resolved = loader.resolve_run("baseline")
        assert resolved.run.name == "baseline"
        assert resolved.simulation.component_count == 3000
        assert resolved.simulation.warmup_minutes == 600.0
        assert resolved.simulation.random_generator is RandomGenerator.LCG
        assert resolved.simulation.dispatch_policy is DispatchPolicy.LEAST_LOADED
        assert resolved.replication.initial_replications == 10
        assert resolved.replication.max_replications == 200
        assert resolved.replication.precision == 0.02
        assert resolved.replication.z_value == 1.96
        assert resolved.rates.inspector1_c1 == 0.097
        assert resolved.rates.ws3 == 0.114

    def test_most_loaded_overrides_policy(self, loader):
        resolved = loader.resolve_run("most_loaded")
        assert resolved.simulation.dispatch_policy is DispatchPolicy.MOST_LOADED
        assert resolved.simulation.component_count == 3000

    def test_quick_overrides_both_sections(self, quick_resolved):
        assert quick_resolved.simulation.component_count == 300
        assert quick_resolved.simulation.random_generator is RandomGenerator.MERSENNE
        assert quick_resolved.replication.initial_replications == 3
        assert quick_resolved.replication.max_replications == 5

    def test_to_dict_is_plain(self, quick_resolved):
        snapshot = quick_resolved.to_dict()
        assert snapshot["run"]["name"] == "quick"
        assert snapshot["simulation"]["random_generator"] == "mersenne"
        assert snapshot["rates"]["ws1"] == 0.217


class TestResolution:
    """Tests with temporary config directories."""

    def test_missing_run_raises(self, loader):
        with pytest.raises(FileNotFoundError):
            loader.resolve_run("does_not_exist")

    def test_unknown_key_raises(self, tmp_path):
        loader = write_config(tmp_path, "name: custom\nreplicas: 4\n")
        with pytest.raises(ValueError, match="replicas"):
            loader.load_run("custom")

    def test_invalid_value_fails_validation(self, tmp_path):
        loader = write_config(tmp_path, "name: custom\ncomponent_count: 0\n")
        with pytest.raises(ValidationError):
            loader.resolve_run("custom")

    def test_max_below_initial_fails_validation(self, tmp_path):
        loader = write_config(
            tmp_path, "initial_replications: 10\nmax_replications: 5\n"
        )
        with pytest.raises(ValidationError):
            loader.resolve_run("custom")

    def test_rate_override_merges_over_defaults(self, tmp_path):
        loader = write_config(
            tmp_path,
            "rates:\n  ws2: 0.5\n",
            defaults_yaml="rates:\n  ws1: 0.3\n",
        )
        resolved = loader.resolve_run("custom")
        assert resolved.run.name == "custom"
        assert resolved.rates.ws1 == 0.3
        assert resolved.rates.ws2 == 0.5
        assert resolved.rates.ws3 == 0.114

    def test_missing_defaults_fall_back_to_models(self, tmp_path):
        loader = write_config(tmp_path, "description: bare\n")
        resolved = loader.resolve_run("custom")
        assert resolved.run.description == "bare"
        assert resolved.simulation.component_count == 3000
        assert resolved.replication.precision == 0.02
