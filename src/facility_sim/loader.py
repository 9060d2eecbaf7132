"""YAML configuration loader with name-based resolution."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import yaml

from facility_sim.models import ReplicationSettings, ServiceRates, SimulationSettings


@dataclass
class DefaultsConfig:
    """Global defaults loaded from config/defaults.yaml."""

    simulation: Dict[str, Any] = field(default_factory=dict)
    replication: Dict[str, Any] = field(default_factory=dict)
    rates: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RunConfig:
    """Run-level configuration.

    Any key of the ``simulation`` or ``replication`` defaults may be set at
    the top level of a run file; ``rates`` overrides individual rates.
    """

    name: str
    description: str = ""
    overrides: Dict[str, Any] = field(default_factory=dict)
    rates: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ResolvedConfig:
    """Fully resolved configuration ready for estimation."""

    run: RunConfig
    simulation: SimulationSettings
    replication: ReplicationSettings
    rates: ServiceRates

    def to_dict(self) -> Dict[str, Any]:
        """Plain snapshot of the resolved values (for storage)."""
        return {
            "run": {"name": self.run.name, "description": self.run.description},
            "simulation": self.simulation.model_dump(mode="json"),
            "replication": self.replication.model_dump(mode="json"),
            "rates": self.rates.model_dump(mode="json"),
        }


class ConfigLoader:
    """Loads and resolves YAML configuration files."""

    def __init__(self, config_dir: Path | str = "config"):
        self.config_dir = Path(config_dir)
        self.defaults = self.load_defaults()

    def load_defaults(self) -> DefaultsConfig:
        """Load global defaults from config/defaults.yaml."""
        path = self.config_dir / "defaults.yaml"
        if not path.exists():
            return DefaultsConfig()
        data = self._load_yaml(path)
        return DefaultsConfig(
            simulation=data.get("simulation", {}) or {},
            replication=data.get("replication", {}) or {},
            rates=data.get("rates", {}) or {},
        )

    def load_run(self, name: str) -> RunConfig:
        """Load a run configuration by name."""
        path = self.config_dir / "runs" / f"{name}.yaml"
        data = self._load_yaml(path)
        known = set(SimulationSettings.model_fields) | set(
            ReplicationSettings.model_fields
        )
        unknown = set(data) - known - {"name", "description", "rates"}
        if unknown:
            raise ValueError(f"Unknown keys in run config {name}: {sorted(unknown)}")

        return RunConfig(
            name=data.get("name", name),
            description=data.get("description", ""),
            overrides={k: v for k, v in data.items() if k in known},
            rates=data.get("rates", {}) or {},
        )

    def list_runs(self) -> List[str]:
        """Names of the run configs in config/runs/."""
        runs_dir = self.config_dir / "runs"
        if not runs_dir.exists():
            return []
        return sorted(p.stem for p in runs_dir.glob("*.yaml"))

    def resolve_run(self, run_name: str) -> ResolvedConfig:
        """Merge a run config over the defaults and validate the result."""
        run = self.load_run(run_name)
        return ResolvedConfig(
            run=run,
            simulation=SimulationSettings(
                **self._merge(self.defaults.simulation, run.overrides, SimulationSettings)
            ),
            replication=ReplicationSettings(
                **self._merge(
                    self.defaults.replication, run.overrides, ReplicationSettings
                )
            ),
            rates=ServiceRates(**{**self.defaults.rates, **run.rates}),
        )

    def _merge(
        self, defaults: Dict[str, Any], overrides: Dict[str, Any], model: type
    ) -> Dict[str, Any]:
        """Defaults overlaid with the run's values for the model's fields."""
        fields = model.model_fields
        merged = {k: v for k, v in defaults.items() if k in fields}
        merged.update({k: v for k, v in overrides.items() if k in fields})
        return merged

    def _load_yaml(self, path: Path) -> Dict[str, Any]:
        """Load a YAML file."""
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            return yaml.safe_load(f) or {}
