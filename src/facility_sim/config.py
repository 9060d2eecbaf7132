"""Configuration schemas - re-exports from loader for convenience."""

from facility_sim.loader import ConfigLoader, DefaultsConfig, ResolvedConfig, RunConfig
from facility_sim.models import ReplicationSettings, ServiceRates, SimulationSettings

__all__ = [
    "ConfigLoader",
    "DefaultsConfig",
    "RunConfig",
    "ResolvedConfig",
    "SimulationSettings",
    "ReplicationSettings",
    "ServiceRates",
]
