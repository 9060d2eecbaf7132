"""Shared test fixtures for facility-sim tests."""

from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pytest

from facility_sim import (
    Component,
    ConfigLoader,
    DispatchPolicy,
    MersenneRandom,
    SimulationEngine,
    SimulationResult,
    TimeStamp,
    Workstation,
    WorkstationId,
    build_facility,
)
from facility_sim.models import ComponentKind, ServiceRates
from facility_sim.supply import FacilitySupply
from facility_sim.timebase import Duration


class ScriptedRandom:
    """RandomSource replaying fixed values, for deterministic decision tests."""

    def __init__(
        self,
        floats: Optional[Iterable[float]] = None,
        booleans: Optional[Iterable[bool]] = None,
    ):
        self.floats: List[float] = list(floats or [])
        self.booleans: List[bool] = list(booleans or [])

    def float(self) -> float:
        return self.floats.pop(0)

    def boolean(self) -> bool:
        return self.booleans.pop(0)


def finished_component(kind: ComponentKind, at: float = 0.0) -> Component:
    """A zero-duration component that finished inspection at ``at``."""
    component = Component(kind=kind, duration=Duration.none())
    component.start_inspecting(TimeStamp(at))
    component.finish_inspecting(TimeStamp(at))
    return component


def make_workstations(
    assembly: Optional[Dict[WorkstationId, List[float]]] = None,
) -> Dict[WorkstationId, Workstation]:
    """Registry of the three workstations with explicit assembly minutes."""
    assembly = assembly or {}
    return {
        ws: Workstation(ws, [Duration.of_minutes(m) for m in assembly.get(ws, [])])
        for ws in WorkstationId
    }


def run_random_facility(
    seed: int,
    count: int = 100,
    policy: DispatchPolicy = DispatchPolicy.LEAST_LOADED,
) -> SimulationResult:
    """Run a full facility from a seeded Mersenne source."""
    rng = MersenneRandom(seed)
    supply = FacilitySupply.generate(rng, ServiceRates(), count)
    return build_facility(supply, rng, policy).run()


@pytest.fixture
def config_dir() -> Path:
    """Path to production config directory."""
    return Path(__file__).parent.parent / "config"


@pytest.fixture
def loader(config_dir: Path) -> ConfigLoader:
    """ConfigLoader instance."""
    return ConfigLoader(config_dir)


@pytest.fixture
def engine(config_dir: Path) -> SimulationEngine:
    """SimulationEngine instance (with DB saving disabled for tests)."""
    return SimulationEngine(str(config_dir), save_to_db=False)


@pytest.fixture
def quick_resolved(loader: ConfigLoader):
    """Resolved quick config (small supplies, few replications)."""
    return loader.resolve_run("quick")


@pytest.fixture
def random_result() -> SimulationResult:
    """A complete random run with 200 components per station."""
    return run_random_facility(seed=7, count=200)
