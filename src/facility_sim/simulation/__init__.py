"""Facility event loop, layout builder and run results."""

from facility_sim.actor import SimulationActor
from facility_sim.simulation.facility import FacilitySimulation
from facility_sim.simulation.layout import FacilityLayout, build_facility
from facility_sim.simulation.result import SimulationResult

__all__ = [
    "SimulationActor",
    "FacilitySimulation",
    "FacilityLayout",
    "build_facility",
    "SimulationResult",
]
