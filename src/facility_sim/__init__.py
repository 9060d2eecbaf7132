"""Discrete-event simulation of a two-inspector, three-workstation facility."""

import logging

from facility_sim.component import Component, ComponentState
from facility_sim.config import (
    ConfigLoader,
    DefaultsConfig,
    ReplicationSettings,
    ResolvedConfig,
    RunConfig,
    ServiceRates,
    SimulationSettings,
)
from facility_sim.engine import SimulationEngine
from facility_sim.errors import FacilityError, InvariantViolation, SupplyExhausted
from facility_sim.events import (
    Assembled,
    EnqueueOutcome,
    EnqueueResult,
    FacilityEvent,
    PlacementOutcome,
    PlacementResult,
    SimulationStarted,
    WorkstationStarted,
)
from facility_sim.inspector import Inspector, InspectorOne, InspectorTwo
from facility_sim.models import (
    ComponentKind,
    DispatchPolicy,
    InspectorRole,
    ProductKind,
    RandomGenerator,
    WorkstationId,
)
from facility_sim.product import Product
from facility_sim.random_source import (
    LcgRandom,
    MersenneRandom,
    RandomSource,
    make_random_source,
)
from facility_sim.replication import EstimateResult, ReplicationController
from facility_sim.run import run_estimation
from facility_sim.simulation import (
    FacilityLayout,
    FacilitySimulation,
    SimulationActor,
    SimulationResult,
    build_facility,
)
from facility_sim.statistics import ReplicationStats, compute_replication_stats
from facility_sim.storage import connect as db_connect
from facility_sim.storage import get_db_path, save_results
from facility_sim.supply import FacilitySupply
from facility_sim.timebase import Duration, TimeStamp
from facility_sim.workstation import Workstation

# Silent unless the application configures logging
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Time
    "Duration",
    "TimeStamp",
    # Models
    "ComponentKind",
    "ProductKind",
    "WorkstationId",
    "InspectorRole",
    "DispatchPolicy",
    "RandomGenerator",
    "ServiceRates",
    "SimulationSettings",
    "ReplicationSettings",
    # Entities
    "Component",
    "ComponentState",
    "Product",
    # Events
    "FacilityEvent",
    "SimulationStarted",
    "WorkstationStarted",
    "Assembled",
    "EnqueueOutcome",
    "EnqueueResult",
    "PlacementOutcome",
    "PlacementResult",
    # Errors
    "FacilityError",
    "InvariantViolation",
    "SupplyExhausted",
    # Actors
    "SimulationActor",
    "Workstation",
    "Inspector",
    "InspectorOne",
    "InspectorTwo",
    # Kernel
    "FacilitySupply",
    "FacilitySimulation",
    "FacilityLayout",
    "build_facility",
    "SimulationResult",
    # Random
    "RandomSource",
    "LcgRandom",
    "MersenneRandom",
    "make_random_source",
    # Statistics and replication
    "ReplicationStats",
    "compute_replication_stats",
    "ReplicationController",
    "EstimateResult",
    # Config
    "ConfigLoader",
    "DefaultsConfig",
    "RunConfig",
    "ResolvedConfig",
    # Engine
    "SimulationEngine",
    "run_estimation",
    # Storage
    "save_results",
    "get_db_path",
    "db_connect",
]
