"""Facility layout: three workstations fed by two inspectors.

The layout owns the workstation registry. Inspectors reference workstations
through it, and every mutation happens inside a dispatch step of the
facility loop.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from facility_sim.actor import SimulationActor
from facility_sim.inspector import Inspector, InspectorOne, InspectorTwo
from facility_sim.models import ComponentKind, DispatchPolicy, WorkstationId
from facility_sim.random_source import RandomSource
from facility_sim.simulation.facility import FacilitySimulation
from facility_sim.simulation.result import SimulationResult
from facility_sim.supply import FacilitySupply
from facility_sim.timebase import Duration
from facility_sim.workstation import Workstation


@dataclass
class FacilityLayout:
    """Actors of one replication.

    Attributes:
        workstations: Registry of workstations by id
        inspector1: Role 1 inspector (C1)
        inspector2: Role 2 inspector (C2, C3)
    """

    workstations: Dict[WorkstationId, Workstation]
    inspector1: InspectorOne
    inspector2: InspectorTwo

    @property
    def inspectors(self) -> List[Inspector]:
        return [self.inspector1, self.inspector2]

    @property
    def actors(self) -> List[SimulationActor]:
        """Registration order: WS1, WS2, WS3, Inspector1, Inspector2."""
        return [self.workstations[ws] for ws in WorkstationId] + self.inspectors

    def run(self, logger: Optional[logging.Logger] = None) -> SimulationResult:
        """Run the facility to exhaustion and collect its logs."""
        simulation = FacilitySimulation(self.actors, logger=logger)
        elapsed = simulation.run()
        return self.collect(simulation, elapsed)

    def collect(
        self, simulation: FacilitySimulation, elapsed: Duration
    ) -> SimulationResult:
        buffer_log = []
        for ws in WorkstationId:
            buffer_log.extend(self.workstations[ws].buffer_log)

        return SimulationResult(
            elapsed=elapsed,
            end_time=simulation.now,
            products={ws: list(self.workstations[ws].products) for ws in WorkstationId},
            inspection_starts=[
                record for insp in self.inspectors for record in insp.inspection_starts
            ],
            blocked_periods=[
                dict(period)
                for insp in self.inspectors
                for period in insp.blocked_periods
            ],
            inspector_counts={
                insp.name: {
                    "inspected": insp.inspected,
                    "placed": insp.placed,
                    "held": insp.held_count,
                }
                for insp in self.inspectors
            },
            buffer_log=buffer_log,
            dispatch_log=list(simulation.dispatch_log),
        )


def build_facility(
    supply: FacilitySupply,
    rng: RandomSource,
    policy: DispatchPolicy = DispatchPolicy.LEAST_LOADED,
) -> FacilityLayout:
    """Create fresh actors wired to one duration supply.

    Args:
        supply: Pre-generated assembly and inspection durations
        rng: Random source for Inspector 2's kind choices
        policy: Inspector 1 dispatch policy

    Returns:
        FacilityLayout ready to run
    """
    workstations = {
        ws: Workstation(ws, supply.assembly.get(ws, ())) for ws in WorkstationId
    }
    inspector1 = InspectorOne(
        workstations,
        supply.inspection.get(ComponentKind.C1, ()),
        policy=policy,
    )
    inspector2 = InspectorTwo(
        workstations,
        supply.inspection.get(ComponentKind.C2, ()),
        supply.inspection.get(ComponentKind.C3, ()),
        rng=rng,
    )
    return FacilityLayout(
        workstations=workstations, inspector1=inspector1, inspector2=inspector2
    )
