"""Pre-generated exponential duration supplies for one replication."""

import math
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Iterable

from facility_sim.models import ComponentKind, ServiceRates, WorkstationId
from facility_sim.random_source import RandomSource
from facility_sim.timebase import Duration


def exponential_duration(u: float, rate: float) -> Duration:
    """Inverse-CDF transform of a uniform draw in [0, 1)."""
    return Duration.of_minutes(-math.log(1.0 - u) / rate)


def draw_durations(rng: RandomSource, rate: float, count: int) -> Deque[Duration]:
    return deque(exponential_duration(rng.float(), rate) for _ in range(count))


@dataclass
class FacilitySupply:
    """Duration queues consumed by the actors of one simulation run."""

    assembly: Dict[WorkstationId, Deque[Duration]] = field(default_factory=dict)
    inspection: Dict[ComponentKind, Deque[Duration]] = field(default_factory=dict)

    @classmethod
    def generate(
        cls, rng: RandomSource, rates: ServiceRates, count: int
    ) -> "FacilitySupply":
        """Draw ``count`` durations per station.

        Draw order is fixed (WS1, WS2, WS3, then C1, C2, C3) so that a seed
        reproduces the same supply.
        """
        assembly = {
            ws: draw_durations(rng, rates.assembly_rate(ws), count)
            for ws in WorkstationId
        }
        inspection = {
            kind: draw_durations(rng, rates.inspection_rate(kind), count)
            for kind in ComponentKind
        }
        return cls(assembly=assembly, inspection=inspection)

    @classmethod
    def from_minutes(
        cls,
        assembly: Dict[WorkstationId, Iterable[float]],
        inspection: Dict[ComponentKind, Iterable[float]],
    ) -> "FacilitySupply":
        """Build a supply from explicit minute values (missing stations get none)."""
        return cls(
            assembly={
                ws: deque(Duration.of_minutes(m) for m in assembly.get(ws, ()))
                for ws in WorkstationId
            },
            inspection={
                kind: deque(Duration.of_minutes(m) for m in inspection.get(kind, ()))
                for kind in ComponentKind
            },
        )
