"""Facility events broadcast by the event loop, and actor call outcomes."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from facility_sim.models import WorkstationId
from facility_sim.product import Product
from facility_sim.timebase import TimeStamp


@dataclass(frozen=True)
class FacilityEvent:
    """Base class for events broadcast to every actor."""

    timestamp: TimeStamp

    @property
    def name(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class SimulationStarted(FacilityEvent):
    """Seeds every inspector with its first inspection."""


@dataclass(frozen=True)
class WorkstationStarted(FacilityEvent):
    """An idle workstation received the material it needs to assemble."""

    workstation: WorkstationId


@dataclass(frozen=True)
class Assembled(FacilityEvent):
    """A workstation finished a product, freeing one slot per consumed kind."""

    workstation: WorkstationId
    product: Product


class EnqueueOutcome(str, Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass(frozen=True)
class EnqueueResult:
    """Outcome of offering a component to a workstation buffer.

    ``was_running`` tells the caller whether the workstation already had an
    assembly in flight, so it can decide if a start notification is needed.
    """

    outcome: EnqueueOutcome
    workstation: WorkstationId
    was_running: bool = False
    can_assemble: bool = False

    @property
    def accepted(self) -> bool:
        return self.outcome is EnqueueOutcome.ACCEPTED

    @property
    def needs_start(self) -> bool:
        return self.accepted and not self.was_running and self.can_assemble


class PlacementOutcome(str, Enum):
    PLACED = "placed"
    STILL_BLOCKED = "still_blocked"


@dataclass(frozen=True)
class PlacementResult:
    """Outcome of an inspector trying to place its held component."""

    outcome: PlacementOutcome
    event: Optional[FacilityEvent] = None

    @property
    def placed(self) -> bool:
        return self.outcome is PlacementOutcome.PLACED


STILL_BLOCKED = PlacementResult(PlacementOutcome.STILL_BLOCKED)
