"""Base class for actors driven by the facility event loop."""

from abc import ABC, abstractmethod
from typing import Optional

from facility_sim.events import FacilityEvent
from facility_sim.timebase import TimeStamp


class SimulationActor(ABC):
    """An actor either produces an event when its own time comes due, or
    reacts to an event broadcast by another actor.

    Handlers run to completion and return at most one derived event; they
    never call back into the event loop.
    """

    name: str  # Actor name for logging

    @abstractmethod
    def next_event_time(self, now: TimeStamp) -> Optional[TimeStamp]:
        """Absolute time of this actor's next scheduled completion, if any."""

    @abstractmethod
    def respond(self, now: TimeStamp) -> Optional[FacilityEvent]:
        """Handle this actor's own scheduled completion at ``now``."""

    @abstractmethod
    def respond_to(self, event: FacilityEvent) -> Optional[FacilityEvent]:
        """React to an event broadcast by the loop."""

    def __str__(self) -> str:
        return self.name
