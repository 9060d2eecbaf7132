"""Time-ordered dispatch loop over the facility actors.

The loop runs as a SimPy process. Each step picks the actor with the
earliest pending completion, advances the clock to that time, lets the
actor respond, and broadcasts the resulting event to every actor. Events
derived from a broadcast are queued and broadcast in order within the same
instant; handlers never re-enter the loop.
"""

import logging
from collections import deque
from typing import Any, Deque, Dict, Generator, List, Optional, Sequence, Tuple

import simpy

from facility_sim.actor import SimulationActor
from facility_sim.errors import FacilityError, InvariantViolation
from facility_sim.events import FacilityEvent, SimulationStarted
from facility_sim.timebase import Duration, TimeStamp

LOOP_SOURCE = "facility"


class FacilitySimulation:
    """Synchronous scheduler for a fixed set of actors.

    Actor order is registration order; it breaks ties between actors whose
    next completions fall on the same instant.
    """

    def __init__(
        self,
        actors: Sequence[SimulationActor],
        logger: Optional[logging.Logger] = None,
    ):
        self.actors: List[SimulationActor] = list(actors)
        self.logger = logger or logging.getLogger(__name__)
        self.env = simpy.Environment()
        self.start = TimeStamp.start()
        self.now = self.start
        self.steps = 0
        self.dispatch_log: List[Dict[str, Any]] = []
        self._ran = False

    def run(self) -> Duration:
        """Run until no actor has a pending completion; return elapsed time."""
        if self._ran:
            raise FacilityError("a facility simulation can only be run once")
        self._ran = True
        self.env.process(self._dispatch_loop())
        self.env.run()
        self.logger.debug(
            "Run finished at %s after %d steps", self.now, self.steps
        )
        return self.now - self.start

    def next_actor(self) -> Tuple[Optional[SimulationActor], Optional[TimeStamp]]:
        """Actor with the strictly earliest completion (first registered on ties)."""
        best: Optional[SimulationActor] = None
        best_time: Optional[TimeStamp] = None
        for actor in self.actors:
            when = actor.next_event_time(self.now)
            if when is None:
                continue
            if best_time is None or (when < best_time and not when.matches(best_time)):
                best, best_time = actor, when
        return best, best_time

    def _dispatch_loop(self) -> Generator[simpy.Event, Any, None]:
        self.broadcast(SimulationStarted(timestamp=self.now), LOOP_SOURCE)
        while True:
            actor, when = self.next_actor()
            if actor is None or when is None:
                break
            if when < self.now and not when.matches(self.now):
                raise InvariantViolation(
                    f"{actor.name} scheduled at {when}, before the clock ({self.now})"
                )

            yield self.env.timeout(max(when.minutes - self.env.now, 0.0))
            self.now = when
            self.steps += 1

            event = actor.respond(when)
            self.logger.debug(
                "t=%s %s responds -> %s",
                when,
                actor.name,
                event.name if event is not None else "-",
            )
            if event is not None:
                self.broadcast(event, actor.name)

    def broadcast(self, event: FacilityEvent, source: str) -> None:
        """Deliver ``event`` to every actor, then any events they derive."""
        pending: Deque[Tuple[str, FacilityEvent]] = deque([(source, event)])
        while pending:
            origin, current = pending.popleft()
            self._record(origin, current)
            for actor in self.actors:
                derived = actor.respond_to(current)
                if derived is not None:
                    pending.append((actor.name, derived))

    def _record(self, source: str, event: FacilityEvent) -> None:
        workstation = getattr(event, "workstation", None)
        self.dispatch_log.append(
            {
                "timestamp": event.timestamp.minutes,
                "source": source,
                "event": event.name,
                "workstation": workstation.value if workstation is not None else None,
            }
        )
