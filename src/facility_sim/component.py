"""Components and their inspection lifecycle."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from facility_sim.errors import InvariantViolation
from facility_sim.models import ComponentKind
from facility_sim.timebase import Duration, TimeStamp


class ComponentState(str, Enum):
    """Lifecycle: UNSTARTED -> INSPECTING -> FINISHED -> ENQUEUED."""

    UNSTARTED = "unstarted"
    INSPECTING = "inspecting"
    FINISHED = "finished"
    ENQUEUED = "enqueued"


_ALLOWED_TRANSITIONS = {
    ComponentState.UNSTARTED: ComponentState.INSPECTING,
    ComponentState.INSPECTING: ComponentState.FINISHED,
    ComponentState.FINISHED: ComponentState.ENQUEUED,
}


@dataclass(eq=False)
class Component:
    """A unit of work with a fixed inspection duration.

    Created by an inspector when inspection begins, stamped when inspection
    ends, stamped again when a workstation buffer accepts it, and then
    consumed unchanged by assembly.
    """

    kind: ComponentKind
    duration: Duration
    state: ComponentState = ComponentState.UNSTARTED
    inspection_start: Optional[TimeStamp] = None
    inspection_end: Optional[TimeStamp] = None
    enqueue_time: Optional[TimeStamp] = field(default=None)

    def _advance(self, target: ComponentState) -> None:
        if _ALLOWED_TRANSITIONS.get(self.state) != target:
            raise InvariantViolation(
                f"{self.kind.value}: illegal transition {self.state.value} -> {target.value}"
            )
        self.state = target

    def start_inspecting(self, now: TimeStamp) -> None:
        self._advance(ComponentState.INSPECTING)
        self.inspection_start = now

    def finish_inspecting(self, now: TimeStamp) -> None:
        """Stamp the inspection end; ``now`` must equal start + duration."""
        self._advance(ComponentState.FINISHED)
        if self.inspection_start is None:
            raise InvariantViolation(f"{self.kind.value} finished without a start time")
        expected = self.inspection_start + self.duration
        if not expected.matches(now):
            raise InvariantViolation(
                f"{self.kind.value} finished at {now} but was due at {expected}"
            )
        self.inspection_end = now

    def mark_enqueued(self, now: TimeStamp) -> None:
        if self.state is not ComponentState.FINISHED:
            raise InvariantViolation(
                f"{self.kind.value} enqueued before finishing inspection "
                f"(state: {self.state.value})"
            )
        self._advance(ComponentState.ENQUEUED)
        self.enqueue_time = now

    @property
    def is_finished(self) -> bool:
        """True once inspection has ended (whether or not it is enqueued)."""
        return self.state in (ComponentState.FINISHED, ComponentState.ENQUEUED)

    @property
    def is_inspecting(self) -> bool:
        return self.state is ComponentState.INSPECTING

    @property
    def finish_time(self) -> Optional[TimeStamp]:
        """Scheduled inspection end, if inspection has started."""
        if self.inspection_start is None:
            return None
        return self.inspection_start + self.duration

    def __str__(self) -> str:
        return f"{self.kind.value}({self.state.value})"
