"""Inspector actors: inspect components and place them into workstation buffers.

Inspector 1 produces C1 for all three workstations. Inspector 2 produces C2
for WS2 and C3 for WS3, choosing which kind to inspect next with a decision
rule that avoids inspecting a component it could not place.

An inspector is *blocked* (stalled) while it has no inspection in progress
but still has work it cannot do: a finished component waiting on a full
buffer, or supply left whose target buffers are all full.
"""

import logging
from abc import abstractmethod
from collections import deque
from typing import Any, Deque, Dict, Iterable, List, Mapping, Optional, Tuple

from facility_sim.actor import SimulationActor
from facility_sim.component import Component
from facility_sim.errors import InvariantViolation
from facility_sim.events import (
    STILL_BLOCKED,
    Assembled,
    FacilityEvent,
    PlacementOutcome,
    PlacementResult,
    SimulationStarted,
    WorkstationStarted,
)
from facility_sim.models import (
    ComponentKind,
    DispatchPolicy,
    InspectorRole,
    WorkstationId,
)
from facility_sim.product import Product
from facility_sim.random_source import RandomSource
from facility_sim.timebase import Duration, TimeStamp
from facility_sim.workstation import Workstation

logger = logging.getLogger(__name__)


class Inspector(SimulationActor):
    """Shared inspection, placement and blocking behaviour for both roles."""

    role: InspectorRole
    kinds: Tuple[ComponentKind, ...]

    def __init__(
        self,
        workstations: Mapping[WorkstationId, Workstation],
        durations: Mapping[ComponentKind, Iterable[Duration]],
    ):
        self.name = self.role.value
        self.workstations = workstations
        self.durations: Dict[ComponentKind, Deque[Duration]] = {
            kind: deque(durations.get(kind, ())) for kind in self.kinds
        }
        self.held: Dict[ComponentKind, Optional[Component]] = {
            kind: None for kind in self.kinds
        }
        self.active: Optional[Component] = None  # component under inspection
        self.blocked = False

        self.inspection_starts: List[Dict[str, Any]] = []
        self.blocked_periods: List[Dict[str, Any]] = []
        self.inspected = 0
        self.placed = 0

    # --- Role-specific policy ---

    @abstractmethod
    def decide_next_kind(self) -> Optional[ComponentKind]:
        """Kind to inspect next, or None when nothing can be started."""

    @abstractmethod
    def select_target(self, component: Component) -> Workstation:
        """Workstation a finished component is offered to."""

    # --- Queries ---

    @property
    def held_count(self) -> int:
        return sum(1 for c in self.held.values() if c is not None)

    def has_supply(self, kind: ComponentKind) -> bool:
        return bool(self.durations[kind])

    def waiting_components(self) -> List[Component]:
        """Finished components that have not been placed yet."""
        return [c for c in self.held.values() if c is not None and c.is_finished]

    def _has_pending_work(self) -> bool:
        return self.held_count > 0 or any(self.durations.values())

    # --- Inspection lifecycle ---

    def begin_next_inspection(self, now: TimeStamp) -> Optional[Component]:
        """Start inspecting the next component, if the role can start one."""
        if self.active is not None:
            raise InvariantViolation(
                f"{self.name} began an inspection while inspecting {self.active}"
            )
        kind = self.decide_next_kind()
        if kind is None:
            return None
        if self.held[kind] is not None:
            raise InvariantViolation(
                f"{self.name} chose {kind.value} while still holding one"
            )

        component = Component(kind=kind, duration=self.durations[kind].popleft())
        component.start_inspecting(now)
        self.held[kind] = component
        self.active = component
        self.inspected += 1
        self.inspection_starts.append(
            {"timestamp": now.minutes, "inspector": self.name, "kind": kind.value}
        )
        return component

    def finish_current_inspection(self, now: TimeStamp) -> Component:
        if self.active is None:
            raise InvariantViolation(f"{self.name} has no inspection to finish")
        component = self.active
        component.finish_inspecting(now)
        self.active = None
        return component

    def try_place_held_component(
        self, now: TimeStamp, kind: ComponentKind
    ) -> PlacementResult:
        """Offer the finished component of ``kind`` to its target workstation.

        On acceptance the held slot is cleared and, when idle, the next
        inspection begins. The result carries a ``WorkstationStarted`` event
        when the target was idle and can now assemble.
        """
        component = self.held[kind]
        if component is None or not component.is_finished:
            raise InvariantViolation(
                f"{self.name} has no finished {kind.value} to place"
            )

        target = self.select_target(component)
        result = target.enqueue(component, now)
        if not result.accepted:
            logger.debug(
                "%s: %s rejected by %s at %s", self.name, kind.value, target.name, now
            )
            if self.active is None:
                self._resume(now)
            return STILL_BLOCKED

        self.held[kind] = None
        self.placed += 1
        event: Optional[FacilityEvent] = None
        if result.needs_start:
            event = WorkstationStarted(timestamp=now, workstation=target.id)
        if self.active is None:
            self._resume(now)
        return PlacementResult(PlacementOutcome.PLACED, event)

    def on_downstream_freed(
        self, now: TimeStamp, product: Product
    ) -> Optional[FacilityEvent]:
        """Retry placement after a workstation consumed components."""
        freed = [c.kind for c in product.components if c.kind in self.kinds]
        for kind in freed:
            component = self.held[kind]
            if component is not None and component.is_finished:
                return self.try_place_held_component(now, kind).event
        if freed and self.blocked and self.held_count == 0:
            # stalled on full buffers, nothing held
            self._resume(now)
        return None

    def _resume(self, now: TimeStamp) -> None:
        if self.begin_next_inspection(now) is not None:
            self._unblock(now)
        elif self._has_pending_work():
            self._block(now)
        else:
            self._unblock(now)

    def _block(self, now: TimeStamp) -> None:
        if self.blocked:
            return
        self.blocked = True
        self.blocked_periods.append(
            {"inspector": self.name, "start": now.minutes, "end": None}
        )
        logger.debug("%s blocked at %s", self.name, now)

    def _unblock(self, now: TimeStamp) -> None:
        if not self.blocked:
            return
        self.blocked = False
        self.blocked_periods[-1]["end"] = now.minutes
        logger.debug("%s unblocked at %s", self.name, now)

    # --- SimulationActor ---

    def next_event_time(self, now: TimeStamp) -> Optional[TimeStamp]:
        if self.active is None:
            return None
        return self.active.finish_time

    def respond(self, now: TimeStamp) -> Optional[FacilityEvent]:
        if self.blocked:
            raise InvariantViolation(f"{self.name} dispatched while blocked")
        component = self.finish_current_inspection(now)
        return self.try_place_held_component(now, component.kind).event

    def respond_to(self, event: FacilityEvent) -> Optional[FacilityEvent]:
        if isinstance(event, SimulationStarted):
            if self.begin_next_inspection(event.timestamp) is None:
                raise InvariantViolation(f"{self.name} has nothing to inspect at start")
            return None
        if isinstance(event, Assembled):
            return self.on_downstream_freed(event.timestamp, event.product)
        return None

    def __str__(self) -> str:
        holding = ", ".join(
            f"{c.kind.value}({'in progress' if c.is_inspecting else 'waiting'})"
            for c in self.held.values()
            if c is not None
        )
        return f"{self.name} | blocked: {self.blocked} | holding: [{holding}]"


class InspectorOne(Inspector):
    """Inspects C1 and routes it to one of the three workstations."""

    role = InspectorRole.INSPECTOR1
    kinds = (ComponentKind.C1,)

    def __init__(
        self,
        workstations: Mapping[WorkstationId, Workstation],
        durations: Iterable[Duration],
        policy: DispatchPolicy = DispatchPolicy.LEAST_LOADED,
    ):
        super().__init__(workstations, {ComponentKind.C1: durations})
        self.policy = policy

    def decide_next_kind(self) -> Optional[ComponentKind]:
        kind = ComponentKind.C1
        if self.held[kind] is not None or not self.has_supply(kind):
            return None
        return kind

    def select_target(self, component: Component) -> Workstation:
        # Candidates in preference order; min/max keep the first on ties
        stations = [self.workstations[ws] for ws in WorkstationId]
        if self.policy is DispatchPolicy.LEAST_LOADED:
            return min(stations, key=lambda ws: ws.waiting(component.kind))
        if self.policy is DispatchPolicy.MOST_LOADED:
            open_stations = [ws for ws in stations if not ws.is_full(component.kind)]
            if not open_stations:
                return stations[0]
            return max(open_stations, key=lambda ws: ws.waiting(component.kind))
        raise ValueError(f"Unknown dispatch policy: {self.policy}")


class InspectorTwo(Inspector):
    """Inspects C2 for WS2 and C3 for WS3, one component at a time."""

    role = InspectorRole.INSPECTOR2
    kinds = (ComponentKind.C2, ComponentKind.C3)

    TARGETS = {
        ComponentKind.C2: WorkstationId.WS2,
        ComponentKind.C3: WorkstationId.WS3,
    }

    def __init__(
        self,
        workstations: Mapping[WorkstationId, Workstation],
        c2_durations: Iterable[Duration],
        c3_durations: Iterable[Duration],
        rng: RandomSource,
    ):
        super().__init__(
            workstations,
            {ComponentKind.C2: c2_durations, ComponentKind.C3: c3_durations},
        )
        self.rng = rng

    def select_target(self, component: Component) -> Workstation:
        return self.workstations[self.TARGETS[component.kind]]

    def target_full(self, kind: ComponentKind) -> bool:
        return self.workstations[self.TARGETS[kind]].is_full(kind)

    def decide_next_kind(self) -> Optional[ComponentKind]:
        """Pick C2 or C3.

        A kind whose held slot is occupied is never chosen. With supply for
        both kinds, a full target buffer steers the choice to the other kind;
        both full means no decision. Otherwise the choice is random.
        """
        c2, c3 = ComponentKind.C2, ComponentKind.C3
        candidates = [kind for kind in self.kinds if self.has_supply(kind)]
        if not candidates:
            return None
        if len(candidates) == 1:
            kind = candidates[0]
            return kind if self.held[kind] is None else None

        c2_full, c3_full = self.target_full(c2), self.target_full(c3)
        if c2_full and not c3_full and self.held[c3] is None:
            return c3
        if c3_full and not c2_full and self.held[c2] is None:
            return c2
        if c2_full and c3_full:
            return None

        free = [kind for kind in self.kinds if self.held[kind] is None]
        if not free:
            return None
        if len(free) == 1:
            return free[0]
        return c3 if self.rng.boolean() else c2
