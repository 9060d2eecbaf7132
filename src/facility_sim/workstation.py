"""Workstation actor: two-slot buffers per component kind and one assembly job."""

import logging
from collections import deque
from typing import Any, Dict, Iterable, List, Optional, Tuple

from facility_sim.actor import SimulationActor
from facility_sim.component import Component
from facility_sim.errors import InvariantViolation, SupplyExhausted
from facility_sim.events import (
    Assembled,
    EnqueueOutcome,
    EnqueueResult,
    FacilityEvent,
    WorkstationStarted,
)
from facility_sim.models import BUFFER_CAPACITY, ComponentKind, WorkstationId
from facility_sim.product import Product
from facility_sim.timebase import Duration, TimeStamp

logger = logging.getLogger(__name__)

Slots = List[Optional[Component]]


class Workstation(SimulationActor):
    """Assembles one product from one component of each kind in its recipe.

    States are Idle (no job) and Running (exactly one job). A job starts when
    an inspector's placement triggers a ``WorkstationStarted`` notification,
    or immediately after the previous job if material is still waiting.
    """

    def __init__(
        self,
        workstation_id: WorkstationId,
        assembly_durations: Iterable[Duration],
    ):
        self.id = workstation_id
        self.name = workstation_id.value
        self.recipe: Tuple[ComponentKind, ...] = workstation_id.recipe
        self.buffers: Dict[ComponentKind, Slots] = {
            kind: [None] * BUFFER_CAPACITY for kind in self.recipe
        }
        self.assembly_durations = deque(assembly_durations)
        self.current_job: Optional[Tuple[TimeStamp, Duration]] = None  # (start, duration)

        self.products: List[Product] = []
        self.buffer_log: List[Dict[str, Any]] = []
        self._snapshot(TimeStamp.start())

    # --- Buffer queries ---

    def accepts(self, kind: ComponentKind) -> bool:
        return kind in self.buffers

    def waiting(self, kind: ComponentKind) -> int:
        """Number of components of ``kind`` currently in the buffer."""
        return sum(1 for slot in self._slots(kind) if slot is not None)

    def is_full(self, kind: ComponentKind) -> bool:
        return self.waiting(kind) == BUFFER_CAPACITY

    @property
    def is_running(self) -> bool:
        return self.current_job is not None

    def can_assemble(self) -> bool:
        """True iff every required kind has at least one occupied slot."""
        return all(self.waiting(kind) > 0 for kind in self.recipe)

    def _slots(self, kind: ComponentKind) -> Slots:
        if kind not in self.buffers:
            raise InvariantViolation(f"{self.name} has no buffer for {kind.value}")
        return self.buffers[kind]

    # --- Mutations ---

    def enqueue(self, component: Component, now: TimeStamp) -> EnqueueResult:
        """Offer a finished component to its buffer.

        Rejected iff the second slot is occupied. On acceptance the component
        takes the first free slot.
        """
        slots = self._slots(component.kind)
        if not component.is_finished:
            raise InvariantViolation(
                f"{component} offered to {self.name} before inspection finished"
            )
        if slots[1] is not None:
            return EnqueueResult(
                EnqueueOutcome.REJECTED, self.id, was_running=self.is_running
            )

        component.mark_enqueued(now)
        slots[0 if slots[0] is None else 1] = component
        self._snapshot(now)
        return EnqueueResult(
            EnqueueOutcome.ACCEPTED,
            self.id,
            was_running=self.is_running,
            can_assemble=self.can_assemble(),
        )

    def start_assembly(self, now: TimeStamp) -> None:
        if self.is_running:
            raise InvariantViolation(f"{self.name} started while already assembling")
        if not self.can_assemble():
            raise InvariantViolation(f"{self.name} started without enough material")
        if not self.assembly_durations:
            raise SupplyExhausted(f"{self.name} has no assembly durations left")

        duration = self.assembly_durations.popleft()
        self.current_job = (now, duration)
        self._snapshot(now)
        logger.debug("%s starts assembly at %s for %s", self.name, now, duration)

    def on_timer_fires(self, now: TimeStamp) -> Assembled:
        """Complete the running job, restart if possible, and report the product."""
        if self.current_job is None:
            raise InvariantViolation(f"{self.name} timer fired while idle")
        start, duration = self.current_job
        if not (start + duration).matches(now):
            raise InvariantViolation(
                f"{self.name} timer fired at {now}, job was due at {start + duration}"
            )

        components = [self._take(kind) for kind in self.recipe]
        product = Product.assemble(self.id.product_kind, components, now)
        self.products.append(product)
        self.current_job = None
        self._snapshot(now)

        if self.can_assemble():
            self.start_assembly(now)
        return Assembled(timestamp=now, workstation=self.id, product=product)

    def _take(self, kind: ComponentKind) -> Component:
        # The slot filled second is consumed first
        slots = self._slots(kind)
        for index in (1, 0):
            component = slots[index]
            if component is not None:
                slots[index] = None
                return component
        raise InvariantViolation(f"{self.name} has no {kind.value} to assemble")

    def _snapshot(self, now: TimeStamp) -> None:
        record: Dict[str, Any] = {"timestamp": now.minutes, "workstation": self.name}
        for kind in self.recipe:
            record[kind.value] = self.waiting(kind)
        record["running"] = self.is_running
        self.buffer_log.append(record)

    # --- SimulationActor ---

    def next_event_time(self, now: TimeStamp) -> Optional[TimeStamp]:
        if self.current_job is None:
            return None
        start, duration = self.current_job
        return start + duration

    def respond(self, now: TimeStamp) -> Optional[FacilityEvent]:
        return self.on_timer_fires(now)

    def respond_to(self, event: FacilityEvent) -> Optional[FacilityEvent]:
        if isinstance(event, WorkstationStarted) and event.workstation is self.id:
            if self.is_running or not self.can_assemble():
                # Another placement in this instant already started the job
                logger.debug("%s ignores start notification at %s", self.name, event.timestamp)
                return None
            self.start_assembly(event.timestamp)
        return None

    def __str__(self) -> str:
        buffers = ", ".join(
            f"{kind.value}:{self.waiting(kind)}" for kind in self.recipe
        )
        return f"{self.name} | running: {self.is_running} | {buffers}"
