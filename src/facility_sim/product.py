"""Assembled products."""

from dataclasses import dataclass
from typing import Sequence, Tuple

from facility_sim.component import Component
from facility_sim.errors import InvariantViolation
from facility_sim.models import PRODUCT_RECIPES, ComponentKind, ProductKind
from facility_sim.timebase import Duration, TimeStamp


@dataclass(frozen=True, eq=False)
class Product:
    """An assembled unit; immutable once built by a workstation."""

    kind: ProductKind
    components: Tuple[Component, ...]
    timestamp: TimeStamp

    @classmethod
    def assemble(
        cls, kind: ProductKind, components: Sequence[Component], timestamp: TimeStamp
    ) -> "Product":
        """Build a product, checking the recipe and that every part is finished."""
        kinds = tuple(c.kind for c in components)
        if kinds != PRODUCT_RECIPES[kind]:
            raise InvariantViolation(
                f"{kind.value} needs {[k.value for k in PRODUCT_RECIPES[kind]]}, "
                f"got {[k.value for k in kinds]}"
            )
        for component in components:
            if not component.is_finished:
                raise InvariantViolation(
                    f"{kind.value} assembled from unfinished {component}"
                )
        return cls(kind=kind, components=tuple(components), timestamp=timestamp)

    @property
    def component_count(self) -> int:
        return len(self.components)

    def component(self, kind: ComponentKind) -> Component:
        for component in self.components:
            if component.kind is kind:
                return component
        raise KeyError(f"{self.kind.value} has no {kind.value}")

    def wait_time(self, kind: ComponentKind) -> Duration:
        """Time the component of ``kind`` spent in its workstation buffer."""
        enqueued = self.component(kind).enqueue_time
        if enqueued is None:
            raise InvariantViolation(f"{kind.value} in {self.kind.value} was never enqueued")
        return self.timestamp - enqueued

    @property
    def start_time(self) -> TimeStamp:
        """Earliest inspection start among the constituent components."""
        return min(c.inspection_start for c in self.components)

    def time_components_in_system(self) -> Duration:
        """Summed time from inspection start to assembly over all components."""
        total = Duration.none()
        for component in self.components:
            total = total + (self.timestamp - component.inspection_start)
        return total
