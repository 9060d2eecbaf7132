"""Kinds, identifiers and pydantic parameter models for the facility."""

from enum import Enum
from typing import Dict, Tuple

from pydantic import BaseModel, Field, model_validator


class ComponentKind(str, Enum):
    """Component types produced by the inspectors."""

    C1 = "C1"
    C2 = "C2"
    C3 = "C3"


class ProductKind(str, Enum):
    """Product types assembled by the workstations."""

    P1 = "P1"  # C1
    P2 = "P2"  # C1 + C2
    P3 = "P3"  # C1 + C3


class WorkstationId(str, Enum):
    """The three workstations, in registration (and tie-break) order."""

    WS1 = "WS1"
    WS2 = "WS2"
    WS3 = "WS3"

    @property
    def recipe(self) -> Tuple[ComponentKind, ...]:
        """Component kinds consumed by one assembly, C1 first."""
        return RECIPES[self]

    @property
    def product_kind(self) -> ProductKind:
        return PRODUCT_KINDS[self]


class InspectorRole(str, Enum):
    """Inspector roles: Role 1 inspects C1, Role 2 inspects C2 and C3."""

    INSPECTOR1 = "Inspector1"
    INSPECTOR2 = "Inspector2"


class DispatchPolicy(str, Enum):
    """Workstation selection for Inspector 1's finished C1."""

    LEAST_LOADED = "least_loaded"
    MOST_LOADED = "most_loaded"


class RandomGenerator(str, Enum):
    """Random variate source used by each replication."""

    LCG = "lcg"
    MERSENNE = "mersenne"


RECIPES: Dict[WorkstationId, Tuple[ComponentKind, ...]] = {
    WorkstationId.WS1: (ComponentKind.C1,),
    WorkstationId.WS2: (ComponentKind.C1, ComponentKind.C2),
    WorkstationId.WS3: (ComponentKind.C1, ComponentKind.C3),
}

PRODUCT_KINDS: Dict[WorkstationId, ProductKind] = {
    WorkstationId.WS1: ProductKind.P1,
    WorkstationId.WS2: ProductKind.P2,
    WorkstationId.WS3: ProductKind.P3,
}

PRODUCT_RECIPES: Dict[ProductKind, Tuple[ComponentKind, ...]] = {
    PRODUCT_KINDS[ws]: recipe for ws, recipe in RECIPES.items()
}

# Buffer slots per component kind at every workstation
BUFFER_CAPACITY = 2


# --- Parameter models ---


class ServiceRates(BaseModel):
    """Exponential rate parameters (events per minute) for every station."""

    inspector1_c1: float = Field(0.097, gt=0)
    inspector2_c2: float = Field(0.064, gt=0)
    inspector2_c3: float = Field(0.048, gt=0)
    ws1: float = Field(0.217, gt=0)
    ws2: float = Field(0.090, gt=0)
    ws3: float = Field(0.114, gt=0)

    def inspection_rate(self, kind: ComponentKind) -> float:
        return {
            ComponentKind.C1: self.inspector1_c1,
            ComponentKind.C2: self.inspector2_c2,
            ComponentKind.C3: self.inspector2_c3,
        }[kind]

    def assembly_rate(self, workstation: WorkstationId) -> float:
        return {
            WorkstationId.WS1: self.ws1,
            WorkstationId.WS2: self.ws2,
            WorkstationId.WS3: self.ws3,
        }[workstation]


class SimulationSettings(BaseModel):
    """Per-replication kernel settings."""

    component_count: int = Field(3000, ge=1)  # durations per kind and workstation
    warmup_minutes: float = Field(600.0, ge=0)
    random_generator: RandomGenerator = RandomGenerator.LCG
    dispatch_policy: DispatchPolicy = DispatchPolicy.LEAST_LOADED
    base_seed: int = Field(0, ge=0)


class ReplicationSettings(BaseModel):
    """Sequential stopping rule parameters."""

    initial_replications: int = Field(10, ge=2)
    max_replications: int = Field(200, ge=2)
    precision: float = Field(0.02, gt=0)  # absolute CI half-width target
    z_value: float = Field(1.960, gt=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> "ReplicationSettings":
        if self.max_replications < self.initial_replications:
            raise ValueError(
                f"max_replications ({self.max_replications}) must be >= "
                f"initial_replications ({self.initial_replications})"
            )
        return self
