"""Steady-state statistics for one replication.

All metrics are measured over the window ``[warmup, end]``, where ``end`` is
the earliest time at which a workstation assembled its last product. Buffer
and whole-system occupancies are checked against Little's law (L = λW).
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

import pandas as pd

from facility_sim.models import ComponentKind, InspectorRole, ProductKind, WorkstationId
from facility_sim.simulation.result import SimulationResult

# The five workstation buffers, in reporting order
BUFFERS: List[Tuple[WorkstationId, ComponentKind]] = [
    (WorkstationId.WS1, ComponentKind.C1),
    (WorkstationId.WS2, ComponentKind.C1),
    (WorkstationId.WS2, ComponentKind.C2),
    (WorkstationId.WS3, ComponentKind.C1),
    (WorkstationId.WS3, ComponentKind.C3),
]


def buffer_key(workstation: WorkstationId, kind: ComponentKind) -> str:
    return f"{workstation.value.lower()}_{kind.value.lower()}"


# Metrics driving the sequential stopping rule
CONVERGENCE_METRICS: List[str] = (
    [f"occupancy_{buffer_key(ws, kind)}" for ws, kind in BUFFERS]
    + [f"busy_{ws.value.lower()}" for ws in WorkstationId]
    + [f"throughput_{p.value.lower()}" for p in ProductKind]
    + [f"blocked_{role.value.lower()}" for role in InspectorRole]
    + ["system_occupancy"]
)


@dataclass
class LittlesLaw:
    """Occupancy, arrival rate and time in system for one queue."""

    occupancy: float
    arrival_rate: float
    wait_time: float

    @property
    def residual(self) -> float:
        """L - λW; close to zero when the window is long enough."""
        return self.occupancy - self.arrival_rate * self.wait_time


@dataclass
class ReplicationStats:
    """Metrics of one replication over its statistics window."""

    window_start: float
    window_end: float
    buffers: Dict[str, LittlesLaw] = field(default_factory=dict)
    busy: Dict[str, float] = field(default_factory=dict)
    throughput: Dict[str, float] = field(default_factory=dict)
    blocked: Dict[str, float] = field(default_factory=dict)
    system: LittlesLaw = field(default_factory=lambda: LittlesLaw(0.0, 0.0, 0.0))

    @property
    def total_throughput(self) -> float:
        return total_throughput(self.throughput)

    def metrics(self) -> Dict[str, float]:
        """The convergence metrics, keyed by ``CONVERGENCE_METRICS`` names."""
        values: Dict[str, float] = {}
        for key, law in self.buffers.items():
            values[f"occupancy_{key}"] = law.occupancy
        for name, value in self.busy.items():
            values[f"busy_{name}"] = value
        for name, value in self.throughput.items():
            values[f"throughput_{name}"] = value
        for name, value in self.blocked.items():
            values[f"blocked_{name}"] = value
        values["system_occupancy"] = self.system.occupancy
        return {name: values[name] for name in CONVERGENCE_METRICS}

    def as_record(self) -> Dict[str, float]:
        """Flat record with every metric, including Little's-law diagnostics."""
        record: Dict[str, float] = {
            "window_start": self.window_start,
            "window_end": self.window_end,
        }
        record.update(self.metrics())
        for key, law in self.buffers.items():
            record[f"arrival_rate_{key}"] = law.arrival_rate
            record[f"wait_{key}"] = law.wait_time
            record[f"residual_{key}"] = law.residual
        record["system_arrival_rate"] = self.system.arrival_rate
        record["system_wait"] = self.system.wait_time
        record["system_residual"] = self.system.residual
        record["total_throughput"] = self.total_throughput
        return record


def total_throughput(throughput: Dict[str, float]) -> float:
    """Components consumed per minute, in C1-equivalents: (P1 + 2·P2 + 2·P3) / 3."""
    return (
        throughput.get("p1", 0.0)
        + 2.0 * throughput.get("p2", 0.0)
        + 2.0 * throughput.get("p3", 0.0)
    ) / 3.0


def time_weighted_mean(
    frame: pd.DataFrame, column: str, start: float, end: float
) -> float:
    """Mean of a step function over ``[start, end]``.

    Each row's value holds from its timestamp until the next row's; the last
    value holds until ``end``. Rows must be in chronological order.
    """
    if end <= start:
        raise ValueError(f"Empty statistics window [{start}, {end}]")
    if frame.empty:
        return 0.0
    times = frame["timestamp"].astype(float)
    next_times = times.shift(-1).fillna(end)
    lo = times.clip(lower=start, upper=end)
    hi = next_times.clip(lower=start, upper=end)
    return float(((hi - lo) * frame[column].astype(float)).sum() / (end - start))


def buffer_littles_law(
    buffer_log: pd.DataFrame,
    components: pd.DataFrame,
    workstation: WorkstationId,
    kind: ComponentKind,
    start: float,
    end: float,
) -> LittlesLaw:
    """L, λ and W for one workstation buffer."""
    snapshots = buffer_log[buffer_log["workstation"] == workstation.value]
    counts = snapshots[kind.value].astype(int)
    occupancy = time_weighted_mean(snapshots, kind.value, start, end)

    # Every accepted component raises the count by one in its own snapshot
    arrived = (counts.diff() > 0) & snapshots["timestamp"].between(start, end)
    arrival_rate = float(arrived.sum()) / (end - start)

    mine = components[
        (components["workstation"] == workstation.value)
        & (components["kind"] == kind.value)
        & (components["enqueue_time"] >= start)
        & (components["assembled_at"] <= end)
    ]
    waits = mine["assembled_at"] - mine["enqueue_time"]
    wait_time = float(waits.mean()) if not waits.empty else 0.0
    return LittlesLaw(occupancy, arrival_rate, wait_time)


def busy_ratio(
    buffer_log: pd.DataFrame, workstation: WorkstationId, start: float, end: float
) -> float:
    """Fraction of the window with an assembly running."""
    snapshots = buffer_log[buffer_log["workstation"] == workstation.value]
    return time_weighted_mean(snapshots, "running", start, end)


def product_throughput(
    products: pd.DataFrame, workstation: WorkstationId, start: float, end: float
) -> float:
    """Products per minute assembled inside the window."""
    mine = products[
        (products["workstation"] == workstation.value)
        & (products["timestamp"] > start)
        & (products["timestamp"] <= end)
    ]
    return len(mine) / (end - start)


def blocked_ratio(
    blocked: pd.DataFrame, inspector: str, start: float, end: float
) -> float:
    """Fraction of the window the inspector spent stalled."""
    periods = blocked[blocked["inspector"] == inspector]
    if periods.empty:
        return 0.0
    lo = periods["start"].clip(lower=start, upper=end)
    hi = periods["end"].clip(lower=start, upper=end)
    return float((hi - lo).sum()) / (end - start)


def system_littles_law(
    inspections: pd.DataFrame, products: pd.DataFrame, start: float, end: float
) -> LittlesLaw:
    """Little's law for the whole facility.

    A component enters the system when its inspection starts and leaves when
    the product containing it is assembled.
    """
    changes = pd.concat(
        [
            pd.DataFrame({"timestamp": inspections["timestamp"], "delta": 1}),
            pd.DataFrame(
                {
                    "timestamp": products["timestamp"],
                    "delta": -products["component_count"],
                }
            ),
        ],
        ignore_index=True,
    )
    changes = changes.sort_values("timestamp", kind="stable").reset_index(drop=True)
    changes["occupants"] = changes["delta"].cumsum()
    occupancy = time_weighted_mean(changes, "occupants", start, end)

    arrivals = inspections["timestamp"].between(start, end).sum()
    arrival_rate = float(arrivals) / (end - start)

    finished = products[(products["start_time"] >= start) & (products["timestamp"] <= end)]
    component_count = finished["component_count"].sum()
    wait_time = (
        float(finished["time_in_system"].sum()) / component_count
        if component_count
        else 0.0
    )
    return LittlesLaw(occupancy, arrival_rate, wait_time)


def compute_replication_stats(
    result: SimulationResult, warmup_minutes: float
) -> ReplicationStats:
    """Measure one replication over ``[warmup, last product time]``.

    Raises:
        ValueError: If the run ended before the warmup period did
    """
    start = warmup_minutes
    end = result.last_product_time().minutes
    if end <= start:
        raise ValueError(
            f"Run ended at {end:.2f} min, before the {start:.2f} min warmup"
        )

    buffer_log = result.buffer_frame()
    components = result.component_frame()
    products = result.product_frame()
    blocked = result.blocked_frame()

    stats = ReplicationStats(window_start=start, window_end=end)
    for ws, kind in BUFFERS:
        stats.buffers[buffer_key(ws, kind)] = buffer_littles_law(
            buffer_log, components, ws, kind, start, end
        )
    for ws in WorkstationId:
        stats.busy[ws.value.lower()] = busy_ratio(buffer_log, ws, start, end)
        stats.throughput[ws.product_kind.value.lower()] = product_throughput(
            products, ws, start, end
        )
    for role in InspectorRole:
        stats.blocked[role.value.lower()] = blocked_ratio(
            blocked, role.value, start, end
        )
    stats.system = system_littles_law(result.inspection_frame(), products, start, end)
    return stats
