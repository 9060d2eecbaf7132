"""Output of one completed facility run."""

from dataclasses import dataclass, field
from typing import Any, Dict, List

import pandas as pd

from facility_sim.models import WorkstationId
from facility_sim.product import Product
from facility_sim.timebase import Duration, TimeStamp


@dataclass
class SimulationResult:
    """Logs and products of one replication.

    Attributes:
        elapsed: Simulated time from start until the last event
        end_time: Clock value when the run finished
        products: Assembled products per workstation, in assembly order
        inspection_starts: One record per inspection start (all inspectors)
        blocked_periods: One record per blocked interval (``end`` None if open)
        inspector_counts: Inspected/placed/held counters per inspector
        buffer_log: Buffer snapshots (timestamp, count per kind, running)
        dispatch_log: One record per broadcast event
    """

    elapsed: Duration
    end_time: TimeStamp
    products: Dict[WorkstationId, List[Product]]
    inspection_starts: List[Dict[str, Any]] = field(default_factory=list)
    blocked_periods: List[Dict[str, Any]] = field(default_factory=list)
    inspector_counts: Dict[str, Dict[str, int]] = field(default_factory=dict)
    buffer_log: List[Dict[str, Any]] = field(default_factory=list)
    dispatch_log: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def product_counts(self) -> Dict[WorkstationId, int]:
        return {ws: len(self.products.get(ws, [])) for ws in WorkstationId}

    def last_product_time(self) -> TimeStamp:
        """Earliest "last product" time across workstations.

        Beyond this point at least one workstation has stopped for good, so
        steady-state statistics stop here. Falls back to the run end when a
        workstation assembled nothing.
        """
        if any(not self.products.get(ws) for ws in WorkstationId):
            return self.end_time
        return min(self.products[ws][-1].timestamp for ws in WorkstationId)

    # --- DataFrame helpers ---

    def buffer_frame(self) -> pd.DataFrame:
        """Buffer snapshots, one row per workstation state change."""
        return pd.DataFrame(self.buffer_log)

    def blocked_frame(self) -> pd.DataFrame:
        """Blocked intervals; open intervals are closed at the run end."""
        df = pd.DataFrame(self.blocked_periods, columns=["inspector", "start", "end"])
        if not df.empty:
            df["end"] = df["end"].fillna(self.end_time.minutes).astype(float)
            df["duration"] = df["end"] - df["start"]
        else:
            df["duration"] = pd.Series(dtype=float)
        return df

    def inspection_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            self.inspection_starts, columns=["timestamp", "inspector", "kind"]
        )

    def product_frame(self) -> pd.DataFrame:
        """One row per product with its start time and time in system."""
        records = []
        for ws in WorkstationId:
            for product in self.products.get(ws, []):
                records.append(
                    {
                        "workstation": ws.value,
                        "product": product.kind.value,
                        "timestamp": product.timestamp.minutes,
                        "start_time": product.start_time.minutes,
                        "component_count": product.component_count,
                        "time_in_system": product.time_components_in_system().minutes,
                    }
                )
        return pd.DataFrame(
            records,
            columns=[
                "workstation",
                "product",
                "timestamp",
                "start_time",
                "component_count",
                "time_in_system",
            ],
        )

    def component_frame(self) -> pd.DataFrame:
        """One row per assembled component with its lifecycle timestamps."""
        records = []
        for ws in WorkstationId:
            for product in self.products.get(ws, []):
                for component in product.components:
                    records.append(
                        {
                            "workstation": ws.value,
                            "kind": component.kind.value,
                            "inspection_start": component.inspection_start.minutes,
                            "inspection_end": component.inspection_end.minutes,
                            "enqueue_time": component.enqueue_time.minutes,
                            "assembled_at": product.timestamp.minutes,
                        }
                    )
        return pd.DataFrame(
            records,
            columns=[
                "workstation",
                "kind",
                "inspection_start",
                "inspection_end",
                "enqueue_time",
                "assembled_at",
            ],
        )

    def dispatch_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            self.dispatch_log, columns=["timestamp", "source", "event", "workstation"]
        )
