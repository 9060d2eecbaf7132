"""Sequential replication controller.

Each replication builds a fresh facility from its own seed, runs it to
exhaustion and measures it. Replications continue until every convergence
metric is estimated to the configured absolute precision, or until the
replication limit is reached.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

import pandas as pd

from facility_sim.models import ReplicationSettings, ServiceRates, SimulationSettings
from facility_sim.random_source import RandomSource, make_random_source
from facility_sim.simulation import SimulationResult, build_facility
from facility_sim.statistics import (
    CONVERGENCE_METRICS,
    ReplicationStats,
    compute_replication_stats,
)
from facility_sim.supply import FacilitySupply

logger = logging.getLogger(__name__)

# Two-sided 95% Student t critical values by degrees of freedom
T_TABLE_975: Dict[int, float] = {
    1: 12.706,
    2: 4.303,
    3: 3.182,
    4: 2.776,
    5: 2.571,
    6: 2.447,
    7: 2.365,
    8: 2.306,
    9: 2.262,
    10: 2.228,
    11: 2.201,
    12: 2.179,
    13: 2.160,
    14: 2.145,
    15: 2.131,
    16: 2.120,
    17: 2.110,
    18: 2.101,
    19: 2.093,
    20: 2.086,
    21: 2.080,
    22: 2.074,
    23: 2.069,
    24: 2.064,
    25: 2.060,
    26: 2.056,
    27: 2.052,
    28: 2.048,
    29: 2.045,
    30: 2.042,
}

SUMMARY_COLUMNS = ["metric", "mean", "std", "half_width", "lower", "upper"]


def critical_value(n: int, z_value: float) -> float:
    """Student t for fewer than 31 replications, the normal z otherwise."""
    if n < 31 and (n - 1) in T_TABLE_975:
        return T_TABLE_975[n - 1]
    return z_value


def required_replications(std: float, z_value: float, precision: float) -> float:
    """Replications needed for a half width of ``precision``: (z·s/e)^2."""
    return (z_value * std / precision) ** 2


@dataclass
class EstimateResult:
    """Outcome of a sequential estimation.

    Attributes:
        replications: One row per replication with every metric
        summary: Mean, std and confidence interval per metric
        replication_count: Replications actually run
        converged: True if the stopping rule was met before the limit
    """

    replications: pd.DataFrame
    summary: pd.DataFrame
    replication_count: int
    converged: bool

    def metric(self, name: str) -> pd.Series:
        """Summary row for one metric."""
        rows = self.summary[self.summary["metric"] == name]
        if rows.empty:
            raise KeyError(f"Unknown metric: {name}")
        return rows.iloc[0]


class ReplicationController:
    """Runs replications until the stopping rule is satisfied."""

    def __init__(
        self,
        settings: SimulationSettings,
        replication: ReplicationSettings,
        rates: Optional[ServiceRates] = None,
        random_factory: Optional[Callable[[Optional[int]], RandomSource]] = None,
    ):
        self.settings = settings
        self.replication = replication
        self.rates = rates or ServiceRates()
        self.random_factory = random_factory or make_random_source(
            settings.random_generator
        )

    def seed_for(self, n: int) -> int:
        """Seed of the ``n``-th replication (1-based)."""
        return self.settings.base_seed + n

    def run_replication(self, n: int) -> Tuple[SimulationResult, ReplicationStats]:
        """Run and measure the ``n``-th replication."""
        return self.run_seed(self.seed_for(n))

    def run_seed(self, seed: int) -> Tuple[SimulationResult, ReplicationStats]:
        """Run and measure one replication from an explicit seed.

        The random source draws the assembly durations (WS1, WS2, WS3), then the
        inspection durations (C1, C2, C3), and then serves Inspector 2's choices.
        """
        rng = self.random_factory(seed)
        supply = FacilitySupply.generate(rng, self.rates, self.settings.component_count)
        layout = build_facility(supply, rng, self.settings.dispatch_policy)
        result = layout.run()
        return result, compute_replication_stats(result, self.settings.warmup_minutes)

    def should_stop(self, history: pd.DataFrame) -> bool:
        """Apply the sequential stopping rule to the replications so far."""
        r = len(history)
        if r <= self.replication.initial_replications:
            return False
        for metric in CONVERGENCE_METRICS:
            std = history[metric].std(ddof=1)
            needed = required_replications(
                std, self.replication.z_value, self.replication.precision
            )
            if needed > r:
                return False
        return True

    def estimate(
        self, progress: Optional[Callable[[int, ReplicationStats], None]] = None
    ) -> EstimateResult:
        """Run replications until convergence or the replication limit.

        Kernel errors are not caught: one invariant violation aborts the
        whole estimation.
        """
        records: List[Dict[str, float]] = []
        converged = False
        history = pd.DataFrame()

        for n in range(1, self.replication.max_replications + 1):
            _, stats = self.run_replication(n)
            record = {"replication": n, "seed": self.seed_for(n)}
            record.update(stats.as_record())
            records.append(record)
            logger.info(
                "Replication %d: total throughput %.5f", n, stats.total_throughput
            )
            if progress is not None:
                progress(n, stats)

            history = pd.DataFrame(records)
            if self.should_stop(history):
                converged = True
                logger.info("Converged on replication count (R) of %d", n)
                break
        else:
            logger.info(
                "Stopped at the replication limit (%d) without converging",
                self.replication.max_replications,
            )

        return EstimateResult(
            replications=history,
            summary=self.summarize(history),
            replication_count=len(history),
            converged=converged,
        )

    def summarize(self, history: pd.DataFrame) -> pd.DataFrame:
        """Mean and confidence interval for every metric column."""
        n = len(history)
        crit = critical_value(n, self.replication.z_value)
        rows = []
        for column in history.columns:
            if column in ("replication", "seed", "window_start", "window_end"):
                continue
            values = history[column].astype(float)
            mean = float(values.mean())
            std = float(values.std(ddof=1)) if n > 1 else math.nan
            half_width = crit * std / math.sqrt(n)
            rows.append(
                {
                    "metric": column,
                    "mean": mean,
                    "std": std,
                    "half_width": half_width,
                    "lower": mean - half_width,
                    "upper": mean + half_width,
                }
            )
        return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)
