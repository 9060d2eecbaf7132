"""Estimation engine: configuration, replications and storage."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Tuple

from facility_sim.loader import ConfigLoader, ResolvedConfig
from facility_sim.replication import EstimateResult, ReplicationController
from facility_sim.simulation import SimulationResult
from facility_sim.statistics import ReplicationStats

logger = logging.getLogger(__name__)


class SimulationEngine:
    """Runs facility estimations from resolved YAML configuration."""

    def __init__(
        self,
        config_dir: Path | str = "config",
        save_to_db: bool = True,
        db_path: Optional[Path | str] = None,
    ):
        """Initialize the simulation engine.

        Args:
            config_dir: Path to configuration directory
            save_to_db: If True, save results to DuckDB (default: True)
            db_path: Custom path for DuckDB file (default: ./facility_sim_results.duckdb)
        """
        self.loader = ConfigLoader(config_dir)
        self.save_to_db = save_to_db
        self.db_path = Path(db_path) if db_path else None
        self.last_run_id: Optional[int] = None

    def controller(self, resolved: ResolvedConfig) -> ReplicationController:
        return ReplicationController(
            resolved.simulation, resolved.replication, resolved.rates
        )

    def run(self, run_name: str) -> EstimateResult:
        """Run a sequential estimation by run config name."""
        resolved = self.loader.resolve_run(run_name)
        return self.run_resolved(resolved)

    def run_resolved(self, resolved: ResolvedConfig) -> EstimateResult:
        """Run a sequential estimation from a fully resolved configuration."""
        started_at = datetime.now()
        sim = resolved.simulation
        print(
            f"Starting Estimation: {resolved.run.name} "
            f"({sim.component_count} components per station, "
            f"{sim.dispatch_policy.value} dispatch)..."
        )

        estimate = self.controller(resolved).estimate(
            progress=lambda n, stats: print(f"{n} \t {stats.total_throughput:.6f}")
        )
        if estimate.converged:
            print(f"\nConverged on replication count (R) of {estimate.replication_count}")
        else:
            print(
                f"\nReplication limit reached ({estimate.replication_count}) "
                "without convergence"
            )

        if self.save_to_db:
            from facility_sim.storage import save_results

            self.last_run_id = save_results(
                resolved, estimate, self.db_path, started_at=started_at
            )
            print(f"Results saved to database (run_id: {self.last_run_id})")
        return estimate

    def replicate(
        self, run_name: str, seed: int
    ) -> Tuple[SimulationResult, ReplicationStats]:
        """Run a single replication of a run config with an explicit seed."""
        resolved = self.loader.resolve_run(run_name)
        logger.info("Single replication of %s with seed %d", run_name, seed)
        return self.controller(resolved).run_seed(seed)
