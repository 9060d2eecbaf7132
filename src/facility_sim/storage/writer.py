"""DuckDB writer for persisting estimation results."""

import hashlib
import json
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import duckdb
import pandas as pd

from facility_sim.storage.schema import create_tables

if TYPE_CHECKING:
    from facility_sim.loader import ResolvedConfig
    from facility_sim.replication import EstimateResult

__version__ = "0.1.0"


class DuckDBWriter:
    """Writes estimation results to DuckDB database."""

    def __init__(self, db_path: Path):
        """Initialize writer and ensure schema exists.

        Args:
            db_path: Path to DuckDB database file
        """
        self.db_path = db_path
        self.conn = duckdb.connect(str(db_path))
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        """Create tables if they don't exist."""
        create_tables(self.conn)

    def store_run(
        self,
        resolved: "ResolvedConfig",
        estimate: "EstimateResult",
        started_at: Optional[datetime] = None,
    ) -> int:
        """Store a complete estimation.

        Args:
            resolved: Resolved configuration used for the estimation
            estimate: Per-replication metrics and summary
            started_at: When the estimation started (default: now)

        Returns:
            run_id of the stored estimation
        """
        # 1. Insert estimation_runs record
        run_id = self._insert_estimation_run(resolved, estimate, started_at)

        # 2. Insert replication metrics (long format, bulk)
        self._insert_replication_metrics(run_id, estimate.replications)

        # 3. Insert summary
        self._insert_summary(run_id, estimate.summary)

        self.conn.execute(
            "UPDATE estimation_runs SET completed_at = ? WHERE run_id = ?",
            [datetime.now(), run_id],
        )
        return run_id

    def _insert_estimation_run(
        self,
        resolved: "ResolvedConfig",
        estimate: "EstimateResult",
        started_at: Optional[datetime],
    ) -> int:
        """Insert parent record and return run_id."""
        config_json = json.dumps(resolved.to_dict(), sort_keys=True)
        config_hash = hashlib.sha256(config_json.encode()).hexdigest()[:16]

        run_id = self.conn.execute(
            "SELECT nextval('seq_estimation_runs_id')"
        ).fetchone()[0]

        sim = resolved.simulation
        self.conn.execute(
            """
            INSERT INTO estimation_runs (
                run_id, run_name, config_hash, started_at,
                component_count, warmup_minutes, random_generator,
                dispatch_policy, base_seed, precision_target,
                replication_count, converged, config_snapshot,
                facility_sim_version
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                run_id,
                resolved.run.name,
                config_hash,
                started_at or datetime.now(),
                sim.component_count,
                sim.warmup_minutes,
                sim.random_generator.value,
                sim.dispatch_policy.value,
                sim.base_seed,
                resolved.replication.precision,
                estimate.replication_count,
                estimate.converged,
                config_json,
                __version__,
            ],
        )
        return run_id

    def _insert_replication_metrics(self, run_id: int, df: pd.DataFrame) -> None:
        """Melt the wide replication frame and bulk insert it."""
        if df.empty:
            return
        df_insert = df.melt(
            id_vars=["replication", "seed"], var_name="metric", value_name="value"
        )
        df_insert["run_id"] = run_id
        df_insert["value"] = df_insert["value"].astype(float)

        self.conn.register("replication_metrics_df", df_insert)
        self.conn.execute(
            """
            INSERT INTO replication_metrics (run_id, replication, seed, metric, value)
            SELECT run_id, replication, seed, metric, value
            FROM replication_metrics_df
            """
        )
        self.conn.unregister("replication_metrics_df")

    def _insert_summary(self, run_id: int, df: pd.DataFrame) -> None:
        """Insert the per-metric summary rows."""
        if df.empty:
            return
        df_insert = df.copy()
        df_insert["run_id"] = run_id

        self.conn.register("metric_summary_df", df_insert)
        self.conn.execute(
            """
            INSERT INTO metric_summary (
                run_id, metric, mean, std, half_width, lower, upper
            )
            SELECT run_id, metric, mean, std, half_width, lower, upper
            FROM metric_summary_df
            """
        )
        self.conn.unregister("metric_summary_df")

    def close(self) -> None:
        """Close the database connection."""
        self.conn.close()
