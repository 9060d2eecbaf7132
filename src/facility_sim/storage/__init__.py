"""DuckDB storage module for estimation results.

Only estimation output is stored (run parameters, per-replication metrics and
their summary); simulation state is never persisted.

Example usage:
    from facility_sim.storage import save_results, connect

    # After an estimation
    run_id = save_results(resolved, estimate)

    # Query results
    conn = connect()
    df = conn.execute("SELECT * FROM v_run_comparison").df()
"""

from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import duckdb

if TYPE_CHECKING:
    from facility_sim.loader import ResolvedConfig
    from facility_sim.replication import EstimateResult

DEFAULT_DB_PATH = Path("./facility_sim_results.duckdb")


def save_results(
    resolved: "ResolvedConfig",
    estimate: "EstimateResult",
    db_path: Path | str | None = None,
    started_at: Optional[datetime] = None,
) -> int:
    """Save estimation results to DuckDB.

    Args:
        resolved: Resolved configuration used for the estimation
        estimate: Result of the replication controller
        db_path: Path to database file (default: ./facility_sim_results.duckdb)
        started_at: When the estimation started

    Returns:
        run_id of the stored estimation
    """
    from facility_sim.storage.writer import DuckDBWriter

    path = Path(db_path) if db_path else DEFAULT_DB_PATH
    writer = DuckDBWriter(path)
    try:
        return writer.store_run(resolved, estimate, started_at)
    finally:
        writer.close()


def get_db_path() -> Path:
    """Return the default database path."""
    return DEFAULT_DB_PATH


def connect(db_path: Path | str | None = None) -> duckdb.DuckDBPyConnection:
    """Get a DuckDB connection for queries.

    Args:
        db_path: Path to database file (default: ./facility_sim_results.duckdb)

    Returns:
        DuckDB connection
    """
    path = Path(db_path) if db_path else DEFAULT_DB_PATH
    return duckdb.connect(str(path))


__all__ = [
    "save_results",
    "get_db_path",
    "connect",
    "DEFAULT_DB_PATH",
]
