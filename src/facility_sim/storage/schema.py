"""DuckDB schema definitions for estimation results storage."""

SCHEMA_DDL = """
-- 1. ESTIMATION_RUNS: Parent record for each sequential estimation
CREATE TABLE IF NOT EXISTS estimation_runs (
    run_id INTEGER PRIMARY KEY,
    run_name VARCHAR NOT NULL,
    config_hash VARCHAR NOT NULL,
    started_at TIMESTAMP NOT NULL,
    completed_at TIMESTAMP,
    component_count INTEGER NOT NULL,
    warmup_minutes DOUBLE NOT NULL,
    random_generator VARCHAR NOT NULL,
    dispatch_policy VARCHAR NOT NULL,
    base_seed INTEGER NOT NULL,
    precision_target DOUBLE NOT NULL,
    replication_count INTEGER NOT NULL,
    converged BOOLEAN NOT NULL,
    -- Config snapshot (JSON blob)
    config_snapshot JSON NOT NULL,
    facility_sim_version VARCHAR,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- 2. REPLICATION_METRICS: One row per (replication, metric)
CREATE TABLE IF NOT EXISTS replication_metrics (
    run_id INTEGER NOT NULL REFERENCES estimation_runs(run_id),
    replication INTEGER NOT NULL,
    seed INTEGER NOT NULL,
    metric VARCHAR NOT NULL,
    value DOUBLE,
    PRIMARY KEY (run_id, replication, metric)
);

-- 3. METRIC_SUMMARY: Point estimate and confidence interval per metric
CREATE TABLE IF NOT EXISTS metric_summary (
    run_id INTEGER NOT NULL REFERENCES estimation_runs(run_id),
    metric VARCHAR NOT NULL,
    mean DOUBLE,
    std DOUBLE,
    half_width DOUBLE,
    lower DOUBLE,
    upper DOUBLE,
    PRIMARY KEY (run_id, metric)
);

-- Sequences for auto-increment IDs
CREATE SEQUENCE IF NOT EXISTS seq_estimation_runs_id START 1;
"""

INDEX_DDL = """
-- Indexes for query performance
CREATE INDEX IF NOT EXISTS idx_runs_started_at ON estimation_runs(started_at);
CREATE INDEX IF NOT EXISTS idx_runs_name ON estimation_runs(run_name);
CREATE INDEX IF NOT EXISTS idx_replication_metrics_metric ON replication_metrics(run_id, metric);
"""

VIEW_DDL = """
-- Run comparison view (headline metrics side by side)
CREATE OR REPLACE VIEW v_run_comparison AS
SELECT r.run_id, r.run_name, r.dispatch_policy, r.started_at,
       r.replication_count, r.converged,
       MAX(CASE WHEN s.metric = 'total_throughput' THEN s.mean END) AS total_throughput,
       MAX(CASE WHEN s.metric = 'system_occupancy' THEN s.mean END) AS system_occupancy,
       MAX(CASE WHEN s.metric = 'blocked_inspector1' THEN s.mean END) AS blocked_inspector1,
       MAX(CASE WHEN s.metric = 'blocked_inspector2' THEN s.mean END) AS blocked_inspector2
FROM estimation_runs r
JOIN metric_summary s ON r.run_id = s.run_id
GROUP BY r.run_id, r.run_name, r.dispatch_policy, r.started_at,
         r.replication_count, r.converged;
"""


def create_tables(conn) -> None:
    """Create all tables, indexes, and views in the database.

    Args:
        conn: DuckDB connection
    """
    conn.execute(SCHEMA_DDL)
    conn.execute(INDEX_DDL)
    conn.execute(VIEW_DDL)
