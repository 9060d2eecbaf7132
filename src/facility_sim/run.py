"""Entry point for running estimations."""

import argparse
import logging
from pathlib import Path
from typing import Optional

from facility_sim.engine import SimulationEngine
from facility_sim.replication import EstimateResult
from facility_sim.statistics import BUFFERS, ReplicationStats, buffer_key

BUFFER_HEADERS = {
    buffer_key(ws, kind): f"{kind.value} of {ws.value}" for ws, kind in BUFFERS
}


def run_estimation(
    run_name: str = "baseline",
    config_dir: str = "config",
    save_to_db: bool = True,
    db_path: Optional[str] = None,
) -> EstimateResult:
    """Run a sequential estimation with the given run config name.

    Args:
        run_name: Name of the run config (without .yaml extension)
        config_dir: Path to config directory
        save_to_db: If True, save results to DuckDB database
        db_path: Custom path for DuckDB file

    Returns:
        EstimateResult with per-replication metrics and summary
    """
    engine = SimulationEngine(config_dir, save_to_db=save_to_db, db_path=db_path)
    estimate = engine.run(run_name)
    print_estimate(estimate)
    return estimate


def print_estimate(estimate: EstimateResult) -> None:
    """Report means and confidence half widths."""

    def line(label: str, metric: str, digits: int = 4) -> str:
        row = estimate.metric(metric)
        return f"{label:<24} {row['mean']:.{digits}f} +- {row['half_width']:.5f}"

    print(f"\n--- AVERAGES FOR {estimate.replication_count} REPLICATIONS ---")
    print("\nAverage occupancy for each buffer:")
    for key, header in BUFFER_HEADERS.items():
        print(line(header, f"occupancy_{key}", 2))

    print("\nWorkstation busy ratio:")
    for ws in ("ws1", "ws2", "ws3"):
        print(line(ws.upper(), f"busy_{ws}"))

    print("\nProduct throughput (per minute):")
    for product in ("p1", "p2", "p3"):
        print(line(product.upper(), f"throughput_{product}"))

    print("\nInspector blocked ratio:")
    print(line("Inspector1", "blocked_inspector1"))
    print(line("Inspector2", "blocked_inspector2"))

    print("\nWhole system:")
    print(line("Average occupancy", "system_occupancy"))
    print(line("Total throughput", "total_throughput", 5))


def print_replication(stats: ReplicationStats) -> None:
    """Report one replication, with Little's-law residuals."""
    print(
        f"\n--- REPLICATION WINDOW [{stats.window_start:.2f}, {stats.window_end:.2f}] ---"
    )
    print(f"{'Buffer':<12} {'L':>8} {'lambda':>10} {'W':>10} {'L - lambda W':>14}")
    for key, header in BUFFER_HEADERS.items():
        law = stats.buffers[key]
        print(
            f"{header:<12} {law.occupancy:>8.3f} {law.arrival_rate:>10.5f} "
            f"{law.wait_time:>10.2f} {law.residual:>14.6f}"
        )
    system = stats.system
    print(
        f"{'System':<12} {system.occupancy:>8.3f} {system.arrival_rate:>10.5f} "
        f"{system.wait_time:>10.2f} {system.residual:>14.6f}"
    )

    busy = ", ".join(f"{k.upper()} {v:.3f}" for k, v in stats.busy.items())
    throughput = ", ".join(
        f"{k.upper()} {v:.5f}" for k, v in stats.throughput.items()
    )
    blocked = ", ".join(f"{k} {v:.4f}" for k, v in stats.blocked.items())
    print(f"\nBusy ratio:       {busy}")
    print(f"Throughput:       {throughput}")
    print(f"Blocked ratio:    {blocked}")
    print(f"Total throughput: {stats.total_throughput:.5f}")


def _configure_logging(args: argparse.Namespace) -> None:
    level = logging.WARNING
    if getattr(args, "debug", False):
        level = logging.DEBUG
    elif getattr(args, "verbose", False):
        level = logging.INFO
    logging.basicConfig(
        level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


def _estimate_command(args: argparse.Namespace) -> None:
    """Handle 'estimate' subcommand."""
    save_to_db = not getattr(args, "no_db", False)
    db_path = getattr(args, "db_path", None)

    estimate = run_estimation(args.run, args.config, save_to_db, db_path)

    if args.export:
        output_dir = Path(args.export)
        output_dir.mkdir(parents=True, exist_ok=True)

        rep_path = output_dir / f"{args.run}_replications.csv"
        summary_path = output_dir / f"{args.run}_summary.csv"
        estimate.replications.to_csv(rep_path, index=False)
        estimate.summary.to_csv(summary_path, index=False)

        print(f"\nExported: {rep_path} ({len(estimate.replications)} rows)")
        print(f"Exported: {summary_path} ({len(estimate.summary)} rows)")


def _replicate_command(args: argparse.Namespace) -> None:
    """Handle 'replicate' subcommand."""
    engine = SimulationEngine(args.config, save_to_db=False)
    result, stats = engine.replicate(args.run, args.seed)
    counts = ", ".join(f"{ws.value} {n}" for ws, n in result.product_counts.items())
    print(f"Run {args.run} seed {args.seed}: elapsed {result.elapsed} min")
    print(f"Products: {counts}")
    print_replication(stats)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--run",
        default="baseline",
        help="Run config name (default: baseline)",
    )
    parser.add_argument(
        "--config",
        default="config",
        help="Config directory path (default: config)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log replication progress",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log every dispatch step (very verbose)",
    )


def main(argv: Optional[list] = None):
    """CLI entry point with subcommands."""
    parser = argparse.ArgumentParser(
        description="Manufacturing facility queueing simulation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  estimate    Run replications until the precision target is met
  replicate   Run and report a single replication

Examples:
  facility-sim estimate --run baseline
  facility-sim estimate --run most_loaded --no-db --export output
  facility-sim replicate --run baseline --seed 7
        """,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # === 'estimate' subcommand ===
    estimate_parser = subparsers.add_parser(
        "estimate",
        help="Run a sequential estimation",
        description="Run replications until every metric meets the precision target.",
    )
    _add_common_arguments(estimate_parser)
    estimate_parser.add_argument(
        "--no-db",
        action="store_true",
        help="Skip saving to DuckDB database",
    )
    estimate_parser.add_argument(
        "--db-path",
        default=None,
        help="Custom path for DuckDB file (default: ./facility_sim_results.duckdb)",
    )
    estimate_parser.add_argument(
        "--export",
        default=None,
        metavar="DIR",
        help="Export replication and summary CSV files to DIR",
    )
    estimate_parser.set_defaults(func=_estimate_command)

    # === 'replicate' subcommand ===
    replicate_parser = subparsers.add_parser(
        "replicate",
        help="Run a single replication",
        description="Run one replication with an explicit seed and report its metrics.",
    )
    _add_common_arguments(replicate_parser)
    replicate_parser.add_argument(
        "--seed",
        type=int,
        required=True,
        help="Random seed for the replication (required)",
    )
    replicate_parser.set_defaults(func=_replicate_command)

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return

    _configure_logging(args)
    args.func(args)


if __name__ == "__main__":
    main()
