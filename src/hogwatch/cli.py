"""Command-line entry point for hogwatch."""

import argparse
import logging
import sys
from queue import Queue

from hogwatch.config import MonitorConfig
from hogwatch.models import Alert, CycleResult
from hogwatch.monitor import ResourceMonitor
from hogwatch.telemetry import PsutilTelemetry

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hogwatch",
        description="Report the processes to blame when host CPU or memory runs hot.",
    )
    parser.add_argument(
        "--cpu", type=float, default=90.0, help="CPU alert threshold in %% per core (default 90)"
    )
    parser.add_argument(
        "--mem", type=float, default=90.0, help="Host memory alert threshold in %% (default 90)"
    )
    parser.add_argument(
        "--interval", type=int, default=50, help="Polling interval in milliseconds (default 50)"
    )
    parser.add_argument(
        "--record",
        type=float,
        default=5.0,
        help="Record processes above this CPU %% per core (default 5)",
    )
    parser.add_argument(
        "--mem-limit",
        type=float,
        default=10.0,
        help="Record processes above this %% of host memory (default 10)",
    )
    parser.add_argument(
        "--blame-cpu",
        type=float,
        default=0.5,
        help="Blame processes above this fraction of total CPU capacity (default 0.5)",
    )
    parser.add_argument(
        "--blame-mem",
        type=float,
        default=0.2,
        help="Blame processes also above this fraction of host memory (default 0.2)",
    )
    parser.add_argument("--top", type=int, default=20, help="Processes per report (default 20)")
    parser.add_argument(
        "--evict-after",
        type=float,
        default=None,
        help="Forget idle processes not seen for this many seconds (default: never)",
    )
    parser.add_argument(
        "--evict-floor",
        type=float,
        default=0.01,
        help="Only forget processes whose estimates fell below this fraction (default 0.01)",
    )
    parser.add_argument("--tui", action="store_true", help="Show a live dashboard")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level for stderr (default WARNING)",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> MonitorConfig:
    """Build a MonitorConfig from parsed arguments."""
    return MonitorConfig(
        cpu_threshold=args.cpu,
        mem_threshold=args.mem,
        record_threshold=args.record,
        memory_limit=args.mem_limit,
        blame_cpu=args.blame_cpu,
        blame_mem=args.blame_mem,
        top=args.top,
        interval_ms=args.interval,
        evict_after=args.evict_after,
        evict_floor=args.evict_floor,
    )


def print_alert(alert: Alert) -> None:
    """Write an alert report to stdout."""
    for line in alert.format_lines():
        print(line)
    sys.stdout.flush()


def main(argv: list[str] | None = None) -> int:
    """Entry point for the hogwatch command."""
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = config_from_args(args)
    except ValueError as exc:
        parser.error(str(exc))

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    source = PsutilTelemetry()
    try:
        source.prime()
    except KeyboardInterrupt:
        return 0

    if args.tui:
        from hogwatch.app import HogwatchApp

        updates: Queue[CycleResult] = Queue()
        monitor = ResourceMonitor(source, config, on_cycle=updates.put)
        app = HogwatchApp(monitor, updates)
        app.run()
        return app.return_code or 0

    monitor = ResourceMonitor(source, config, on_alert=print_alert)
    logger.info(
        "Monitoring %d cores: alert above %.1f%%, recording above %.1f%% CPU or %.1f%% memory",
        monitor.core_count,
        config.cpu_threshold * monitor.core_count,
        config.record_threshold * monitor.core_count,
        config.memory_limit,
    )
    try:
        monitor.run()
    except KeyboardInterrupt:
        return 0
    except Exception:
        logger.critical("Telemetry acquisition failed", exc_info=True)
        raise
    return 0


if __name__ == "__main__":
    sys.exit(main())
