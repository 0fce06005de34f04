#!/usr/bin/env python3
"""Wind monitor command line entry point."""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

from wind_monitor.app_container import build_controller
from wind_monitor.controller.wind_data_controller import WindDataController
from wind_monitor.domain.models import RefreshResult
from wind_monitor.exporter.csv_exporter import write_history_csv
from wind_monitor.logger.app_logger import get_logger, setup_logging
from wind_monitor.service.scheduler import RefreshScheduler
from wind_monitor.utils.config_loader import Settings, get_settings, load_config
from wind_monitor.version import get_full_title

logger = get_logger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    """Configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog="wind-monitor",
        description="Scrape wind24.it observations into a rolling per-owner history",
    )
    parser.add_argument("--config", help="path to config.yml")
    parser.add_argument("--version", action="version", version=get_full_title())

    sub = parser.add_subparsers(dest="command", required=True)

    refresh = sub.add_parser("refresh", help="run the pipeline once")
    refresh.add_argument("--owner", required=True, help="owner id")

    watch = sub.add_parser("watch", help="refresh on a fixed interval until interrupted")
    watch.add_argument("--owner", action="append", required=True, help="owner id (repeatable)")
    watch.add_argument("--interval", type=float, help="seconds between refreshes")

    show = sub.add_parser("show", help="print the retained history")
    show.add_argument("--owner", required=True, help="owner id")
    show.add_argument("--limit", type=int, default=15, help="rows to print")

    export = sub.add_parser("export", help="write the retained history as CSV")
    export.add_argument("--owner", required=True, help="owner id")
    export.add_argument("--output-dir", help="target directory (defaults to output.csv_dir)")

    serve = sub.add_parser("serve", help="run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--watch", action="append", default=[], metavar="OWNER",
                       help="owner refreshed in the background (repeatable)")
    return parser


def _print_result(result: RefreshResult) -> None:
    status = result.status
    if result.skipped:
        print(f"[{result.owner_id}] refresh already in progress")
        return
    state = "connected" if status.connected else "disconnected"
    source = status.data_source.value if status.data_source else "-"
    print(f"[{result.owner_id}] {state}, source={source}, new={status.new_records}, "
          f"retained={len(result.history)}: {status.message}")
    if not status.persisted:
        print(f"[{result.owner_id}] warning: history could not be saved", file=sys.stderr)


def _print_history(controller: WindDataController, owner_id: str, limit: int) -> None:
    records = controller.get_history(owner_id)
    if not records:
        print(f"No data for {owner_id}")
        return
    print(f"{'Date':<10} {'Time':<5} {'Min':>4} {'Avg':>4} {'Gust':>4} {'Dir':<4} {'Deg':>4} {'°C':>4}")
    for record in records[:limit]:
        print(
            f"{record.date:<10} {record.time:<5} {record.min_speed_knots:>4} {record.avg_speed_knots:>4} "
            f"{record.gust_speed_knots:>4} {record.direction:<4} {record.degrees:>4} {record.temperature_celsius:>4}"
        )


def _run_watch(controller: WindDataController, owners: Sequence[str], interval: float) -> int:
    scheduler = RefreshScheduler(controller.refresh, owners, interval, on_result=_print_result)
    scheduler.start()
    try:
        scheduler.wait()
    except KeyboardInterrupt:
        print("stopping...")
    finally:
        scheduler.stop(timeout=5)
    return 0


def _run_serve(controller: WindDataController, settings: Settings, args) -> int:
    import uvicorn

    from wind_monitor.api.app import create_app

    app = create_app(
        controller,
        watch_owners=args.watch,
        refresh_interval_seconds=settings.refresh_interval_seconds,
    )
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


def run(argv: Optional[Sequence[str]] = None) -> int:
    """CLI body; returns the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.config:
        setup_logging(args.config)
    settings = get_settings(load_config(args.config))
    controller = build_controller(settings)

    if args.command == "refresh":
        _print_result(controller.refresh(args.owner))
        return 0
    if args.command == "watch":
        return _run_watch(controller, args.owner, args.interval or settings.refresh_interval_seconds)
    if args.command == "show":
        _print_history(controller, args.owner, args.limit)
        return 0
    if args.command == "export":
        records = controller.get_history(args.owner)
        if not records:
            print(f"No data to export for {args.owner}", file=sys.stderr)
            return 1
        path = write_history_csv(records, args.output_dir or settings.csv_dir)
        print(f"Exported {len(records)} rows to {path}")
        return 0
    if args.command == "serve":
        return _run_serve(controller, settings, args)

    parser.error(f"unknown command: {args.command}")
    return 2


def main() -> None:
    """Script entry point."""
    sys.exit(run(sys.argv[1:]))


if __name__ == "__main__":
    main()
