#!/usr/bin/env python3
"""Run a render API load test from the command line."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Dict, List, Optional

from render_bench.config import parse_duration, settings
from render_bench.core.errors import RenderBenchError
from render_bench.core.file_stat_logger import FileBasedStatLogger
from render_bench.core.load_executor import LoadExecutor
from render_bench.core.reporting import output_json, output_results
from render_bench.core.run_plan import (
    WINDOW_PRESETS,
    assemble_run_plan,
    build_windows,
    get_window_preset,
    load_windows_file,
)
from render_bench.core.target_catalog import load_target_catalog

logger = logging.getLogger("render_bench")

# Per-window user flags, keyed by the time bucket window they configure.
_LEGACY_USER_FLAGS = {
    "users_1_hour": "1 Hour",
    "users_1_day": "1 Day",
    "users_1_week": "1 Week",
    "users_3_month": "3 Month",
    "users_1_year": "1 Year",
}


def _flag_names(name: str) -> List[str]:
    """
    Option strings for a flag: ``--users-1-hour`` plus the single-dash and
    underscore spellings (``-users_1_hour``, ``--users_1_hour``) that older
    invocations use.
    """
    names = [f"--{name.replace('_', '-')}"]
    if "_" in name:
        names.append(f"--{name}")
    names.append(f"-{name}")
    return names


def _duration_arg(value: str) -> float:
    try:
        return parse_duration(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _users_arg(value: str) -> tuple[str, int]:
    name, sep, count = value.rpartition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=N, got {value!r}")
    try:
        return name, int(count)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid user count in {value!r}") from None


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="render-bench",
        description="Generate read load against a Graphite-style /render API.",
    )
    parser.add_argument(
        *_flag_names("targets"),
        default=settings.TARGETS_FILE,
        help="CSV file, at this time with one field - target.",
    )
    parser.add_argument(
        *_flag_names("base"), default=settings.BASE_URL, help="Base URL."
    )
    parser.add_argument(
        *_flag_names("status_file"),
        default=None,
        help="Statistic file for individual queries (Parquet).",
    )
    parser.add_argument(
        *_flag_names("json_file"),
        default=None,
        help="JSON file for aggregated statistic.",
    )
    parser.add_argument(
        *_flag_names("delay"),
        type=_duration_arg,
        default=settings.DELAY,
        help="Delay between requests (e.g. 100ms).",
    )
    parser.add_argument(
        *_flag_names("duration"),
        type=_duration_arg,
        default=settings.DURATION,
        help="Run duration (e.g. 1m).",
    )
    parser.add_argument(
        *_flag_names("users_1_hour"),
        type=int,
        default=None,
        help="Users for 1 hour queries (10).",
    )
    parser.add_argument(
        *_flag_names("users_1_day"),
        type=int,
        default=None,
        help="Users for 1 day queries (2).",
    )
    parser.add_argument(
        *_flag_names("users_1_week"),
        type=int,
        default=None,
        help="Users for 1 week queries (2).",
    )
    parser.add_argument(
        *_flag_names("users_3_month"),
        type=int,
        default=None,
        help="Users for 3 months queries (1).",
    )
    parser.add_argument(
        *_flag_names("users_1_year"),
        type=int,
        default=None,
        help="Users for 1 year queries (0).",
    )
    parser.add_argument(
        "--users",
        type=_users_arg,
        action="append",
        default=[],
        metavar="NAME=N",
        help="Users for the named window (repeatable).",
    )
    parser.add_argument(
        "--preset",
        choices=sorted(WINDOW_PRESETS),
        default=settings.WINDOW_PRESET,
        help="Built-in query window table.",
    )
    parser.add_argument(
        "--windows-file",
        default=None,
        help="YAML file with the query window table (overrides --preset).",
    )
    parser.add_argument(
        "--format",
        dest="render_format",
        default=settings.RENDER_FORMAT,
        help="Render API output format.",
    )
    parser.add_argument(
        "--seed", type=int, default=None, help="Seed for time window randomization."
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=settings.REQUEST_TIMEOUT_SECONDS,
        help="Per-request timeout in seconds.",
    )
    parser.add_argument(
        "--log-level",
        default=settings.LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level.",
    )
    return parser


def _configure_logging(level: str) -> None:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if settings.LOG_FILE:
        handlers.append(logging.FileHandler(settings.LOG_FILE))
    logging.basicConfig(
        level=getattr(logging, level),
        format=settings.LOG_FORMAT,
        handlers=handlers,
    )
    # Per-request client logging drowns the run summary.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def _user_overrides(args: argparse.Namespace) -> Dict[str, int]:
    overrides: Dict[str, int] = {}
    for flag, window_name in _LEGACY_USER_FLAGS.items():
        value = getattr(args, flag)
        if value is not None:
            overrides[window_name] = value
    for name, count in args.users:
        overrides[name] = count
    return overrides


def run(args: argparse.Namespace) -> int:
    catalog = load_target_catalog(args.targets)

    if args.windows_file:
        table = load_windows_file(args.windows_file)
    else:
        table = get_window_preset(args.preset)
    windows = build_windows(table, _user_overrides(args))

    plan = assemble_run_plan(
        catalog,
        windows,
        base_url=args.base,
        duration_seconds=args.duration,
        delay_seconds=args.delay,
        render_format=args.render_format,
        seed=args.seed,
    )

    stat_logger: Optional[FileBasedStatLogger] = None
    if args.status_file:
        stat_logger = FileBasedStatLogger(args.status_file)

    executor = LoadExecutor(
        plan, stat_logger=stat_logger, timeout_seconds=args.timeout
    )
    try:
        overall, per_group = executor.coordinate()
    finally:
        if stat_logger is not None:
            stat_logger.close()

    for group in plan.groups:
        metrics = per_group.get(group.name)
        if metrics is not None:
            print(output_results(metrics))
    print(output_results(overall))
    if stat_logger is not None:
        rows = stat_logger.stats["rows_written"]
        print(f"Stat file .......... {args.status_file} ({rows} rows)")

    if args.json_file:
        output_json(args.json_file, overall, per_group)

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)
    try:
        return run(args)
    except RenderBenchError as e:
        logger.error("%s", e)
        return 1
    except OSError as e:
        logger.error("I/O error: %s", e)
        return 1
    except KeyboardInterrupt:
        print("[render-bench] interrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
