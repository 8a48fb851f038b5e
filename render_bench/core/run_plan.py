"""
Run Plan Assembly

Turns user-facing configuration (named time windows with user counts, a
shared delay, a run duration and a base URL) into a RunPlan the load
executor can consume. Window tables can come from a built-in preset or from
a YAML file.
"""

import logging
import random
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml
from pydantic import ValidationError

from render_bench.config import parse_duration
from render_bench.core.errors import EmptyCatalogError, RunPlanError
from render_bench.core.query_generators import (
    DEFAULT_RENDER_FORMAT,
    create_query_generator,
)
from render_bench.models.run_plan import QueryGroup, QueryWindow, RunPlan

logger = logging.getLogger(__name__)

HOUR = 3600
DAY = 86400

# Dashboards grouped by coarse time bucket.
TIME_BUCKET_WINDOWS: List[QueryWindow] = [
    QueryWindow(name="1 Hour", span_seconds=HOUR, concurrency=10),
    QueryWindow(name="1 Day", span_seconds=DAY, concurrency=2),
    QueryWindow(name="1 Week", span_seconds=7 * DAY, concurrency=2),
    QueryWindow(name="3 Month", span_seconds=90 * DAY, concurrency=1),
    QueryWindow(name="1 Year", span_seconds=365 * DAY, concurrency=0),
]

# Same load shape, named by explicit day counts.
DAY_COUNT_WINDOWS: List[QueryWindow] = [
    QueryWindow(name="1 Day", span_seconds=DAY, concurrency=10),
    QueryWindow(name="7 Days", span_seconds=7 * DAY, concurrency=2),
    QueryWindow(name="30 Days", span_seconds=30 * DAY, concurrency=2),
    QueryWindow(name="90 Days", span_seconds=90 * DAY, concurrency=1),
    QueryWindow(name="365 Days", span_seconds=365 * DAY, concurrency=0),
]

WINDOW_PRESETS: Dict[str, List[QueryWindow]] = {
    "time_buckets": TIME_BUCKET_WINDOWS,
    "day_counts": DAY_COUNT_WINDOWS,
}


def get_window_preset(name: str) -> List[QueryWindow]:
    """Return a copy of a built-in window table."""
    try:
        return list(WINDOW_PRESETS[name])
    except KeyError:
        raise RunPlanError(
            f"Unknown window preset {name!r} (choose from {', '.join(WINDOW_PRESETS)})"
        ) from None


def build_windows(
    table: Sequence[QueryWindow],
    concurrency_by_name: Optional[Mapping[str, int]] = None,
) -> List[QueryWindow]:
    """
    Apply per-window user counts to a window table.

    Args:
        table: Base window table
        concurrency_by_name: Overrides keyed by window name

    Returns:
        New list of windows in table order

    Raises:
        RunPlanError: If an override names a window that is not in the table
    """
    overrides = dict(concurrency_by_name or {})
    known = {w.name for w in table}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise RunPlanError(f"Unknown query window(s): {', '.join(unknown)}")

    windows = []
    for window in table:
        if window.name in overrides:
            try:
                window = QueryWindow(
                    name=window.name,
                    span_seconds=window.span_seconds,
                    concurrency=overrides[window.name],
                )
            except ValidationError as e:
                raise RunPlanError(f"Invalid users for {window.name!r}: {e}") from e
        windows.append(window)
    return windows


def _window_from_mapping(data: Mapping[str, Any]) -> QueryWindow:
    span = data.get("span", data.get("span_seconds"))
    if span is None:
        raise RunPlanError(f"Window {data.get('name')!r} has no span")
    try:
        span_seconds = int(parse_duration(span))
    except ValueError as e:
        raise RunPlanError(f"Window {data.get('name')!r}: {e}") from e

    return QueryWindow(
        name=str(data.get("name", "")),
        span_seconds=span_seconds,
        concurrency=int(data.get("users", data.get("concurrency", 0))),
    )


def load_windows_file(path: str | Path) -> List[QueryWindow]:
    """
    Load a window table from YAML.

    Expected layout::

        windows:
          - name: 1 Hour
            span: 1h
            users: 10

    Raises:
        RunPlanError: If the file is missing or malformed
    """
    path = Path(path)
    if not path.exists():
        raise RunPlanError(f"Windows file not found: {path}")

    with open(path, "r") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise RunPlanError(f"Invalid YAML in {path}: {e}") from e

    entries = data.get("windows") if isinstance(data, dict) else None
    if not isinstance(entries, list) or not entries:
        raise RunPlanError(f"{path}: expected a non-empty 'windows' list")

    try:
        return [_window_from_mapping(entry) for entry in entries]
    except (TypeError, ValueError, AttributeError) as e:
        raise RunPlanError(f"{path}: invalid window entry: {e}") from e


def assemble_run_plan(
    targets: Sequence[str],
    windows: Sequence[QueryWindow],
    base_url: str,
    duration_seconds: float,
    delay_seconds: float,
    *,
    render_format: str = DEFAULT_RENDER_FORMAT,
    seed: Optional[int] = None,
) -> RunPlan:
    """
    Build a RunPlan with one query group per window.

    Every group gets its own generator over the shared catalog. Groups with
    zero users stay in the plan so downstream reporting keeps a stable key
    set.

    Args:
        targets: Target catalog shared by all groups
        windows: Window table in report order
        base_url: Render API base URL
        duration_seconds: Overall run duration
        delay_seconds: Delay between requests for every worker
        render_format: Render API output format
        seed: Optional seed; each group derives its own Random from it

    Returns:
        RunPlan

    Raises:
        EmptyCatalogError: If the catalog has no targets
        RunPlanError: If the windows do not form a valid plan
    """
    if len(targets) == 0:
        raise EmptyCatalogError("Target catalog is empty; no query group can be built")

    groups: List[QueryGroup] = []
    for position, window in enumerate(windows):
        rng = random.Random(f"{seed}:{position}") if seed is not None else None
        generator = create_query_generator(
            targets,
            window.span_seconds,
            render_format=render_format,
            rng=rng,
        )
        try:
            groups.append(
                QueryGroup(
                    name=window.name,
                    concurrency=window.concurrency,
                    delay_seconds=delay_seconds,
                    generator=generator,
                )
            )
        except ValidationError as e:
            raise RunPlanError(f"Invalid query group {window.name!r}: {e}") from e

    try:
        plan = RunPlan(
            base_url=base_url,
            duration_seconds=duration_seconds,
            groups=groups,
        )
    except ValidationError as e:
        raise RunPlanError(f"Invalid run plan: {e}") from e

    logger.info(
        "Run plan assembled: %d groups, %d workers, duration=%.1fs, base_url=%s",
        len(plan.groups),
        plan.total_concurrency,
        plan.duration_seconds,
        plan.base_url,
    )
    return plan
