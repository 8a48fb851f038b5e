"""
Result reporting: human-readable summaries and JSON export.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Mapping

from render_bench.models import Metrics

logger = logging.getLogger(__name__)


def _fmt_ms(value: float) -> str:
    return f"{value:.2f}ms"


def output_results(metrics: Metrics) -> str:
    """
    Render one metrics block as text.

    Returns:
        Multi-line summary
    """
    lat = metrics.latency
    lines = [
        f"=== {metrics.name} ===",
        f"  Workers ............ {metrics.concurrency}",
    ]
    if metrics.window_seconds is not None:
        lines.append(f"  Window ............. {metrics.window_seconds}s")
    lines.extend(
        [
            f"  Requests ........... {metrics.total_requests}",
            f"  Successful ......... {metrics.successful_requests}",
            f"  Failed ............. {metrics.failed_requests}"
            f" ({metrics.error_rate * 100:.2f}%)",
            f"  Elapsed ............ {metrics.elapsed_seconds:.2f}s",
            f"  Avg QPS ............ {metrics.avg_qps:.2f}",
            f"  Bytes received ..... {metrics.bytes_received}",
            f"  Latency avg/min/max  {_fmt_ms(lat.avg)} / {_fmt_ms(lat.min)}"
            f" / {_fmt_ms(lat.max)}",
            f"  Latency p50/p95/p99  {_fmt_ms(lat.p50)} / {_fmt_ms(lat.p95)}"
            f" / {_fmt_ms(lat.p99)}",
        ]
    )
    if metrics.status_codes:
        codes = ", ".join(
            f"{code}: {count}" for code, count in sorted(metrics.status_codes.items())
        )
        lines.append(f"  Status codes ....... {codes}")
    if metrics.errors:
        errors = ", ".join(
            f"{kind}: {count}" for kind, count in sorted(metrics.errors.items())
        )
        lines.append(f"  Errors ............. {errors}")
    return "\n".join(lines)


def build_report(overall: Metrics, per_group: Mapping[str, Metrics]) -> Dict:
    """Build the structured export payload."""
    return {
        "overall": overall.model_dump(mode="json"),
        "groups": {
            name: metrics.model_dump(mode="json") for name, metrics in per_group.items()
        },
    }


def output_json(path: str | Path, overall: Metrics, per_group: Mapping[str, Metrics]) -> Path:
    """
    Write overall and per-group metrics to a JSON file.

    Raises:
        OSError: If the file cannot be written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(build_report(overall, per_group), f, indent=2)
    logger.info("Metrics written to %s", path)
    return path
