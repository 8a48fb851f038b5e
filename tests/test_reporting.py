"""
Tests for text and JSON result reporting.
"""

import json
from pathlib import Path

from render_bench.core.reporting import build_report, output_json, output_results
from render_bench.models import LatencyPercentiles, Metrics


def _metrics(name: str, total: int = 0, failed: int = 0) -> Metrics:
    return Metrics(
        name=name,
        concurrency=2,
        window_seconds=3600,
        total_requests=total,
        successful_requests=total - failed,
        failed_requests=failed,
        elapsed_seconds=10.0,
        avg_qps=total / 10.0,
        latency=LatencyPercentiles(p50=12.0, p95=40.0, p99=55.0, min=1.0, max=60.0, avg=15.0),
        status_codes={"200": total - failed, "502": failed} if failed else {"200": total},
        errors={"HTTP_502": failed} if failed else {},
    )


def test_output_results_text() -> None:
    text = output_results(_metrics("1 Hour", total=100, failed=5))

    assert text.splitlines()[0] == "=== 1 Hour ==="
    assert "Requests ........... 100" in text
    assert "Failed ............. 5 (5.00%)" in text
    assert "Window ............. 3600s" in text
    assert "12.00ms / 40.00ms / 55.00ms" in text
    assert "200: 95, 502: 5" in text
    assert "HTTP_502: 5" in text


def test_output_results_for_idle_group() -> None:
    text = output_results(_metrics("1 Year"))

    assert "Requests ........... 0" in text
    assert "Errors" not in text


def test_build_report_keeps_group_order() -> None:
    per_group = {"1 Hour": _metrics("1 Hour", 10), "1 Year": _metrics("1 Year")}

    report = build_report(_metrics("overall", 10), per_group)

    assert list(report["groups"]) == ["1 Hour", "1 Year"]
    assert report["groups"]["1 Year"]["total_requests"] == 0
    assert report["overall"]["latency"]["p95"] == 40.0


def test_output_json(tmp_path: Path) -> None:
    path = tmp_path / "reports" / "summary.json"
    per_group = {"1 Hour": _metrics("1 Hour", 20, 2), "1 Year": _metrics("1 Year")}

    written = output_json(path, _metrics("overall", 20, 2), per_group)

    assert written == path
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["overall"]["total_requests"] == 20
    assert data["overall"]["failed_requests"] == 2
    assert set(data["groups"]) == {"1 Hour", "1 Year"}
    assert data["groups"]["1 Hour"]["errors"] == {"HTTP_502": 2}
    assert isinstance(data["overall"]["timestamp"], str)
