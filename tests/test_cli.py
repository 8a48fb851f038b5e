"""
Tests for the render-bench command line entry point.

The executor is swapped for one bound to a MockTransport so no network is
touched.
"""

from __future__ import annotations

import json
from pathlib import Path

import pyarrow.parquet as pq
import pytest

from render_bench import cli
from render_bench.core.load_executor import LoadExecutor


@pytest.fixture
def mock_executor(monkeypatch, render_api, make_client):
    """Route CLI runs through the mock render API."""
    plans = []

    def _factory(plan, **kwargs) -> LoadExecutor:
        plans.append(plan)
        kwargs.pop("timeout_seconds", None)
        return LoadExecutor(plan, client=make_client(render_api), **kwargs)

    monkeypatch.setattr(cli, "LoadExecutor", _factory)
    return plans


def _base_args(targets_csv: Path) -> list[str]:
    return [
        "--targets",
        str(targets_csv),
        "--base",
        "http://render.test",
        "--duration",
        "200ms",
        "--delay",
        "20ms",
        "--seed",
        "1",
    ]


def test_run_writes_json_and_stats(
    mock_executor, targets_csv: Path, tmp_path: Path, capsys
) -> None:
    json_file = tmp_path / "summary.json"
    stat_file = tmp_path / "stats.parquet"
    args = _base_args(targets_csv) + [
        "--json-file",
        str(json_file),
        "--status-file",
        str(stat_file),
        "--users-1-hour",
        "2",
        "--users-1-day",
        "0",
        "--users-1-week",
        "0",
        "--users-3-month",
        "0",
    ]

    assert cli.main(args) == 0

    data = json.loads(json_file.read_text(encoding="utf-8"))
    assert list(data["groups"]) == ["1 Hour", "1 Day", "1 Week", "3 Month", "1 Year"]
    assert data["groups"]["1 Hour"]["total_requests"] > 0
    for idle in ("1 Day", "1 Week", "3 Month", "1 Year"):
        assert data["groups"][idle]["total_requests"] == 0
    assert data["overall"]["total_requests"] == data["groups"]["1 Hour"]["total_requests"]

    total = data["overall"]["total_requests"]
    assert pq.read_table(stat_file).num_rows == total

    out = capsys.readouterr().out
    assert "=== 1 Hour ===" in out
    assert "=== overall ===" in out
    assert f"Stat file .......... {stat_file} ({total} rows)" in out


def test_default_user_counts(mock_executor, targets_csv: Path) -> None:
    assert cli.main(_base_args(targets_csv) + ["--duration", "50ms"]) == 0

    plan = mock_executor[0]
    assert [(g.name, g.concurrency) for g in plan.groups] == [
        ("1 Hour", 10),
        ("1 Day", 2),
        ("1 Week", 2),
        ("3 Month", 1),
        ("1 Year", 0),
    ]
    assert plan.groups[0].delay_seconds == pytest.approx(0.02)


def test_day_count_preset_with_named_users(mock_executor, targets_csv: Path) -> None:
    args = _base_args(targets_csv) + [
        "--duration",
        "50ms",
        "--preset",
        "day_counts",
        "--users",
        "30 Days=3",
        "--users",
        "1 Day=0",
    ]

    assert cli.main(args) == 0

    plan = mock_executor[0]
    assert plan.group_names() == ["1 Day", "7 Days", "30 Days", "90 Days", "365 Days"]
    assert plan.groups[0].concurrency == 0
    assert plan.groups[2].concurrency == 3


def test_windows_file(mock_executor, targets_csv: Path, tmp_path: Path) -> None:
    windows = tmp_path / "windows.yaml"
    windows.write_text(
        "windows:\n  - name: 5 Minutes\n    span: 5m\n    users: 1\n", encoding="utf-8"
    )

    assert cli.main(_base_args(targets_csv) + ["--windows-file", str(windows)]) == 0

    plan = mock_executor[0]
    assert plan.group_names() == ["5 Minutes"]
    assert plan.groups[0].span_seconds == 300


def test_underscore_flag_spellings(
    mock_executor, targets_csv: Path, tmp_path: Path
) -> None:
    json_file = tmp_path / "summary.json"
    args = [
        "-targets",
        str(targets_csv),
        "-base",
        "http://render.test",
        "-duration",
        "50ms",
        "-delay",
        "20ms",
        "-json_file",
        str(json_file),
        "-users_1_hour",
        "1",
        "--users_1_day",
        "3",
        "-users_3_month=0",
    ]

    assert cli.main(args) == 0

    plan = mock_executor[0]
    assert plan.groups[0].concurrency == 1
    assert plan.groups[1].concurrency == 3
    assert plan.groups[3].concurrency == 0
    assert json_file.exists()


def test_missing_targets_file_fails(mock_executor, tmp_path: Path) -> None:
    args = _base_args(tmp_path / "missing.csv")

    assert cli.main(args) == 1
    assert mock_executor == []


def test_empty_catalog_fails(mock_executor, tmp_path: Path) -> None:
    path = tmp_path / "header_only.csv"
    path.write_text("target\n", encoding="utf-8")

    assert cli.main(_base_args(path)) == 1
    assert mock_executor == []


def test_unknown_window_override_fails(mock_executor, targets_csv: Path) -> None:
    args = _base_args(targets_csv) + ["--users", "2 Hours=1"]

    assert cli.main(args) == 1


def test_bad_duration_is_a_usage_error(targets_csv: Path) -> None:
    with pytest.raises(SystemExit) as exc:
        cli.main(["--targets", str(targets_csv), "--duration", "forever"])
    assert exc.value.code == 2


def test_users_flag_requires_name(targets_csv: Path) -> None:
    with pytest.raises(SystemExit):
        cli.main(["--targets", str(targets_csv), "--users", "5"])


def test_parser_help_mentions_original_flags() -> None:
    help_text = cli._build_parser().format_help()
    for flag in ("--users-1-hour", "--users-3-month", "--status-file", "--json-file"):
        assert flag in help_text