"""
Global pytest configuration and fixtures for render-bench tests.

This module provides:
- Target catalog fixtures (in-memory and CSV on disk)
- Mock render API transports for httpx
- Run plan factories
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable

import httpx
import pytest

from render_bench.core.run_plan import assemble_run_plan
from render_bench.core.target_catalog import TargetCatalog
from render_bench.models import QueryWindow, RunPlan

BASE_URL = "http://render.test"


# =============================================================================
# Target Catalog Fixtures
# =============================================================================


@pytest.fixture
def catalog() -> TargetCatalog:
    """Three-target catalog used across scenarios."""
    return TargetCatalog(["a.metric", "b.metric", "c.metric"], source="fixture")


@pytest.fixture
def targets_csv(tmp_path: Path) -> Path:
    """CSV catalog with a comment line and a header row."""
    path = tmp_path / "targets.csv"
    path.write_text(
        "# monitored targets\n"
        "target\n"
        "a.metric\n"
        "b.metric\n"
        "c.metric\n",
        encoding="utf-8",
    )
    return path


# =============================================================================
# Mock Render API
# =============================================================================


class RenderRecorder:
    """Thread-safe record of requests hitting the mock render API."""

    def __init__(self, status_code: int = 200, body: bytes = b"ok") -> None:
        self.status_code = status_code
        self.body = body
        self.requests: list[httpx.Request] = []
        self._lock = threading.Lock()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)
        return httpx.Response(self.status_code, content=self.body)


@pytest.fixture
def render_api() -> RenderRecorder:
    return RenderRecorder()


@pytest.fixture
def make_client() -> Callable[..., httpx.Client]:
    """Factory for httpx clients backed by a MockTransport; closes them afterwards."""
    clients: list[httpx.Client] = []

    def _make(handler) -> httpx.Client:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.close()


# =============================================================================
# Run Plan Fixtures
# =============================================================================


@pytest.fixture
def make_plan(catalog: TargetCatalog) -> Callable[..., RunPlan]:
    """Factory fixture for small, fast run plans."""

    def _make(
        windows: list[QueryWindow] | None = None,
        duration_seconds: float = 0.3,
        delay_seconds: float = 0.01,
        seed: int | None = 7,
        targets: list[str] | None = None,
    ) -> RunPlan:
        if windows is None:
            windows = [
                QueryWindow(name="1 Hour", span_seconds=3600, concurrency=2),
                QueryWindow(name="1 Year", span_seconds=31536000, concurrency=0),
            ]
        return assemble_run_plan(
            catalog if targets is None else TargetCatalog(targets, source="fixture"),
            windows,
            base_url=BASE_URL,
            duration_seconds=duration_seconds,
            delay_seconds=delay_seconds,
            seed=seed,
        )

    return _make
