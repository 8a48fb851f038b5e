"""
Data models for render-bench.

This package contains Pydantic models for:
- Run configuration (query windows, query groups, run plan)
- Aggregated metrics
"""

from render_bench.models.run_plan import (
    QueryWindow,
    QueryGroup,
    RunPlan,
)

from render_bench.models.metrics import (
    Metrics,
    LatencyPercentiles,
)

__all__ = [
    # run_plan
    "QueryWindow",
    "QueryGroup",
    "RunPlan",
    # metrics
    "Metrics",
    "LatencyPercentiles",
]
