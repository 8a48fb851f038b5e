"""
Load executor building blocks.

Modules:
- types: Data classes (QueryExecutionRecord)
- helpers: Error classification and URL helpers
- workers: Worker loop mixin
"""

from render_bench.core.executor.types import QueryExecutionRecord
from render_bench.core.executor.helpers import (
    classify_http_error,
    is_success_status,
    join_url,
    preview_url_for_log,
)
from render_bench.core.executor.workers import WorkersMixin

__all__ = [
    "QueryExecutionRecord",
    "classify_http_error",
    "is_success_status",
    "join_url",
    "preview_url_for_log",
    "WorkersMixin",
]
