"""
Metrics Collector

Request metrics aggregation and percentile calculation, safe to feed from
many worker threads.
"""

import logging
import threading
from collections import Counter, deque
from datetime import UTC, datetime
from typing import Any, Dict, List, Optional

from render_bench.core.executor.types import QueryExecutionRecord
from render_bench.models import LatencyPercentiles, Metrics

logger = logging.getLogger(__name__)


class MetricsCollector:
    """
    Collects and aggregates request metrics for one query group (or the run).

    Features:
    - Latency percentile calculation over a rolling window
    - Status code and error category breakdown
    - Thread-safe recording
    """

    def __init__(
        self,
        name: str,
        window_size: int = 100_000,
        *,
        base_url: Optional[str] = None,
        concurrency: int = 0,
        delay_seconds: Optional[float] = None,
        window_seconds: Optional[int] = None,
    ):
        """
        Initialize metrics collector.

        Args:
            name: Group name reported in the metrics
            window_size: Max requests to keep for percentile calculation
            base_url: Base URL under test
            concurrency: Configured worker count
            delay_seconds: Configured delay between requests
            window_seconds: Query window span of the group
        """
        self.name = name
        self.window_size = window_size
        self.base_url = base_url
        self.concurrency = concurrency
        self.delay_seconds = delay_seconds
        self.window_seconds = window_seconds

        self._lock = threading.Lock()
        self._latencies: deque = deque(maxlen=window_size)
        self._status_codes: Counter = Counter()
        self._errors: Counter = Counter()

        self._total = 0
        self._successful = 0
        self._failed = 0
        self._bytes_received = 0

        self.start_time: Optional[datetime] = None
        self.end_time: Optional[datetime] = None

        logger.debug("MetricsCollector initialized: name=%s, window=%d", name, window_size)

    def start(self) -> None:
        """Start metrics collection."""
        self.start_time = datetime.now(UTC)
        self.end_time = None

    def stop(self) -> None:
        """Freeze elapsed time at the current instant."""
        self.end_time = datetime.now(UTC)

    def record(self, record: QueryExecutionRecord) -> None:
        """
        Record a single request result.

        Args:
            record: Request execution record
        """
        with self._lock:
            self._total += 1
            self._bytes_received += record.bytes_received

            if record.status_code is not None:
                self._status_codes[str(record.status_code)] += 1

            if record.success:
                self._successful += 1
                self._latencies.append(record.duration_ms)
            else:
                self._failed += 1
                self._errors[record.error or "UNKNOWN"] += 1

    def calculate_metrics(self) -> Metrics:
        """
        Calculate current metrics with percentiles.

        Returns:
            Metrics snapshot
        """
        with self._lock:
            now = datetime.now(UTC)
            end = self.end_time or now
            elapsed = (end - self.start_time).total_seconds() if self.start_time else 0.0

            metrics = Metrics(
                name=self.name,
                base_url=self.base_url,
                started_at=self.start_time,
                timestamp=now,
                elapsed_seconds=elapsed,
                concurrency=self.concurrency,
                delay_seconds=self.delay_seconds,
                window_seconds=self.window_seconds,
                total_requests=self._total,
                successful_requests=self._successful,
                failed_requests=self._failed,
                bytes_received=self._bytes_received,
                latency=self._calculate_percentiles(list(self._latencies)),
                status_codes=dict(self._status_codes),
                errors=dict(self._errors),
            )

        if elapsed > 0:
            metrics.avg_qps = metrics.total_requests / elapsed

        return metrics

    def _calculate_percentiles(self, latencies: List[float]) -> LatencyPercentiles:
        """
        Calculate latency percentiles from a list of latency values.

        Args:
            latencies: List of latency values in milliseconds

        Returns:
            LatencyPercentiles with calculated values
        """
        if not latencies:
            return LatencyPercentiles()

        sorted_latencies = sorted(latencies)
        n = len(sorted_latencies)

        def percentile(p: float) -> float:
            """Calculate the p-th percentile (0.0 to 1.0)."""
            k = (n - 1) * p
            f = int(k)
            c = k - f

            if f + 1 < n:
                return sorted_latencies[f] * (1 - c) + sorted_latencies[f + 1] * c
            else:
                return sorted_latencies[f]

        return LatencyPercentiles(
            p50=percentile(0.50),
            p75=percentile(0.75),
            p90=percentile(0.90),
            p95=percentile(0.95),
            p99=percentile(0.99),
            p999=percentile(0.999),
            min=sorted_latencies[0],
            max=sorted_latencies[-1],
            avg=sum(sorted_latencies) / n,
        )

    def get_summary(self) -> Dict[str, Any]:
        """
        Get summary statistics.

        Returns:
            Dict with summary statistics
        """
        metrics = self.calculate_metrics()
        return {
            "name": metrics.name,
            "total_requests": metrics.total_requests,
            "successful_requests": metrics.successful_requests,
            "failed_requests": metrics.failed_requests,
            "success_rate": metrics.success_rate,
            "error_rate": metrics.error_rate,
            "elapsed_seconds": metrics.elapsed_seconds,
            "avg_qps": metrics.avg_qps,
            "latency": metrics.latency.to_dict(),
            "status_codes": metrics.status_codes,
            "errors": metrics.errors,
        }
