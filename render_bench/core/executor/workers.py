"""
Worker management for the load executor.
"""

import logging
import threading
import time
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Optional

import httpx

from render_bench.core.executor.helpers import (
    classify_http_error,
    is_success_status,
    join_url,
    preview_url_for_log,
)
from render_bench.core.executor.types import QueryExecutionRecord

if TYPE_CHECKING:
    from render_bench.core.file_stat_logger import FileBasedStatLogger
    from render_bench.core.metrics_collector import MetricsCollector
    from render_bench.models import QueryGroup

logger = logging.getLogger(__name__)


class WorkersMixin:
    """Mixin providing the worker loop for LoadExecutor."""

    # These attributes are defined in the main LoadExecutor class
    base_url: str
    client: httpx.Client
    stat_logger: Optional["FileBasedStatLogger"]
    overall_collector: "MetricsCollector"
    _stop_event: threading.Event

    def _worker(
        self, group: "QueryGroup", worker_id: int, collector: "MetricsCollector"
    ) -> None:
        """
        Worker thread body: draw, request, record, wait, until stopped.

        Args:
            group: Query group this worker belongs to
            worker_id: Worker index inside its group
            collector: Group metrics collector
        """
        logger.debug("Worker %s/%d started", group.name, worker_id)

        while not self._stop_event.is_set():
            record = self._execute_query(group, worker_id)
            collector.record(record)
            self.overall_collector.record(record)
            if self.stat_logger is not None:
                self.stat_logger.append(record)

            # Delay between requests
            if group.delay_seconds > 0 and self._stop_event.wait(group.delay_seconds):
                break

        logger.debug("Worker %s/%d stopped", group.name, worker_id)

    def _execute_query(self, group: "QueryGroup", worker_id: int) -> QueryExecutionRecord:
        """Issue one render request and describe its outcome."""
        query = group.generator.generate_query()
        url = join_url(self.base_url, query.url)

        status_code: Optional[int] = None
        error: Optional[str] = None
        bytes_received = 0

        start_time = datetime.now(UTC)
        start_mono = time.perf_counter()
        try:
            response = self.client.request(query.method, url)
            status_code = response.status_code
            bytes_received = len(response.content)
            success = is_success_status(status_code)
            if not success:
                error = classify_http_error(status_code=status_code)
        except httpx.HTTPError as e:
            success = False
            error = classify_http_error(e)
            logger.debug(
                "Worker %s/%d request failed (%s): %s",
                group.name,
                worker_id,
                error,
                preview_url_for_log(url),
            )
        duration_ms = (time.perf_counter() - start_mono) * 1000.0
        end_time = datetime.now(UTC)

        return QueryExecutionRecord(
            group=group.name,
            worker_id=worker_id,
            method=query.method,
            url=query.url,
            target=query.target,
            from_offset=query.from_offset,
            until_offset=query.until_offset,
            start_time=start_time,
            end_time=end_time,
            duration_ms=duration_ms,
            success=success,
            status_code=status_code,
            error=error,
            bytes_received=bytes_received,
        )
