"""
Load Executor

Runs a RunPlan: one thread pool per query group, sized by the group's
concurrency, all groups started together and stopped when the run duration
elapses. Returns overall metrics plus metrics per group name.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Dict, List, Optional, Tuple

import httpx

from render_bench.core.executor import WorkersMixin
from render_bench.core.file_stat_logger import FileBasedStatLogger
from render_bench.core.metrics_collector import MetricsCollector
from render_bench.models import Metrics, RunPlan

logger = logging.getLogger(__name__)

OVERALL_METRICS_NAME = "overall"


class LoadExecutor(WorkersMixin):
    """
    Drives the worker threads of every query group in a run plan.

    The executor owns run duration and worker shutdown. Query generators
    never see a deadline; workers simply stop calling them.
    """

    def __init__(
        self,
        plan: RunPlan,
        *,
        client: Optional[httpx.Client] = None,
        stat_logger: Optional[FileBasedStatLogger] = None,
        timeout_seconds: float = 30.0,
    ):
        """
        Args:
            plan: Run plan to execute
            client: HTTP client to use; one is created (and closed) if omitted
            stat_logger: Optional per-request record sink
            timeout_seconds: Per-request timeout for the default client
        """
        self.plan = plan
        self.base_url = plan.base_url
        self.stat_logger = stat_logger

        self._owns_client = client is None
        if client is None:
            max_connections = max(plan.total_concurrency, 1)
            client = httpx.Client(
                timeout=timeout_seconds,
                limits=httpx.Limits(
                    max_connections=max_connections,
                    max_keepalive_connections=max_connections,
                ),
            )
        self.client = client

        self._stop_event = threading.Event()
        self.overall_collector = MetricsCollector(
            OVERALL_METRICS_NAME,
            base_url=plan.base_url,
            concurrency=plan.total_concurrency,
        )
        self.group_collectors: Dict[str, MetricsCollector] = {
            group.name: MetricsCollector(
                group.name,
                base_url=plan.base_url,
                concurrency=group.concurrency,
                delay_seconds=group.delay_seconds,
                window_seconds=group.span_seconds,
            )
            for group in plan.groups
        }

    def stop(self) -> None:
        """Ask every worker to finish its current request and exit."""
        self._stop_event.set()

    def coordinate(self) -> Tuple[Metrics, Dict[str, Metrics]]:
        """
        Execute the run plan.

        Returns:
            (overall metrics, metrics keyed by group name). Groups with zero
            concurrency are present with zero requests.
        """
        pools: List[ThreadPoolExecutor] = []
        futures: List[Future] = []

        logger.info(
            "Starting load: %d groups, %d workers, duration=%.1fs, base_url=%s",
            len(self.plan.groups),
            self.plan.total_concurrency,
            self.plan.duration_seconds,
            self.base_url,
        )

        self.overall_collector.start()
        for collector in self.group_collectors.values():
            collector.start()

        try:
            for group in self.plan.groups:
                if group.concurrency == 0:
                    logger.info("Group %r has no users, skipping workers", group.name)
                    continue
                pool = ThreadPoolExecutor(
                    max_workers=group.concurrency,
                    thread_name_prefix=f"worker_{group.name.replace(' ', '_')}",
                )
                pools.append(pool)
                collector = self.group_collectors[group.name]
                for worker_id in range(group.concurrency):
                    futures.append(
                        pool.submit(self._worker, group, worker_id, collector)
                    )

            # Returns early only if stop() is called.
            self._stop_event.wait(self.plan.duration_seconds)
        except KeyboardInterrupt:
            logger.warning("Interrupted, stopping workers")
            raise
        finally:
            self._stop_event.set()
            for pool in pools:
                pool.shutdown(wait=True)
            for collector in self.group_collectors.values():
                collector.stop()
            self.overall_collector.stop()
            if self._owns_client:
                self.client.close()

        # Surface the first unexpected worker failure.
        for future in futures:
            future.result()

        per_group = {
            name: collector.calculate_metrics()
            for name, collector in self.group_collectors.items()
        }
        overall = self.overall_collector.calculate_metrics()

        for collector in self.group_collectors.values():
            logger.debug("Group summary: %s", collector.get_summary())
        logger.info(
            "Load finished: %d requests (%d failed) in %.1fs",
            overall.total_requests,
            overall.failed_requests,
            overall.elapsed_seconds,
        )
        return overall, per_group
