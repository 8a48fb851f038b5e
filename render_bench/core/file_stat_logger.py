"""
File-based per-query stat logger.

This module provides FileBasedStatLogger, which records every render request
of a run to a local Parquet file. Records are buffered in memory and written
as Parquet row groups from a background thread so worker threads never wait
on disk I/O except when a previous flush is still running.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import asdict
from pathlib import Path
from typing import Any

import pyarrow as pa
import pyarrow.parquet as pq

logger = logging.getLogger(__name__)

BUFFER_SIZE = 10_000  # Flush to disk every 10K records


class FileBasedStatLogger:
    """
    Logs request execution records to a Parquet file.

    Usage:
        stat_logger = FileBasedStatLogger("stats.parquet")

        # From any worker thread
        stat_logger.append(record)

        # After the run
        stat_logger.close()
    """

    def __init__(self, path: str | Path, *, buffer_size: int = BUFFER_SIZE) -> None:
        """
        Initialize the stat logger.

        Args:
            path: Output Parquet file path (parent directories are created).
            buffer_size: Records to buffer before flushing to disk.
        """
        self.path = Path(path)
        self._buffer_size = buffer_size

        self._buffer: list[dict[str, Any]] = []
        self._buffer_lock = threading.Lock()
        self._total_rows = 0
        self._rows_written = 0
        self._closed = False

        self._current_writer: pq.ParquetWriter | None = None
        self._write_executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="stat_writer"
        )
        self._pending_write: Future | None = None
        self._write_lock = threading.Lock()

        self._schema = self._build_schema()

        self.path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("FileBasedStatLogger initialized: path=%s", self.path)

    def _build_schema(self) -> pa.Schema:
        """Build PyArrow schema for request records."""
        return pa.schema(
            [
                ("group", pa.string()),
                ("worker_id", pa.int64()),
                ("method", pa.string()),
                ("url", pa.string()),
                ("target", pa.string()),
                ("from_offset", pa.int64()),
                ("until_offset", pa.int64()),
                ("start_time", pa.timestamp("us", "UTC")),
                ("end_time", pa.timestamp("us", "UTC")),
                ("duration_ms", pa.float64()),
                ("success", pa.bool_()),
                ("status_code", pa.int64()),
                ("error", pa.string()),
                ("bytes_received", pa.int64()),
            ]
        )

    @property
    def stats(self) -> dict[str, Any]:
        """Return current logger statistics."""
        with self._buffer_lock:
            return {
                "total_rows": self._total_rows,
                "buffered_rows": len(self._buffer),
                "rows_written": self._rows_written,
            }

    def append(self, record: Any) -> None:
        """
        Add a record to the buffer.

        Args:
            record: QueryExecutionRecord dataclass or dict with execution data.
        """
        if hasattr(record, "__dataclass_fields__"):
            record_dict = asdict(record)
        else:
            record_dict = dict(record)

        with self._buffer_lock:
            if self._closed:
                raise RuntimeError("FileBasedStatLogger is closed")
            self._buffer.append(record_dict)
            self._total_rows += 1
            if len(self._buffer) < self._buffer_size:
                return
            rows = self._buffer
            self._buffer = []

        self._submit_rows(rows)

    def _submit_rows(self, rows: list[dict[str, Any]]) -> None:
        """Convert rows to a table and hand it to the writer thread."""
        table = pa.Table.from_pylist(rows, schema=self._schema)
        with self._write_lock:
            if self._pending_write is not None:
                self._pending_write.result()
            self._pending_write = self._write_executor.submit(
                self._write_table_to_disk, table
            )

    def _write_table_to_disk(self, table: pa.Table) -> None:
        """Write PyArrow table to disk (runs in background thread)."""
        start_time = time.perf_counter()
        if self._current_writer is None:
            self._current_writer = pq.ParquetWriter(str(self.path), self._schema)
        self._current_writer.write_table(table)
        self._rows_written += table.num_rows
        logger.debug(
            "Wrote %d stat rows to %s in %.1fms",
            table.num_rows,
            self.path,
            (time.perf_counter() - start_time) * 1000,
        )

    def wait_for_pending_writes(self) -> None:
        """Wait for any pending background write to complete."""
        with self._write_lock:
            if self._pending_write is not None:
                self._pending_write.result()
                self._pending_write = None

    def close(self) -> None:
        """Flush remaining records and finalize the Parquet file."""
        with self._buffer_lock:
            if self._closed:
                return
            self._closed = True
            rows = self._buffer
            self._buffer = []

        try:
            if rows:
                self._submit_rows(rows)
            self.wait_for_pending_writes()
            if self._current_writer is None:
                # No rows at all: still produce a valid, empty file.
                self._current_writer = pq.ParquetWriter(str(self.path), self._schema)
            self._current_writer.close()
            self._current_writer = None
        finally:
            self._write_executor.shutdown(wait=True)

        logger.info("Stat file written: %s (%d rows)", self.path, self._rows_written)
