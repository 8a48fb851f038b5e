"""
Type definitions and dataclasses for the load executor.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class QueryExecutionRecord:
    """Record of a single render request."""

    group: str
    worker_id: int
    method: str
    url: str
    target: str
    from_offset: int
    until_offset: int
    start_time: datetime
    end_time: datetime
    duration_ms: float
    success: bool
    status_code: Optional[int]
    error: Optional[str]
    bytes_received: int = 0
