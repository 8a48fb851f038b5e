"""
Metrics Models

Defines Pydantic models for load run metrics, per query group and overall.
"""

from typing import Dict, Optional
from datetime import UTC, datetime

from pydantic import BaseModel, Field


class LatencyPercentiles(BaseModel):
    """Latency percentile metrics (in milliseconds)."""

    p50: float = Field(0.0, description="50th percentile (median)")
    p75: float = Field(0.0, description="75th percentile")
    p90: float = Field(0.0, description="90th percentile")
    p95: float = Field(0.0, description="95th percentile")
    p99: float = Field(0.0, description="99th percentile")
    p999: float = Field(0.0, description="99.9th percentile")
    min: float = Field(0.0, description="Minimum latency")
    max: float = Field(0.0, description="Maximum latency")
    avg: float = Field(0.0, description="Average latency")

    def to_dict(self) -> Dict[str, float]:
        """Convert to dictionary."""
        return {
            "p50": self.p50,
            "p75": self.p75,
            "p90": self.p90,
            "p95": self.p95,
            "p99": self.p99,
            "p999": self.p999,
            "min": self.min,
            "max": self.max,
            "avg": self.avg,
        }


class Metrics(BaseModel):
    """
    Aggregated metrics for one query group or for the whole run.
    """

    name: str = Field(..., description="Group name, or 'overall'")
    base_url: Optional[str] = Field(None, description="Base URL under test")

    # Timestamps
    started_at: Optional[datetime] = Field(None, description="First sample (UTC)")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Metrics timestamp (UTC)"
    )
    elapsed_seconds: float = Field(0.0, description="Elapsed time since start")

    # Configuration echo
    concurrency: int = Field(0, description="Configured workers")
    delay_seconds: Optional[float] = Field(None, description="Delay between requests")
    window_seconds: Optional[int] = Field(None, description="Query window span")

    # Counters
    total_requests: int = Field(0, description="Total requests")
    successful_requests: int = Field(0, description="Successful requests (2xx)")
    failed_requests: int = Field(0, description="Failed requests")
    bytes_received: int = Field(0, description="Total response bytes")

    # Throughput
    avg_qps: float = Field(0.0, description="Average requests per second")

    # Latency
    latency: LatencyPercentiles = Field(
        default_factory=LatencyPercentiles, description="Latency percentiles"
    )

    # Breakdown
    status_codes: Dict[str, int] = Field(
        default_factory=dict, description="Response count by HTTP status code"
    )
    errors: Dict[str, int] = Field(
        default_factory=dict, description="Failure count by error category"
    )

    @property
    def success_rate(self) -> float:
        """Calculate success rate (0.0-1.0)."""
        if self.total_requests == 0:
            return 0.0
        return self.successful_requests / self.total_requests

    @property
    def error_rate(self) -> float:
        """Calculate error rate (0.0-1.0)."""
        if self.total_requests == 0:
            return 0.0
        return self.failed_requests / self.total_requests
