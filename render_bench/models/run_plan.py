"""
Run Plan Models

Defines Pydantic models describing a load run:
- Query windows (named time spans with a user count)
- Query groups (a window bound to its own query generator)
- The run plan handed to the load executor
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field, model_validator

from render_bench.core.query_generators import CyclicQueryGenerator


class QueryWindow(BaseModel):
    """
    A named time window and how many simulated users query it.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Group name (metrics key)")
    span_seconds: int = Field(
        ..., gt=0, description="Distance between from and until (seconds)"
    )
    concurrency: int = Field(
        0, ge=0, description="Concurrent users (0 = configured but inert)"
    )


class QueryGroup(BaseModel):
    """
    A query group: one class of simulated clients.

    Each group owns its generator; generators are never shared across
    groups even when their window spans match.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1, description="Group name (metrics key)")
    concurrency: int = Field(0, ge=0, description="Worker count")
    delay_seconds: float = Field(
        0.0, ge=0, description="Delay between requests per worker"
    )
    generator: CyclicQueryGenerator = Field(..., description="Query generator")

    @property
    def span_seconds(self) -> int:
        return self.generator.window_seconds


class RunPlan(BaseModel):
    """
    Complete load run configuration.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    base_url: str = Field(..., min_length=1, description="Base URL of the render API")
    duration_seconds: float = Field(..., gt=0, description="Run duration in seconds")
    groups: List[QueryGroup] = Field(default_factory=list, description="Query groups")

    @model_validator(mode="after")
    def validate_groups(self):
        """Group names are metrics keys and must be unique; generators are per group."""
        names = [g.name for g in self.groups]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate query group names: {', '.join(duplicates)}")

        generator_ids = [id(g.generator) for g in self.groups]
        if len(set(generator_ids)) != len(generator_ids):
            raise ValueError("Query groups must not share a query generator")

        return self

    @property
    def total_concurrency(self) -> int:
        return sum(g.concurrency for g in self.groups)

    def group_names(self) -> List[str]:
        return [g.name for g in self.groups]
