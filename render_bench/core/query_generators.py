"""
Query Generators for Graphite render load testing.

A query generator produces an endless stream of ``/render`` queries for one
query group. Workers of the group call ``generate_query()`` concurrently, so
the generator must hand out targets in strict round-robin order without
duplicate assignment while randomizing each query's time window.
"""

import logging
import random
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence
from urllib.parse import quote

from render_bench.core.errors import EmptyCatalogError

logger = logging.getLogger(__name__)

# Upper bound (exclusive) for the random "until" offset: one day in seconds.
UNTIL_RANGE_SECONDS = 86399

RENDER_PATH = "/render/"
DEFAULT_RENDER_FORMAT = "protobuf"

# Graphite target punctuation left readable in the query string. Anything
# else (``+ & % # ; ?``, spaces) is percent-encoded.
TARGET_SAFE_CHARS = "()*,.:'{}[]=!$@|^/"

# Failed wraparound CAS attempts before a caller falls back to a locked wrap.
DEFAULT_MAX_CAS_RETRIES = 64


@dataclass(frozen=True, slots=True)
class Query:
    """A single render request to issue."""

    method: str
    url: str
    target: str
    index: int
    from_offset: int
    until_offset: int

    def __repr__(self) -> str:
        return f"Query(method={self.method}, url={self.url[:80]}...)"


class AtomicCounter:
    """
    Integer cell with atomic increment and compare-and-swap.

    CPython offers no lock-free integer, so each operation runs in a tiny
    critical section. Callers never hold the lock across anything else.
    """

    __slots__ = ("_value", "_lock")

    def __init__(self, value: int = 0):
        self._value = value
        self._lock = threading.Lock()

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def increment(self, delta: int = 1) -> int:
        """Add ``delta`` and return the new value."""
        with self._lock:
            self._value += delta
            return self._value

    def compare_and_swap(self, expected: int, new: int) -> bool:
        """Set the value to ``new`` only if it still equals ``expected``."""
        with self._lock:
            if self._value != expected:
                return False
            self._value = new
            return True

    def increment_wrapping(self, limit: int) -> int:
        """
        Increment, wrapping to 1 once the value would exceed ``limit``.

        Returns the new value, always in ``[1, limit]``.
        """
        with self._lock:
            self._value += 1
            if self._value > limit:
                self._value = 1
            return self._value


class QueryGenerator(ABC):
    """
    Abstract base class for query generators.

    Subclasses produce one Query per call and must be safe to call from many
    worker threads at once.
    """

    def __init__(
        self,
        window_seconds: int,
        render_format: str = DEFAULT_RENDER_FORMAT,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ):
        if window_seconds < 0:
            raise ValueError(f"window_seconds must be >= 0, got {window_seconds}")
        self.window_seconds = int(window_seconds)
        self.render_format = render_format
        # One Random per generator. Its methods run under the GIL, so
        # concurrent draws from worker threads do not corrupt its state.
        self.random = rng if rng is not None else random.Random(seed)

    @abstractmethod
    def generate_query(self) -> Query:
        """
        Generate the next query.

        Returns:
            Query: A render request to execute
        """
        pass

    def draw_offsets(self) -> tuple[int, int]:
        """Return ``(from, until)`` offsets in seconds before now."""
        until = self.random.randrange(UNTIL_RANGE_SECONDS)
        return until + self.window_seconds, until

    def build_url(self, target: str, from_offset: int, until_offset: int) -> str:
        encoded = quote(target, safe=TARGET_SAFE_CHARS)
        return (
            f"{RENDER_PATH}?format={self.render_format}&target={encoded}"
            f"&from=now-{from_offset}s&until=now-{until_offset}s"
        )


class CyclicQueryGenerator(QueryGenerator):
    """
    Round-robin query generator over a target catalog.

    The cursor counts slots handed out in the current cycle. Each caller
    increments it and uses ``token - 1`` as its catalog index. The caller
    whose token runs past the end of the catalog owns the wraparound: it
    CAS-es the cursor from its token to 1 and takes index 0. A caller that
    loses that race retries from the increment, never reusing a stale token.
    """

    def __init__(
        self,
        targets: Sequence[str],
        window_seconds: int,
        render_format: str = DEFAULT_RENDER_FORMAT,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
        max_cas_retries: int = DEFAULT_MAX_CAS_RETRIES,
    ):
        if len(targets) == 0:
            raise EmptyCatalogError("Cannot build a query generator over an empty catalog")
        super().__init__(window_seconds, render_format, seed=seed, rng=rng)
        self.targets = targets
        self.max_cas_retries = max_cas_retries
        self._cursor = AtomicCounter(0)

    @property
    def cursor(self) -> int:
        """Current raw cursor value (for diagnostics)."""
        return self._cursor.value

    def next_index(self) -> int:
        """Claim the next catalog slot."""
        size = len(self.targets)
        for _ in range(self.max_cas_retries):
            pos = self._cursor.increment()
            if pos <= size:
                return pos - 1
            if self._cursor.compare_and_swap(pos, 1):
                return 0
        # Lost the wraparound race too often; take one locked step instead.
        logger.debug("Wraparound contention, falling back to locked increment")
        return self._cursor.increment_wrapping(size) - 1

    def generate_query(self) -> Query:
        """Generate the next round-robin query with a random time window."""
        index = self.next_index()
        target = self.targets[index]
        from_offset, until_offset = self.draw_offsets()

        return Query(
            method="GET",
            url=self.build_url(target, from_offset, until_offset),
            target=target,
            index=index,
            from_offset=from_offset,
            until_offset=until_offset,
        )


def create_query_generator(
    targets: Sequence[str], window_seconds: int, **kwargs
) -> Optional[CyclicQueryGenerator]:
    """
    Factory function for a cyclic query generator.

    Args:
        targets: Target catalog
        window_seconds: Distance between ``from`` and ``until``
        **kwargs: Additional arguments for the generator

    Returns:
        CyclicQueryGenerator instance, or None when the catalog is empty
    """
    if len(targets) == 0:
        return None
    return CyclicQueryGenerator(targets, window_seconds, **kwargs)
