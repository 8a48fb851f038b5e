"""
Target Catalog

Loads the list of Graphite targets the query generators cycle over. The
source is a CSV file with a single column, an optional set of ``#`` comment
lines, and a header row that is discarded.
"""

import csv
import logging
from pathlib import Path
from typing import Iterable, Iterator, Sequence

from render_bench.core.errors import CatalogLoadError

logger = logging.getLogger(__name__)


class TargetCatalog(Sequence[str]):
    """
    Immutable ordered list of target identifiers.

    Shared read-only by every generator and worker of a run, so lookups need
    no locking.
    """

    __slots__ = ("_targets", "source")

    def __init__(self, targets: Iterable[str], source: str | None = None):
        self._targets: tuple[str, ...] = tuple(targets)
        self.source = source

    def __getitem__(self, index):
        return self._targets[index]

    def __len__(self) -> int:
        return len(self._targets)

    def __iter__(self) -> Iterator[str]:
        return iter(self._targets)

    def __eq__(self, other) -> bool:
        if isinstance(other, TargetCatalog):
            return self._targets == other._targets
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._targets)

    def __repr__(self) -> str:
        return f"TargetCatalog(targets={len(self._targets)}, source={self.source!r})"

    @property
    def targets(self) -> tuple[str, ...]:
        return self._targets


def _data_lines(handle) -> Iterator[str]:
    """Yield CSV lines, dropping lines that start with ``#``."""
    for line in handle:
        if line.startswith("#"):
            continue
        yield line


def parse_targets(lines: Iterable[str], source: str = "<memory>") -> TargetCatalog:
    """
    Parse catalog records from an iterable of text lines.

    Args:
        lines: CSV text lines (header included)
        source: Name used in error messages

    Returns:
        TargetCatalog with the header removed

    Raises:
        CatalogLoadError: If any record does not have exactly one field
    """
    targets: list[str] = []
    reader = csv.reader(_data_lines(lines))
    try:
        for record in reader:
            if not record:
                continue
            if len(record) != 1:
                raise CatalogLoadError(
                    f"{source}:{reader.line_num}: expected 1 field, got {len(record)}"
                )
            targets.append(record[0])
    except csv.Error as e:
        raise CatalogLoadError(f"{source}:{reader.line_num}: {e}") from e

    # First record is the header.
    return TargetCatalog(targets[1:], source=source)


def load_target_catalog(path: str | Path) -> TargetCatalog:
    """
    Load a target catalog from a CSV file.

    Raises:
        CatalogLoadError: If the file is unreadable or malformed
    """
    path = Path(path)
    try:
        with open(path, "r", newline="", encoding="utf-8") as f:
            catalog = parse_targets(f, source=str(path))
    except OSError as e:
        raise CatalogLoadError(f"Cannot read targets file {path}: {e}") from e

    logger.info("Loaded %d targets from %s", len(catalog), path)
    return catalog
