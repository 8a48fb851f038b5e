"""
Exceptions raised while preparing a load run.

Request-level failures never surface as exceptions; they are recorded as
failed requests by the executor.
"""


class RenderBenchError(Exception):
    """Base class for render-bench errors."""


class CatalogLoadError(RenderBenchError):
    """The target catalog file could not be read or parsed."""


class EmptyCatalogError(RenderBenchError):
    """A query generator was requested over a catalog with no targets."""


class RunPlanError(RenderBenchError):
    """The run plan configuration is inconsistent."""
