"""
render-bench: synthetic read load for Graphite-style /render APIs.
"""

__version__ = "0.1.0"
