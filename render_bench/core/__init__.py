"""
Core load generation: target catalog, query generators, run plan assembly,
execution, metrics and reporting.
"""
