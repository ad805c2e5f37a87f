"""Project-scoped todo tracking with dependency integrity and progress reports."""

__version__ = "1.0.1"
