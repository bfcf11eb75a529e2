"""MediaHub activity tracking and dashboard aggregation service."""

__version__ = "1.0.0"
