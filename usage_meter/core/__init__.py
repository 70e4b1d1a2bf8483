"""
Core modules for usage-meter.

This package contains the token extraction, timestamp parsing,
deduplication and windowed aggregation logic.
"""
