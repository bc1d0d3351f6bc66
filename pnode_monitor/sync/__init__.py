"""Sync pipeline: fan-out collection, aggregation, and cycle orchestration."""
