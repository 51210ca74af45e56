"""Telemetry ingestion: feed parsing and defensive normalization."""
