"""Prometheus instrumentation for the booking engine."""
