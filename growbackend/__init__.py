"""Grow-controller backend parts: config, records, Redis state, Prometheus series, HTTP middleware, caching and timelapse helpers."""

__version__ = "0.1.0"