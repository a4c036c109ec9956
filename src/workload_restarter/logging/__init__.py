"""Logging configuration for workload_restarter."""

from workload_restarter.logging.config import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
