"""Graceful rollout restarts for workload controllers of matching pods."""

from workload_restarter.__version__ import __version__

__all__ = ["__version__"]
