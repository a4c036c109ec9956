"""Version information for workload_restarter."""

__version__ = "0.1.0"
