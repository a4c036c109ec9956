"""Command-line interface for workload_restarter."""
