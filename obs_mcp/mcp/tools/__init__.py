"""FastMCP tool registrations grouped by domain."""

from .metrics import register_metrics_tools

__all__ = ["register_metrics_tools"]
