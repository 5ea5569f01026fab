"""API routers for Cluster Register."""

from . import generators, health

__all__ = ["generators", "health"]
