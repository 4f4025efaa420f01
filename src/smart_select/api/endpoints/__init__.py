"""API endpoints module.

Contains all REST API endpoint routers.
"""

from smart_select.api.endpoints import analyze, health, selection

__all__ = [
    "analyze",
    "health",
    "selection",
]
