"""Selection module.

Keeps the auto-selection consistent as roots are added and removed.
"""

from smart_select.selection.orchestrator import (
    SelectionOrchestrator,
    SelectionRecord,
    SelectionUpdate,
)
from smart_select.selection.service import SmartSelectService

__all__ = [
    "SelectionOrchestrator",
    "SelectionRecord",
    "SelectionUpdate",
    "SmartSelectService",
]
