"""Graph module for file dependency analysis.

Provides the dependency graph model and the traversal primitives it is
built with.
"""

from smart_select.graph.algorithms import (
    CycleDetector,
    ProgressEvent,
    StopReason,
    TraversalOutcome,
    bounded_breadth_first,
)
from smart_select.graph.models import (
    DependencyGraph,
    DependencyNode,
    ExcludeReason,
    SelectionKind,
)

__all__ = [
    # Models
    "DependencyGraph",
    "DependencyNode",
    "ExcludeReason",
    "SelectionKind",
    # Algorithms
    "bounded_breadth_first",
    "CycleDetector",
    "ProgressEvent",
    "StopReason",
    "TraversalOutcome",
]
