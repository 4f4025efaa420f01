"""Graph models for file dependency analysis.

Defines the per-file node and the per-root graph produced by one analysis.
Nodes are keyed by absolute path and edges are adjacency sets of paths, so
cycles are plain data rather than reference loops.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SelectionKind(str, Enum):
    """How a file entered the selection."""

    MANUAL = "manual"
    AUTO_DEPENDENCY = "auto-dependency"
    AUTO_TEST = "auto-test"


class ExcludeReason(str, Enum):
    """Why a resolved file was dropped from the graph."""

    EXTERNALLY_MANAGED = "externally-managed"
    IGNORE_RULE = "ignore-rule"
    USER_PATTERN = "user-pattern"


@dataclass
class DependencyNode:
    """One file in the dependency graph.

    Attributes:
        path: Absolute, normalized file path.
        raw_imports: Specifiers in source order, including unresolved
            and external ones.
        resolved_imports: Paths that resolved and were not excluded.
        test_files: Associated test files found on disk.
        depth: Import hops from the root, fixed at first discovery.
        selection_kind: MANUAL for the root, AUTO_DEPENDENCY otherwise.
        excluded: Whether the file itself was excluded.
        exclude_reason: Why, when excluded.
        expanded: False when traversal stopped before reading the file.
        error: Message when the file could not be read or analyzed.
    """

    path: str
    depth: int
    raw_imports: list[str] = field(default_factory=list)
    resolved_imports: set[str] = field(default_factory=set)
    test_files: set[str] = field(default_factory=set)
    selection_kind: SelectionKind = SelectionKind.AUTO_DEPENDENCY
    excluded: bool = False
    exclude_reason: ExcludeReason | None = None
    expanded: bool = False
    error: str | None = None

    def __post_init__(self) -> None:
        if self.depth < 0:
            raise ValueError("Depth must be >= 0")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "path": self.path,
            "raw_imports": list(self.raw_imports),
            "resolved_imports": sorted(self.resolved_imports),
            "test_files": sorted(self.test_files),
            "depth": self.depth,
            "selection_kind": self.selection_kind.value,
            "excluded": self.excluded,
            "exclude_reason": self.exclude_reason.value if self.exclude_reason else None,
            "expanded": self.expanded,
            "error": self.error,
        }


@dataclass
class DependencyGraph:
    """Result of analyzing one root file.

    Attributes:
        nodes: Path to node, one per visited, non-excluded file.
        edges: Forward adjacency (importer to imported).
        reverse_edges: Inverted adjacency (imported to importers).
        roots: The originating root path.
        cycles: Closed paths such as ``[a, b, a]``.
        excluded: Resolved paths dropped by the exclusion filter.
        truncated: Node-count ceiling was reached.
        timed_out: Wall-clock budget ran out.
        cancelled: A cancellation signal stopped traversal.
    """

    nodes: dict[str, DependencyNode] = field(default_factory=dict)
    edges: dict[str, set[str]] = field(default_factory=dict)
    reverse_edges: dict[str, set[str]] = field(default_factory=dict)
    roots: set[str] = field(default_factory=set)
    cycles: list[list[str]] = field(default_factory=list)
    excluded: dict[str, ExcludeReason] = field(default_factory=dict)
    truncated: bool = False
    timed_out: bool = False
    cancelled: bool = False

    @property
    def is_partial(self) -> bool:
        """Whether traversal stopped before exhausting the graph."""
        return self.truncated or self.timed_out or self.cancelled

    @property
    def node_count(self) -> int:
        """Number of nodes."""
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        """Number of forward edges."""
        return sum(len(targets) for targets in self.edges.values())

    def edge_pairs(self) -> set[tuple[str, str]]:
        """All forward edges as (source, target) pairs."""
        return {(src, dst) for src, targets in self.edges.items() for dst in targets}

    def depth_of(self, path: str) -> int | None:
        """Depth of a node, None if absent."""
        node = self.nodes.get(path)
        return node.depth if node else None

    def dependents_of(self, path: str) -> set[str]:
        """Files that import ``path``.

        Read-only view over reverse_edges; selection never uses it.
        """
        return set(self.reverse_edges.get(path, ()))

    def build_reverse_edges(self) -> None:
        """Derive reverse_edges by inverting edges."""
        reverse: dict[str, set[str]] = {path: set() for path in self.nodes}
        for src, targets in self.edges.items():
            for dst in targets:
                reverse.setdefault(dst, set()).add(src)
        self.reverse_edges = reverse

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "roots": sorted(self.roots),
            "nodes": {path: node.to_dict() for path, node in sorted(self.nodes.items())},
            "edges": {src: sorted(dst) for src, dst in sorted(self.edges.items())},
            "reverse_edges": {
                dst: sorted(src) for dst, src in sorted(self.reverse_edges.items())
            },
            "cycles": [list(cycle) for cycle in self.cycles],
            "excluded": {path: reason.value for path, reason in sorted(self.excluded.items())},
            "truncated": self.truncated,
            "timed_out": self.timed_out,
            "cancelled": self.cancelled,
        }
