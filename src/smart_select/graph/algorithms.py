"""Graph algorithms for dependency traversal.

Provides the two primitives the analyzer is built on: a bounded,
asynchronous breadth-first traversal over a graph that is discovered as
it is walked, and a cycle detector that observes the edges that traversal
records.
"""

import asyncio
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable

import rustworkx as rx

from smart_select.utils.logging import get_logger

logger = get_logger(__name__)

# Returns the neighbours of a node; called once per visited node
Expander = Callable[[str, int], Awaitable[Iterable[str]]]
ProgressCallback = Callable[["ProgressEvent"], None]


class StopReason(str, Enum):
    """Why a traversal ended."""

    EXHAUSTED = "exhausted"
    TRUNCATED = "truncated"
    TIMED_OUT = "timed-out"
    CANCELLED = "cancelled"


@dataclass
class ProgressEvent:
    """Periodic progress report.

    Attributes:
        visited: Nodes discovered so far.
        queued: Nodes waiting to be expanded.
    """

    visited: int
    queued: int

    def to_dict(self) -> dict[str, int]:
        """Convert to dictionary representation."""
        return {"visited": self.visited, "queued": self.queued}


@dataclass
class TraversalOutcome:
    """Result of a bounded breadth-first traversal.

    Attributes:
        depths: Node to depth, in discovery order.
        edges: Forward adjacency between discovered nodes.
        expanded: Nodes whose neighbours were fetched.
        cycles: Cycles observed among the recorded edges.
        stop_reason: Why the traversal ended.
    """

    depths: dict[str, int] = field(default_factory=dict)
    edges: dict[str, set[str]] = field(default_factory=dict)
    expanded: set[str] = field(default_factory=set)
    cycles: list[list[str]] = field(default_factory=list)
    stop_reason: StopReason = StopReason.EXHAUSTED

    @property
    def truncated(self) -> bool:
        return self.stop_reason == StopReason.TRUNCATED

    @property
    def timed_out(self) -> bool:
        return self.stop_reason == StopReason.TIMED_OUT

    @property
    def cancelled(self) -> bool:
        return self.stop_reason == StopReason.CANCELLED

    @property
    def frontier(self) -> list[str]:
        """Discovered nodes that were never expanded."""
        return [node for node in self.depths if node not in self.expanded]


class CycleDetector:
    """Records cycles as edges are added to a growing graph.

    Edges are mirrored into a rustworkx digraph. Each new edge
    ``source -> target`` closes one cycle per simple path from ``target``
    back to ``source``, so every simple cycle is reported exactly when its
    last edge is seen. Each distinct cycle is kept once, regardless of
    which node it was entered from.
    """

    def __init__(self) -> None:
        self._graph: rx.PyDiGraph = rx.PyDiGraph()
        self._node_id_to_index: dict[str, int] = {}
        self._index_to_node_id: dict[int, str] = {}
        self._seen: set[tuple[str, ...]] = set()
        self.cycles: list[list[str]] = []

    def _index(self, node: str) -> int:
        index = self._node_id_to_index.get(node)
        if index is None:
            index = self._graph.add_node(node)
            self._node_id_to_index[node] = index
            self._index_to_node_id[index] = node
        return index

    def add_edge(self, source: str, target: str) -> list[list[str]]:
        """Record an edge and report the cycles it closes.

        Args:
            source: Importing node.
            target: Imported node.

        Returns:
            New closed paths ``[target, ..., source, target]``, shortest
            first; empty when the edge closes no new cycle.
        """
        source_index = self._index(source)
        target_index = self._index(target)
        if self._graph.has_edge(source_index, target_index):
            return []
        self._graph.add_edge(source_index, target_index, None)

        if source_index == target_index:
            paths = [[target_index]]
        else:
            paths = rx.digraph_all_simple_paths(self._graph, target_index, source_index)

        closed = [[self._index_to_node_id[i] for i in path] for path in paths]
        closed.sort(key=lambda path: (len(path), path))

        found: list[list[str]] = []
        for path in closed:
            cycle = path + [target]
            key = self._canonical(cycle)
            if key in self._seen:
                continue
            self._seen.add(key)
            self.cycles.append(cycle)
            found.append(cycle)
        return found

    @staticmethod
    def _canonical(cycle: list[str]) -> tuple[str, ...]:
        """Rotation-independent key of a closed path."""
        body = cycle[:-1]
        pivot = body.index(min(body))
        return tuple(body[pivot:] + body[:pivot])


def _emit_progress(callback: ProgressCallback, event: ProgressEvent) -> None:
    try:
        callback(event)
    except Exception as e:
        logger.warning("Progress callback failed", error=str(e))


async def bounded_breadth_first(
    start: str,
    expand: Expander,
    max_depth: int | None = None,
    max_nodes: int | None = None,
    timeout: float | None = None,
    cancel_event: asyncio.Event | None = None,
    on_progress: ProgressCallback | None = None,
    progress_interval: float = 1.0,
) -> TraversalOutcome:
    """Walk a lazily discovered graph level by level.

    Nodes are discovered at most once, so each keeps the depth of its
    first (shortest) discovery and the walk terminates on cyclic graphs.
    Nodes at ``max_depth`` are still expanded, but only edges back to
    already discovered nodes are recorded for them; nothing deeper is
    enqueued.

    Args:
        start: Starting node, depth 0.
        expand: Coroutine returning a node's neighbours.
        max_depth: Deepest level to discover, None for no limit.
        max_nodes: Stop and flag truncation once this many nodes exist.
        timeout: Wall-clock budget in seconds.
        cancel_event: Stops the walk at its frontier once set.
        on_progress: Called with a ProgressEvent at most once per
            ``progress_interval`` seconds.
        progress_interval: Minimum seconds between progress reports.

    Returns:
        The outcome, partial when the walk was stopped early.
    """
    loop = asyncio.get_running_loop()
    started = loop.time()
    deadline = started + timeout if timeout is not None else None
    last_progress = started

    outcome = TraversalOutcome(depths={start: 0})
    detector = CycleDetector()
    queue: deque[str] = deque([start])

    while queue:
        if cancel_event is not None and cancel_event.is_set():
            outcome.stop_reason = StopReason.CANCELLED
            break

        remaining = None
        if deadline is not None:
            remaining = deadline - loop.time()
            if remaining <= 0:
                outcome.stop_reason = StopReason.TIMED_OUT
                break

        node = queue.popleft()
        depth = outcome.depths[node]
        try:
            if remaining is None:
                neighbours = await expand(node, depth)
            else:
                neighbours = await asyncio.wait_for(expand(node, depth), timeout=remaining)
        except asyncio.TimeoutError:
            outcome.stop_reason = StopReason.TIMED_OUT
            break
        outcome.expanded.add(node)

        can_descend = max_depth is None or depth < max_depth
        hit_ceiling = False
        for neighbour in neighbours:
            if neighbour not in outcome.depths:
                if not can_descend:
                    continue
                if max_nodes is not None and len(outcome.depths) >= max_nodes:
                    hit_ceiling = True
                    continue
                outcome.depths[neighbour] = depth + 1
                queue.append(neighbour)

            targets = outcome.edges.setdefault(node, set())
            if neighbour not in targets:
                targets.add(neighbour)
                detector.add_edge(node, neighbour)

        if hit_ceiling:
            outcome.stop_reason = StopReason.TRUNCATED
            break

        if on_progress is not None:
            now = loop.time()
            if now - last_progress >= progress_interval:
                last_progress = now
                _emit_progress(on_progress, ProgressEvent(len(outcome.depths), len(queue)))

    outcome.cycles = detector.cycles
    return outcome


def summarize(outcome: TraversalOutcome) -> dict[str, Any]:
    """Counts describing an outcome, for logging."""
    return {
        "nodes": len(outcome.depths),
        "edges": sum(len(t) for t in outcome.edges.values()),
        "cycles": len(outcome.cycles),
        "frontier": len(outcome.frontier),
        "stop_reason": outcome.stop_reason.value,
    }
