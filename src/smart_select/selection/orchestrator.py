"""Selection bookkeeping across overlapping root files.

Tracks which roots caused each file's auto-selection so that deselecting
one root never drops a file another active root still depends on.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace
from typing import Any

from smart_select.graph.models import DependencyGraph, SelectionKind
from smart_select.utils.async_io import normalize_path
from smart_select.utils.logging import get_logger

logger = get_logger(__name__)

# Per-root contribution: path -> (depth, kind)
Contribution = dict[str, tuple[int, SelectionKind]]


@dataclass
class SelectionRecord:
    """Why one file is auto-selected.

    Attributes:
        selected_by: Roots responsible for its inclusion.
        min_depth: Smallest depth across the contributing roots.
        selection_kind: AUTO_DEPENDENCY when any root imports it,
            AUTO_TEST when it is only present as a test file.
    """

    selected_by: set[str] = field(default_factory=set)
    min_depth: int = 0
    selection_kind: SelectionKind = SelectionKind.AUTO_DEPENDENCY

    def copy(self) -> "SelectionRecord":
        """Detached copy, unaffected by later updates to this record."""
        return replace(self, selected_by=set(self.selected_by))

    def to_dict(self) -> dict[str, Any]:
        """Convert to the metadata shape of a selection update."""
        return {
            "selection_kind": self.selection_kind.value,
            "selected_by": sorted(self.selected_by),
            "depth": self.min_depth,
        }


@dataclass
class SelectionUpdate:
    """Change to the active auto-selection.

    Attributes:
        added: Files that became selected.
        removed: Files no root selects anymore.
        metadata: Record of every file the change touched, as it stood
            when the change was made.
    """

    added: set[str] = field(default_factory=set)
    removed: set[str] = field(default_factory=set)
    metadata: dict[str, SelectionRecord] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.added and not self.removed

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "added": sorted(self.added),
            "removed": sorted(self.removed),
            "metadata": {path: record.to_dict() for path, record in sorted(self.metadata.items())},
        }


class KeyedLock:
    """One asyncio lock per key, dropped when nobody holds or awaits it."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


def _contribution(root: str, graph: DependencyGraph) -> Contribution:
    """Files a graph selects on behalf of its root."""
    result: Contribution = {}
    for path, node in graph.nodes.items():
        if path != root:
            result[path] = (node.depth, SelectionKind.AUTO_DEPENDENCY)
    for node in graph.nodes.values():
        for test_file in node.test_files:
            if test_file == root or test_file in graph.nodes:
                continue
            previous = result.get(test_file)
            if previous is None or node.depth < previous[0]:
                result[test_file] = (node.depth, SelectionKind.AUTO_TEST)
    return result


class SelectionOrchestrator:
    """Maintains per-file selection records for all active roots.

    Record updates are serialized per path; updates for one root are
    serialized against each other. Manual selection state is not tracked
    here.
    """

    def __init__(self) -> None:
        self._records: dict[str, SelectionRecord] = {}
        self._contributions: dict[str, Contribution] = {}
        self._graphs: dict[str, DependencyGraph] = {}
        self._root_locks = KeyedLock()
        self._record_locks = KeyedLock()

    @property
    def roots(self) -> set[str]:
        """Roots currently applied."""
        return set(self._contributions)

    def graph_for(self, root: str) -> DependencyGraph | None:
        """The graph last applied for a root."""
        return self._graphs.get(normalize_path(root))

    def record(self, path: str) -> SelectionRecord | None:
        """Selection record of a file, None when not auto-selected."""
        return self._records.get(normalize_path(path))

    def active(self) -> set[str]:
        """Files currently auto-selected."""
        return set(self._records)

    def snapshot(self) -> dict[str, dict[str, Any]]:
        """Metadata of every auto-selected file."""
        return {path: record.to_dict() for path, record in sorted(self._records.items())}

    async def apply_root(self, root: str, graph: DependencyGraph) -> SelectionUpdate:
        """Merge a root's graph into the selection.

        Re-applying a root replaces its previous contribution: files it no
        longer reaches lose this root as a selector.

        Args:
            root: Root file the graph was built from.
            graph: Its dependency graph.

        Returns:
            Files added and removed, with their current records.
        """
        root = normalize_path(root)
        update = SelectionUpdate()
        async with self._root_locks.hold(root):
            new = _contribution(root, graph)
            old = self._contributions.get(root, {})
            self._contributions[root] = new
            self._graphs[root] = graph

            for path in old.keys() - new.keys():
                await self._release(root, path, update)
            for path, (depth, kind) in new.items():
                await self._claim(root, path, depth, kind, update)

        logger.debug(
            "Applied root",
            root=root,
            added=len(update.added),
            removed=len(update.removed),
            active=len(self._records),
        )
        return update

    async def remove_root(self, root: str) -> SelectionUpdate:
        """Withdraw a root from every record it contributes to.

        Returns:
            Files whose last selector was this root.
        """
        root = normalize_path(root)
        update = SelectionUpdate()
        async with self._root_locks.hold(root):
            old = self._contributions.pop(root, {})
            self._graphs.pop(root, None)
            for path in old:
                await self._release(root, path, update)

        logger.debug(
            "Removed root",
            root=root,
            removed=len(update.removed),
            active=len(self._records),
        )
        return update

    async def _claim(
        self,
        root: str,
        path: str,
        depth: int,
        kind: SelectionKind,
        update: SelectionUpdate,
    ) -> None:
        async with self._record_locks.hold(path):
            record = self._records.get(path)
            if record is None:
                record = SelectionRecord(selected_by={root}, min_depth=depth, selection_kind=kind)
                self._records[path] = record
                update.added.add(path)
            else:
                record.selected_by.add(root)
                self._refresh(path, record)
            update.metadata[path] = record.copy()

    async def _release(self, root: str, path: str, update: SelectionUpdate) -> None:
        async with self._record_locks.hold(path):
            record = self._records.get(path)
            if record is None or root not in record.selected_by:
                return
            record.selected_by.discard(root)
            if not record.selected_by:
                del self._records[path]
                update.removed.add(path)
                update.added.discard(path)
            else:
                self._refresh(path, record)
            update.metadata[path] = record.copy()

    def _refresh(self, path: str, record: SelectionRecord) -> None:
        """Recompute depth and kind from the roots still selecting a file."""
        entries = [
            self._contributions[r][path]
            for r in record.selected_by
            if path in self._contributions.get(r, {})
        ]
        if not entries:
            return
        record.min_depth = min(depth for depth, _ in entries)
        if any(kind == SelectionKind.AUTO_DEPENDENCY for _, kind in entries):
            record.selection_kind = SelectionKind.AUTO_DEPENDENCY
        else:
            record.selection_kind = SelectionKind.AUTO_TEST

    async def clear(self) -> SelectionUpdate:
        """Withdraw every root."""
        update = SelectionUpdate()
        for root in list(self._contributions):
            partial = await self.remove_root(root)
            update.removed |= partial.removed
            update.metadata.update(partial.metadata)
        return update
