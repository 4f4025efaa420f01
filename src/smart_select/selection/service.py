"""Smart selection service.

Coordinates the analyzer and the selection orchestrator for callers: it
enforces the enabled switch, keeps the set of manually selected roots and
makes a newer request for a root supersede an older in-flight one.
"""

import asyncio
from pathlib import Path

from smart_select.analysis.analyzer import DependencyAnalyzer
from smart_select.config import AnalysisConfig, Settings
from smart_select.core.exceptions import SmartSelectDisabledError
from smart_select.graph.algorithms import ProgressCallback
from smart_select.graph.models import DependencyGraph
from smart_select.selection.orchestrator import SelectionOrchestrator, SelectionUpdate
from smart_select.utils.async_io import normalize_path
from smart_select.utils.logging import get_logger

logger = get_logger(__name__)


class SmartSelectService:
    """Entry point for analysis and selection requests."""

    def __init__(
        self,
        analyzer: DependencyAnalyzer,
        config: AnalysisConfig | None = None,
        orchestrator: SelectionOrchestrator | None = None,
    ) -> None:
        """Initialize service.

        Args:
            analyzer: Long-lived analyzer owning the shared caches.
            config: Default options for requests that carry none.
            orchestrator: Selection bookkeeping.
        """
        self.analyzer = analyzer
        self.config = config or AnalysisConfig()
        self.orchestrator = orchestrator or SelectionOrchestrator()
        self._manual_roots: set[str] = set()
        self._in_flight: dict[str, asyncio.Event] = {}

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmartSelectService":
        """Create a service from application settings."""
        return cls(
            analyzer=DependencyAnalyzer.from_settings(settings),
            config=settings.analysis,
        )

    @property
    def manual_roots(self) -> set[str]:
        """Roots the caller selected explicitly."""
        return set(self._manual_roots)

    def _resolve_config(self, config: AnalysisConfig | None) -> AnalysisConfig:
        resolved = config or self.config
        if not resolved.enabled:
            raise SmartSelectDisabledError()
        return resolved

    async def analyze(
        self,
        root: str | Path,
        config: AnalysisConfig | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> DependencyGraph:
        """Build the dependency graph of a root without selecting anything.

        Raises:
            SmartSelectDisabledError: If smart selection is disabled.
            InvalidConfigurationError: If the configuration is out of range.
        """
        resolved = self._resolve_config(config)
        return await self.analyzer.analyze(root, resolved, on_progress=on_progress)

    async def select_root(
        self,
        root: str | Path,
        config: AnalysisConfig | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> SelectionUpdate | None:
        """Analyze a root and merge its dependencies into the selection.

        A request still running for the same root is cancelled; its
        partial result is discarded.

        Returns:
            The selection update, or None when this request was superseded
            before it finished.

        Raises:
            SmartSelectDisabledError: If smart selection is disabled.
            InvalidConfigurationError: If the configuration is out of range.
        """
        resolved = self._resolve_config(config)
        root_path = normalize_path(root)

        previous = self._in_flight.get(root_path)
        if previous is not None:
            previous.set()
            logger.info("Superseding in-flight analysis", root=root_path)

        cancel_event = asyncio.Event()
        self._in_flight[root_path] = cancel_event
        try:
            graph = await self.analyzer.analyze(
                root_path,
                resolved,
                on_progress=on_progress,
                cancel_event=cancel_event,
            )
        finally:
            if self._in_flight.get(root_path) is cancel_event:
                del self._in_flight[root_path]

        if cancel_event.is_set():
            logger.info("Discarding superseded analysis", root=root_path)
            return None

        self._manual_roots.add(root_path)
        update = await self.orchestrator.apply_root(root_path, graph)
        if graph.is_partial:
            logger.warning(
                "Applied partial dependency graph",
                root=root_path,
                truncated=graph.truncated,
                timed_out=graph.timed_out,
            )
        return update

    async def deselect_root(self, root: str | Path) -> SelectionUpdate:
        """Remove a root and every file only it was selecting.

        Works while disabled so that earlier selections can be undone.
        """
        root_path = normalize_path(root)
        pending = self._in_flight.pop(root_path, None)
        if pending is not None:
            pending.set()
        self._manual_roots.discard(root_path)
        return await self.orchestrator.remove_root(root_path)

    def reset_caches(self) -> None:
        """Drop the analyzer's alias, ignore-rule and import caches."""
        self.analyzer.reset_caches()
