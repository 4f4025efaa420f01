"""Dependency analysis driver.

Builds the dependency graph of one root file by walking its imports
breadth-first. The analyzer is long-lived: the alias table, ignore rules
and per-file import results it caches are shared by every analysis it
runs, while each analysis keeps its own traversal state.
"""

import asyncio
import os
from pathlib import Path

from smart_select.analysis.test_files import TestFileLocator
from smart_select.config import MAX_DEPTH, MIN_DEPTH, AnalysisConfig, PerformanceSettings, Settings
from smart_select.core.exceptions import (
    AnalysisCancelledError,
    AnalysisTimeoutError,
    GraphTooLargeError,
    InvalidConfigurationError,
    UnreadableFileError,
)
from smart_select.graph.algorithms import (
    ProgressCallback,
    StopReason,
    bounded_breadth_first,
    summarize,
)
from smart_select.graph.models import (
    DependencyGraph,
    DependencyNode,
    ExcludeReason,
    SelectionKind,
)
from smart_select.parsing.cache import ImportCache
from smart_select.parsing.import_extractor import ExtractorRegistry, ImportExtractor
from smart_select.parsing.models import ImportStatement
from smart_select.resolution.exclusion import ExclusionFilter
from smart_select.resolution.path_resolver import PathResolver
from smart_select.utils.async_io import AsyncFileSystem, normalize_path
from smart_select.utils.logging import LogContext, get_logger

logger = get_logger(__name__)


def validate_config(config: AnalysisConfig) -> None:
    """Reject configuration that cannot drive a traversal.

    Pydantic validates on construction; this catches configs built with
    ``model_construct`` or mutated afterwards.

    Raises:
        InvalidConfigurationError: If an option is out of range.
    """
    depth = config.max_depth
    if isinstance(depth, bool) or not isinstance(depth, int):
        raise InvalidConfigurationError("max_depth", depth, "must be an integer")
    if not MIN_DEPTH <= depth <= MAX_DEPTH:
        raise InvalidConfigurationError(
            "max_depth", depth, f"must be between {MIN_DEPTH} and {MAX_DEPTH}"
        )
    for ext in config.source_extensions:
        if not ext.startswith("."):
            raise InvalidConfigurationError(
                "source_extensions", ext, "must start with a dot"
            )


class DependencyAnalyzer:
    """Builds dependency graphs for root files.

    Example:
        >>> analyzer = DependencyAnalyzer("/project")
        >>> graph = await analyzer.analyze("/project/src/app.ts", AnalysisConfig())
        >>> sorted(graph.nodes)
    """

    def __init__(
        self,
        workspace_root: str | Path,
        fs: AsyncFileSystem | None = None,
        performance: PerformanceSettings | None = None,
        path_mapping_file: str = "tsconfig.json",
        registry: ExtractorRegistry | None = None,
        include_global_excludes: bool = True,
    ) -> None:
        """Initialize analyzer.

        Args:
            workspace_root: Project root directory.
            fs: File-system collaborator shared by all components.
            performance: Node ceiling, timeout and cache limits.
            path_mapping_file: Alias configuration file at the root.
            registry: Extraction strategies by file suffix.
            include_global_excludes: Honour the user's global git excludes.
        """
        self.workspace_root = normalize_path(workspace_root)
        self.fs = fs or AsyncFileSystem()
        self.performance = performance or PerformanceSettings()
        self.registry = registry or ExtractorRegistry()
        self.resolver = PathResolver(self.workspace_root, self.fs, path_mapping_file)
        self.exclusion = ExclusionFilter(
            self.workspace_root, self.fs, include_global_excludes=include_global_excludes
        )
        self.test_locator = TestFileLocator(self.workspace_root, self.fs)
        self.import_cache = ImportCache(max_size=self.performance.import_cache_max_size)

    @classmethod
    def from_settings(cls, settings: Settings) -> "DependencyAnalyzer":
        """Create an analyzer from application settings."""
        return cls(
            workspace_root=settings.workspace.root,
            performance=settings.performance,
            path_mapping_file=settings.workspace.path_mapping_file,
            registry=ExtractorRegistry(settings.analysis.source_extensions),
            include_global_excludes=settings.workspace.use_global_excludes,
        )

    async def analyze(
        self,
        root: str | Path,
        config: AnalysisConfig,
        on_progress: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
        max_nodes: int | None = None,
        timeout: float | None = None,
    ) -> DependencyGraph:
        """Build the dependency graph of a root file.

        Per-file faults are recorded on the affected node and never raised.
        Hitting the node ceiling, the timeout or a cancellation returns the
        graph built so far, flagged accordingly.

        Args:
            root: Root file path.
            config: Analysis options.
            on_progress: Receives periodic ProgressEvent reports.
            cancel_event: Stops the traversal once set.
            max_nodes: Node ceiling, defaults to the performance setting.
            timeout: Wall-clock budget, defaults to the performance setting.

        Returns:
            The dependency graph rooted at ``root``.

        Raises:
            InvalidConfigurationError: If the configuration is out of range.
        """
        validate_config(config)
        root_path = normalize_path(root)
        max_nodes = max_nodes if max_nodes is not None else self.performance.analysis_max_nodes
        timeout = timeout if timeout is not None else self.performance.analysis_timeout_seconds

        loop = asyncio.get_running_loop()
        started = loop.time()

        with LogContext(analysis_root=root_path):
            await self.resolver.ensure_aliases_loaded()

            nodes: dict[str, DependencyNode] = {}
            excluded: dict[str, ExcludeReason] = {}

            async def expand(path: str, depth: int) -> list[str]:
                node = DependencyNode(path=path, depth=depth)
                nodes[path] = node
                return await self._expand_node(node, config, excluded)

            outcome = await bounded_breadth_first(
                root_path,
                expand,
                max_depth=config.effective_max_depth,
                max_nodes=max_nodes,
                timeout=timeout,
                cancel_event=cancel_event,
                on_progress=on_progress,
                progress_interval=self.performance.progress_interval_seconds,
            )

            graph = DependencyGraph(roots={root_path}, cycles=outcome.cycles)
            for path, depth in outcome.depths.items():
                node = nodes.get(path)
                if node is None or path not in outcome.expanded:
                    # Stopped before (or while) reading this file
                    node = DependencyNode(path=path, depth=depth)
                else:
                    node.expanded = True
                graph.nodes[path] = node
                graph.edges[path] = set(outcome.edges.get(path, ()))
            graph.build_reverse_edges()
            graph.excluded = {p: r for p, r in excluded.items() if p not in graph.nodes}

            root_node = graph.nodes[root_path]
            root_node.selection_kind = SelectionKind.MANUAL
            decision = await self.exclusion.should_exclude(root_path, config)
            if decision:
                root_node.excluded = True
                root_node.exclude_reason = decision.reason

            self._apply_stop_reason(graph, outcome.stop_reason, root_path, max_nodes, timeout)

            logger.info(
                "Analysis completed",
                **summarize(outcome),
                excluded=len(graph.excluded),
                duration_ms=round((loop.time() - started) * 1000, 2),
            )
        return graph

    def _apply_stop_reason(
        self,
        graph: DependencyGraph,
        reason: StopReason,
        root: str,
        max_nodes: int,
        timeout: float,
    ) -> None:
        if reason == StopReason.TRUNCATED:
            graph.truncated = True
            warning = GraphTooLargeError(max_nodes)
            logger.warning(warning.message, **warning.details)
        elif reason == StopReason.TIMED_OUT:
            graph.timed_out = True
            warning = AnalysisTimeoutError(timeout)
            logger.warning(warning.message, **warning.details)
        elif reason == StopReason.CANCELLED:
            graph.cancelled = True
            notice = AnalysisCancelledError(root)
            logger.info(notice.message, **notice.details)

    async def _expand_node(
        self,
        node: DependencyNode,
        config: AnalysisConfig,
        excluded: dict[str, ExcludeReason],
    ) -> list[str]:
        """Fill a node's derived fields and return the files it depends on.

        Any failure leaves the node with empty derived data and stops
        expansion below it.
        """
        try:
            statements = await self.extract_imports(node.path, config)
            node.raw_imports = [s.source for s in statements]

            neighbours: list[str] = []
            for statement in statements:
                if self.resolver.is_external(statement.source):
                    continue
                resolved = await self.resolver.resolve(statement.source, node.path)
                if resolved is None:
                    continue
                decision = await self.exclusion.should_exclude(resolved, config)
                if decision:
                    excluded.setdefault(resolved, decision.reason)  # type: ignore[arg-type]
                    continue
                node.resolved_imports.add(resolved)
                if resolved not in neighbours:
                    neighbours.append(resolved)

            if config.include_tests:
                node.test_files = await self.test_locator.locate(
                    node.path,
                    config.source_extensions,
                    config.test_file_patterns,
                )
            return neighbours
        except UnreadableFileError as e:
            logger.warning("Skipping unreadable file", file_path=node.path, error=str(e.cause))
            self._clear_derived(node, e.message)
            return []
        except Exception as e:
            logger.warning("File analysis failed", file_path=node.path, error=str(e))
            self._clear_derived(node, str(e))
            return []

    @staticmethod
    def _clear_derived(node: DependencyNode, error: str) -> None:
        node.raw_imports = []
        node.resolved_imports = set()
        node.test_files = set()
        node.error = error

    def _extractor_for(self, file_path: str, config: AnalysisConfig) -> ImportExtractor | None:
        _, ext = os.path.splitext(file_path)
        if ext.lower() not in {e.lower() for e in config.source_extensions}:
            return None
        return self.registry.for_file(file_path)

    async def extract_imports(self, file_path: str, config: AnalysisConfig) -> list[ImportStatement]:
        """Extract a file's imports, served from cache while its mtime is unchanged.

        Unsupported file types return an empty list without being read.

        Raises:
            UnreadableFileError: If the file cannot be read.
        """
        extractor = self._extractor_for(file_path, config)
        if extractor is None:
            return []

        mtime = await self.fs.stat_mtime(file_path)
        if mtime is not None:
            cached = await self.import_cache.get(file_path, mtime)
            if cached is not None:
                return cached

        content = await self.fs.read_text(file_path)
        statements = extractor.extract(content)
        if mtime is not None:
            await self.import_cache.put(file_path, mtime, statements)
        return statements

    def reset_caches(self) -> None:
        """Drop the alias table, ignore rules and cached import results."""
        self.resolver.clear_cache()
        self.exclusion.reset()
        self.import_cache.clear()
        logger.info("Analysis caches reset")

    def get_stats(self) -> dict:
        """Cache statistics."""
        aliases = self.resolver.aliases
        return {
            "import_cache": self.import_cache.get_stats(),
            "aliases": len(aliases) if aliases is not None else None,
        }
