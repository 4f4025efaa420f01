"""Unit tests for the smart selection service."""

import asyncio
from pathlib import Path

import pytest

from smart_select.analysis.analyzer import DependencyAnalyzer
from smart_select.config import AnalysisConfig
from smart_select.core.exceptions import SmartSelectDisabledError
from smart_select.graph.models import SelectionKind
from smart_select.selection.service import SmartSelectService

PROJECT = {
    "src/a.ts": "import './shared';\nimport './only-a';\n",
    "src/b.ts": "import './shared';\n",
    "src/shared.ts": "",
    "src/only-a.ts": "",
    "src/a.test.ts": "",
}


@pytest.fixture
def service(analyzer: DependencyAnalyzer, analysis_config: AnalysisConfig) -> SmartSelectService:
    """Enabled service over the test project."""
    return SmartSelectService(analyzer, config=analysis_config)


class TestEnabledSwitch:
    """Tests for the enabled switch."""

    @pytest.mark.asyncio
    async def test_disabled_analyze(self, make_project, analyzer) -> None:
        """Test that analysis is refused while disabled."""
        root = make_project(PROJECT)
        service = SmartSelectService(analyzer, config=AnalysisConfig(enabled=False))

        with pytest.raises(SmartSelectDisabledError):
            await service.analyze(root / "src/a.ts")

    @pytest.mark.asyncio
    async def test_disabled_select(self, make_project, analyzer) -> None:
        """Test that selection is refused while disabled."""
        root = make_project(PROJECT)
        service = SmartSelectService(analyzer)

        with pytest.raises(SmartSelectDisabledError):
            await service.select_root(root / "src/a.ts")
        assert service.manual_roots == set()

    @pytest.mark.asyncio
    async def test_request_config_overrides_default(self, make_project, analyzer) -> None:
        """Test that a per-request config takes precedence."""
        root = make_project(PROJECT)
        service = SmartSelectService(analyzer)

        graph = await service.analyze(root / "src/a.ts", AnalysisConfig(enabled=True))

        assert graph.node_count == 3


class TestSelectRoot:
    """Tests for select_root and deselect_root."""

    @pytest.mark.asyncio
    async def test_select(self, make_project, service: SmartSelectService) -> None:
        """Test that dependencies and tests are selected."""
        root = make_project(PROJECT)

        update = await service.select_root(root / "src/a.ts")

        assert update.added == {
            str(root / "src/shared.ts"),
            str(root / "src/only-a.ts"),
            str(root / "src/a.test.ts"),
        }
        assert service.manual_roots == {str(root / "src/a.ts")}
        record = service.orchestrator.record(str(root / "src/a.test.ts"))
        assert record.selection_kind == SelectionKind.AUTO_TEST

    @pytest.mark.asyncio
    async def test_deselect_keeps_shared(self, make_project, service: SmartSelectService) -> None:
        """Test that deselecting one root keeps shared dependencies."""
        root = make_project(PROJECT)
        await service.select_root(root / "src/a.ts")
        await service.select_root(root / "src/b.ts")

        update = await service.deselect_root(root / "src/a.ts")

        assert update.removed == {str(root / "src/only-a.ts"), str(root / "src/a.test.ts")}
        assert service.orchestrator.active() == {str(root / "src/shared.ts")}
        assert service.manual_roots == {str(root / "src/b.ts")}

    @pytest.mark.asyncio
    async def test_deselect_while_disabled(self, make_project, service: SmartSelectService) -> None:
        """Test that earlier selections can be undone after disabling."""
        root = make_project(PROJECT)
        await service.select_root(root / "src/b.ts")
        service.config = AnalysisConfig(enabled=False)

        update = await service.deselect_root(root / "src/b.ts")

        assert update.removed == {str(root / "src/shared.ts")}

    @pytest.mark.asyncio
    async def test_superseded_request_discarded(
        self, make_project, analyzer, analysis_config
    ) -> None:
        """Test that a newer request for the same root wins."""
        root = make_project(PROJECT)
        service = SmartSelectService(analyzer, config=analysis_config)
        started = asyncio.Event()
        release = asyncio.Event()
        original = analyzer.analyze

        async def gated_analyze(*args, **kwargs):
            if not started.is_set():
                started.set()
                await release.wait()
            return await original(*args, **kwargs)

        analyzer.analyze = gated_analyze  # type: ignore[method-assign]

        first = asyncio.create_task(service.select_root(root / "src/a.ts"))
        await started.wait()
        second = await service.select_root(root / "src/a.ts")
        release.set()

        assert await first is None
        assert second is not None
        assert str(root / "src/shared.ts") in second.added
        assert service.manual_roots == {str(root / "src/a.ts")}

    @pytest.mark.asyncio
    async def test_reset_caches(self, make_project, service: SmartSelectService) -> None:
        """Test that reset reaches the analyzer."""
        root = make_project(PROJECT)
        await service.analyze(root / "src/a.ts")

        service.reset_caches()

        assert service.analyzer.get_stats()["import_cache"]["size"] == 0
