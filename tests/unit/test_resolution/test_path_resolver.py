"""Unit tests for import specifier resolution."""

import json
from pathlib import Path

import pytest

from smart_select.resolution.path_resolver import AliasTable, PathResolver, parse_jsonc


@pytest.fixture
def workspace(make_project) -> Path:
    """Small project with relative, barrel and aliased files."""
    return make_project(
        {
            "src/index.ts": "",
            "src/utils.ts": "",
            "src/helper.js": "",
            "src/both.ts": "",
            "src/both.js": "",
            "src/components/index.ts": "",
            "src/components/Button.tsx": "",
            "src/legacy/index.js": "",
            "lib/shared.ts": "",
            "src/styles.css": "",
        }
    )


class TestRelativeResolution:
    """Tests for relative and absolute specifiers."""

    @pytest.mark.asyncio
    async def test_same_directory(self, workspace: Path) -> None:
        """Test resolving a sibling file without suffix."""
        resolver = PathResolver(workspace)
        result = await resolver.resolve("./utils", workspace / "src/index.ts")
        assert result == str(workspace / "src/utils.ts")

    @pytest.mark.asyncio
    async def test_parent_directory(self, workspace: Path) -> None:
        """Test resolving through '..'."""
        resolver = PathResolver(workspace)
        result = await resolver.resolve("../lib/shared", workspace / "src/index.ts")
        assert result == str(workspace / "lib/shared.ts")

    @pytest.mark.asyncio
    async def test_explicit_suffix(self, workspace: Path) -> None:
        """Test a specifier that already names its suffix."""
        resolver = PathResolver(workspace)
        result = await resolver.resolve("./helper.js", workspace / "src/index.ts")
        assert result == str(workspace / "src/helper.js")

    @pytest.mark.asyncio
    async def test_suffix_preference_order(self, workspace: Path) -> None:
        """Test that .ts wins over .js."""
        resolver = PathResolver(workspace)
        result = await resolver.resolve("./both", workspace / "src/index.ts")
        assert result == str(workspace / "src/both.ts")

    @pytest.mark.asyncio
    async def test_directory_barrel(self, workspace: Path) -> None:
        """Test resolving a directory to its index file."""
        resolver = PathResolver(workspace)
        result = await resolver.resolve("./components", workspace / "src/index.ts")
        assert result == str(workspace / "src/components/index.ts")

    @pytest.mark.asyncio
    async def test_directory_barrel_js(self, workspace: Path) -> None:
        """Test a barrel with a .js suffix."""
        resolver = PathResolver(workspace)
        result = await resolver.resolve("./legacy", workspace / "src/index.ts")
        assert result == str(workspace / "src/legacy/index.js")

    @pytest.mark.asyncio
    async def test_absolute_specifier(self, workspace: Path) -> None:
        """Test an absolute path specifier."""
        resolver = PathResolver(workspace)
        target = workspace / "lib/shared"
        result = await resolver.resolve(str(target), workspace / "src/index.ts")
        assert result == str(workspace / "lib/shared.ts")

    @pytest.mark.asyncio
    async def test_unknown_suffix_not_resolved(self, workspace: Path) -> None:
        """Test that non-source files are not graph targets."""
        resolver = PathResolver(workspace)
        assert await resolver.resolve("./styles.css", workspace / "src/index.ts") is None

    @pytest.mark.asyncio
    async def test_missing_file(self, workspace: Path) -> None:
        """Test that a missing target returns None."""
        resolver = PathResolver(workspace)
        assert await resolver.resolve("./nonexistent", workspace / "src/index.ts") is None

    @pytest.mark.asyncio
    async def test_empty_specifier(self, workspace: Path) -> None:
        """Test that an empty specifier returns None."""
        resolver = PathResolver(workspace)
        assert await resolver.resolve("", workspace / "src/index.ts") is None

    @pytest.mark.asyncio
    async def test_escaping_path_does_not_raise(self, workspace: Path) -> None:
        """Test that a path escaping the root is handled."""
        resolver = PathResolver(workspace)
        result = await resolver.resolve(
            "../../../../../../../etc/passwd", workspace / "src/index.ts"
        )
        assert result is None


class TestExternalSpecifiers:
    """Tests for package specifiers."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("specifier", ["lodash", "@babel/core", "react-dom/client"])
    async def test_packages_are_external(self, workspace: Path, specifier: str) -> None:
        """Test that bare specifiers resolve to nothing."""
        resolver = PathResolver(workspace)
        assert resolver.is_external(specifier) is True
        assert await resolver.resolve(specifier, workspace / "src/index.ts") is None

    def test_relative_is_not_external(self, workspace: Path) -> None:
        """Test that relative and absolute specifiers are internal."""
        resolver = PathResolver(workspace)
        assert resolver.is_external("./utils") is False
        assert resolver.is_external("../utils") is False
        assert resolver.is_external("/abs/utils") is False


class TestPathAliases:
    """Tests for tsconfig path aliases."""

    @pytest.mark.asyncio
    async def test_alias_resolution(self, workspace: Path) -> None:
        """Test an '@/*' alias with baseUrl."""
        (workspace / "tsconfig.json").write_text(
            json.dumps({"compilerOptions": {"baseUrl": ".", "paths": {"@/*": ["src/*"]}}}),
            encoding="utf-8",
        )
        resolver = PathResolver(workspace)
        await resolver.ensure_aliases_loaded()

        assert resolver.is_external("@/components/Button") is False
        result = await resolver.resolve("@/components/Button", workspace / "lib/shared.ts")
        assert result == str(workspace / "src/components/Button.tsx")

    @pytest.mark.asyncio
    async def test_alias_targets_tried_in_order(self, workspace: Path) -> None:
        """Test falling through to the second target."""
        (workspace / "tsconfig.json").write_text(
            json.dumps({"compilerOptions": {"paths": {"#shared/*": ["missing/*", "lib/*"]}}}),
            encoding="utf-8",
        )
        resolver = PathResolver(workspace)
        await resolver.ensure_aliases_loaded()

        result = await resolver.resolve("#shared/shared", workspace / "src/index.ts")
        assert result == str(workspace / "lib/shared.ts")

    @pytest.mark.asyncio
    async def test_base_url_is_joined(self, workspace: Path) -> None:
        """Test that targets are relative to baseUrl."""
        (workspace / "tsconfig.json").write_text(
            json.dumps({"compilerOptions": {"baseUrl": "src", "paths": {"~/*": ["*"]}}}),
            encoding="utf-8",
        )
        resolver = PathResolver(workspace)
        table = await resolver.ensure_aliases_loaded()

        assert table.base_dir == str(workspace / "src")
        assert await resolver.resolve("~/utils", workspace / "lib/shared.ts") == str(
            workspace / "src/utils.ts"
        )

    @pytest.mark.asyncio
    async def test_tsconfig_with_comments_and_trailing_commas(self, workspace: Path) -> None:
        """Test that JSON with comments is accepted."""
        (workspace / "tsconfig.json").write_text(
            """{
  // editor settings
  "compilerOptions": {
    /* aliases */
    "baseUrl": ".",
    "paths": { "@/*": ["src/*"], },
  },
}""",
            encoding="utf-8",
        )
        resolver = PathResolver(workspace)
        table = await resolver.ensure_aliases_loaded()
        assert len(table) == 1

    @pytest.mark.asyncio
    async def test_missing_tsconfig(self, workspace: Path) -> None:
        """Test that a missing mapping file yields an empty table."""
        resolver = PathResolver(workspace)
        table = await resolver.ensure_aliases_loaded()

        assert len(table) == 0
        assert await resolver.resolve("./utils", workspace / "src/index.ts") is not None

    @pytest.mark.asyncio
    async def test_malformed_tsconfig(self, workspace: Path) -> None:
        """Test that an invalid mapping file yields an empty table."""
        (workspace / "tsconfig.json").write_text("{ not json", encoding="utf-8")
        resolver = PathResolver(workspace)

        table = await resolver.ensure_aliases_loaded()

        assert len(table) == 0

    @pytest.mark.asyncio
    async def test_clear_cache_reloads(self, workspace: Path) -> None:
        """Test that clearing the cache picks up a new mapping file."""
        resolver = PathResolver(workspace)
        await resolver.ensure_aliases_loaded()
        assert resolver.is_external("@/utils") is True

        (workspace / "tsconfig.json").write_text(
            json.dumps({"compilerOptions": {"paths": {"@/*": ["src/*"]}}}),
            encoding="utf-8",
        )
        resolver.clear_cache()
        assert resolver.aliases is None

        await resolver.ensure_aliases_loaded()
        assert resolver.is_external("@/utils") is False

    def test_resolvers_are_independent(self, tmp_path: Path) -> None:
        """Test that several resolvers can coexist."""
        first = PathResolver(tmp_path / "a")
        second = PathResolver(tmp_path / "b")
        assert first.workspace_root != second.workspace_root


class TestAliasTable:
    """Tests for AliasTable."""

    def test_candidates(self) -> None:
        """Test wildcard substitution in targets."""
        table = AliasTable(base_dir="/p", paths={"@/*": ["src/*", "lib/*"]})
        assert table.candidates("@/a/b") == ["/p/src/a/b", "/p/lib/a/b"]

    def test_exact_alias(self) -> None:
        """Test an alias without wildcard."""
        table = AliasTable(base_dir="/p", paths={"config": ["src/config.ts"]})
        assert table.matches("config")
        assert not table.matches("config/x")
        assert table.candidates("config") == ["/p/src/config.ts"]


class TestParseJsonc:
    """Tests for parse_jsonc."""

    def test_comment_inside_string_is_kept(self) -> None:
        """Test that '//' in a string value survives."""
        assert parse_jsonc('{"url": "http://x"}') == {"url": "http://x"}
