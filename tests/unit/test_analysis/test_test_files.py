"""Unit tests for test-file discovery."""

from pathlib import Path

import pytest

from smart_select.analysis.test_files import TestFileLocator, is_test_file


class TestIsTestFile:
    """Tests for is_test_file."""

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("/p/src/a.test.ts", True),
            ("/p/src/a.spec.tsx", True),
            ("/p/src/__tests__/a.ts", True),
            ("/p/src/a.ts", False),
            ("/p/src/contest.ts", False),
            ("/p/tests/a.ts", False),
        ],
    )
    def test_markers(self, path: str, expected: bool) -> None:
        """Test naming conventions."""
        assert is_test_file(path) is expected


class TestBuiltinCandidates:
    """Tests for conventional candidate paths."""

    def test_lookup_order(self, project_root: Path) -> None:
        """Test candidates for a file under src/."""
        locator = TestFileLocator(project_root)
        root = str(project_root)

        candidates = locator.builtin_candidates(f"{root}/src/a.ts", [".ts"])

        assert candidates == [
            f"{root}/src/a.test.ts",
            f"{root}/src/a.spec.ts",
            f"{root}/src/__tests__/a.ts",
            f"{root}/src/__tests__/a.test.ts",
            f"{root}/src/__tests__/a.spec.ts",
            f"{root}/test/a.test.ts",
            f"{root}/test/a.spec.ts",
            f"{root}/tests/a.test.ts",
            f"{root}/tests/a.spec.ts",
        ]

    def test_parallel_tree_keeps_other_roots(self, project_root: Path) -> None:
        """Test that directories other than src are mirrored as-is."""
        locator = TestFileLocator(project_root)
        root = str(project_root)

        candidates = locator.builtin_candidates(f"{root}/lib/util/x.js", [".js"])

        assert f"{root}/test/lib/util/x.test.js" in candidates
        assert f"{root}/tests/lib/util/x.spec.js" in candidates

    def test_no_parallel_tree_inside_tests(self, project_root: Path) -> None:
        """Test that files already under tests/ are not mirrored again."""
        locator = TestFileLocator(project_root)
        root = str(project_root)

        candidates = locator.builtin_candidates(f"{root}/tests/helpers.ts", [".ts"])

        assert all("/tests/tests/" not in c and "/test/tests/" not in c for c in candidates)

    def test_outside_workspace(self, project_root: Path, tmp_path: Path) -> None:
        """Test that files outside the root only get local candidates."""
        locator = TestFileLocator(project_root)
        outside = tmp_path / "elsewhere" / "a.ts"

        candidates = locator.builtin_candidates(str(outside), [".ts"])

        assert all(c.startswith(str(outside.parent)) for c in candidates)


class TestExpandPattern:
    """Tests for placeholder substitution."""

    def test_relative_pattern(self, project_root: Path) -> None:
        """Test that relative patterns start at the file's directory."""
        locator = TestFileLocator(project_root)
        file_path = str(project_root / "src/ui/Button.tsx")

        expanded = locator.expand_pattern("{name}.stories.{ext}", file_path)

        assert expanded == str(project_root / "src/ui/Button.stories.tsx")

    def test_rooted_pattern(self, project_root: Path) -> None:
        """Test that a leading slash starts at the workspace root."""
        locator = TestFileLocator(project_root)
        file_path = str(project_root / "src/ui/Button.tsx")

        expanded = locator.expand_pattern("/tests/{dir}/{name}.test.{ext}", file_path)

        assert expanded == str(project_root / "tests/src/ui/Button.test.tsx")


class TestLocate:
    """Tests for locate."""

    @pytest.mark.asyncio
    async def test_finds_existing(self, make_project) -> None:
        """Test that only existing candidates are returned."""
        root = make_project(
            {
                "src/a.ts": "",
                "src/a.spec.ts": "",
                "src/__tests__/a.test.ts": "",
                "tests/a.test.ts": "",
            }
        )
        locator = TestFileLocator(root)

        found = await locator.locate(str(root / "src/a.ts"), [".ts", ".tsx"])

        assert found == {
            str(root / "src/a.spec.ts"),
            str(root / "src/__tests__/a.test.ts"),
            str(root / "tests/a.test.ts"),
        }

    @pytest.mark.asyncio
    async def test_test_file_has_no_tests(self, make_project) -> None:
        """Test that test files are not searched for their own tests."""
        root = make_project({"src/a.test.ts": "", "src/a.test.test.ts": ""})
        locator = TestFileLocator(root)

        assert await locator.locate(str(root / "src/a.test.ts"), [".ts"]) == set()

    @pytest.mark.asyncio
    async def test_user_globstar_pattern(self, make_project) -> None:
        """Test that user patterns are globbed."""
        root = make_project(
            {
                "src/a.ts": "",
                "e2e/flows/deep/a.e2e.ts": "",
                "e2e/b.e2e.ts": "",
                "e2e/node_modules/pkg/a.e2e.ts": "",
            }
        )
        locator = TestFileLocator(root)

        found = await locator.locate(
            str(root / "src/a.ts"), [".ts"], ["/e2e/**/{name}.e2e.{ext}"]
        )

        assert found == {str(root / "e2e/flows/deep/a.e2e.ts")}

    @pytest.mark.asyncio
    async def test_user_wildcard_pattern(self, make_project) -> None:
        """Test single-segment wildcards."""
        root = make_project({"src/a.ts": "", "src/a.int.ts": "", "src/a.unit.ts": "", "src/b.int.ts": ""})
        locator = TestFileLocator(root)

        found = await locator.locate(str(root / "src/a.ts"), [".ts"], ["{name}.*.ts"])

        assert found == {str(root / "src/a.int.ts"), str(root / "src/a.unit.ts")}

    @pytest.mark.asyncio
    async def test_unsafe_pattern_dropped(self, make_project) -> None:
        """Test that unsafe user patterns are skipped."""
        root = make_project({"src/a.ts": "", "src/a.test.ts": ""})
        locator = TestFileLocator(root)

        found = await locator.locate(
            str(root / "src/a.ts"), [".ts"], ["/".join(["**"] * 6)]
        )

        assert found == {str(root / "src/a.test.ts")}
