"""Exclusion rules for resolved dependency paths.

Decides whether a resolved file is dropped from the graph because it is
an installed package, matched by the project's ignore files, or matched
by a user-supplied pattern.
"""

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path

from smart_select.config import AnalysisConfig
from smart_select.core.exceptions import UnreadableFileError
from smart_select.graph.models import ExcludeReason
from smart_select.resolution.patterns import IgnoreRules
from smart_select.utils.async_io import AsyncFileSystem, normalize_path
from smart_select.utils.logging import get_logger

logger = get_logger(__name__)

# Directories populated by package managers
DEPENDENCY_DIRECTORIES: tuple[str, ...] = ("node_modules", "bower_components", "jspm_packages")

# Always ignored when ignore rules are respected
VCS_DIRECTORIES: tuple[str, ...] = (".git", ".hg", ".svn")

_GLOBAL_EXCLUDES_FALLBACKS = (
    Path("~/.config/git/ignore"),
    Path("~/.gitignore_global"),
    Path("~/.gitignore"),
)

# Distinct user pattern lists kept compiled
_USER_RULES_MAX_SIZE = 64


@dataclass(frozen=True)
class ExclusionDecision:
    """Outcome of an exclusion check."""

    excluded: bool
    reason: ExcludeReason | None = None

    def __bool__(self) -> bool:
        return self.excluded


INCLUDED = ExclusionDecision(excluded=False)


async def _lookup_global_excludes_path(cwd: str) -> str:
    """Ask git for core.excludesFile, empty when git or the setting is missing."""
    try:
        proc = await asyncio.create_subprocess_exec(
            "git",
            "config",
            "--get",
            "core.excludesFile",
            cwd=cwd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
        )
        stdout, _ = await asyncio.wait_for(proc.communicate(), timeout=1.0)
        value = stdout.decode("utf-8", errors="replace").strip()
    except (OSError, asyncio.TimeoutError) as e:
        logger.debug("git config lookup failed", error=str(e))
        value = ""
    return value


def _expand_excludes_path(value: str) -> str:
    """Expand ``~``, ``$VAR`` and ``%VAR%`` and strip surrounding quotes."""
    text = value.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        text = text[1:-1]
    return os.path.abspath(os.path.expandvars(os.path.expanduser(text)))


class ExclusionFilter:
    """Applies installed-package, ignore-file and user-pattern exclusion.

    Ignore-file rules and the git core.excludesFile setting are loaded
    lazily and cached until ``reset()``. User patterns are compiled per
    distinct pattern list; the oldest lists are dropped past a bound.
    """

    def __init__(
        self,
        workspace_root: str | Path,
        fs: AsyncFileSystem | None = None,
        include_global_excludes: bool = True,
    ) -> None:
        """Initialize filter.

        Args:
            workspace_root: Project root; ignore files are read from here.
            fs: File-system collaborator.
            include_global_excludes: Also honour the user's global git
                excludes file.
        """
        self.workspace_root = normalize_path(workspace_root)
        self.fs = fs or AsyncFileSystem()
        self.include_global_excludes = include_global_excludes
        self._ignore_rules: IgnoreRules | None = None
        self._user_rules: dict[tuple[str, ...], IgnoreRules] = {}
        self._global_excludes_path: str | None = None

    def relative_path(self, file_path: str) -> str:
        """Root-relative POSIX path; paths outside the root keep their absolute form."""
        path = normalize_path(file_path)
        if path == self.workspace_root:
            return ""
        if path.startswith(self.workspace_root + os.sep):
            rel = os.path.relpath(path, self.workspace_root)
        else:
            rel = path.lstrip(os.sep)
        return rel.replace(os.sep, "/")

    def is_externally_managed(self, file_path: str) -> bool:
        """Check whether a path lies inside a package-manager directory."""
        parts = normalize_path(file_path).split(os.sep)
        return any(part in DEPENDENCY_DIRECTORIES for part in parts)

    async def load_ignore_rules(self) -> IgnoreRules:
        """Load and cache rules from the project's ignore files.

        Missing files contribute nothing; they are not errors.
        """
        if self._ignore_rules is not None:
            return self._ignore_rules

        rules = IgnoreRules.from_lines(VCS_DIRECTORIES, source="vcs")
        sources = [
            os.path.join(self.workspace_root, ".gitignore"),
            os.path.join(self.workspace_root, ".git", "info", "exclude"),
        ]
        if self.include_global_excludes:
            global_path = await self._global_excludes_file()
            if global_path:
                sources.append(global_path)

        for source in sources:
            if not await self.fs.is_file(source):
                continue
            try:
                content = await self.fs.read_text(source)
            except UnreadableFileError as e:
                logger.debug("Skipping unreadable ignore file", file=source, error=e.message)
                continue
            added = rules.add(content.splitlines(), source=source)
            logger.debug("Loaded ignore rules", file=source, rules=added)

        self._ignore_rules = rules
        return rules

    async def _global_excludes_file(self) -> str | None:
        if self._global_excludes_path is None:
            self._global_excludes_path = await _lookup_global_excludes_path(self.workspace_root)
        if self._global_excludes_path:
            return _expand_excludes_path(self._global_excludes_path)
        for candidate in _GLOBAL_EXCLUDES_FALLBACKS:
            path = str(candidate.expanduser())
            if await self.fs.is_file(path):
                return path
        return None

    def user_rules(self, patterns: list[str]) -> IgnoreRules:
        """Compiled rules for a list of user exclusion patterns."""
        key = tuple(patterns)
        rules = self._user_rules.get(key)
        if rules is None:
            if len(self._user_rules) >= _USER_RULES_MAX_SIZE:
                del self._user_rules[next(iter(self._user_rules))]
            rules = IgnoreRules.from_lines(patterns, source="exclusion_patterns")
            self._user_rules[key] = rules
        return rules

    async def should_exclude(self, file_path: str, config: AnalysisConfig) -> ExclusionDecision:
        """Decide whether a resolved path is dropped from the graph.

        Checks run in order: installed package, ignore file, user pattern.

        Args:
            file_path: Absolute resolved path.
            config: Analysis options.

        Returns:
            The decision with its reason when excluded.
        """
        if config.exclude_third_party and self.is_externally_managed(file_path):
            return ExclusionDecision(True, ExcludeReason.EXTERNALLY_MANAGED)

        rel_path = self.relative_path(file_path)

        if config.respect_ignore_file:
            rules = await self.load_ignore_rules()
            if rules.ignores(rel_path):
                return ExclusionDecision(True, ExcludeReason.IGNORE_RULE)

        if config.exclusion_patterns and self.user_rules(config.exclusion_patterns).ignores(rel_path):
            return ExclusionDecision(True, ExcludeReason.USER_PATTERN)

        return INCLUDED

    def reset(self) -> None:
        """Drop cached ignore-file rules, user-pattern rules and the excludes-file lookup."""
        self._ignore_rules = None
        self._user_rules.clear()
        self._global_excludes_path = None
