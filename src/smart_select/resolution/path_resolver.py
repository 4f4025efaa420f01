"""Import specifier resolution.

Turns a specifier plus the importing file's location into a concrete file
inside the project, or decides it is an externally-managed package.
"""

import json
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from smart_select.core.exceptions import ResolutionFailure, UnreadableFileError
from smart_select.parsing.import_extractor import strip_comments
from smart_select.utils.async_io import AsyncFileSystem, normalize_path
from smart_select.utils.logging import get_logger

logger = get_logger(__name__)

_TRAILING_COMMA = re.compile(r",(\s*[}\]])")


@dataclass
class AliasTable:
    """Path aliases read from the project's path-mapping file.

    Attributes:
        base_dir: Absolute directory alias targets are joined onto
            (workspace root plus ``baseUrl``).
        paths: Alias pattern to ordered target patterns, e.g.
            ``{"@/*": ["src/*"]}``.
    """

    base_dir: str
    paths: dict[str, list[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self._compiled = [
            (re.compile("^" + re.escape(pattern).replace(r"\*", "(.*)") + "$"), targets)
            for pattern, targets in self.paths.items()
        ]

    def __len__(self) -> int:
        return len(self.paths)

    def matches(self, specifier: str) -> bool:
        """Check whether any alias pattern matches a specifier."""
        return any(regex.match(specifier) for regex, _ in self._compiled)

    def candidates(self, specifier: str) -> list[str]:
        """Expand a specifier into absolute candidate base paths.

        Patterns are tried in declaration order; each matching pattern
        contributes its targets in order with ``*`` substituted.
        """
        found: list[str] = []
        for regex, targets in self._compiled:
            match = regex.match(specifier)
            if not match:
                continue
            captured = match.group(1) if match.groups() else ""
            for target in targets:
                found.append(
                    normalize_path(os.path.join(self.base_dir, target.replace("*", captured)))
                )
        return found

    @classmethod
    def from_config(cls, workspace_root: str, config: dict[str, Any]) -> "AliasTable":
        """Build from a parsed path-mapping document."""
        compiler_options = config.get("compilerOptions") or {}
        base_url = compiler_options.get("baseUrl") or ""
        raw_paths = compiler_options.get("paths") or {}
        paths = {
            str(pattern): [str(t) for t in targets]
            for pattern, targets in raw_paths.items()
            if isinstance(targets, list)
        }
        return cls(base_dir=normalize_path(os.path.join(workspace_root, base_url)), paths=paths)


def parse_jsonc(text: str) -> Any:
    """Parse JSON that may contain comments and trailing commas."""
    return json.loads(_TRAILING_COMMA.sub(r"\1", strip_comments(text)))


class PathResolver:
    """Resolves import specifiers to absolute file paths.

    Supports relative and absolute specifiers, path aliases with
    ``baseUrl``, suffix probing and directory barrel (index) files.
    Resolution never raises; None means "skip this edge".
    """

    # File suffixes to try when resolving imports (in order)
    EXTENSIONS: tuple[str, ...] = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs")

    # Barrel file names to try when a specifier names a directory
    BARREL_FILES: tuple[str, ...] = ("index.ts", "index.tsx", "index.js", "index.jsx")

    def __init__(
        self,
        workspace_root: str | Path,
        fs: AsyncFileSystem | None = None,
        path_mapping_file: str = "tsconfig.json",
    ) -> None:
        """Initialize resolver.

        Args:
            workspace_root: Project root directory.
            fs: File-system collaborator.
            path_mapping_file: Name of the alias configuration file at the root.
        """
        self.workspace_root = normalize_path(workspace_root)
        self.fs = fs or AsyncFileSystem()
        self.path_mapping_file = path_mapping_file
        self._aliases: AliasTable | None = None

    @property
    def aliases(self) -> AliasTable | None:
        """The cached alias table, None until loaded."""
        return self._aliases

    async def ensure_aliases_loaded(self) -> AliasTable:
        """Load and cache the alias table on first use.

        A missing or malformed mapping file yields an empty table.
        """
        if self._aliases is not None:
            return self._aliases

        config_path = os.path.join(self.workspace_root, self.path_mapping_file)
        table = AliasTable(base_dir=self.workspace_root)
        if await self.fs.is_file(config_path):
            try:
                content = await self.fs.read_text(config_path)
                table = AliasTable.from_config(self.workspace_root, parse_jsonc(content))
                logger.info(
                    "Loaded path mappings",
                    file=config_path,
                    base_dir=table.base_dir,
                    aliases=len(table),
                )
            except (UnreadableFileError, ValueError, AttributeError) as e:
                logger.warning("Failed to load path mappings", file=config_path, error=str(e))

        # Concurrent first loads may both get here; the result is identical.
        self._aliases = table
        return table

    def is_external(self, specifier: str) -> bool:
        """Check whether a specifier names an externally-managed package.

        Bare specifiers are external unless they match an alias of the
        already-loaded table. No I/O is performed.
        """
        if specifier.startswith(".") or specifier.startswith("/"):
            return False
        return self._aliases is None or not self._aliases.matches(specifier)

    async def resolve(self, specifier: str, importing_file: str | Path) -> str | None:
        """Resolve a specifier to an absolute file path.

        Args:
            specifier: Import specifier as written in code.
            importing_file: Absolute path of the file containing the import.

        Returns:
            Absolute path of the imported file, or None if it is external,
            cannot be found, or resolution failed.
        """
        if self.is_external(specifier):
            return None

        try:
            aliases = await self.ensure_aliases_loaded()

            for candidate in aliases.candidates(specifier):
                found = await self.find_file(candidate)
                if found:
                    return found

            if specifier.startswith(".") or specifier.startswith("/"):
                base_dir = os.path.dirname(normalize_path(importing_file))
                return await self.find_file(normalize_path(os.path.join(base_dir, specifier)))
            return None
        except Exception as e:
            failure = ResolutionFailure(specifier, str(importing_file), cause=e)
            logger.debug(failure.message, error=str(e))
            return None

    async def find_file(self, base_path: str) -> str | None:
        """Find a file by trying the path verbatim, with suffixes, then as a directory.

        Args:
            base_path: Absolute candidate path, usually without suffix.

        Returns:
            The first existing candidate, or None.
        """
        _, ext = os.path.splitext(base_path)
        if ext.lower() in self.EXTENSIONS and await self.fs.is_file(base_path):
            return base_path

        for suffix in self.EXTENSIONS:
            candidate = f"{base_path}{suffix}"
            if await self.fs.is_file(candidate):
                return candidate

        for barrel in self.BARREL_FILES:
            candidate = os.path.join(base_path, barrel)
            if await self.fs.is_file(candidate):
                return candidate

        return None

    def clear_cache(self) -> None:
        """Drop the cached alias table so the next resolution reloads it."""
        self._aliases = None
