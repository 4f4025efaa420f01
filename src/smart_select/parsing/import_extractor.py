"""Syntactic import extraction for JavaScript/TypeScript sources.

Scans module text for static imports, re-exports (reported as static
imports), declaration-bound ``require`` calls and dynamic ``import()``
calls. This is text analysis, not parsing: import look-alikes inside
string literals are reported too.
"""

import os
import re
from pathlib import Path
from typing import Protocol

from smart_select.config import DEFAULT_SOURCE_EXTENSIONS
from smart_select.core.exceptions import ParseFailure
from smart_select.parsing.models import ImportKind, ImportStatement
from smart_select.utils.logging import get_logger

logger = get_logger(__name__)

# String literals are matched so that comment markers inside them survive;
# only the comment alternative is blanked.
_STRING_OR_COMMENT = re.compile(
    r"""(?P<string>"(?:\\.|[^"\\\n])*"|'(?:\\.|[^'\\\n])*'|`(?:\\.|[^`\\])*`)"""
    r"""|(?P<comment>//[^\n]*|/\*[\s\S]*?\*/)"""
)

_STATIC_IMPORT = re.compile(
    r"(?<![\w$.])import\s+(?!\()"
    r"(?:(?P<clause>[^;'\"`()]*?)\s*\bfrom\s*)?"
    r"(?P<quote>['\"])(?P<source>[^'\"\n]+)(?P=quote)"
)

_REEXPORT = re.compile(
    r"(?<![\w$.])export\s+(?:type\s+)?"
    r"(?P<clause>\*(?:\s*as\s+[\w$]+)?|\{[^{}]*\})\s*from\s*"
    r"(?P<quote>['\"])(?P<source>[^'\"\n]+)(?P=quote)"
)

# Destructured bindings may carry defaults, so braces are skipped whole
_REQUIRE = re.compile(
    r"(?<![\w$.])(?:const|let|var|import)\s+(?:\{[^{}]*\}|\[[^\[\]]*\]|[^=;{}\[\]])*?=\s*"
    r"require\s*\(\s*(?P<quote>['\"])(?P<source>[^'\"\n]+)(?P=quote)\s*\)"
)

_DYNAMIC_IMPORT = re.compile(
    r"(?<![\w$.])import\s*\(\s*"
    r"(?P<quote>['\"`])(?P<source>[^'\"`\n]+)(?P=quote)\s*\)"
)

_CLAUSE_CHARS = re.compile(r"^[\w$*\s{},]*$")
_DEFAULT_BINDING = re.compile(r"^([\w$]+)\s*(?:,|$)")
_NAMED_BINDINGS = re.compile(r"\{([^}]*)\}")
_NAMESPACE_BINDING = re.compile(r"\*\s*as\s+([\w$]+)")


def strip_comments(content: str) -> str:
    """Blank out line and block comments.

    Comment characters become spaces and newlines are kept, so offsets and
    line numbers in the result match the original text.

    Args:
        content: Module source text.

    Returns:
        Text of the same length with comments removed.
    """

    def _blank(match: re.Match[str]) -> str:
        if match.group("comment") is None:
            return match.group(0)
        return re.sub(r"[^\n]", " ", match.group("comment"))

    return _STRING_OR_COMMENT.sub(_blank, content)


def line_at(content: str, offset: int) -> int:
    """Return the 1-based line containing a character offset."""
    return content.count("\n", 0, offset) + 1


def parse_import_clause(clause: str) -> list[str]:
    """Split a static import clause into its bound names.

    Order is default binding, then named bindings, then the namespace
    binding (rendered as ``* as name``).

    Raises:
        ParseFailure: If the clause has unbalanced or nested braces or
            characters that cannot appear in an import clause.
    """
    text = clause.strip()
    if text.startswith("type ") or text.startswith("type{"):
        text = text[4:].strip()

    opening, closing = text.count("{"), text.count("}")
    if opening != closing or opening > 1 or not _CLAUSE_CHARS.match(text):
        raise ParseFailure(line=1, fragment=clause)

    specifiers: list[str] = []
    default = _DEFAULT_BINDING.match(text)
    if default:
        specifiers.append(default.group(1))

    named = _NAMED_BINDINGS.search(text)
    if named:
        specifiers.extend(
            name.strip() for name in named.group(1).split(",") if name.strip()
        )

    namespace = _NAMESPACE_BINDING.search(text)
    if namespace:
        specifiers.append(f"* as {namespace.group(1)}")

    return specifiers


class ImportExtractor(Protocol):
    """Protocol for per-file-type import extraction strategies."""

    def extract(self, content: str) -> list[ImportStatement]:
        """Extract import statements from module text, ordered by position."""
        ...


class RegexImportExtractor:
    """Regex-based scanner for ES module, CommonJS and dynamic imports.

    A malformed occurrence is skipped and scanning continues, so one bad
    statement never hides the rest of the file.
    """

    def extract(self, content: str) -> list[ImportStatement]:
        """Extract all import statements from content.

        Args:
            content: Module source text.

        Returns:
            Statements ordered by their position in the source.
        """
        if not content:
            return []

        text = strip_comments(content)
        statements: list[ImportStatement] = []
        statements.extend(self._scan_static(text))
        statements.extend(self._scan_reexport(text))
        statements.extend(self._scan_require(text))
        statements.extend(self._scan_dynamic(text))
        statements.sort(key=lambda s: s.offset)
        return statements

    def _scan_static(self, text: str) -> list[ImportStatement]:
        found: list[ImportStatement] = []
        for match in _STATIC_IMPORT.finditer(text):
            line = line_at(text, match.start())
            clause = match.group("clause")
            try:
                specifiers = parse_import_clause(clause) if clause else []
            except ParseFailure:
                logger.debug(
                    "Skipping malformed import",
                    line=line,
                    fragment=match.group(0)[:80],
                )
                continue
            found.append(
                ImportStatement(
                    source=match.group("source"),
                    kind=ImportKind.STATIC_IMPORT,
                    specifiers=specifiers,
                    line=line,
                    offset=match.start(),
                )
            )
        return found

    def _scan_reexport(self, text: str) -> list[ImportStatement]:
        """Re-exports (``export * from``, ``export {a} from``) also load the module."""
        found: list[ImportStatement] = []
        for match in _REEXPORT.finditer(text):
            line = line_at(text, match.start())
            clause = match.group("clause")
            try:
                specifiers = ["*"] if clause == "*" else parse_import_clause(clause)
            except ParseFailure:
                logger.debug(
                    "Skipping malformed re-export",
                    line=line,
                    fragment=match.group(0)[:80],
                )
                continue
            found.append(
                ImportStatement(
                    source=match.group("source"),
                    kind=ImportKind.STATIC_IMPORT,
                    specifiers=specifiers,
                    line=line,
                    offset=match.start(),
                )
            )
        return found

    def _scan_require(self, text: str) -> list[ImportStatement]:
        return [
            ImportStatement(
                source=match.group("source"),
                kind=ImportKind.DYNAMIC_REQUIRE,
                line=line_at(text, match.start()),
                offset=match.start(),
            )
            for match in _REQUIRE.finditer(text)
        ]

    def _scan_dynamic(self, text: str) -> list[ImportStatement]:
        found: list[ImportStatement] = []
        for match in _DYNAMIC_IMPORT.finditer(text):
            source = match.group("source")
            if "${" in source:
                # Interpolated template specifier, not statically known
                continue
            found.append(
                ImportStatement(
                    source=source,
                    kind=ImportKind.DYNAMIC_IMPORT,
                    line=line_at(text, match.start()),
                    offset=match.start(),
                )
            )
        return found


class ExtractorRegistry:
    """Selects an extraction strategy by file suffix.

    Files whose suffix is not registered are unsupported and yield no
    imports without being read.
    """

    def __init__(self, source_extensions: list[str] | None = None) -> None:
        self._extractors: dict[str, ImportExtractor] = {}
        default = RegexImportExtractor()
        for ext in source_extensions or DEFAULT_SOURCE_EXTENSIONS:
            self.register(ext, default)

    def register(self, extension: str, extractor: ImportExtractor) -> None:
        """Register an extractor for a file suffix.

        Args:
            extension: Suffix including the leading dot.
            extractor: The extractor implementation.
        """
        self._extractors[extension.lower()] = extractor
        logger.debug("Registered extractor", extension=extension)

    @property
    def supported_extensions(self) -> list[str]:
        """Get the registered suffixes."""
        return list(self._extractors.keys())

    def is_supported(self, file_path: str | Path) -> bool:
        """Check whether a file's suffix has an extractor."""
        return self.for_file(file_path) is not None

    def for_file(self, file_path: str | Path) -> ImportExtractor | None:
        """Get the extractor for a file, or None if unsupported."""
        _, ext = os.path.splitext(os.fspath(file_path))
        return self._extractors.get(ext.lower())
