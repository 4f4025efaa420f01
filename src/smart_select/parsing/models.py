"""Data models for import extraction.

This module defines the structures produced when scanning a module's
text for import, require and dynamic-import occurrences.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ImportKind(str, Enum):
    """Syntactic forms that carry an import specifier."""

    STATIC_IMPORT = "static-import"  # import x from "mod" / import "mod"
    DYNAMIC_REQUIRE = "dynamic-require"  # const x = require("mod")
    DYNAMIC_IMPORT = "dynamic-import"  # import("mod"), optionally awaited


@dataclass
class ImportStatement:
    """One import occurrence found in a file.

    Attributes:
        source: Specifier text exactly as written.
        kind: Which syntactic form matched.
        specifiers: Bound names in declaration order, empty for
            require and dynamic forms.
        line: 1-based line of the occurrence.
        offset: Character offset of the occurrence, used for ordering.
    """

    source: str
    kind: ImportKind
    specifiers: list[str] = field(default_factory=list)
    line: int = 1
    offset: int = 0

    def __post_init__(self) -> None:
        if self.line < 1:
            raise ValueError("Line must be >= 1")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "source": self.source,
            "kind": self.kind.value,
            "specifiers": list(self.specifiers),
            "line": self.line,
        }
