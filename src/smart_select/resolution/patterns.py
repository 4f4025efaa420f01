"""Gitignore-style pattern matching.

Patterns are translated to regular expressions once. Patterns nested
deeply enough to make matching expensive are rejected before compilation.
"""

import re
from dataclasses import dataclass
from typing import Iterable

from smart_select.core.exceptions import UnsafePatternError
from smart_select.utils.logging import get_logger

logger = get_logger(__name__)

MAX_PATTERN_LENGTH = 512
MAX_WILDCARDS = 16
MAX_GLOBSTARS = 4


def check_pattern_safety(pattern: str) -> None:
    """Reject patterns whose repetition could make matching blow up.

    Raises:
        UnsafePatternError: If the pattern is too long or has too many
            wildcard or ``**`` segments.
    """
    if len(pattern) > MAX_PATTERN_LENGTH:
        raise UnsafePatternError(pattern, f"longer than {MAX_PATTERN_LENGTH} characters")
    collapsed = re.sub(r"\*{3,}", "**", pattern)
    if collapsed.count("**") > MAX_GLOBSTARS:
        raise UnsafePatternError(pattern, f"more than {MAX_GLOBSTARS} '**' segments")
    wildcards = len(re.findall(r"\*\*|\*|\?", collapsed))
    if wildcards > MAX_WILDCARDS:
        raise UnsafePatternError(pattern, f"more than {MAX_WILDCARDS} wildcards")


def glob_to_regex(pattern: str) -> str:
    """Translate a glob into a regex source matching whole paths.

    ``**/`` matches zero or more directories, ``*`` and ``?`` never cross
    a ``/``, and ``[...]`` classes pass through.
    """
    pattern = re.sub(r"\*{3,}", "**", pattern)
    out: list[str] = []
    i, n = 0, len(pattern)
    while i < n:
        c = pattern[i]
        if pattern.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("/**", i) and i + 3 == n:
            out.append("(?:/.*)?")
            i += 3
        elif pattern.startswith("**", i):
            out.append(".*")
            i += 2
        elif c == "*":
            out.append("[^/]*")
            i += 1
        elif c == "?":
            out.append("[^/]")
            i += 1
        elif c == "[":
            end = pattern.find("]", i + 1)
            if end == -1:
                out.append(re.escape(c))
                i += 1
            else:
                body = pattern[i + 1 : end]
                if body.startswith("!"):
                    body = "^" + body[1:]
                out.append(f"[{body}]")
                i = end + 1
        else:
            out.append(re.escape(c))
            i += 1
    return "".join(out)


@dataclass
class IgnoreRule:
    """One parsed ignore line.

    Attributes:
        pattern: The line as written (without negation marker).
        negated: Line started with ``!``; a match re-includes the path.
        directory_only: Line ended with ``/``; only directories match.
        anchored: Pattern has a leading or inner ``/``; it is matched
            against the path from the root instead of single components.
    """

    pattern: str
    negated: bool
    directory_only: bool
    anchored: bool
    regex: re.Pattern[str]

    @classmethod
    def parse(cls, line: str) -> "IgnoreRule | None":
        """Parse one ignore-file line, None for blanks and comments.

        Raises:
            UnsafePatternError: If the pattern fails the safety check.
        """
        text = line.strip()
        if not text or text.startswith("#"):
            return None

        negated = text.startswith("!")
        if negated:
            text = text[1:].strip()
        if text.startswith("\\"):
            text = text[1:]

        directory_only = text.endswith("/")
        clean = text.strip("/")
        if not clean:
            return None

        check_pattern_safety(clean)
        anchored = "/" in text.rstrip("/")
        return cls(
            pattern=text,
            negated=negated,
            directory_only=directory_only,
            anchored=anchored,
            regex=re.compile(glob_to_regex(clean), re.DOTALL),
        )

    def matches_entry(self, rel_path: str, is_dir: bool) -> bool:
        """Check one file or directory, ignoring its ancestors."""
        if self.directory_only and not is_dir:
            return False
        target = rel_path if self.anchored else rel_path.rsplit("/", 1)[-1]
        return self.regex.fullmatch(target) is not None

    def matches(self, rel_path: str) -> bool:
        """Check a file path relative to the root against this rule.

        A file matches when the rule matches the file itself or any of its
        ancestor directories.
        """
        parts = [p for p in rel_path.split("/") if p]
        return any(
            self.matches_entry("/".join(parts[: i + 1]), is_dir=i < len(parts) - 1)
            for i in range(len(parts))
        )


class IgnoreRules:
    """An ordered set of ignore rules where the last matching rule wins."""

    def __init__(self, rules: list[IgnoreRule] | None = None) -> None:
        self._rules: list[IgnoreRule] = list(rules or [])

    @classmethod
    def from_lines(cls, lines: Iterable[str], source: str = "patterns") -> "IgnoreRules":
        """Build rules from pattern lines, dropping unsafe ones."""
        rules = cls()
        rules.add(lines, source=source)
        return rules

    def add(self, lines: Iterable[str], source: str = "patterns") -> int:
        """Append rules parsed from lines.

        Args:
            lines: Pattern lines, comments and blanks allowed.
            source: Label used when logging rejected patterns.

        Returns:
            Number of rules added.
        """
        added = 0
        for line in lines:
            try:
                rule = IgnoreRule.parse(line)
            except UnsafePatternError as e:
                logger.warning("Dropped unsafe pattern", source=source, **e.details)
                continue
            if rule is not None:
                self._rules.append(rule)
                added += 1
        return added

    def _last_match(self, rel_path: str, is_dir: bool) -> bool:
        ignored = False
        for rule in self._rules:
            if rule.matches_entry(rel_path, is_dir):
                ignored = not rule.negated
        return ignored

    def ignores(self, rel_path: str) -> bool:
        """Check whether a root-relative POSIX path is ignored.

        Directories are checked from the top down. Once a directory is
        ignored everything below it is, and a negated rule cannot
        re-include a file inside it.
        """
        parts = [p for p in rel_path.split("/") if p]
        for i in range(len(parts)):
            is_dir = i < len(parts) - 1
            if self._last_match("/".join(parts[: i + 1]), is_dir):
                return True
        return False

    def __len__(self) -> int:
        return len(self._rules)
