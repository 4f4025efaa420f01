"""Custom exceptions for Smart Select.

This module defines a hierarchy of exceptions used throughout the application
for consistent error handling and reporting.
"""

from typing import Any


class SmartSelectError(Exception):
    """Base exception for all Smart Select errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        result: dict[str, Any] = {
            "error": self.__class__.__name__,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(SmartSelectError):
    """Error in analysis or application configuration."""

    pass


class InvalidConfigurationError(ConfigurationError):
    """A configuration option holds a value outside its valid range."""

    def __init__(self, option: str, value: Any, reason: str) -> None:
        super().__init__(
            message=f"Invalid value for '{option}': {value!r} ({reason})",
            details={"option": option, "value": value, "reason": reason},
        )


class SmartSelectDisabledError(ConfigurationError):
    """Analysis was requested while smart selection is disabled."""

    def __init__(self) -> None:
        super().__init__(message="Smart selection is disabled")


# =============================================================================
# Analysis Errors
# =============================================================================


class AnalysisError(SmartSelectError):
    """Base class for faults raised while building a dependency graph.

    These are recovered inside the analyzer and surface as graph flags,
    not as exceptions to the caller.
    """

    pass


class ParseFailure(AnalysisError):
    """An import occurrence could not be parsed."""

    def __init__(self, line: int, fragment: str, file_path: str | None = None) -> None:
        super().__init__(
            message=f"Malformed import at line {line}",
            details={"file_path": file_path, "line": line, "fragment": fragment},
        )


class ResolutionFailure(AnalysisError):
    """An import specifier could not be mapped to a file."""

    def __init__(
        self,
        specifier: str,
        importing_file: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            message=f"Could not resolve '{specifier}' from {importing_file}",
            details={"specifier": specifier, "importing_file": importing_file},
            cause=cause,
        )


class UnreadableFileError(AnalysisError):
    """A file queued for analysis could not be read."""

    def __init__(self, file_path: str, cause: Exception | None = None) -> None:
        super().__init__(
            message=f"Could not read {file_path}",
            details={"file_path": file_path},
            cause=cause,
        )


class GraphTooLargeError(AnalysisError):
    """The node-count ceiling was reached during traversal."""

    def __init__(self, limit: int) -> None:
        super().__init__(
            message=f"Dependency graph exceeded {limit} nodes",
            details={"limit": limit},
        )


class AnalysisTimeoutError(AnalysisError):
    """The wall-clock budget of an analysis was exhausted."""

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(
            message=f"Analysis timed out after {timeout_seconds}s",
            details={"timeout_seconds": timeout_seconds},
        )


class AnalysisCancelledError(AnalysisError):
    """An analysis was superseded by a newer request."""

    def __init__(self, root: str) -> None:
        super().__init__(
            message=f"Analysis of {root} was cancelled",
            details={"root": root},
        )


# =============================================================================
# Pattern Errors
# =============================================================================


class PatternError(SmartSelectError):
    """Base class for glob pattern errors."""

    pass


class UnsafePatternError(PatternError):
    """A glob pattern is too deeply nested to evaluate safely."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(
            message=f"Rejected pattern '{pattern}': {reason}",
            details={"pattern": pattern, "reason": reason},
        )
