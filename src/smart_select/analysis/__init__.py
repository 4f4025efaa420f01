"""Analysis module.

Builds dependency graphs for root files.
"""

from smart_select.analysis.analyzer import DependencyAnalyzer
from smart_select.analysis.test_files import TestFileLocator

__all__ = [
    "DependencyAnalyzer",
    "TestFileLocator",
]
