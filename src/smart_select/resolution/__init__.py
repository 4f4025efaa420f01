"""Resolution module.

Maps import specifiers to project files and decides which files are
excluded from the graph.
"""

from smart_select.resolution.exclusion import ExclusionDecision, ExclusionFilter
from smart_select.resolution.path_resolver import AliasTable, PathResolver
from smart_select.resolution.patterns import IgnoreRule, IgnoreRules

__all__ = [
    "AliasTable",
    "PathResolver",
    "ExclusionDecision",
    "ExclusionFilter",
    "IgnoreRule",
    "IgnoreRules",
]
