"""Smart Select - dependency-aware file selection for JS/TS projects.

Given a root source file, discovers the files it imports (transitively,
up to a depth limit) and their test files, and keeps an incremental
selection across several roots:
- Import extraction (static, require, dynamic import)
- Path resolution with tsconfig aliases and barrel files
- Ignore-file and user-pattern exclusion
- Bounded breadth-first traversal with cycle detection
"""

__version__ = "0.1.0"
__author__ = "Smart Select Team"
