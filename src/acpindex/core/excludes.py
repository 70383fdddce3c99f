"""Default include/exclude glob patterns for file discovery.

DEFAULT_INCLUDE: source files the indexer looks at when nothing is configured.
DEFAULT_EXCLUDE: dependency, build-output, cache and editor directories.

Both lists are plain globs matched against root-relative POSIX paths; see
``acpindex.index.discovery.matches_glob`` for the matching rules.
"""

from __future__ import annotations

DEFAULT_INCLUDE: tuple[str, ...] = (
    "**/*.ts",
    "**/*.tsx",
    "**/*.js",
    "**/*.jsx",
    "**/*.rs",
    "**/*.py",
    "**/*.go",
    "**/*.java",
)

# Organized by ecosystem for maintainability.
_EXCLUDED_DIRS: tuple[str, ...] = (
    # JavaScript/Node.js
    "node_modules",
    "dist",
    "build",
    "out",
    ".next",
    ".nuxt",
    ".output",
    ".svelte-kit",
    ".vite",
    ".turbo",
    ".cache",
    "coverage",
    # Go/PHP
    "vendor",
    # Rust/Java
    "target",
    # Python
    "__pycache__",
    ".pytest_cache",
    # VCS and editors
    ".git",
    ".idea",
    ".vscode",
)

DEFAULT_EXCLUDE: tuple[str, ...] = tuple(f"**/{d}/**" for d in _EXCLUDED_DIRS)
