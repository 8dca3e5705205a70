"""Dialect detection and the parser registry.

Every supported extension maps to one of three tree-sitter grammars.
Parsers are created on first use and reused for the rest of the run.
"""

import os
from typing import Dict, Iterable, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .base import BaseLanguageParser

# Extension → dialect; only "typescript" and "tsx" carry type syntax
SUPPORTED_EXTENSIONS: Dict[str, str] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
}

_parsers: Dict[str, "BaseLanguageParser"] = {}


def detect_language(file_path: str) -> Optional[str]:
    """Dialect for ``file_path`` by extension, or None when unsupported."""
    ext = os.path.splitext(file_path)[1].lower()
    return SUPPORTED_EXTENSIONS.get(ext)


def get_parser(language: str) -> "BaseLanguageParser":
    """Shared parser for a dialect.

    Args:
        language: "javascript", "typescript" or "tsx"

    Raises:
        ValueError: For any other dialect name
    """
    parser = _parsers.get(language)
    if parser is not None:
        return parser

    from .javascript_parser import JavaScriptParser
    from .typescript_parser import TsxParser, TypeScriptParser

    factories = {
        "javascript": JavaScriptParser,
        "typescript": TypeScriptParser,
        "tsx": TsxParser,
    }
    if language not in factories:
        raise ValueError(
            f"Unsupported dialect {language!r}; expected one of {sorted(factories)}"
        )
    parser = _parsers[language] = factories[language]()
    return parser


def should_skip_directory(dir_name: str, skip_directories: Iterable[str]) -> bool:
    """Whether a directory (by name, not path) is left out of a walk.

    Hidden directories are always skipped; so is anything named in
    ``skip_directories`` (the ``skip_directories`` setting).
    """
    return dir_name.startswith(".") or dir_name in skip_directories
