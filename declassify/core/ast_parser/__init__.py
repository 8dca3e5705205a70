"""declassify AST parser — tree-sitter based source parsing.

Public API:
    parse_source(source, file_path, language) → ParseResult
    detect_language(file_path) → str | None
"""

from .models import ClassCandidate, ParseError, ParseResult
from .utils import detect_language, get_parser, should_skip_directory

__all__ = [
    "parse_source",
    "detect_language",
    "should_skip_directory",
    "ClassCandidate",
    "ParseError",
    "ParseResult",
]


def parse_source(source_text: str, file_path: str, language: str | None = None) -> ParseResult:
    """Parse source code string into a ParseResult.

    Args:
        source_text: Source code as string
        file_path: Relative file path (for metadata)
        language: Language identifier. If None, detected from file_path.

    Returns:
        ParseResult containing the tree and discovered classes

    Raises:
        ValueError: If no language is given and the extension is unknown
    """
    if language is None:
        language = detect_language(file_path)
    if language is None:
        raise ValueError(f"Unsupported file type: {file_path}")
    return get_parser(language).parse_source(source_text, file_path)
