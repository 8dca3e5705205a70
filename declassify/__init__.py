"""declassify — rewrites React class components as function components.

Public API:
    transform_source(source, file_path, settings=None) → TransformResult
    transform_file(path, settings=None) → TransformResult
"""

from typing import Optional

from .core.pipeline import ComponentOutcome, DeclassifyTransformer, TransformResult
from .setting import DeclassifySettings, get_settings, load_settings

__all__ = [
    "transform_source",
    "transform_file",
    "ComponentOutcome",
    "DeclassifyTransformer",
    "TransformResult",
    "DeclassifySettings",
    "get_settings",
    "load_settings",
]


def transform_source(
    source: str, file_path: str, settings: Optional[DeclassifySettings] = None
) -> TransformResult:
    """Transform source text; the extension of ``file_path`` selects the grammar."""
    return DeclassifyTransformer(settings).transform_source(source, file_path)


def transform_file(path: str, settings: Optional[DeclassifySettings] = None) -> TransformResult:
    """Transform a file on disk without writing it back."""
    return DeclassifyTransformer(settings).transform_file(path)
