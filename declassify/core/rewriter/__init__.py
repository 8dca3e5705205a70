"""Rewriter — edit buffer, import resolution and component rewriting."""

from .editor import EditBuffer, EditConflict, EditSession, Span
from .imports import ImportResolver
from .transform import DISABLE_MARKER, is_disabled, mark_rejected, rewrite_component

__all__ = [
    "EditBuffer",
    "EditConflict",
    "EditSession",
    "Span",
    "ImportResolver",
    "DISABLE_MARKER",
    "is_disabled",
    "mark_rejected",
    "rewrite_component",
]
