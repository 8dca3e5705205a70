"""Lexical scope analysis for parsed sources.

Public API:
    ScopeAnalyzer(parse_result).analyze() → ScopeInfo
"""

from .analyzer import ScopeAnalyzer, ScopeInfo
from .models import Binding, BindingKind, ImportInfo, Scope, ScopeKind

__all__ = [
    "ScopeAnalyzer",
    "ScopeInfo",
    "Binding",
    "BindingKind",
    "ImportInfo",
    "Scope",
    "ScopeKind",
]
