"""Component analysis — decides whether and how a class can be rewritten.

Public API:
    analyze_head(candidate, ctx) → ComponentHead | None
    analyze_component(head, ctx) → Verified | Rejected
    analyze_body(head, ctx) → ComponentBody (raises AnalysisError)
"""

from .body import analyze_body, analyze_component
from .errors import AnalysisError
from .head import analyze_head
from .models import (
    AnalysisContext,
    AnalysisResult,
    ComponentBody,
    ComponentHead,
    LibRef,
    LibRefKind,
    Rejected,
    Verified,
)

__all__ = [
    "analyze_head",
    "analyze_component",
    "analyze_body",
    "AnalysisError",
    "AnalysisContext",
    "AnalysisResult",
    "ComponentBody",
    "ComponentHead",
    "LibRef",
    "LibRefKind",
    "Rejected",
    "Verified",
]
