"""Declassify transformer.

Orchestrates: source → parse → scope analysis → per-class head/body
analysis → rewrite → rendered text.

Each class is analyzed against the original tree and rewritten into its
own edit session; a class that cannot be translated gets a disable
comment instead. Edits from all classes are rendered once at the end.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

from ..analysis import AnalysisContext, Rejected, analyze_component, analyze_head
from ..ast_parser import ClassCandidate, ParseError, parse_source
from ..ast_parser.nodes import NodeKey
from ..rewriter import EditBuffer, ImportResolver, is_disabled, mark_rejected, rewrite_component
from ..scope import ScopeAnalyzer
from ...setting import DeclassifySettings, get_settings

logger = logging.getLogger(__name__)


@dataclass
class ComponentOutcome:
    """What happened to one component class."""

    name: Optional[str]
    line: int
    status: str  # "transformed" | "failed" | "disabled"
    message: Optional[str] = None


@dataclass
class TransformResult:
    """Summary of transforming a single file."""

    file_path: str
    code: str
    changed: bool = False
    outcomes: List[ComponentOutcome] = field(default_factory=list)
    errors: List[ParseError] = field(default_factory=list)

    @property
    def transformed(self) -> List[ComponentOutcome]:
        return [o for o in self.outcomes if o.status == "transformed"]

    @property
    def failed(self) -> List[ComponentOutcome]:
        return [o for o in self.outcomes if o.status == "failed"]


class DeclassifyTransformer:
    """Rewrites the component classes of a source file as function components.

    Usage:
        transformer = DeclassifyTransformer(settings)
        result = transformer.transform_source(text, "Counter.tsx")
        print(result.code)
    """

    def __init__(self, settings: Optional[DeclassifySettings] = None):
        self.settings = settings or get_settings()

    def transform_file(self, file_path: str, encoding: str = "utf-8") -> TransformResult:
        """Read a file from disk and transform it (the file is not written).

        Line endings are read untranslated so CRLF files keep them.
        """
        with open(file_path, "r", encoding=encoding, newline="") as f:
            source = f.read()
        return self.transform_source(source, file_path)

    def transform_source(self, source: str, file_path: str) -> TransformResult:
        """Transform source text.

        Args:
            source: Source code as string
            file_path: Path used to pick the grammar (extension) and for reporting

        Returns:
            TransformResult; ``code`` equals ``source`` when nothing changed

        Raises:
            ValueError: If the file extension is not supported
        """
        parse_result = parse_source(source, file_path)
        for error in parse_result.errors:
            logger.warning(f"{file_path}:{error.line}: {error.message}")

        scopes = ScopeAnalyzer(parse_result).analyze()
        ctx = AnalysisContext(parse_result=parse_result, scopes=scopes, settings=self.settings)
        buffer = EditBuffer(parse_result.source, parse_result.tree)
        imports = ImportResolver(scopes, parse_result.source)
        widened: Set[NodeKey] = set()

        outcomes: List[ComponentOutcome] = []
        transformed_ranges: List[Tuple[int, int]] = []
        for candidate in parse_result.classes:
            if self._inside(candidate, transformed_ranges):
                logger.debug(f"Skipping {candidate.name or '<anonymous>'}: nested in a transformed class")
                continue
            outcome = self._transform_class(candidate, ctx, buffer, imports, widened)
            if outcome is None:
                continue
            outcomes.append(outcome)
            if outcome.status == "transformed":
                transformed_ranges.append((candidate.node.start_byte, candidate.node.end_byte))

        imports.flush(buffer)
        code = buffer.apply() if buffer.changed else source
        result = TransformResult(
            file_path=file_path,
            code=code,
            changed=code != source,
            outcomes=outcomes,
            errors=list(parse_result.errors),
        )
        if outcomes:
            logger.info(
                f"{file_path}: {len(result.transformed)} transformed, "
                f"{len(result.failed)} failed, "
                f"{len(outcomes) - len(result.transformed) - len(result.failed)} disabled"
            )
        return result

    def _transform_class(
        self,
        candidate: ClassCandidate,
        ctx: AnalysisContext,
        buffer: EditBuffer,
        imports: ImportResolver,
        widened: Set[NodeKey],
    ) -> Optional[ComponentOutcome]:
        head = analyze_head(candidate, ctx)
        if head is None:
            return None

        name = candidate.name
        if is_disabled(candidate):
            logger.debug(f"Skipping {name or '<anonymous>'}: disabled by comment")
            return ComponentOutcome(name=name, line=candidate.start_line, status="disabled")

        result = analyze_component(head, ctx)
        session = buffer.session()
        if isinstance(result, Rejected):
            mark_rejected(candidate, result.message, session)
            session.commit()
            return ComponentOutcome(
                name=name,
                line=result.line or candidate.start_line,
                status="failed",
                message=result.message,
            )

        rewrite_component(head, result.body, ctx, session, imports, widened)
        session.commit()
        return ComponentOutcome(name=name, line=candidate.start_line, status="transformed")

    @staticmethod
    def _inside(candidate: ClassCandidate, ranges: List[Tuple[int, int]]) -> bool:
        node = candidate.node
        return any(start <= node.start_byte and node.end_byte <= end for start, end in ranges)
