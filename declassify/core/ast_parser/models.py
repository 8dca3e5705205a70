"""AST Parser data models.

Defines the core data structures for parsed source representation.
Plain containers; parsing lives in the parser classes.
"""

from dataclasses import dataclass, field
from typing import List, Optional

import tree_sitter


@dataclass
class ParseError:
    """An error encountered during parsing."""

    file_path: str
    line: int
    message: str
    severity: str = "warning"  # "warning" | "error"


@dataclass
class ClassCandidate:
    """A class declaration discovered in a source file.

    Every class is a candidate; the head analyzer decides later whether
    it actually is a component.
    """

    name: Optional[str]  # None for `export default class extends ...`
    node: tree_sitter.Node  # class_declaration | class
    start_line: int
    end_line: int
    export_node: Optional[tree_sitter.Node] = None  # Enclosing export_statement
    is_default_export: bool = False
    leading_comments: List[str] = field(default_factory=list)

    @property
    def statement_node(self) -> tree_sitter.Node:
        """The outermost statement node owning this class."""
        return self.export_node if self.export_node is not None else self.node


@dataclass
class ParseResult:
    """Complete parse output for a single file.

    Keeps the tree-sitter tree and the raw bytes alive, since every later
    stage addresses the source through byte offsets.
    """

    file_path: str
    language: str  # "typescript" | "tsx" | "javascript"
    source: bytes
    tree: tree_sitter.Tree
    classes: List[ClassCandidate]
    errors: List[ParseError] = field(default_factory=list)

    @property
    def is_typed(self) -> bool:
        """Whether type annotations may be emitted for this file."""
        return self.language in ("typescript", "tsx")

    def text(self, node: tree_sitter.Node) -> str:
        return self.source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")
