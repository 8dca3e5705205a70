"""Base interface for language-specific AST parsers.

Defines the Strategy pattern base class that all language parsers implement.
Shared parsing and class discovery live here; grammar selection is delegated.
"""

import logging
from abc import ABC, abstractmethod
from typing import List

import tree_sitter

from .models import ClassCandidate, ParseError, ParseResult
from .nodes import CLASS_TYPES, has_token, node_text

logger = logging.getLogger(__name__)


class BaseLanguageParser(ABC):
    """Abstract base for tree-sitter parsers of ECMAScript dialects.

    Subclasses implement:
    - get_language(): returns language name string
    - get_tree_sitter_language(): returns tree-sitter Language object
    """

    @abstractmethod
    def get_language(self) -> str:
        """Return the language identifier (e.g., 'tsx', 'javascript')."""
        ...

    @abstractmethod
    def get_tree_sitter_language(self) -> tree_sitter.Language:
        """Return the tree-sitter Language object for this language."""
        ...

    def parse_source(self, source_text: str, file_path: str) -> ParseResult:
        """Parse source code string into a ParseResult.

        Args:
            source_text: Source code as string
            file_path: Relative file path (for metadata)

        Returns:
            ParseResult with discovered classes and metadata
        """
        errors: List[ParseError] = []
        source_bytes = source_text.encode("utf-8")

        parser = tree_sitter.Parser(self.get_tree_sitter_language())
        tree = parser.parse(source_bytes)

        if tree.root_node.has_error:
            errors.append(
                ParseError(
                    file_path=file_path,
                    line=self._first_error_line(tree.root_node),
                    message="Tree-sitter reported parse errors in file",
                    severity="warning",
                )
            )

        classes = self.extract_classes(tree, source_bytes)
        logger.debug(f"Parsed {file_path}: {len(classes)} class(es)")

        return ParseResult(
            file_path=file_path,
            language=self.get_language(),
            source=source_bytes,
            tree=tree,
            classes=classes,
            errors=errors,
        )

    def extract_classes(self, tree: tree_sitter.Tree, source: bytes) -> List[ClassCandidate]:
        """Find every class declaration in document order.

        Nested classes are included; the pipeline decides whether to visit
        them depending on what happened to the enclosing class.
        """
        classes: List[ClassCandidate] = []
        stack = [tree.root_node]
        while stack:
            node = stack.pop()
            if self._is_class_candidate(node):
                classes.append(self._make_candidate(node, source))
            stack.extend(reversed(node.named_children))
        return classes

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _is_class_candidate(node: tree_sitter.Node) -> bool:
        if node.type == "class_declaration":
            return True
        # Anonymous classes are only handled as `export default class ...`
        parent = node.parent
        return (
            node.type in CLASS_TYPES
            and parent is not None
            and parent.type == "export_statement"
            and has_token(parent, "default")
        )

    def _make_candidate(self, node: tree_sitter.Node, source: bytes) -> ClassCandidate:
        name_node = node.child_by_field_name("name")
        parent = node.parent
        export_node = parent if parent is not None and parent.type == "export_statement" else None
        is_default = export_node is not None and has_token(export_node, "default")
        statement = export_node if export_node is not None else node

        return ClassCandidate(
            name=node_text(name_node, source) if name_node else None,
            node=node,
            start_line=statement.start_point.row + 1,
            end_line=statement.end_point.row + 1,
            export_node=export_node,
            is_default_export=is_default,
            leading_comments=self._extract_leading_comments(statement, source),
        )

    @staticmethod
    def _extract_leading_comments(node: tree_sitter.Node, source: bytes) -> List[str]:
        """Collect the comments directly preceding a node."""
        comments: List[str] = []
        prev = node.prev_sibling
        while prev is not None and prev.type == "comment":
            comments.insert(0, node_text(prev, source))
            prev = prev.prev_sibling
        return comments

    @staticmethod
    def _first_error_line(root: tree_sitter.Node) -> int:
        stack = [root]
        while stack:
            node = stack.pop()
            if node.type == "ERROR" or node.is_missing:
                return node.start_point.row + 1
            if node.has_error:
                stack.extend(reversed(node.children))
        return 0

