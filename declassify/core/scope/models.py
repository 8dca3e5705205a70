"""Scope data models.

Lexical scopes, the bindings they declare and the identifier nodes that
reference each binding. Built once per file by ScopeAnalyzer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional

import tree_sitter


class ScopeKind(str, Enum):
    PROGRAM = "program"
    FUNCTION = "function"
    BLOCK = "block"
    CLASS = "class"


class BindingKind(str, Enum):
    VAR = "var"
    LET = "let"
    CONST = "const"
    PARAM = "param"
    FUNCTION = "function"
    CLASS = "class"
    IMPORT = "import"
    CATCH = "catch"
    TYPE = "type"  # interfaces, type aliases, enums, namespaces


@dataclass
class ImportInfo:
    """Where an import binding comes from."""

    statement: tree_sitter.Node  # import_statement
    specifier: tree_sitter.Node  # identifier | namespace_import | import_specifier
    source: str  # Module specifier, e.g. "react"
    kind: str  # "default" | "namespace" | "named"
    imported_name: Optional[str] = None  # For named imports
    type_only: bool = False


@dataclass(eq=False)
class Binding:
    """A named variable and every identifier node that declares or uses it."""

    name: str
    kind: BindingKind
    scope: "Scope"
    identifiers: List[tree_sitter.Node] = field(default_factory=list)
    references: List[tree_sitter.Node] = field(default_factory=list)
    declaration: Optional[tree_sitter.Node] = None
    import_info: Optional[ImportInfo] = None


@dataclass(eq=False)
class Scope:
    """A lexical region; ``node`` is the tree node that opens it."""

    kind: ScopeKind
    node: tree_sitter.Node
    parent: Optional["Scope"] = None
    bindings: Dict[str, Binding] = field(default_factory=dict)
    children: List["Scope"] = field(default_factory=list)

    def lookup(self, name: str) -> Optional[Binding]:
        scope: Optional[Scope] = self
        while scope is not None:
            binding = scope.bindings.get(name)
            if binding is not None:
                return binding
            scope = scope.parent
        return None

    def function_scope(self) -> "Scope":
        """Nearest scope that receives ``var`` declarations."""
        scope = self
        while scope.kind not in (ScopeKind.FUNCTION, ScopeKind.PROGRAM) and scope.parent is not None:
            scope = scope.parent
        return scope

    def ancestors(self) -> Iterator["Scope"]:
        """This scope and every enclosing one, innermost first."""
        scope: Optional[Scope] = self
        while scope is not None:
            yield scope
            scope = scope.parent
