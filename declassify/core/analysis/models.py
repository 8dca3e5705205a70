"""Data contracts for component analysis.

Everything here is built fresh for one class declaration, consumed by one
rewrite attempt, then discarded.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional, Union

import tree_sitter

from ..ast_parser.models import ParseResult
from ..scope import Binding, ScopeInfo

if TYPE_CHECKING:
    from ...setting import DeclassifySettings


@dataclass
class AnalysisContext:
    """Per-file inputs shared by the analyzers."""
    parse_result: ParseResult
    scopes: ScopeInfo
    settings: "DeclassifySettings"

    @property
    def source(self) -> bytes:
        return self.parse_result.source

    @property
    def is_typed(self) -> bool:
        return self.parse_result.is_typed

    def text(self, node: tree_sitter.Node) -> str:
        return self.parse_result.text(node)


class LibRefKind(Enum):
    """How the framework is referenced by the superclass expression."""
    GLOBAL = "global"        # React.Component with React unbound
    NAMESPACE = "namespace"  # import React from "react"; React.Component
    NAMED = "named"          # import { Component } from "react"


@dataclass
class LibRef:
    kind: LibRefKind
    local_name: str
    import_statement: Optional[tree_sitter.Node] = None
    specifier: Optional[tree_sitter.Node] = None
    source: Optional[str] = None


@dataclass
class ComponentHead:
    class_node: tree_sitter.Node
    name: Optional[str]
    super_class_ref: LibRef
    props_type: Optional[tree_sitter.Node] = None
    state_type: Optional[tree_sitter.Node] = None
    export_node: Optional[tree_sitter.Node] = None
    is_default_export: bool = False

    @property
    def statement_node(self) -> tree_sitter.Node:
        return self.export_node if self.export_node is not None else self.class_node


@dataclass
class TypeMember:
    """One member of a resolved object type."""
    name: str
    kind: str  # "property" | "method"
    node: tree_sitter.Node  # property_signature | method_signature
    type_node: Optional[tree_sitter.Node] = None
    parameters: Optional[tree_sitter.Node] = None
    return_type: Optional[tree_sitter.Node] = None
    optional: bool = False


@dataclass
class LocalAlias:
    """A destructured local bound to a prop or state key."""
    binding: Optional[Binding]
    local_name: str
    declarator: tree_sitter.Node
    default_value: Optional[tree_sitter.Node] = None


@dataclass
class PropBinding:
    name: str
    aliases: List[LocalAlias] = field(default_factory=list)
    new_alias_name: Optional[str] = None
    default_value: Optional[tree_sitter.Node] = None
    typing: Optional[TypeMember] = None
    needs_alias: bool = False
    sites: List[tree_sitter.Node] = field(default_factory=list)


@dataclass
class PropsAnalysis:
    props: Dict[str, PropBinding] = field(default_factory=dict)
    has_defaults: bool = False
    # Props-object expressions not consumed by a destructuring
    sites: List[tree_sitter.Node] = field(default_factory=list)


@dataclass
class StateSite:
    kind: str  # "expr" | "setState"
    node: tree_sitter.Node
    call: Optional[tree_sitter.Node] = None
    value: Optional[tree_sitter.Node] = None
    index: int = 0


@dataclass
class StateField:
    name: str
    local_name: Optional[str] = None
    local_setter_name: Optional[str] = None
    init: Optional[tree_sitter.Node] = None
    type_annotation: Optional[TypeMember] = None
    sites: List[StateSite] = field(default_factory=list)
    aliases: List[LocalAlias] = field(default_factory=list)


class UserFieldKind(Enum):
    FUNCTION = "user_defined_function"
    REF = "user_defined_ref"
    DIRECT_REF = "user_defined_direct_ref"


@dataclass
class UserField:
    name: str
    kind: UserFieldKind
    declaration: tree_sitter.Node
    init: Optional[tree_sitter.Node] = None  # method_definition or initializer expression
    type_annotation: Optional[tree_sitter.Node] = None
    local_name: Optional[str] = None
    sites: List[tree_sitter.Node] = field(default_factory=list)
    bind_sites: List[tree_sitter.Node] = field(default_factory=list)

    @property
    def is_method(self) -> bool:
        return self.init is not None and self.init.type == "method_definition"


@dataclass
class RenderRename:
    old_name: str
    new_name: str
    binding: Binding


@dataclass
class RenderDescriptor:
    method: tree_sitter.Node
    body: tree_sitter.Node  # statement_block
    renames: List[RenderRename] = field(default_factory=list)


@dataclass
class ComponentBody:
    props: PropsAnalysis
    state: Dict[str, StateField]
    user_defined: Dict[str, UserField]
    render: RenderDescriptor
    props_param_name: str = "props"
    remove_nodes: List[tree_sitter.Node] = field(default_factory=list)

    @property
    def needs_props(self) -> bool:
        """Whether the function component takes a props parameter."""
        if any(prop.needs_alias for prop in self.props.props.values()):
            return True
        return not self.props.has_defaults and bool(self.props.sites)


@dataclass
class Verified:
    body: ComponentBody


@dataclass
class Rejected:
    message: str
    line: Optional[int] = None


AnalysisResult = Union[Verified, Rejected]
