"""Head analyzer — decides whether a class is a component.

A class is a component when its superclass expression refers to the
framework's ``Component`` base through one of three shapes:

    React.Component          React unbound, listed in global_names
    React.Component          React = default/namespace import of "react"
    Component                named import of Component from "react"

Anything else is not eligible and is silently left alone.
"""

import logging
from typing import List, Optional

import tree_sitter

from ..ast_parser.models import ClassCandidate
from ..ast_parser.nodes import named_children, skip_parentheses
from ..scope import Binding
from .models import AnalysisContext, ComponentHead, LibRef, LibRefKind

logger = logging.getLogger(__name__)

COMPONENT_BASE = "Component"


def analyze_head(candidate: ClassCandidate, ctx: AnalysisContext) -> Optional[ComponentHead]:
    """Inspect a class declaration's superclass.

    Args:
        candidate: Class discovered by the parser
        ctx: Per-file analysis context

    Returns:
        ComponentHead, or None when the class is not a component
    """
    class_node = candidate.node
    superclass, type_args = _superclass_of(class_node)
    if superclass is None:
        return None

    ref = _resolve_lib_ref(skip_parentheses(superclass), ctx)
    if ref is None:
        logger.debug(f"Class {candidate.name or '<anonymous>'} does not extend a component base")
        return None

    props_type = type_args[0] if len(type_args) > 0 else None
    state_type = type_args[1] if len(type_args) > 1 else None
    return ComponentHead(
        class_node=class_node,
        name=candidate.name,
        super_class_ref=ref,
        props_type=props_type if ctx.is_typed else None,
        state_type=state_type if ctx.is_typed else None,
        export_node=candidate.export_node,
        is_default_export=candidate.is_default_export,
    )


def is_framework_member(node: tree_sitter.Node, name: str, ref: LibRef, ctx: AnalysisContext) -> bool:
    """Whether ``node`` refers to the framework export ``name``.

    Follows the same reference style as the component's superclass, e.g.
    ``React.createRef`` for global/namespace heads and an imported
    ``createRef`` for named-import heads.
    """
    node = skip_parentheses(node)
    if node.type == "member_expression":
        obj = node.child_by_field_name("object")
        prop = node.child_by_field_name("property")
        if obj is None or prop is None or obj.type != "identifier" or ctx.text(prop) != name:
            return False
        return _resolve_namespace(obj, ctx) is not None
    if node.type == "identifier":
        binding = ctx.scopes.binding_of(node)
        return _named_import_of(binding, name, ctx)
    return False


def _superclass_of(class_node: tree_sitter.Node):
    """Return the superclass expression and its type arguments."""
    heritage = next((c for c in class_node.named_children if c.type == "class_heritage"), None)
    if heritage is None:
        return None, []

    type_args: List[tree_sitter.Node] = []
    extends = next((c for c in heritage.named_children if c.type == "extends_clause"), None)
    if extends is not None:
        # typescript: class_heritage > extends_clause(value, type_arguments)
        superclass = extends.child_by_field_name("value")
        args = next((c for c in extends.named_children if c.type == "type_arguments"), None)
        if args is not None:
            type_args = list(named_children(args))
    else:
        # javascript: class_heritage > expression
        superclass = next(named_children(heritage), None)
    return superclass, type_args


def _resolve_lib_ref(expr: tree_sitter.Node, ctx: AnalysisContext) -> Optional[LibRef]:
    if expr.type == "member_expression":
        obj = expr.child_by_field_name("object")
        prop = expr.child_by_field_name("property")
        if obj is None or prop is None or obj.type != "identifier":
            return None
        if ctx.text(prop) != COMPONENT_BASE:
            return None
        return _resolve_namespace(obj, ctx)

    if expr.type == "identifier":
        binding = ctx.scopes.binding_of(expr)
        if not _named_import_of(binding, COMPONENT_BASE, ctx):
            return None
        info = binding.import_info
        return LibRef(
            kind=LibRefKind.NAMED,
            local_name=binding.name,
            import_statement=info.statement,
            specifier=info.specifier,
            source=info.source,
        )
    return None


def _resolve_namespace(ident: tree_sitter.Node, ctx: AnalysisContext) -> Optional[LibRef]:
    name = ctx.text(ident)
    binding = ctx.scopes.binding_of(ident)
    if binding is None:
        if name in ctx.settings.global_names:
            return LibRef(kind=LibRefKind.GLOBAL, local_name=name)
        return None

    info = binding.import_info
    if (
        info is None
        or info.type_only
        or info.kind not in ("default", "namespace")
        or info.source not in ctx.settings.framework_modules
    ):
        return None
    return LibRef(
        kind=LibRefKind.NAMESPACE,
        local_name=binding.name,
        import_statement=info.statement,
        specifier=info.specifier,
        source=info.source,
    )


def _named_import_of(binding: Optional[Binding], name: str, ctx: AnalysisContext) -> bool:
    if binding is None or binding.import_info is None:
        return False
    info = binding.import_info
    return (
        info.kind == "named"
        and not info.type_only
        and info.imported_name == name
        and info.source in ctx.settings.framework_modules
    )
