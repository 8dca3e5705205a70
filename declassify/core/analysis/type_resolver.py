"""Resolve props/state types to their members.

Only shapes that can be read without a type checker are resolved: inline
object types, and interfaces or object type aliases declared in the same
file. Anything else resolves to None and simply carries no typing.
"""

import logging
from typing import Dict, Iterator, Optional

import tree_sitter

from ..ast_parser.nodes import has_token, named_children, static_key
from .models import AnalysisContext, TypeMember

logger = logging.getLogger(__name__)

# Types that need parentheses before becoming a union member
NEEDS_PARENS_IN_UNION = frozenset({"function_type", "constructor_type", "conditional_type"})


def resolve_members(
    type_node: Optional[tree_sitter.Node], ctx: AnalysisContext
) -> Optional[Dict[str, TypeMember]]:
    """Members of an object type, keyed by property name."""
    if type_node is None:
        return None
    body = _object_body(type_node, ctx)
    if body is None:
        return None

    members: Dict[str, TypeMember] = {}
    for child in named_children(body):
        member = _member_of(child, ctx)
        if member is not None and member.name not in members:
            members[member.name] = member
    return members


def member_type_text(member: TypeMember, ctx: AnalysisContext) -> Optional[str]:
    """Render a member's type; method signatures become function types."""
    if member.kind == "method":
        params = ctx.text(member.parameters) if member.parameters is not None else "()"
        ret = ctx.text(member.return_type) if member.return_type is not None else "any"
        return f"{params} => {ret}"
    if member.type_node is None:
        return None
    return ctx.text(member.type_node)


def union_includes_undefined(type_node: tree_sitter.Node, ctx: AnalysisContext) -> bool:
    for member in _union_members(type_node):
        if member.type in ("predefined_type", "literal_type", "type_identifier", "undefined"):
            if ctx.text(member).strip() == "undefined":
                return True
    return False


def _union_members(type_node: tree_sitter.Node) -> Iterator[tree_sitter.Node]:
    if type_node.type in ("union_type", "parenthesized_type"):
        for child in named_children(type_node):
            yield from _union_members(child)
    else:
        yield type_node


def _object_body(type_node: tree_sitter.Node, ctx: AnalysisContext) -> Optional[tree_sitter.Node]:
    while type_node.type == "parenthesized_type":
        inner = next(named_children(type_node), None)
        if inner is None:
            return None
        type_node = inner

    if type_node.type == "object_type":
        return type_node
    if type_node.type == "type_identifier":
        return _find_declaration(ctx.text(type_node), ctx)
    return None


def _find_declaration(name: str, ctx: AnalysisContext) -> Optional[tree_sitter.Node]:
    """Find a top-level interface or object type alias by name."""
    root = ctx.parse_result.tree.root_node
    for statement in named_children(root):
        decl = statement
        if statement.type == "export_statement":
            decl = statement.child_by_field_name("declaration")
            if decl is None:
                continue
        if decl.type not in ("interface_declaration", "type_alias_declaration"):
            continue
        name_node = decl.child_by_field_name("name")
        if name_node is None or ctx.text(name_node) != name:
            continue
        if decl.type == "interface_declaration":
            body = decl.child_by_field_name("body")
            if body is None:
                body = next((c for c in decl.named_children if c.type in ("interface_body", "object_type")), None)
            return body
        value = decl.child_by_field_name("value")
        if value is not None and value.type == "object_type":
            return value
        logger.debug(f"Type alias {name} is not an object type")
        return None
    return None


def _member_of(node: tree_sitter.Node, ctx: AnalysisContext) -> Optional[TypeMember]:
    if node.type not in ("property_signature", "method_signature"):
        return None
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return None
    name = static_key(name_node, ctx.source)
    if name is None:
        return None

    optional = has_token(node, "?")
    if node.type == "property_signature":
        annotation = node.child_by_field_name("type")
        type_node = next(named_children(annotation), None) if annotation is not None else None
        return TypeMember(name=name, kind="property", node=node, type_node=type_node, optional=optional)

    return_annotation = node.child_by_field_name("return_type")
    return TypeMember(
        name=name,
        kind="method",
        node=node,
        parameters=node.child_by_field_name("parameters"),
        return_type=next(named_children(return_annotation), None) if return_annotation is not None else None,
        optional=optional,
    )
