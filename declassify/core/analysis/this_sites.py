"""Collect every ``this`` usage inside a component class.

Each usage must be a static member access (``this.name`` or
``this["name"]``). ``this.f.bind(this)`` is recorded as one site carrying
the bind call. Nested classes are skipped; their ``this`` is their own.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import tree_sitter

from ..ast_parser.nodes import (
    FUNCTION_DECLARATION_TYPES,
    is_function_expression,
    named_children,
    same_node,
)
from .class_fields import ClassFields, this_member_name
from .errors import AnalysisError
from .models import AnalysisContext

logger = logging.getLogger(__name__)

_NESTED_CLASS_TYPES = frozenset({"class", "class_declaration", "abstract_class_declaration"})


@dataclass
class ThisSite:
    name: str
    node: tree_sitter.Node  # member_expression | subscript_expression
    bind_call: Optional[tree_sitter.Node] = None


def collect_this_sites(fields: ClassFields, ctx: AnalysisContext) -> List[ThisSite]:
    """Walk render, methods and initializers in document order.

    The constructor is only visited through its field initializers; its
    ``super(...)`` call and ``this.x =`` targets are declarations.
    """
    roots = [fields.render] + list(fields.initializers)
    roots += [decl.value for decl in fields.fields.values() if decl.kind == "method" and decl.value is not None]
    roots.sort(key=lambda n: n.start_byte)

    sites: List[ThisSite] = []
    for root in roots:
        _walk(root, sites, ctx)
    return sites


def _walk(root: tree_sitter.Node, sites: List[ThisSite], ctx: AnalysisContext) -> None:
    stack = [(root, False)]
    while stack:
        node, foreign = stack.pop()
        t = node.type
        if t in _NESTED_CLASS_TYPES:
            continue
        if t == "this":
            if foreign:
                raise AnalysisError("this inside a nested function is not supported", node)
            site = _site_of(node, ctx)
            if site is not None:
                sites.append(site)
            continue
        if t == "super":
            raise AnalysisError("super is only supported in the constructor", node)

        if not same_node(node, root) and (
            t in FUNCTION_DECLARATION_TYPES or is_function_expression(node) or t == "method_definition"
        ):
            foreign = True
        for child in reversed(list(named_children(node))):
            stack.append((child, foreign))


def _site_of(this_node: tree_sitter.Node, ctx: AnalysisContext) -> Optional[ThisSite]:
    parent = this_node.parent
    if parent is None:
        raise AnalysisError("Unsupported use of this", this_node)

    if parent.type in ("member_expression", "subscript_expression") and same_node(
        parent.child_by_field_name("object"), this_node
    ):
        name = this_member_name(parent, ctx)
        if name is None:
            prop = parent.child_by_field_name("property")
            if prop is not None and prop.type == "private_property_identifier":
                raise AnalysisError("Private members are not supported", parent)
            raise AnalysisError("Dynamic member access on this is not supported", parent)
        return ThisSite(name=name, node=parent, bind_call=_bind_call_of(parent, ctx))

    if _is_bind_argument(this_node, ctx):
        # Recorded through the callee's `this.f`
        return None
    raise AnalysisError("Unsupported use of this", this_node)


def _bind_call_of(member: tree_sitter.Node, ctx: AnalysisContext) -> Optional[tree_sitter.Node]:
    """The call node when ``member`` is used as ``member.bind(this)``."""
    outer = member.parent
    if outer is None or outer.type != "member_expression":
        return None
    if not same_node(outer.child_by_field_name("object"), member):
        return None
    prop = outer.child_by_field_name("property")
    if prop is None or ctx.text(prop) != "bind":
        return None
    call = outer.parent
    if call is None or call.type != "call_expression" or not same_node(call.child_by_field_name("function"), outer):
        return None
    args = call.child_by_field_name("arguments")
    arg_list = list(named_children(args)) if args is not None else []
    if len(arg_list) != 1 or arg_list[0].type != "this":
        return None
    return call


def _is_bind_argument(this_node: tree_sitter.Node, ctx: AnalysisContext) -> bool:
    args = this_node.parent
    if args is None or args.type != "arguments":
        return False
    call = args.parent
    if call is None or call.type != "call_expression":
        return False
    callee = call.child_by_field_name("function")
    if callee is None or callee.type != "member_expression":
        return False
    member = callee.child_by_field_name("object")
    return member is not None and this_member_name(member, ctx) is not None and _bind_call_of(member, ctx) is not None
