"""User-defined instance members: bound functions and refs.

Every declared member other than state, props and render is classified:

    method / function-valued field     bound function
    createRef()                        ref container, useRef(null)
    any other value, or none           direct ref, useRef(init) read via .current

Names that are never declared but assigned somewhere in the class
(``this.timer = ...`` in a method) become direct refs without initializer.
"""

import logging
from typing import Dict, List, Optional

import tree_sitter

from ..ast_parser.nodes import (
    FUNCTION_EXPRESSION_TYPES,
    assignment_target_of,
    named_children,
    skip_parentheses,
)
from .class_fields import RESERVED_MEMBERS, ClassFields, FieldDecl
from .errors import AnalysisError
from .head import is_framework_member
from .models import AnalysisContext, ComponentHead, UserField, UserFieldKind
from .this_sites import ThisSite

logger = logging.getLogger(__name__)


def analyze_user_fields(
    fields: ClassFields,
    sites: List[ThisSite],
    head: ComponentHead,
    ctx: AnalysisContext,
) -> Dict[str, UserField]:
    """Classify members and attach their usage sites.

    Args:
        fields: Member table of the class
        sites: ``this.name`` sites other than props/state/setState
        head: Component head (for the createRef reference style)
        ctx: Per-file analysis context

    Returns:
        User fields by member name, in declaration order
    """
    user_fields: Dict[str, UserField] = {}
    for decl in fields.fields.values():
        user_fields[decl.name] = _classify(decl, head, ctx)

    for site in sites:
        if site.name in user_fields or site.name in RESERVED_MEMBERS:
            continue
        target = assignment_target_of(site.node)
        if target is not None and target.type == "assignment_expression":
            logger.debug(f"Member {site.name} is only assigned at runtime; treating as a ref")
            user_fields[site.name] = UserField(
                name=site.name,
                kind=UserFieldKind.DIRECT_REF,
                declaration=site.node,
            )

    for site in sites:
        user_field = user_fields.get(site.name)
        if user_field is None:
            raise AnalysisError(f"Unsupported member this.{site.name}", site.node)

        if site.bind_call is not None:
            if user_field.kind is not UserFieldKind.FUNCTION:
                raise AnalysisError(f"Cannot bind non-method {site.name}", site.bind_call)
            user_field.bind_sites.append(site.bind_call)
            continue
        if user_field.kind is not UserFieldKind.DIRECT_REF and assignment_target_of(site.node) is not None:
            raise AnalysisError(f"Cannot assign to {site.name}", site.node)
        user_field.sites.append(site.node)

    return user_fields


def _classify(decl: FieldDecl, head: ComponentHead, ctx: AnalysisContext) -> UserField:
    if decl.kind == "method":
        return UserField(
            name=decl.name,
            kind=UserFieldKind.FUNCTION,
            declaration=decl.declaration,
            init=decl.value,
        )

    value = skip_parentheses(decl.value) if decl.value is not None else None
    if value is None:
        return UserField(
            name=decl.name,
            kind=UserFieldKind.DIRECT_REF,
            declaration=decl.declaration,
            type_annotation=decl.type_node,
        )

    if value.type == "arrow_function" or value.type in FUNCTION_EXPRESSION_TYPES:
        return UserField(
            name=decl.name,
            kind=UserFieldKind.FUNCTION,
            declaration=decl.declaration,
            init=value,
            type_annotation=decl.type_node,
        )

    if value.type == "call_expression":
        callee = value.child_by_field_name("function")
        if callee is not None and is_framework_member(callee, "createRef", head.super_class_ref, ctx):
            args = value.child_by_field_name("arguments")
            if args is not None and any(True for _ in named_children(args)):
                raise AnalysisError("createRef with arguments is not supported", value)
            return UserField(
                name=decl.name,
                kind=UserFieldKind.REF,
                declaration=decl.declaration,
                init=value,
                type_annotation=_ref_type(value, decl.type_node, ctx),
            )

    return UserField(
        name=decl.name,
        kind=UserFieldKind.DIRECT_REF,
        declaration=decl.declaration,
        init=value,
        type_annotation=decl.type_node,
    )


def _ref_type(
    call: tree_sitter.Node, annotation: Optional[tree_sitter.Node], ctx: AnalysisContext
) -> Optional[tree_sitter.Node]:
    """Element type of a ref: createRef<T>() or a RefObject<T> annotation."""
    type_args = call.child_by_field_name("type_arguments")
    if type_args is None:
        type_args = next((c for c in call.named_children if c.type == "type_arguments"), None)
    if type_args is not None:
        return next(named_children(type_args), None)

    if annotation is not None and annotation.type == "generic_type":
        name = annotation.child_by_field_name("name")
        args = next((c for c in annotation.named_children if c.type == "type_arguments"), None)
        if name is not None and ctx.text(name).split(".")[-1] == "RefObject" and args is not None:
            return next(named_children(args), None)
    return None
