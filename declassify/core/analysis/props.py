"""Props analysis.

Classifies every props-object expression (``this.props`` and references
to the constructor's props parameter):

    this.props.foo / this.props["foo"]       prop read
    const { foo, bar: b = 1 } = this.props   destructuring, one alias per entry
    anything else                            props-object site

Defaults come from ``static defaultProps`` and destructuring defaults and
must agree. Once any default exists, the props object can no longer be
passed around as a whole, because a destructured parameter would drop
the defaults.
"""

import logging
from typing import Dict, List, Optional, Tuple

import tree_sitter

from ..ast_parser.nodes import (
    assignment_target_of,
    named_children,
    same_node,
    static_key,
)
from .class_fields import ClassFields
from .errors import AnalysisError
from .models import AnalysisContext, ComponentHead, LocalAlias, PropBinding, PropsAnalysis
from .type_resolver import resolve_members

logger = logging.getLogger(__name__)

# (key, local identifier node, default value)
PatternEntry = Tuple[str, tree_sitter.Node, Optional[tree_sitter.Node]]


def analyze_props(
    exprs: List[tree_sitter.Node],
    fields: ClassFields,
    head: ComponentHead,
    ctx: AnalysisContext,
) -> Tuple[PropsAnalysis, List[tree_sitter.Node]]:
    """Build the props model.

    Args:
        exprs: Props-object expressions in the class
        fields: Member table of the class
        head: Component head (for the props type)
        ctx: Per-file analysis context

    Returns:
        Tuple of (PropsAnalysis, declarators to remove)
    """
    analysis = PropsAnalysis()
    removals: List[tree_sitter.Node] = []
    object_sites: List[tree_sitter.Node] = []

    def prop(name: str) -> PropBinding:
        if name not in analysis.props:
            analysis.props[name] = PropBinding(name=name)
        return analysis.props[name]

    for expr in sorted(exprs, key=lambda n: n.start_byte):
        if assignment_target_of(expr) is not None:
            raise AnalysisError("Cannot assign to props", expr)

        parent = expr.parent
        name = member_key(parent, expr, ctx)
        if name is not None:
            if assignment_target_of(parent) is not None:
                raise AnalysisError(f"Cannot assign to prop {name}", parent)
            prop(name).sites.append(parent)
            analysis.sites.append(expr)
            continue

        if _is_destructured(parent, expr):
            for key, local, default in destructured_entries(parent, ctx, "props"):
                prop(key).aliases.append(
                    LocalAlias(
                        binding=ctx.scopes.binding_of(local),
                        local_name=ctx.text(local),
                        declarator=parent,
                        default_value=default,
                    )
                )
            removals.append(parent)
            continue

        analysis.sites.append(expr)
        object_sites.append(expr)

    defaults = _default_props(fields.default_props, ctx)
    for name in defaults:
        prop(name)
    for binding in analysis.props.values():
        binding.default_value = _agreed_default(binding, defaults.get(binding.name), ctx)

    analysis.has_defaults = any(p.default_value is not None for p in analysis.props.values())
    if analysis.has_defaults and object_sites:
        raise AnalysisError("Cannot use the props object as a whole when props have defaults", object_sites[0])

    members = resolve_members(head.props_type, ctx) if ctx.is_typed else None
    for binding in analysis.props.values():
        binding.needs_alias = bool(binding.aliases) or (analysis.has_defaults and bool(binding.sites))
        if members is not None:
            member = members.get(binding.name)
            if member is not None and member.kind == "property":
                binding.typing = member

    logger.debug(
        f"Props: {len(analysis.props)} prop(s), defaults={analysis.has_defaults}, "
        f"{len(object_sites)} object site(s)"
    )
    return analysis, removals


def destructured_entries(
    declarator: tree_sitter.Node, ctx: AnalysisContext, subject: str
) -> List[PatternEntry]:
    """Entries of ``const { ... } = <subject>``.

    Only const declarations with identifier/string keys and identifier
    targets (optionally defaulted) are accepted.
    """
    declaration = declarator.parent
    kind = declaration.child_by_field_name("kind") if declaration is not None else None
    if (
        declaration is None
        or declaration.type != "lexical_declaration"
        or kind is None
        or ctx.text(kind) != "const"
    ):
        raise AnalysisError(f"Only const destructuring of {subject} is supported", declarator)

    pattern = declarator.child_by_field_name("name")
    entries: List[PatternEntry] = []
    for entry in named_children(pattern):
        if entry.type == "shorthand_property_identifier_pattern":
            entries.append((ctx.text(entry), entry, None))
        elif entry.type == "object_assignment_pattern":
            left = entry.child_by_field_name("left")
            right = entry.child_by_field_name("right")
            if left is None or left.type != "shorthand_property_identifier_pattern":
                raise AnalysisError(f"Unsupported {subject} destructuring", entry)
            entries.append((ctx.text(left), left, right))
        elif entry.type == "pair_pattern":
            key = entry.child_by_field_name("key")
            value = entry.child_by_field_name("value")
            name = static_key(key, ctx.source) if key is not None and key.type != "computed_property_name" else None
            if name is None or value is None:
                raise AnalysisError(f"Computed keys in {subject} destructuring are not supported", entry)
            if value.type == "identifier":
                entries.append((name, value, None))
            elif value.type == "assignment_pattern":
                left = value.child_by_field_name("left")
                if left is None or left.type != "identifier":
                    raise AnalysisError(f"Nested {subject} destructuring is not supported", entry)
                entries.append((name, left, value.child_by_field_name("right")))
            else:
                raise AnalysisError(f"Nested {subject} destructuring is not supported", entry)
        elif entry.type == "rest_pattern":
            raise AnalysisError(f"Rest elements in {subject} destructuring are not supported", entry)
        else:
            raise AnalysisError(f"Unsupported {subject} destructuring", entry)
    return entries


def member_key(parent: Optional[tree_sitter.Node], obj: tree_sitter.Node, ctx: AnalysisContext) -> Optional[str]:
    if parent is None or not same_node(parent.child_by_field_name("object"), obj):
        return None
    if parent.type == "member_expression":
        prop = parent.child_by_field_name("property")
        if prop is not None and prop.type == "property_identifier":
            return ctx.text(prop)
        return None
    if parent.type == "subscript_expression":
        index = parent.child_by_field_name("index")
        if index is not None and index.type == "string":
            return static_key(index, ctx.source)
    return None


def _is_destructured(parent: Optional[tree_sitter.Node], expr: tree_sitter.Node) -> bool:
    if parent is None or parent.type != "variable_declarator":
        return False
    name = parent.child_by_field_name("name")
    return same_node(parent.child_by_field_name("value"), expr) and name is not None and name.type == "object_pattern"


def _default_props(node: Optional[tree_sitter.Node], ctx: AnalysisContext) -> Dict[str, tree_sitter.Node]:
    defaults: Dict[str, tree_sitter.Node] = {}
    if node is None:
        return defaults
    for entry in named_children(node):
        if entry.type == "pair":
            key = entry.child_by_field_name("key")
            value = entry.child_by_field_name("value")
            name = static_key(key, ctx.source) if key is not None else None
            if name is None or value is None:
                raise AnalysisError("Unsupported key in defaultProps", entry)
            defaults[name] = value
        elif entry.type == "shorthand_property_identifier":
            defaults[ctx.text(entry)] = entry
        else:
            raise AnalysisError("Unsupported entry in defaultProps", entry)
    return defaults


def _agreed_default(
    binding: PropBinding, declared: Optional[tree_sitter.Node], ctx: AnalysisContext
) -> Optional[tree_sitter.Node]:
    alias_defaults = [a.default_value for a in binding.aliases]
    if declared is not None:
        expected = ctx.text(declared)
        for value in alias_defaults:
            if value is not None and ctx.text(value) != expected:
                raise AnalysisError(
                    f"Default value of prop {binding.name} disagrees with defaultProps", value
                )
        return declared

    texts = {ctx.text(v) if v is not None else None for v in alias_defaults}
    if len(texts) > 1:
        raise AnalysisError(f"Conflicting default values for prop {binding.name}", binding.aliases[0].declarator)
    return next((v for v in alias_defaults if v is not None), None)

