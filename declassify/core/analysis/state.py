"""State analysis.

Each state key becomes one value/setter pair. Supported shapes:

    this.state.foo / this.state["foo"]   read
    const { foo } = this.state           destructuring (aliases renamed to the local)
    this.setState({ foo: v, bar: w })    one setter call per key

Keys are ordered by the initializer first, then by first appearance.
"""

import logging
from typing import Dict, List, Tuple

import tree_sitter

from ..ast_parser.nodes import (
    FUNCTION_EXPRESSION_TYPES,
    assignment_target_of,
    named_children,
    same_node,
    skip_parentheses,
    static_key,
)
from .class_fields import ClassFields
from .errors import AnalysisError
from .models import AnalysisContext, ComponentHead, LocalAlias, StateField, StateSite
from .props import destructured_entries, member_key
from .type_resolver import resolve_members

logger = logging.getLogger(__name__)


def analyze_state(
    exprs: List[tree_sitter.Node],
    set_state_sites: List[tree_sitter.Node],
    fields: ClassFields,
    head: ComponentHead,
    ctx: AnalysisContext,
) -> Tuple[Dict[str, StateField], List[tree_sitter.Node]]:
    """Build the state model.

    Args:
        exprs: ``this.state`` expressions
        set_state_sites: ``this.setState`` member expressions
        fields: Member table of the class
        head: Component head (for the state type)
        ctx: Per-file analysis context

    Returns:
        Tuple of (state fields by key, declarators to remove)
    """
    state: Dict[str, StateField] = {}
    removals: List[tree_sitter.Node] = []

    def field_for(name: str) -> StateField:
        if name not in state:
            state[name] = StateField(name=name)
        return state[name]

    for name, value in _initializer_entries(fields.state_init, ctx):
        field_for(name).init = value

    tagged = [(n, "expr") for n in exprs] + [(n, "setState") for n in set_state_sites]
    for node, kind in sorted(tagged, key=lambda item: item[0].start_byte):
        if kind == "setState":
            call = _set_state_call(node)
            for index, (name, value) in enumerate(_update_entries(call, ctx)):
                field_for(name).sites.append(
                    StateSite(kind="setState", node=call, call=call, value=value, index=index)
                )
            continue

        if assignment_target_of(node) is not None:
            raise AnalysisError("Cannot assign to this.state", node)
        parent = node.parent
        name = member_key(parent, node, ctx)
        if name is not None:
            if assignment_target_of(parent) is not None:
                raise AnalysisError(f"Cannot write to state {name} directly; use setState", parent)
            field_for(name).sites.append(StateSite(kind="expr", node=parent))
            continue

        if (
            parent is not None
            and parent.type == "variable_declarator"
            and same_node(parent.child_by_field_name("value"), node)
            and parent.child_by_field_name("name") is not None
            and parent.child_by_field_name("name").type == "object_pattern"
        ):
            for key, local, default in destructured_entries(parent, ctx, "state"):
                if default is not None:
                    raise AnalysisError("Default values in state destructuring are not supported", default)
                field_for(key).aliases.append(
                    LocalAlias(
                        binding=ctx.scopes.binding_of(local),
                        local_name=ctx.text(local),
                        declarator=parent,
                    )
                )
            removals.append(parent)
            continue

        raise AnalysisError("Unsupported use of this.state", node)

    state_type = head.state_type if head.state_type is not None else fields.state_type
    members = resolve_members(state_type, ctx) if ctx.is_typed else None
    if members is not None:
        for name, state_field in state.items():
            state_field.type_annotation = members.get(name)

    logger.debug(f"State: {len(state)} key(s)")
    return state, removals


def _initializer_entries(node, ctx: AnalysisContext) -> List[Tuple[str, tree_sitter.Node]]:
    entries: List[Tuple[str, tree_sitter.Node]] = []
    if node is None:
        return entries
    for entry in named_children(node):
        if entry.type == "pair":
            key = entry.child_by_field_name("key")
            value = entry.child_by_field_name("value")
            name = static_key(key, ctx.source) if key is not None else None
            if name is None or value is None:
                raise AnalysisError("Computed keys in the state initializer are not supported", entry)
            entries.append((name, value))
        elif entry.type == "shorthand_property_identifier":
            entries.append((ctx.text(entry), entry))
        else:
            raise AnalysisError("Unsupported entry in the state initializer", entry)
    return entries


def _set_state_call(member: tree_sitter.Node) -> tree_sitter.Node:
    call = member.parent
    if call is None or call.type != "call_expression" or not same_node(call.child_by_field_name("function"), member):
        raise AnalysisError("setState must be called directly", member)
    return call


def _update_entries(call: tree_sitter.Node, ctx: AnalysisContext) -> List[Tuple[str, tree_sitter.Node]]:
    args = call.child_by_field_name("arguments")
    arg_list = list(named_children(args)) if args is not None else []
    if len(arg_list) != 1:
        raise AnalysisError("setState with a callback is not supported", call)

    update = skip_parentheses(arg_list[0])
    if update.type == "arrow_function" or update.type in FUNCTION_EXPRESSION_TYPES:
        raise AnalysisError("Updater functions in setState are not supported", update)
    if update.type != "object":
        raise AnalysisError("setState argument must be an object literal", update)

    entries: List[Tuple[str, tree_sitter.Node]] = []
    for entry in named_children(update):
        if entry.type == "pair":
            key = entry.child_by_field_name("key")
            value = entry.child_by_field_name("value")
            if key is None or key.type == "computed_property_name":
                raise AnalysisError("Computed keys in setState are not supported", entry)
            name = static_key(key, ctx.source)
            if name is None or value is None:
                raise AnalysisError("Unsupported key in setState", entry)
            entries.append((name, value))
        elif entry.type == "shorthand_property_identifier":
            entries.append((ctx.text(entry), entry))
        elif entry.type == "spread_element":
            raise AnalysisError("Spread in setState is not supported", entry)
        else:
            raise AnalysisError("Unsupported entry in setState", entry)

    if not entries:
        raise AnalysisError("Empty setState is not supported", call)
    if len(entries) > 1 and (call.parent is None or call.parent.type != "expression_statement"):
        raise AnalysisError("setState with several keys must be a statement", call)
    return entries
