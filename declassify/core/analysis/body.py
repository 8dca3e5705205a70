"""Body analyzer — builds the verified model of a component class.

Pipeline (all before any rewriting):
1. Collect members into a name → declaration table
2. Collect every ``this`` site and dispatch it by member name
3. Analyze props, state and user-defined fields
4. Check that construction-time initializers only read props
5. Allocate collision-free local names; schedule render renames

``analyze_body`` raises AnalysisError; ``analyze_component`` converts it
into a Rejected result so callers can only rewrite a Verified model.
"""

import logging
from typing import List, Set

import tree_sitter

from ..ast_parser.nodes import is_within
from .class_fields import ClassFields, collect_class_fields
from .errors import AnalysisError
from .locals import LocalManager, capitalize, collect_taken_names, outside_references
from .models import (
    AnalysisContext,
    AnalysisResult,
    ComponentBody,
    ComponentHead,
    PropsAnalysis,
    Rejected,
    RenderDescriptor,
    RenderRename,
    UserFieldKind,
    Verified,
)
from .props import analyze_props
from .state import analyze_state
from .this_sites import ThisSite, collect_this_sites
from .user_defined import analyze_user_fields

logger = logging.getLogger(__name__)


def analyze_component(head: ComponentHead, ctx: AnalysisContext) -> AnalysisResult:
    """Analyze a component class, returning Verified or Rejected."""
    try:
        return Verified(body=analyze_body(head, ctx))
    except AnalysisError as e:
        logger.info(f"Cannot transform {head.name or '<anonymous>'}: {e.message}")
        return Rejected(message=e.message, line=e.line)


def analyze_body(head: ComponentHead, ctx: AnalysisContext) -> ComponentBody:
    """Build the structural model of a component class.

    Args:
        head: Result of the head analyzer
        ctx: Per-file analysis context

    Returns:
        ComponentBody with every name allocated

    Raises:
        AnalysisError: On any construct that cannot be translated
    """
    fields = collect_class_fields(head.class_node, ctx)
    sites = collect_this_sites(fields, ctx)

    props_exprs: List[tree_sitter.Node] = []
    state_exprs: List[tree_sitter.Node] = []
    set_state_sites: List[tree_sitter.Node] = []
    member_sites: List[ThisSite] = []
    for site in sites:
        if site.bind_call is not None and site.name in ("props", "state", "setState"):
            raise AnalysisError(f"Cannot bind {site.name}", site.bind_call)
        if site.name == "props":
            props_exprs.append(site.node)
        elif site.name == "state":
            state_exprs.append(site.node)
        elif site.name == "setState":
            set_state_sites.append(site.node)
        else:
            member_sites.append(site)
    props_exprs.extend(_constructor_param_refs(fields))

    props, prop_removals = analyze_props(props_exprs, fields, head, ctx)
    state, state_removals = analyze_state(state_exprs, set_state_sites, fields, head, ctx)
    user_defined = analyze_user_fields(fields, member_sites, head, ctx)
    _check_initializers(fields, sites, user_defined, ctx)

    body = ComponentBody(
        props=props,
        state=state,
        user_defined=user_defined,
        render=RenderDescriptor(method=fields.render, body=fields.render.child_by_field_name("body")),
        remove_nodes=prop_removals + state_removals,
    )
    _allocate_locals(body, fields, head, ctx)
    logger.debug(
        f"Analyzed {head.name or '<anonymous>'}: {len(props.props)} prop(s), "
        f"{len(state)} state key(s), {len(user_defined)} field(s), "
        f"{len(body.render.renames)} render rename(s)"
    )
    return body


def _constructor_param_refs(fields: ClassFields) -> List[tree_sitter.Node]:
    """References to the constructor's props parameter outside super(...)."""
    if fields.constructor is None or fields.constructor_param is None:
        return []
    refs = []
    for ref in fields.constructor_param.references:
        if any(is_within(ref, init) for init in fields.initializers):
            refs.append(ref)
    return refs


def _check_initializers(fields: ClassFields, sites: List[ThisSite], user_defined, ctx: AnalysisContext) -> None:
    """State and ref initializers run once, before other members exist."""
    function_inits = [
        f.init for f in user_defined.values()
        if f.kind is UserFieldKind.FUNCTION and f.init is not None
    ]
    for init in fields.initializers:
        if any(is_within(init, fn) for fn in function_inits):
            continue
        for site in sites:
            if site.name != "props" and is_within(site.node, init):
                raise AnalysisError(
                    f"Initializers may only reference props, not this.{site.name}", site.node
                )


def _alias_binding_ids(props: PropsAnalysis, body: ComponentBody) -> Set[int]:
    ids: Set[int] = set()
    for prop in props.props.values():
        ids.update(id(a.binding) for a in prop.aliases if a.binding is not None)
    for state_field in body.state.values():
        ids.update(id(a.binding) for a in state_field.aliases if a.binding is not None)
    return ids


def _allocate_locals(body: ComponentBody, fields: ClassFields, head: ComponentHead, ctx: AnalysisContext) -> None:
    alias_ids = _alias_binding_ids(body.props, body)
    render = body.render.method
    manager = LocalManager(collect_taken_names(head, render, fields.constructor, alias_ids, ctx))

    body.props_param_name = manager.new_local(ctx.settings.props_param_name)
    for prop in body.props.props.values():
        if prop.needs_alias or prop.aliases:
            base = prop.aliases[0].local_name if prop.aliases else prop.name
            prop.new_alias_name = manager.new_local(base)
    for state_field in body.state.values():
        state_field.local_name = manager.new_local(state_field.name)
    for state_field in body.state.values():
        state_field.local_setter_name = manager.new_local(f"set{capitalize(state_field.local_name)}")
    for user_field in body.user_defined.values():
        user_field.local_name = manager.new_local(user_field.name)

    # Render locals end up in the same function as every hoisted member
    render_bindings = [
        b for b in ctx.scopes.bindings_within(render) if id(b) not in alias_ids
    ]
    render_names = {b.name for b in render_bindings}
    hoisted_refs = outside_references(head.class_node, ctx, exclude=render)
    for binding in render_bindings:
        if binding.name in manager.allocated or binding.name in hoisted_refs:
            new_name = manager.new_local(binding.name, extra_avoid=render_names)
            body.render.renames.append(RenderRename(old_name=binding.name, new_name=new_name, binding=binding))
