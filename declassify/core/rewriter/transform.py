"""Rewriter — turns a verified component model into a function component.

Runs in a fixed order against a checked-out EditSession:

1. alias and render-local renames
2. removal of destructuring declarators
3. prop sites
4. optional + ``| undefined`` for defaulted typed props (TS)
5. state sites
6. user-defined field sites
7. preamble: props destructuring, useState, bound functions and refs
8. the arrow function wrapping the render body
9. the FC type annotation (TS)

Only a Verified model reaches this module; nothing here raises
AnalysisError.
"""

import logging
from collections import OrderedDict
from typing import Dict, List, Optional, Set, Tuple

import tree_sitter

from ..analysis.models import (
    AnalysisContext,
    ComponentBody,
    ComponentHead,
    StateField,
    StateSite,
    UserField,
    UserFieldKind,
)
from ..analysis.type_resolver import NEEDS_PARENS_IN_UNION, member_type_text, union_includes_undefined
from ..ast_parser.models import ClassCandidate
from ..ast_parser.nodes import (
    NodeKey,
    is_function_expression,
    named_children,
    node_key,
    property_key_source,
)
from ..scope import Binding
from .editor import EditSession, Fragment, Span, span_of
from .functions import arrow_function_from, function_declaration_from, function_expression_from
from .imports import ImportResolver

logger = logging.getLogger(__name__)

DISABLE_MARKER = "react-declassify-disable"
DISABLE_PREFIX = f"{DISABLE_MARKER} Cannot perform transformation:"


def rewrite_component(
    head: ComponentHead,
    body: ComponentBody,
    ctx: AnalysisContext,
    session: EditSession,
    imports: ImportResolver,
    widened: Set[NodeKey],
) -> None:
    """Record every edit turning the class into a function component.

    Args:
        head: Component head
        body: Verified component body
        ctx: Per-file analysis context
        session: Edit session checked out for this class
        imports: File-level import resolver
        widened: Property signatures already made optional in this file
    """
    ComponentRewriter(head, body, ctx, session, imports, widened).rewrite()


def mark_rejected(candidate: ClassCandidate, message: str, session: EditSession) -> None:
    """Prefix the class statement with a disable comment carrying ``message``."""
    statement = candidate.statement_node
    buffer = session.buffer
    indent = buffer.indent_of(statement.start_byte)
    safe = message.replace("*/", "*\\/")
    session.insert_before(statement, f"/* {DISABLE_PREFIX} {safe} */{buffer.newline}{indent}")


def is_disabled(candidate: ClassCandidate) -> bool:
    return any(DISABLE_MARKER in comment for comment in candidate.leading_comments)


class ComponentRewriter:
    def __init__(
        self,
        head: ComponentHead,
        body: ComponentBody,
        ctx: AnalysisContext,
        session: EditSession,
        imports: ImportResolver,
        widened: Set[NodeKey],
    ):
        self.head = head
        self.body = body
        self.ctx = ctx
        self.session = session
        self.buffer = session.buffer
        self.imports = imports
        self.widened = widened
        self._renamed: Dict[int, str] = {}

        self.newline = self.buffer.newline
        self.base_prefix = self.buffer.indent_of(head.statement_node.start_byte)
        self.inner_prefix = self.base_prefix + self._indent_unit()
        self.base_indent = len(self.base_prefix)
        self.inner_indent = len(self.inner_prefix)

    def rewrite(self) -> None:
        self._apply_renames()
        self.session.remove_declarators(self.body.remove_nodes)
        self._rewrite_prop_sites()
        if self.ctx.is_typed:
            self._widen_prop_types()
        self._rewrite_state_sites()
        self._rewrite_field_sites()
        preamble = self._build_preamble()
        self._replace_class(preamble)
        logger.debug(
            f"Rewrote {self.head.name or '<anonymous>'} with {len(preamble)} preamble statement(s)"
        )

    # =========================================================================
    # Site rewrites
    # =========================================================================

    def _rename(self, binding: Optional[Binding], new_name: str) -> None:
        if binding is None or binding.name == new_name:
            return
        self._renamed[id(binding)] = new_name
        for node, text in self.ctx.scopes.rename_edits(binding, new_name):
            self.session.replace(node, text)

    def _apply_renames(self) -> None:
        for prop in self.body.props.props.values():
            for alias in prop.aliases:
                self._rename(alias.binding, prop.new_alias_name)
        for state_field in self.body.state.values():
            for alias in state_field.aliases:
                self._rename(alias.binding, state_field.local_name)
        for rename in self.body.render.renames:
            self._rename(rename.binding, rename.new_name)

    def _rewrite_prop_sites(self) -> None:
        props = self.body.props
        if props.has_defaults:
            for prop in props.props.values():
                for site in prop.sites:
                    # this.props.foo -> foo
                    self.session.replace(site, prop.new_alias_name)
        else:
            for expr in props.sites:
                # this.props -> props
                self.session.replace(expr, self.body.props_param_name)

    def _widen_prop_types(self) -> None:
        for prop in self.body.props.props.values():
            typing = prop.typing
            if prop.default_value is None or typing is None:
                continue
            key = node_key(typing.node)
            if key in self.widened:
                continue
            self.widened.add(key)

            if not typing.optional:
                name_node = typing.node.child_by_field_name("name")
                if name_node is not None:
                    self.session.insert_after(name_node, "?")
            type_node = typing.type_node
            if type_node is None or union_includes_undefined(type_node, self.ctx):
                continue
            if type_node.type in NEEDS_PARENS_IN_UNION:
                self.session.insert_before(type_node, "(")
                self.session.insert_after(type_node, ") | undefined")
            else:
                self.session.insert_after(type_node, " | undefined")

    def _rewrite_state_sites(self) -> None:
        calls: "OrderedDict[NodeKey, Tuple[tree_sitter.Node, List[Tuple[StateSite, StateField]]]]" = OrderedDict()
        for state_field in self.body.state.values():
            for site in state_field.sites:
                if site.kind == "expr":
                    # this.state.foo -> foo
                    self.session.replace(site.node, state_field.local_name)
                else:
                    entry = calls.setdefault(node_key(site.call), (site.call, []))
                    entry[1].append((site, state_field))

        for call, updates in calls.values():
            # this.setState({ foo: 1, bar: 2 }) -> setFoo(1); setBar(2)
            updates.sort(key=lambda item: item[0].index)
            indent = self.buffer.indent_of(call.start_byte)
            parts: List[Fragment] = []
            for i, (site, state_field) in enumerate(updates):
                if i > 0:
                    parts.append(f";{self.newline}{indent}")
                parts.extend([f"{state_field.local_setter_name}(", self._value(site.value, delta=0), ")"])
            self.session.replace(call, parts)

    def _rewrite_field_sites(self) -> None:
        for user_field in self.body.user_defined.values():
            if user_field.kind is UserFieldKind.DIRECT_REF:
                replacement = f"{user_field.local_name}.current"
            else:
                replacement = user_field.local_name
            for site in user_field.sites:
                self.session.replace(site, replacement)
            for call in user_field.bind_sites:
                # this.foo.bind(this) -> foo
                self.session.replace(call, user_field.local_name)

    # =========================================================================
    # Preamble
    # =========================================================================

    def _build_preamble(self) -> List[List[Fragment]]:
        statements: List[List[Fragment]] = []
        destructuring = self._props_destructuring()
        if destructuring is not None:
            statements.append(destructuring)
        for state_field in self.body.state.values():
            statements.append(self._state_declaration(state_field))
        for user_field in self.body.user_defined.values():
            statements.append(self._field_declaration(user_field))
        return statements

    def _props_destructuring(self) -> Optional[List[Fragment]]:
        aliased = [p for p in self.body.props.props.values() if p.needs_alias]
        if not aliased:
            return None
        parts: List[Fragment] = ["const { "]
        for i, prop in enumerate(aliased):
            if i > 0:
                parts.append(", ")
            key = property_key_source(prop.name)
            local = prop.new_alias_name
            parts.append(key if key == local else f"{key}: {local}")
            if prop.default_value is not None:
                parts.extend([" = ", self._value(prop.default_value)])
        parts.append(f" }} = {self.body.props_param_name};")
        return parts

    def _state_declaration(self, state_field: StateField) -> List[Fragment]:
        hook = self.imports.resolve("useState", self.head.super_class_ref)
        parts: List[Fragment] = [
            f"const [{state_field.local_name}, {state_field.local_setter_name}] = {hook}"
        ]
        parts.extend(self._state_type_args(state_field))
        parts.append("(")
        if state_field.init is not None:
            parts.append(self._value(state_field.init))
        parts.append(");")
        return parts

    def _state_type_args(self, state_field: StateField) -> List[Fragment]:
        member = state_field.type_annotation
        if not self.ctx.is_typed or member is None:
            return []
        if member.kind == "method":
            return [f"<{member_type_text(member, self.ctx)}>"]
        if member.type_node is None:
            return []
        return ["<", span_of(member.type_node), ">"]

    def _field_declaration(self, user_field: UserField) -> List[Fragment]:
        local = user_field.local_name
        if user_field.kind is UserFieldKind.FUNCTION:
            init = user_field.init
            delta = self._delta(init)
            if init.type == "method_definition" or (
                is_function_expression(init) and user_field.type_annotation is None
            ):
                return function_declaration_from(init, local, delta)
            if is_function_expression(init):
                expr = function_expression_from(init, delta=delta, source=self.ctx.source)
            else:
                expr = arrow_function_from(init, delta)
            return [f"const {local}", *self._annotation(user_field.type_annotation), " = ", *expr, ";"]

        hook = self.imports.resolve("useRef", self.head.super_class_ref)
        parts: List[Fragment] = [f"const {local} = {hook}"]
        if self.ctx.is_typed and user_field.type_annotation is not None:
            parts.extend(["<", span_of(user_field.type_annotation), ">"])
        if user_field.kind is UserFieldKind.REF:
            parts.append("(null);")
        elif user_field.init is not None:
            parts.extend(["(", self._value(user_field.init), ");"])
        else:
            parts.append("();")
        return parts

    def _annotation(self, type_node: Optional[tree_sitter.Node]) -> List[Fragment]:
        if not self.ctx.is_typed or type_node is None:
            return []
        return [": ", span_of(type_node)]

    # =========================================================================
    # Assembly
    # =========================================================================

    def _replace_class(self, preamble: List[List[Fragment]]) -> None:
        head = self.head
        func = self._function(preamble)
        type_parts = self._fc_type()

        if head.name and head.is_default_export:
            self.session.replace(
                head.export_node,
                [f"const {head.name}", *type_parts, " = ", *func,
                 f";{self.newline}{self.base_prefix}export default {head.name};"],
            )
        elif head.name:
            self.session.replace(head.class_node, [f"const {head.name}", *type_parts, " = ", *func, ";"])
        else:
            self.session.replace(head.class_node, [*func, ";"])

    def _function(self, preamble: List[List[Fragment]]) -> List[Fragment]:
        params = f"({self.body.props_param_name})" if self.body.needs_props else "()"
        parts: List[Fragment] = [f"{params} => {{"]
        inner = self.newline + self.inner_prefix
        outer = self.newline + self.base_prefix

        block = self.body.render.body
        start, end = block.start_byte + 1, block.end_byte - 1
        render_delta = self.base_indent - self.buffer.line_indent(self.body.render.method.start_byte)
        multiline = b"\n" in self.buffer.source[start:end]

        for statement in preamble:
            parts.append(inner)
            parts.extend(statement)

        if multiline:
            first_line = self.buffer.source[start:self.buffer.source.index(b"\n", start)]
            if preamble and first_line.strip():
                lead = len(first_line) - len(first_line.lstrip())
                parts.extend([inner, Span(start + lead, end, render_delta)])
            else:
                parts.append(Span(start, end, render_delta))
        else:
            interior = self.buffer.source[start:end]
            lead = len(interior) - len(interior.lstrip())
            trail = len(interior) - len(interior.rstrip())
            if end - trail > start + lead:
                parts.extend([inner, Span(start + lead, end - trail), outer])
            elif preamble:
                parts.append(outer)
        parts.append("}")
        return parts

    def _fc_type(self) -> List[Fragment]:
        if not self.ctx.is_typed:
            return []
        fc = self.imports.resolve("FC", self.head.super_class_ref)
        parts: List[Fragment] = [f": {fc}"]
        if self.head.props_type is not None:
            parts.extend(["<", span_of(self.head.props_type), ">"])
        return parts

    # =========================================================================
    # Helpers
    # =========================================================================

    def _value(self, node: tree_sitter.Node, delta: Optional[int] = None) -> Fragment:
        """Fragment for an expression taken out of an object literal."""
        if node.type == "shorthand_property_identifier":
            binding = self.ctx.scopes.binding_of(node)
            if binding is not None and id(binding) in self._renamed:
                return self._renamed[id(binding)]
            return self.ctx.text(node)
        return span_of(node, self._delta(node) if delta is None else delta)

    def _delta(self, node: tree_sitter.Node) -> int:
        return self.inner_indent - self.buffer.line_indent(node.start_byte)

    def _indent_unit(self) -> str:
        """One indentation step as written in this file (member line minus class line)."""
        class_node = self.head.class_node
        class_body = class_node.child_by_field_name("body")
        first = next(named_children(class_body), None) if class_body is not None else None
        if first is not None and first.start_point.row != class_node.start_point.row:
            member_prefix = self.buffer.indent_of(first.start_byte)
            class_prefix = self.buffer.indent_of(class_node.start_byte)
            if len(member_prefix) > len(class_prefix) and member_prefix.startswith(class_prefix):
                return member_prefix[len(class_prefix):]
        return "\t" if self.buffer.indent_char == "\t" else "  "
