"""Collect the members of a component class.

Builds the name → declaration table for everything the class declares:
methods, instance fields, constructor assignments, the state initializer,
``static defaultProps`` and ``render``. Every member shape outside that
set is rejected here, before any usage site is inspected.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import tree_sitter

from ..ast_parser.nodes import (
    FIELD_DEFINITION_TYPES,
    field_name_node,
    has_token,
    named_children,
    skip_parentheses,
    static_key,
)
from ..scope import Binding
from .errors import AnalysisError
from .models import AnalysisContext

logger = logging.getLogger(__name__)

LIFECYCLE_METHODS = frozenset({
    "componentDidMount",
    "componentDidUpdate",
    "componentWillUnmount",
    "shouldComponentUpdate",
    "getSnapshotBeforeUpdate",
    "componentDidCatch",
    "componentWillMount",
    "componentWillReceiveProps",
    "componentWillUpdate",
    "UNSAFE_componentWillMount",
    "UNSAFE_componentWillReceiveProps",
    "UNSAFE_componentWillUpdate",
    "getDerivedStateFromProps",
    "getDerivedStateFromError",
    "getChildContext",
})

# Instance members provided by the framework base class
RESERVED_MEMBERS = frozenset({"props", "setState", "forceUpdate", "context", "refs"})


@dataclass
class FieldDecl:
    """One declared instance member other than state and render."""
    name: str
    kind: str  # "method" | "field" | "assignment"
    declaration: tree_sitter.Node
    value: Optional[tree_sitter.Node] = None  # method_definition or initializer
    type_node: Optional[tree_sitter.Node] = None


@dataclass
class ClassFields:
    render: tree_sitter.Node
    constructor: Optional[tree_sitter.Node] = None
    constructor_param: Optional[Binding] = None
    state_init: Optional[tree_sitter.Node] = None  # object expression
    state_type: Optional[tree_sitter.Node] = None  # annotation of a `state` field
    default_props: Optional[tree_sitter.Node] = None  # object expression
    fields: Dict[str, FieldDecl] = field(default_factory=dict)
    # Expressions evaluated once at construction: state and field initializers
    initializers: List[tree_sitter.Node] = field(default_factory=list)


def collect_class_fields(class_node: tree_sitter.Node, ctx: AnalysisContext) -> ClassFields:
    """Build the member table of a component class.

    Raises:
        AnalysisError: On any member shape that cannot be translated
    """
    collector = _Collector(ctx)
    for child in named_children(class_node):
        if child.type == "decorator":
            raise AnalysisError("Decorators are not supported", child)
        if child.type == "type_parameters":
            raise AnalysisError("Class type parameters are not supported", child)

    body = class_node.child_by_field_name("body")
    if body is None:
        raise AnalysisError("Missing class body", class_node)
    for member in named_children(body):
        collector.visit_member(member)
    return collector.finish(class_node)


class _Collector:
    def __init__(self, ctx: AnalysisContext):
        self.ctx = ctx
        self.render: Optional[tree_sitter.Node] = None
        self.constructor: Optional[tree_sitter.Node] = None
        self.constructor_param: Optional[Binding] = None
        self.state_init: Optional[tree_sitter.Node] = None
        self.state_type: Optional[tree_sitter.Node] = None
        self.default_props: Optional[tree_sitter.Node] = None
        self.fields: Dict[str, FieldDecl] = {}
        self.initializers: List[tree_sitter.Node] = []

    def finish(self, class_node: tree_sitter.Node) -> ClassFields:
        if self.render is None:
            raise AnalysisError("Missing render method", class_node)
        return ClassFields(
            render=self.render,
            constructor=self.constructor,
            constructor_param=self.constructor_param,
            state_init=self.state_init,
            state_type=self.state_type,
            default_props=self.default_props,
            fields=self.fields,
            initializers=self.initializers,
        )

    # =========================================================================
    # Members
    # =========================================================================

    def visit_member(self, member: tree_sitter.Node) -> None:
        if member.type == "method_definition":
            self._method(member)
        elif member.type in FIELD_DEFINITION_TYPES:
            self._field(member)
        elif member.type == "class_static_block":
            raise AnalysisError("Static blocks are not supported", member)
        elif member.type == "index_signature":
            raise AnalysisError("Index signatures are not supported", member)
        elif member.type in ("method_signature", "abstract_method_signature"):
            raise AnalysisError("Method overload signatures are not supported", member)
        elif member.type == "decorator":
            raise AnalysisError("Decorators are not supported", member)
        else:
            raise AnalysisError(f"Unsupported class member: {member.type}", member)

    def _member_name(self, member: tree_sitter.Node) -> str:
        name_node = field_name_node(member)
        if name_node is None:
            raise AnalysisError("Unnamed class member", member)
        if name_node.type == "private_property_identifier":
            raise AnalysisError("Private members are not supported", member)
        if name_node.type == "computed_property_name":
            raise AnalysisError("Computed member names are not supported", member)
        name = static_key(name_node, self.ctx.source)
        if name is None:
            raise AnalysisError("Unsupported member name", member)
        for child in named_children(member):
            if child.type == "decorator":
                raise AnalysisError("Decorators are not supported", child)
        return name

    def _method(self, member: tree_sitter.Node) -> None:
        name = self._member_name(member)
        if has_token(member, "static"):
            raise AnalysisError(f"Static method {name} is not supported", member)
        if has_token(member, "get") or has_token(member, "set"):
            raise AnalysisError(f"Accessor {name} is not supported", member)

        if name == "constructor":
            self._constructor(member)
        elif name == "render":
            self._render(member)
        elif name in LIFECYCLE_METHODS:
            raise AnalysisError(f"Lifecycle method {name} is not supported", member)
        else:
            self._declare(FieldDecl(name=name, kind="method", declaration=member, value=member))

    def _render(self, member: tree_sitter.Node) -> None:
        if self.render is not None:
            raise AnalysisError("Duplicate render method", member)
        params = member.child_by_field_name("parameters")
        if params is not None and any(True for _ in named_children(params)):
            raise AnalysisError("render() must not take parameters", member)
        if has_token(member, "async") or has_token(member, "*"):
            raise AnalysisError("render() must not be async or a generator", member)
        body = member.child_by_field_name("body")
        if body is None:
            raise AnalysisError("render() has no body", member)
        self.render = member

    def _field(self, member: tree_sitter.Node) -> None:
        name = self._member_name(member)
        value = member.child_by_field_name("value")
        annotation = member.child_by_field_name("type")
        type_node = next(named_children(annotation), None) if annotation is not None else None

        if has_token(member, "static"):
            if name != "defaultProps":
                raise AnalysisError(f"Static member {name} is not supported", member)
            if value is None or skip_parentheses(value).type != "object":
                raise AnalysisError("defaultProps must be an object literal", member)
            self.default_props = skip_parentheses(value)
            return

        if name == "state":
            self._set_state(value, member)
            self.state_type = type_node
            return
        if name in RESERVED_MEMBERS or name == "render":
            raise AnalysisError(f"Cannot declare {name} as a field", member)

        if value is not None:
            self.initializers.append(value)
        self._declare(FieldDecl(name=name, kind="field", declaration=member, value=value, type_node=type_node))

    def _set_state(self, value: Optional[tree_sitter.Node], node: tree_sitter.Node) -> None:
        if self.state_init is not None:
            raise AnalysisError("Duplicate state initialization", node)
        if value is None or skip_parentheses(value).type != "object":
            raise AnalysisError("State must be initialized with an object literal", node)
        self.state_init = skip_parentheses(value)
        self.initializers.append(self.state_init)

    def _declare(self, decl: FieldDecl) -> None:
        existing = self.fields.get(decl.name)
        if existing is None:
            self.fields[decl.name] = decl
            return
        # `foo: T;` declared as a field and assigned in the constructor
        if existing.kind == "field" and existing.value is None and decl.kind == "assignment":
            existing.value = decl.value
            existing.declaration = decl.declaration
            return
        raise AnalysisError(f"Duplicate member {decl.name}", decl.declaration)

    # =========================================================================
    # Constructor
    # =========================================================================

    def _constructor(self, member: tree_sitter.Node) -> None:
        self.constructor = member
        params = member.child_by_field_name("parameters")
        param_list = list(named_children(params)) if params is not None else []
        if len(param_list) > 1:
            raise AnalysisError("Constructor with more than one parameter is not supported", member)
        if param_list:
            self.constructor_param = self._constructor_param(param_list[0])

        body = member.child_by_field_name("body")
        statements = list(named_children(body)) if body is not None else []
        if not statements or not self._is_super_call(statements[0]):
            raise AnalysisError("The constructor must start with super()", member)

        for statement in statements[1:]:
            self._constructor_statement(statement)

    def _constructor_param(self, param: tree_sitter.Node) -> Optional[Binding]:
        pattern = param
        if param.type in ("required_parameter", "optional_parameter"):
            if param.child_by_field_name("value") is not None:
                raise AnalysisError("Unsupported constructor parameter", param)
            pattern = param.child_by_field_name("pattern")
            if any(c.type == "accessibility_modifier" for c in param.named_children):
                raise AnalysisError("Parameter properties are not supported", param)
        if pattern is None or pattern.type != "identifier":
            raise AnalysisError("Unsupported constructor parameter", param)
        return self.ctx.scopes.binding_of(pattern)

    @staticmethod
    def _is_super_call(statement: tree_sitter.Node) -> bool:
        if statement.type != "expression_statement":
            return False
        expr = next(named_children(statement), None)
        if expr is None or expr.type != "call_expression":
            return False
        callee = expr.child_by_field_name("function")
        return callee is not None and callee.type == "super"

    def _constructor_statement(self, statement: tree_sitter.Node) -> None:
        expr = next(named_children(statement), None) if statement.type == "expression_statement" else None
        if expr is None or expr.type != "assignment_expression":
            raise AnalysisError("Unsupported statement in constructor", statement)

        left = expr.child_by_field_name("left")
        right = expr.child_by_field_name("right")
        name = this_member_name(left, self.ctx) if left is not None else None
        if name is None or right is None:
            raise AnalysisError("Unsupported statement in constructor", statement)

        if self._is_self_bind(right, name):
            # this.foo = this.foo.bind(this);
            return
        if name == "state":
            self._set_state(right, statement)
            return
        if name in RESERVED_MEMBERS or name == "render":
            raise AnalysisError(f"Cannot assign {name} in the constructor", statement)

        self.initializers.append(right)
        self._declare(FieldDecl(name=name, kind="assignment", declaration=statement, value=right))

    def _is_self_bind(self, expr: tree_sitter.Node, name: str) -> bool:
        expr = skip_parentheses(expr)
        if expr.type != "call_expression":
            return False
        callee = expr.child_by_field_name("function")
        args = expr.child_by_field_name("arguments")
        if callee is None or args is None or callee.type != "member_expression":
            return False
        prop = callee.child_by_field_name("property")
        obj = callee.child_by_field_name("object")
        arg_list = list(named_children(args))
        return (
            prop is not None
            and self.ctx.text(prop) == "bind"
            and obj is not None
            and this_member_name(obj, self.ctx) == name
            and len(arg_list) == 1
            and arg_list[0].type == "this"
        )


def this_member_name(node: tree_sitter.Node, ctx: AnalysisContext) -> Optional[str]:
    """Name accessed by ``this.name`` or ``this["name"]``, else None."""
    node = skip_parentheses(node)
    if node.type == "member_expression":
        obj = node.child_by_field_name("object")
        prop = node.child_by_field_name("property")
        if obj is None or obj.type != "this" or prop is None:
            return None
        if prop.type != "property_identifier":
            return None
        return ctx.text(prop)
    if node.type == "subscript_expression":
        obj = node.child_by_field_name("object")
        index = node.child_by_field_name("index")
        if obj is None or obj.type != "this" or index is None:
            return None
        return static_key(index, ctx.source) if index.type == "string" else None
    return None

