"""Scope analyzer — lexical bindings and references over a tree-sitter tree.

Walks a parsed file once, opening a scope for the program, every function,
block, loop header, catch clause and class, declaring bindings where
declarations occur (``var`` hoists to the enclosing function) and recording
identifier references. References are resolved after the walk so hoisted
declarations are visible everywhere in their scope.

Type-level syntax is skipped: names used only inside type annotations are
neither bindings nor references.
"""

import logging
import re
from typing import Callable, Dict, Iterator, List, Optional, Set, Tuple

import tree_sitter

from ..ast_parser.models import ParseResult
from ..ast_parser.nodes import (
    NodeKey,
    has_token,
    is_within,
    named_children,
    node_key,
    node_text,
    static_key,
    string_value,
)
from .models import Binding, BindingKind, ImportInfo, Scope, ScopeKind

logger = logging.getLogger(__name__)

_TYPE_ONLY_TYPES = frozenset({
    "comment",
    "type_annotation",
    "type_arguments",
    "type_parameters",
    "implements_clause",
    "extends_type_clause",
    "opting_type_annotation",
    "omitting_type_annotation",
    "adding_type_annotation",
    "asserts_annotation",
    "type_predicate_annotation",
    "accessibility_modifier",
    "override_modifier",
    "property_signature",
    "method_signature",
    "abstract_method_signature",
    "index_signature",
    "call_signature",
    "construct_signature",
    "function_type",
    "constructor_type",
    "object_type",
    "type_query",
})

# `typeof a.b.c`, `typeof a<T>` and `typeof import(...)` wrap their leftmost operand
_QUERY_CHAIN_TYPES = frozenset({
    "member_expression",
    "nested_identifier",
    "subscript_expression",
    "instantiation_expression",
    "call_expression",
})

_KIND_BY_KEYWORD = {
    "var": BindingKind.VAR,
    "let": BindingKind.LET,
    "const": BindingKind.CONST,
}


class ScopeInfo:
    """Query interface over the scopes of one file."""

    def __init__(
        self,
        program: Scope,
        scopes: List[Scope],
        scopes_by_node: Dict[NodeKey, Scope],
        bindings_by_node: Dict[NodeKey, Binding],
        references: List[Tuple[tree_sitter.Node, Optional[Binding]]],
        globals_: Dict[str, List[tree_sitter.Node]],
        source: bytes,
    ):
        self.program = program
        self.scopes = scopes
        self._scopes_by_node = scopes_by_node
        self._bindings_by_node = bindings_by_node
        self.references = references
        self.globals = globals_
        self._source = source
        self._uids: Set[str] = set()

    def scope_at(self, node: tree_sitter.Node) -> Scope:
        """Innermost scope whose opening node contains ``node``."""
        current: Optional[tree_sitter.Node] = node
        while current is not None:
            scope = self._scopes_by_node.get(node_key(current))
            if scope is not None:
                return scope
            current = current.parent
        return self.program

    def scope_of(self, node: tree_sitter.Node) -> Optional[Scope]:
        """The scope opened by ``node`` itself, if any."""
        return self._scopes_by_node.get(node_key(node))

    def binding_of(self, identifier: tree_sitter.Node) -> Optional[Binding]:
        """Binding declared or referenced by an identifier node."""
        return self._bindings_by_node.get(node_key(identifier))

    def bindings_within(self, node: tree_sitter.Node) -> Iterator[Binding]:
        """Bindings of every scope opened inside ``node`` (inclusive)."""
        for scope in self.scopes:
            if is_within(scope.node, node):
                yield from scope.bindings.values()

    def references_within(
        self, node: tree_sitter.Node
    ) -> Iterator[Tuple[tree_sitter.Node, Optional[Binding]]]:
        for ref, binding in self.references:
            if is_within(ref, node):
                yield ref, binding

    def is_name_used(self, name: str) -> bool:
        """Whether ``name`` is bound or referenced anywhere in the file."""
        if name in self._uids or name in self.globals:
            return True
        return any(name in scope.bindings for scope in self.scopes)

    def generate_uid(self, name: str) -> str:
        """Generate a file-wide unused name: ``_name``, ``_name2``, ...

        Args:
            name: Desired base name

        Returns:
            A name not bound, referenced or previously generated in the file
        """
        base = re.sub(r"[^\w$]", "", name).lstrip("_")
        base = re.sub(r"\d+$", "", base) or "ref"
        i = 1
        while True:
            uid = f"_{base}" if i == 1 else f"_{base}{i}"
            if not self.is_name_used(uid):
                break
            i += 1
        self._uids.add(uid)
        return uid

    def rename_edits(self, binding: Binding, new_name: str) -> List[Tuple[tree_sitter.Node, str]]:
        """Replacement texts that rename a binding at every occurrence.

        Shorthand properties (``{ foo }`` in literals and patterns) are
        expanded to ``foo: newName`` so the property key is preserved.
        """
        edits: List[Tuple[tree_sitter.Node, str]] = []
        for ident in list(binding.identifiers) + list(binding.references):
            if ident.type in ("shorthand_property_identifier", "shorthand_property_identifier_pattern"):
                edits.append((ident, f"{node_text(ident, self._source)}: {new_name}"))
            else:
                edits.append((ident, new_name))
        return edits


class ScopeAnalyzer:
    """Builds a ScopeInfo for one parsed file.

    Usage:
        scopes = ScopeAnalyzer(parse_result).analyze()
    """

    def __init__(self, parse_result: ParseResult):
        self._source = parse_result.source
        self._root = parse_result.tree.root_node
        self._scopes: List[Scope] = []
        self._scopes_by_node: Dict[NodeKey, Scope] = {}
        self._bindings_by_node: Dict[NodeKey, Binding] = {}
        self._pending: List[Tuple[tree_sitter.Node, Scope]] = []
        self._handlers: Dict[str, Callable[[tree_sitter.Node, Scope], None]] = {
            "import_statement": self._visit_import,
            "export_statement": self._visit_export,
            "lexical_declaration": self._visit_declaration,
            "variable_declaration": self._visit_declaration,
            "function_declaration": self._visit_function_declaration,
            "generator_function_declaration": self._visit_function_declaration,
            "function_signature": self._visit_function_signature,
            "function_expression": self._visit_function_expression,
            "function": self._visit_function_expression,
            "generator_function": self._visit_function_expression,
            "arrow_function": self._visit_function,
            "method_definition": self._visit_method,
            "class_declaration": self._visit_class_declaration,
            "abstract_class_declaration": self._visit_class_declaration,
            "class": self._visit_class_expression,
            "statement_block": self._visit_block,
            "switch_body": self._visit_block,
            "class_static_block": self._visit_block,
            "for_statement": self._visit_for,
            "for_in_statement": self._visit_for_in,
            "catch_clause": self._visit_catch,
            "assignment_expression": self._visit_assignment,
            "member_expression": self._visit_member,
            "pair": self._visit_pair,
            "as_expression": self._visit_first_child,
            "satisfies_expression": self._visit_first_child,
            "jsx_opening_element": self._visit_jsx_element,
            "jsx_self_closing_element": self._visit_jsx_element,
            "jsx_closing_element": self._visit_jsx_element,
            "interface_declaration": self._visit_type_declaration,
            "type_alias_declaration": self._visit_type_declaration,
            "enum_declaration": self._visit_type_declaration,
            "internal_module": self._visit_namespace,
            "module": self._visit_namespace,
        }

    def analyze(self) -> ScopeInfo:
        program = self._open(ScopeKind.PROGRAM, self._root, None)
        for child in named_children(self._root):
            self._visit(child, program)

        references: List[Tuple[tree_sitter.Node, Optional[Binding]]] = []
        globals_: Dict[str, List[tree_sitter.Node]] = {}
        for node, scope in self._pending:
            name = node_text(node, self._source)
            binding = scope.lookup(name)
            if binding is not None:
                binding.references.append(node)
                self._bindings_by_node[node_key(node)] = binding
            else:
                globals_.setdefault(name, []).append(node)
            references.append((node, binding))

        logger.debug(
            f"Scope analysis: {len(self._scopes)} scope(s), "
            f"{len(references)} reference(s), {len(globals_)} global name(s)"
        )
        return ScopeInfo(
            program=program,
            scopes=self._scopes,
            scopes_by_node=self._scopes_by_node,
            bindings_by_node=self._bindings_by_node,
            references=references,
            globals_=globals_,
            source=self._source,
        )

    # =========================================================================
    # Core walk
    # =========================================================================

    def _visit(self, node: tree_sitter.Node, scope: Scope) -> None:
        handler = self._handlers.get(node.type)
        if handler is not None and node.is_named:
            handler(node, scope)
            return
        if node.type in _TYPE_ONLY_TYPES:
            self._reference_type_queries(node, scope)
            return
        if node.type in ("identifier", "shorthand_property_identifier"):
            self._reference(node, scope)
            return
        for child in node.named_children:
            self._visit(child, scope)

    def _open(self, kind: ScopeKind, node: tree_sitter.Node, parent: Optional[Scope]) -> Scope:
        scope = Scope(kind=kind, node=node, parent=parent)
        if parent is not None:
            parent.children.append(scope)
        self._scopes.append(scope)
        self._scopes_by_node[node_key(node)] = scope
        return scope

    def _declare(
        self,
        ident: tree_sitter.Node,
        kind: BindingKind,
        scope: Scope,
        declaration: Optional[tree_sitter.Node] = None,
        import_info: Optional[ImportInfo] = None,
    ) -> Binding:
        name = node_text(ident, self._source)
        binding = scope.bindings.get(name)
        if binding is None:
            binding = Binding(
                name=name,
                kind=kind,
                scope=scope,
                declaration=declaration,
                import_info=import_info,
            )
            scope.bindings[name] = binding
        binding.identifiers.append(ident)
        self._bindings_by_node[node_key(ident)] = binding
        return binding

    def _reference(self, node: tree_sitter.Node, scope: Scope) -> None:
        self._pending.append((node, scope))

    def _reference_type_queries(self, node: tree_sitter.Node, scope: Scope) -> None:
        """Record the value operand of every `typeof x` inside a type subtree."""
        if node.type == "type_query":
            operand = node.named_children[0] if node.named_children else None
            while operand is not None and operand.type in _QUERY_CHAIN_TYPES:
                operand = operand.named_children[0] if operand.named_children else None
            if operand is not None and operand.type == "identifier":
                self._reference(operand, scope)
            return
        for child in node.named_children:
            self._reference_type_queries(child, scope)

    # =========================================================================
    # Patterns
    # =========================================================================

    def _declare_pattern(
        self,
        node: tree_sitter.Node,
        kind: BindingKind,
        target: Scope,
        value_scope: Scope,
        declaration: Optional[tree_sitter.Node] = None,
    ) -> None:
        t = node.type
        if t in ("identifier", "shorthand_property_identifier_pattern"):
            self._declare(node, kind, target, declaration)
        elif t == "object_pattern":
            for child in named_children(node):
                if child.type == "pair_pattern":
                    key = child.child_by_field_name("key")
                    if key is not None and key.type == "computed_property_name":
                        self._visit(key, value_scope)
                    value = child.child_by_field_name("value")
                    if value is not None:
                        self._declare_pattern(value, kind, target, value_scope, declaration)
                else:
                    self._declare_pattern(child, kind, target, value_scope, declaration)
        elif t == "array_pattern":
            for child in named_children(node):
                self._declare_pattern(child, kind, target, value_scope, declaration)
        elif t in ("assignment_pattern", "object_assignment_pattern"):
            left = node.child_by_field_name("left")
            right = node.child_by_field_name("right")
            if left is not None:
                self._declare_pattern(left, kind, target, value_scope, declaration)
            if right is not None:
                self._visit(right, value_scope)
        elif t == "rest_pattern":
            for child in named_children(node):
                self._declare_pattern(child, kind, target, value_scope, declaration)
        elif t in _TYPE_ONLY_TYPES:
            self._reference_type_queries(node, value_scope)
        else:
            # Member expressions as assignment targets, etc.
            self._visit(node, value_scope)

    def _reference_pattern(self, node: tree_sitter.Node, scope: Scope) -> None:
        t = node.type
        if t in ("identifier", "shorthand_property_identifier_pattern"):
            self._reference(node, scope)
        elif t == "object_pattern":
            for child in named_children(node):
                if child.type == "pair_pattern":
                    key = child.child_by_field_name("key")
                    if key is not None and key.type == "computed_property_name":
                        self._visit(key, scope)
                    value = child.child_by_field_name("value")
                    if value is not None:
                        self._reference_pattern(value, scope)
                else:
                    self._reference_pattern(child, scope)
        elif t in ("array_pattern", "rest_pattern"):
            for child in named_children(node):
                self._reference_pattern(child, scope)
        elif t in ("assignment_pattern", "object_assignment_pattern"):
            left = node.child_by_field_name("left")
            right = node.child_by_field_name("right")
            if left is not None:
                self._reference_pattern(left, scope)
            if right is not None:
                self._visit(right, scope)
        else:
            self._visit(node, scope)

    def _declare_parameter(self, param: tree_sitter.Node, scope: Scope) -> None:
        if param.type in ("required_parameter", "optional_parameter"):
            pattern = param.child_by_field_name("pattern")
            value = param.child_by_field_name("value")
            if pattern is not None and pattern.type != "this":
                self._declare_pattern(pattern, BindingKind.PARAM, scope, scope, param)
            annotation = param.child_by_field_name("type")
            if annotation is not None:
                self._reference_type_queries(annotation, scope)
            if value is not None:
                self._visit(value, scope)
        elif param.type in _TYPE_ONLY_TYPES:
            self._reference_type_queries(param, scope)
        elif param.type == "decorator":
            return
        else:
            self._declare_pattern(param, BindingKind.PARAM, scope, scope, param)

    # =========================================================================
    # Handlers
    # =========================================================================

    def _visit_import(self, node: tree_sitter.Node, scope: Scope) -> None:
        source_node = node.child_by_field_name("source")
        source = string_value(source_node, self._source) if source_node is not None else None
        clause = next((c for c in node.named_children if c.type == "import_clause"), None)
        if clause is None or source is None:
            return
        type_only = has_token(node, "type")

        for child in named_children(clause):
            if child.type == "identifier":
                info = ImportInfo(node, child, source, "default", "default", type_only)
                self._declare(child, BindingKind.IMPORT, scope, node, info)
            elif child.type == "namespace_import":
                ident = next((c for c in child.named_children if c.type == "identifier"), None)
                if ident is not None:
                    info = ImportInfo(node, child, source, "namespace", None, type_only)
                    self._declare(ident, BindingKind.IMPORT, scope, node, info)
            elif child.type == "named_imports":
                for spec in named_children(child):
                    if spec.type != "import_specifier":
                        continue
                    name = spec.child_by_field_name("name")
                    alias = spec.child_by_field_name("alias")
                    local = alias if alias is not None else name
                    if name is None or local is None:
                        continue
                    info = ImportInfo(
                        node,
                        spec,
                        source,
                        "named",
                        static_key(name, self._source),
                        type_only or has_token(spec, "type"),
                    )
                    self._declare(local, BindingKind.IMPORT, scope, node, info)

    def _visit_export(self, node: tree_sitter.Node, scope: Scope) -> None:
        has_source = node.child_by_field_name("source") is not None
        for child in named_children(node):
            if child.type == "export_clause":
                if has_source:
                    continue
                for spec in named_children(child):
                    name = spec.child_by_field_name("name")
                    if name is not None and name.type == "identifier":
                        self._reference(name, scope)
            elif child.type == "string":
                continue
            else:
                self._visit(child, scope)

    def _visit_declaration(self, node: tree_sitter.Node, scope: Scope) -> None:
        if node.type == "variable_declaration":
            kind = BindingKind.VAR
        else:
            kind_node = node.child_by_field_name("kind")
            keyword = node_text(kind_node, self._source) if kind_node is not None else "let"
            kind = _KIND_BY_KEYWORD.get(keyword, BindingKind.LET)
        target = scope.function_scope() if kind is BindingKind.VAR else scope

        for declarator in named_children(node):
            if declarator.type != "variable_declarator":
                continue
            name = declarator.child_by_field_name("name")
            if name is not None:
                self._declare_pattern(name, kind, target, scope, declarator)
            annotation = declarator.child_by_field_name("type")
            if annotation is not None:
                self._reference_type_queries(annotation, scope)
            value = declarator.child_by_field_name("value")
            if value is not None:
                self._visit(value, scope)

    def _visit_function_declaration(self, node: tree_sitter.Node, scope: Scope) -> None:
        name = node.child_by_field_name("name")
        if name is not None:
            self._declare(name, BindingKind.FUNCTION, scope, node)
        self._visit_function(node, scope)

    def _visit_function_signature(self, node: tree_sitter.Node, scope: Scope) -> None:
        name = node.child_by_field_name("name")
        if name is not None:
            self._declare(name, BindingKind.FUNCTION, scope, node)

    def _visit_function_expression(self, node: tree_sitter.Node, scope: Scope) -> None:
        self._visit_function(node, scope, self_named=True)

    def _visit_method(self, node: tree_sitter.Node, scope: Scope) -> None:
        name = node.child_by_field_name("name")
        if name is not None and name.type == "computed_property_name":
            self._visit(name, scope)
        self._visit_function(node, scope)

    def _visit_function(self, node: tree_sitter.Node, scope: Scope, self_named: bool = False) -> None:
        fscope = self._open(ScopeKind.FUNCTION, node, scope)
        if self_named:
            name = node.child_by_field_name("name")
            if name is not None:
                self._declare(name, BindingKind.FUNCTION, fscope, node)

        single = node.child_by_field_name("parameter")
        if single is not None:
            self._declare_pattern(single, BindingKind.PARAM, fscope, fscope, node)
        params = node.child_by_field_name("parameters")
        if params is not None:
            for param in named_children(params):
                self._declare_parameter(param, fscope)
        return_type = node.child_by_field_name("return_type")
        if return_type is not None:
            self._reference_type_queries(return_type, fscope)

        body = node.child_by_field_name("body")
        if body is None:
            return
        if body.type == "statement_block":
            # The function body shares the function scope
            for child in named_children(body):
                self._visit(child, fscope)
        else:
            self._visit(body, fscope)

    def _visit_class_declaration(self, node: tree_sitter.Node, scope: Scope) -> None:
        name = node.child_by_field_name("name")
        if name is not None:
            self._declare(name, BindingKind.CLASS, scope, node)
        self._visit_class(node, scope)

    def _visit_class_expression(self, node: tree_sitter.Node, scope: Scope) -> None:
        self._visit_class(node, scope, self_named=True)

    def _visit_class(self, node: tree_sitter.Node, scope: Scope, self_named: bool = False) -> None:
        cscope = self._open(ScopeKind.CLASS, node, scope)
        if self_named:
            name = node.child_by_field_name("name")
            if name is not None:
                self._declare(name, BindingKind.CLASS, cscope, node)

        for child in named_children(node):
            if child.type == "class_heritage":
                for clause in named_children(child):
                    if clause.type == "extends_clause":
                        for value in clause.children_by_field_name("value"):
                            self._visit(value, cscope)
                    else:
                        self._visit(clause, cscope)
            elif child.type == "class_body":
                for member in named_children(child):
                    self._visit_class_member(member, cscope)
            elif child.type == "decorator":
                self._visit(child, scope)

    def _visit_class_member(self, member: tree_sitter.Node, scope: Scope) -> None:
        if member.type in ("public_field_definition", "field_definition"):
            for child in named_children(member):
                if child.type == "computed_property_name" or child.type == "decorator":
                    self._visit(child, scope)
            value = member.child_by_field_name("value")
            if value is not None:
                self._visit(value, scope)
        else:
            self._visit(member, scope)

    def _visit_block(self, node: tree_sitter.Node, scope: Scope) -> None:
        bscope = self._open(ScopeKind.BLOCK, node, scope)
        for child in named_children(node):
            self._visit(child, bscope)

    def _visit_for(self, node: tree_sitter.Node, scope: Scope) -> None:
        bscope = self._open(ScopeKind.BLOCK, node, scope)
        for child in named_children(node):
            self._visit(child, bscope)

    def _visit_for_in(self, node: tree_sitter.Node, scope: Scope) -> None:
        bscope = self._open(ScopeKind.BLOCK, node, scope)
        left = node.child_by_field_name("left")
        kind_node = node.child_by_field_name("kind")
        if left is not None:
            if kind_node is not None:
                kind = _KIND_BY_KEYWORD.get(node_text(kind_node, self._source), BindingKind.LET)
                target = bscope.function_scope() if kind is BindingKind.VAR else bscope
                self._declare_pattern(left, kind, target, bscope, node)
            else:
                self._reference_pattern(left, bscope)
        for field_name in ("right", "body"):
            child = node.child_by_field_name(field_name)
            if child is not None:
                self._visit(child, bscope)

    def _visit_catch(self, node: tree_sitter.Node, scope: Scope) -> None:
        cscope = self._open(ScopeKind.BLOCK, node, scope)
        param = node.child_by_field_name("parameter")
        if param is not None:
            self._declare_pattern(param, BindingKind.CATCH, cscope, cscope, node)
        body = node.child_by_field_name("body")
        if body is not None:
            for child in named_children(body):
                self._visit(child, cscope)

    def _visit_assignment(self, node: tree_sitter.Node, scope: Scope) -> None:
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        if left is not None:
            if left.type in ("object_pattern", "array_pattern"):
                self._reference_pattern(left, scope)
            else:
                self._visit(left, scope)
        if right is not None:
            self._visit(right, scope)

    def _visit_member(self, node: tree_sitter.Node, scope: Scope) -> None:
        obj = node.child_by_field_name("object")
        if obj is not None:
            self._visit(obj, scope)

    def _visit_pair(self, node: tree_sitter.Node, scope: Scope) -> None:
        key = node.child_by_field_name("key")
        if key is not None and key.type == "computed_property_name":
            self._visit(key, scope)
        value = node.child_by_field_name("value")
        if value is not None:
            self._visit(value, scope)

    def _visit_first_child(self, node: tree_sitter.Node, scope: Scope) -> None:
        first = next(named_children(node), None)
        if first is not None:
            self._visit(first, scope)

    def _visit_jsx_element(self, node: tree_sitter.Node, scope: Scope) -> None:
        name = node.child_by_field_name("name")
        if name is not None:
            self._visit_jsx_name(name, scope)
        for child in named_children(node):
            if name is not None and node_key(child) == node_key(name):
                continue
            self._visit(child, scope)

    def _visit_jsx_name(self, name: tree_sitter.Node, scope: Scope) -> None:
        if name.type == "identifier":
            text = node_text(name, self._source)
            # Lower-case tags are intrinsic elements, not variables
            if text[:1].isupper() or text[:1] in ("_", "$"):
                self._reference(name, scope)
        elif name.type in ("member_expression", "nested_identifier"):
            first = next(named_children(name), None)
            while first is not None and first.type in ("member_expression", "nested_identifier"):
                first = next(named_children(first), None)
            if first is not None and first.type == "identifier":
                self._reference(first, scope)

    def _visit_type_declaration(self, node: tree_sitter.Node, scope: Scope) -> None:
        name = node.child_by_field_name("name")
        if name is not None:
            self._declare(name, BindingKind.TYPE, scope, node)
        self._reference_type_queries(node, scope)

    def _visit_namespace(self, node: tree_sitter.Node, scope: Scope) -> None:
        name = node.child_by_field_name("name")
        if name is not None and name.type == "identifier":
            self._declare(name, BindingKind.TYPE, scope, node)
        body = node.child_by_field_name("body")
        if body is not None:
            self._visit_block(body, scope)
