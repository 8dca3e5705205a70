"""Tests for the function normalizer and the import resolver."""

from declassify.core.analysis.models import LibRef, LibRefKind
from declassify.core.ast_parser import parse_source
from declassify.core.ast_parser.nodes import walk
from declassify.core.rewriter import EditBuffer, ImportResolver
from declassify.core.rewriter.functions import (
    arrow_function_from,
    function_declaration_from,
    function_expression_from,
)
from declassify.core.scope import ScopeAnalyzer


# =========================================================================
# Sample source fixtures
# =========================================================================

FUNCTIONS = '''
class A {
  async load<T>(id: string): Promise<T> { return fetch(id); }
}
const arrow = (x: number) => x * 2;
const single = x => x;
const named = function* gen() { yield 1; };
'''

NAMED_IMPORT = '''import { Component } from "react";
const useState = 1;
'''

EXISTING_IMPORT = '''import { Component, useRef as useR } from "react";
'''


def render_fragments(result, parts):
    buffer = EditBuffer(result.source, result.tree)
    session = buffer.session()
    session.replace_range(0, len(result.source), parts)
    session.commit()
    return buffer.apply()


def find(result, node_type):
    return [n for n in walk(result.tree.root_node) if n.type == node_type]


def named_ref(result):
    statement = find(result, "import_statement")[0]
    return LibRef(kind=LibRefKind.NAMED, local_name="Component", import_statement=statement, source="react")


# =========================================================================
# Function normalizer
# =========================================================================


class TestFunctionShapes:
    def test_method_to_declaration(self):
        result = parse_source(FUNCTIONS, "f.ts")
        method = find(result, "method_definition")[0]
        out = render_fragments(result, function_declaration_from(method, "load"))
        assert out == "async function load<T>(id: string): Promise<T> { return fetch(id); }"

    def test_arrow_expression_body_to_declaration(self):
        result = parse_source(FUNCTIONS, "f.ts")
        arrow = find(result, "arrow_function")[0]
        out = render_fragments(result, function_declaration_from(arrow, "double"))
        assert out == "function double(x: number) { return x * 2; }"

    def test_arrow_stays_concise(self):
        result = parse_source(FUNCTIONS, "f.ts")
        arrow = find(result, "arrow_function")[0]
        assert render_fragments(result, arrow_function_from(arrow)) == "(x: number) => x * 2"

    def test_single_parameter_gets_parentheses(self):
        result = parse_source(FUNCTIONS, "f.ts")
        arrow = find(result, "arrow_function")[1]
        assert render_fragments(result, arrow_function_from(arrow)) == "(x) => x"

    def test_generator_expression_keeps_name(self):
        result = parse_source(FUNCTIONS, "f.ts")
        gen = next(n for n in walk(result.tree.root_node) if n.type in ("generator_function", "function_expression") and result.text(n).startswith("function*"))
        out = render_fragments(result, function_expression_from(gen, source=result.source))
        assert out == "function* gen() { yield 1; }"


# =========================================================================
# Import resolver
# =========================================================================


class TestImportResolver:
    def test_global_and_namespace_use_member_access(self):
        result = parse_source(NAMED_IMPORT, "a.js")
        resolver = ImportResolver(ScopeAnalyzer(result).analyze(), result.source)
        assert resolver.resolve("useState", LibRef(kind=LibRefKind.GLOBAL, local_name="React")) == "React.useState"
        assert resolver.resolve("useRef", LibRef(kind=LibRefKind.NAMESPACE, local_name="R")) == "R.useRef"

    def test_named_import_added_once_with_fresh_name(self):
        result = parse_source(NAMED_IMPORT, "a.js")
        resolver = ImportResolver(ScopeAnalyzer(result).analyze(), result.source)
        ref = named_ref(result)
        assert resolver.resolve("useState", ref) == "_useState"
        assert resolver.resolve("useState", ref) == "_useState"
        assert resolver.resolve("useRef", ref) == "useRef"

        buffer = EditBuffer(result.source, result.tree)
        assert resolver.flush(buffer) == 2
        first_line = buffer.apply().splitlines()[0]
        assert first_line == 'import { Component, useState as _useState, useRef } from "react";'

    def test_existing_specifier_reused(self):
        result = parse_source(EXISTING_IMPORT, "a.js")
        resolver = ImportResolver(ScopeAnalyzer(result).analyze(), result.source)
        assert resolver.resolve("useRef", named_ref(result)) == "useR"
        buffer = EditBuffer(result.source, result.tree)
        assert resolver.flush(buffer) == 0
        assert buffer.apply() == EXISTING_IMPORT
