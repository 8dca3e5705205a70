"""Tests for the scope analyzer."""

from declassify.core.ast_parser import parse_source
from declassify.core.ast_parser.nodes import walk
from declassify.core.scope import BindingKind, ScopeAnalyzer, ScopeKind


# =========================================================================
# Sample source fixtures
# =========================================================================

HOISTING = '''
function outer() {
  if (ok) {
    var hoisted = 1;
    let scoped = 2;
  }
  return hoisted;
}
'''

SHADOWING = '''
const value = 1;
function f(value) {
  return value;
}
use(value);
'''

IMPORTS = '''
import React, { Component as Base, useState } from "react";
import * as Lib from "lib";
import type { Props } from "./types";
'''

TYPES_ONLY = '''
type Props = { count: number };
interface State { label: string }
let typed: Props = load();
'''

SHORTHAND = '''
const foo = 1;
const obj = { foo };
'''

TYPE_QUERIES = '''
const limit = 10;
let copy: typeof limit = limit;
function clamp(x: typeof limit): typeof limit {
  return x;
}
type Limit = typeof limit;
'''

JSX = '''
import Button from "./Button";
const el = <div><Button /></div>;
'''


def analyze(source, path="test.tsx"):
    result = parse_source(source, path)
    return result, ScopeAnalyzer(result).analyze()


def identifiers(result, name):
    return [
        n for n in walk(result.tree.root_node)
        if n.type in ("identifier", "shorthand_property_identifier") and result.text(n) == name
    ]


# =========================================================================
# Tests
# =========================================================================


class TestDeclarations:
    def test_var_hoists_to_function_scope(self):
        result, scopes = analyze(HOISTING, "h.js")
        decl, ref = identifiers(result, "hoisted")
        binding = scopes.binding_of(decl)
        assert binding is not None
        assert binding.kind is BindingKind.VAR
        assert binding.scope.kind is ScopeKind.FUNCTION
        assert scopes.binding_of(ref) is binding

    def test_let_stays_in_block(self):
        result, scopes = analyze(HOISTING, "h.js")
        (decl,) = identifiers(result, "scoped")
        assert scopes.binding_of(decl).scope.kind is ScopeKind.BLOCK

    def test_unresolved_names_are_globals(self):
        _, scopes = analyze(HOISTING, "h.js")
        assert "ok" in scopes.globals
        assert "hoisted" not in scopes.globals

    def test_parameter_shadows_outer(self):
        result, scopes = analyze(SHADOWING, "s.js")
        outer_decl, param, inner_ref, outer_ref = identifiers(result, "value")
        outer = scopes.binding_of(outer_decl)
        inner = scopes.binding_of(param)
        assert inner.kind is BindingKind.PARAM
        assert scopes.binding_of(inner_ref) is inner
        assert scopes.binding_of(outer_ref) is outer
        assert [r.start_byte for r in outer.references] == [outer_ref.start_byte]


class TestImports:
    def test_import_kinds(self):
        _, scopes = analyze(IMPORTS, "i.ts")
        bindings = scopes.program.bindings
        assert bindings["React"].import_info.kind == "default"
        assert bindings["React"].import_info.source == "react"
        assert bindings["Base"].import_info.kind == "named"
        assert bindings["Base"].import_info.imported_name == "Component"
        assert bindings["Lib"].import_info.kind == "namespace"
        assert bindings["Props"].import_info.type_only
        assert all(b.kind is BindingKind.IMPORT for b in bindings.values())


class TestTypeSyntax:
    def test_type_annotations_are_not_references(self):
        result, scopes = analyze(TYPES_ONLY, "t.ts")
        assert "number" not in scopes.globals
        assert "Props" not in scopes.globals
        assert "load" in scopes.globals
        assert scopes.program.bindings["Props"].kind is BindingKind.TYPE
        assert scopes.program.bindings["Props"].references == []

    def test_typeof_operand_is_a_reference(self):
        result, scopes = analyze(TYPE_QUERIES, "q.ts")
        decl, *uses = identifiers(result, "limit")
        binding = scopes.binding_of(decl)
        assert len(uses) == 5
        assert sorted(r.start_byte for r in binding.references) == sorted(u.start_byte for u in uses)

    def test_typeof_operand_is_renamed(self):
        result, scopes = analyze(TYPE_QUERIES, "q.ts")
        binding = scopes.program.bindings["limit"]
        edits = scopes.rename_edits(binding, "cap")
        assert len(edits) == 6
        assert {text for _, text in edits} == {"cap"}


class TestJsx:
    def test_capitalized_tags_are_references(self):
        result, scopes = analyze(JSX, "j.jsx")
        button = scopes.program.bindings["Button"]
        assert len(button.references) == 1
        assert "div" not in scopes.globals


class TestRenaming:
    def test_shorthand_property_expands(self):
        result, scopes = analyze(SHORTHAND, "s.js")
        binding = scopes.program.bindings["foo"]
        texts = sorted(text for _, text in scopes.rename_edits(binding, "bar"))
        assert texts == ["bar", "foo: bar"]

    def test_generate_uid(self):
        _, scopes = analyze(SHADOWING, "s.js")
        assert scopes.generate_uid("value") == "_value"
        assert scopes.generate_uid("value") == "_value2"
        assert scopes.is_name_used("_value")

    def test_is_name_used(self):
        _, scopes = analyze(SHADOWING, "s.js")
        assert scopes.is_name_used("value")
        assert scopes.is_name_used("use")
        assert not scopes.is_name_used("other")
