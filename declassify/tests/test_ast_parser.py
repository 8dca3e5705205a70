"""Tests for the AST parser module."""

import pytest
from declassify.core.ast_parser import ParseResult, detect_language, parse_source, should_skip_directory
from declassify.setting import DeclassifySettings


# =========================================================================
# Sample source fixtures
# =========================================================================

NAMED_CLASS = '''
import React from "react";

export class Counter extends React.Component {
  render() {
    return <div />;
  }
}
'''

DEFAULT_ANONYMOUS = '''
import { Component } from "react";

export default class extends Component {
  render() {
    return null;
  }
}
'''

DEFAULT_NAMED = '''
export default class Page extends React.Component {
  render() {
    return null;
  }
}
'''

NESTED_CLASSES = '''
class Outer extends React.Component {
  render() {
    class Inner {}
    return null;
  }
}

class Plain {}
'''

WITH_COMMENTS = '''
// first
/* second */
class Commented extends React.Component {
  render() {
    return null;
  }
}
'''

TYPED = '''
type Props = { name: string };

class Hello extends React.Component<Props> {
  render() {
    return <span>{this.props.name}</span>;
  }
}
'''

BROKEN = '''
class Broken extends React.Component {
  render() {
    return (
  }
}
'''


# =========================================================================
# Tests
# =========================================================================


class TestLanguageDetection:
    def test_javascript_family(self):
        for path in ("a.js", "a.jsx", "a.mjs", "a.cjs"):
            assert detect_language(path) == "javascript"

    def test_typescript(self):
        assert detect_language("src/a.ts") == "typescript"
        assert detect_language("src/a.mts") == "typescript"

    def test_tsx(self):
        assert detect_language("src/a.tsx") == "tsx"

    def test_case_insensitive(self):
        assert detect_language("A.TSX") == "tsx"

    def test_unknown(self):
        assert detect_language("foo/bar.py") is None
        assert detect_language("README.md") is None

    def test_unsupported_source_raises(self):
        with pytest.raises(ValueError):
            parse_source("x", "notes.txt")

    def test_skip_directories(self):
        skipped = DeclassifySettings().skip_directories
        assert should_skip_directory("node_modules", skipped)
        assert should_skip_directory(".git", skipped)
        assert should_skip_directory(".hidden", [])
        assert not should_skip_directory("src", skipped)
        assert should_skip_directory("vendor", ["vendor"])


class TestClassDiscovery:
    def test_named_export(self):
        result = parse_source(NAMED_CLASS, "Counter.jsx")
        assert isinstance(result, ParseResult)
        assert result.language == "javascript"
        assert not result.is_typed

        assert len(result.classes) == 1
        cls = result.classes[0]
        assert cls.name == "Counter"
        assert cls.export_node is not None
        assert not cls.is_default_export
        assert cls.statement_node.type == "export_statement"
        assert cls.start_line == 4

    def test_anonymous_default_export(self):
        result = parse_source(DEFAULT_ANONYMOUS, "Anon.js")
        assert len(result.classes) == 1
        cls = result.classes[0]
        assert cls.name is None
        assert cls.is_default_export

    def test_named_default_export(self):
        result = parse_source(DEFAULT_NAMED, "Page.js")
        cls = result.classes[0]
        assert cls.name == "Page"
        assert cls.is_default_export

    def test_nested_classes_in_document_order(self):
        result = parse_source(NESTED_CLASSES, "nested.js")
        assert [c.name for c in result.classes] == ["Outer", "Inner", "Plain"]
        assert result.classes[0].export_node is None

    def test_leading_comments(self):
        result = parse_source(WITH_COMMENTS, "c.js")
        comments = result.classes[0].leading_comments
        assert comments == ["// first", "/* second */"]


class TestTypedSources:
    def test_tsx_is_typed(self):
        result = parse_source(TYPED, "Hello.tsx")
        assert result.language == "tsx"
        assert result.is_typed
        assert result.classes[0].name == "Hello"

    def test_plain_typescript(self):
        result = parse_source("class A {}\n", "a.ts")
        assert result.language == "typescript"
        assert result.is_typed


class TestErrors:
    def test_syntax_errors_are_reported(self):
        result = parse_source(BROKEN, "broken.js")
        assert len(result.errors) == 1
        assert result.errors[0].severity == "warning"
        assert result.errors[0].file_path == "broken.js"

    def test_clean_file_has_no_errors(self):
        assert parse_source(NAMED_CLASS, "ok.jsx").errors == []

