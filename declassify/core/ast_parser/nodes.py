"""tree-sitter node helpers shared by the analysis and rewrite stages.

The JavaScript and TypeScript grammars name a few constructs differently
(field definitions, function expressions across grammar releases), so the
node-type groups below cover both.
"""

import json
import re
from typing import Iterator, Optional, Tuple

import tree_sitter

NodeKey = Tuple[int, int, str]

FUNCTION_DECLARATION_TYPES = frozenset({
    "function_declaration",
    "generator_function_declaration",
})

# "function" is the pre-0.21 grammar name of function_expression
FUNCTION_EXPRESSION_TYPES = frozenset({
    "function_expression",
    "function",
    "generator_function",
})

FIELD_DEFINITION_TYPES = frozenset({
    "public_field_definition",  # typescript
    "field_definition",  # javascript
})

CLASS_TYPES = frozenset({"class_declaration", "class"})

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][\w$]*$")

_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}


def node_key(node: tree_sitter.Node) -> NodeKey:
    """Stable dictionary key for a node (nodes are re-created on access)."""
    return (node.start_byte, node.end_byte, node.type)


def node_text(node: tree_sitter.Node, source: bytes) -> str:
    return source[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


def same_node(a: Optional[tree_sitter.Node], b: Optional[tree_sitter.Node]) -> bool:
    if a is None or b is None:
        return False
    return node_key(a) == node_key(b)


def is_within(inner: tree_sitter.Node, outer: tree_sitter.Node) -> bool:
    return outer.start_byte <= inner.start_byte and inner.end_byte <= outer.end_byte


def is_function_expression(node: tree_sitter.Node) -> bool:
    return node.is_named and node.type in FUNCTION_EXPRESSION_TYPES


def has_token(node: tree_sitter.Node, token: str) -> bool:
    """Check for an anonymous (keyword/punctuation) child token."""
    return any(not child.is_named and child.type == token for child in node.children)


def named_children(node: tree_sitter.Node) -> Iterator[tree_sitter.Node]:
    """Named children without comments."""
    for child in node.named_children:
        if child.type != "comment":
            yield child


def field_name_node(node: tree_sitter.Node) -> Optional[tree_sitter.Node]:
    """Name node of a class field (``name`` in TS, ``property`` in JS)."""
    return node.child_by_field_name("name") or node.child_by_field_name("property")


def skip_parentheses(node: tree_sitter.Node) -> tree_sitter.Node:
    while node.type == "parenthesized_expression":
        inner = next(named_children(node), None)
        if inner is None:
            break
        node = inner
    return node


def string_value(node: tree_sitter.Node, source: bytes) -> Optional[str]:
    """Decode a string literal node, or None for non-literals."""
    if node.type != "string":
        return None
    parts = []
    for child in node.named_children:
        text = node_text(child, source)
        if child.type == "escape_sequence":
            parts.append(_decode_escape(text))
        elif child.type == "string_fragment":
            parts.append(text)
    return "".join(parts)


def _decode_escape(text: str) -> str:
    body = text[1:]
    if body in _ESCAPES:
        return _ESCAPES[body]
    if body.startswith("u{") and body.endswith("}"):
        return chr(int(body[2:-1], 16))
    if body.startswith("u") and len(body) == 5:
        return chr(int(body[1:], 16))
    if body.startswith("x") and len(body) == 3:
        return chr(int(body[1:], 16))
    if body.startswith("\n") or body.startswith("\r"):
        return ""
    return body


def static_key(node: tree_sitter.Node, source: bytes) -> Optional[str]:
    """Name of a property key when it is statically known.

    Handles ``foo``, ``"foo"`` and ``foo`` shorthands; computed keys,
    numbers and private names return None.
    """
    if node.type in (
        "property_identifier",
        "shorthand_property_identifier",
        "shorthand_property_identifier_pattern",
        "identifier",
    ):
        return node_text(node, source)
    if node.type == "string":
        return string_value(node, source)
    return None


def is_identifier_name(name: str) -> bool:
    return bool(_IDENTIFIER_RE.match(name))


def property_key_source(name: str) -> str:
    """Render a property key, quoting names that are not identifiers."""
    return name if is_identifier_name(name) else json.dumps(name)


def assignment_target_of(node: tree_sitter.Node) -> Optional[tree_sitter.Node]:
    """Return the enclosing write expression when ``node`` is written to."""
    parent = node.parent
    if parent is None:
        return None
    if parent.type in ("assignment_expression", "augmented_assignment_expression"):
        if same_node(parent.child_by_field_name("left"), node):
            return parent
    if parent.type == "update_expression":
        return parent
    if parent.type == "unary_expression" and has_token(parent, "delete"):
        return parent
    return None


def walk(node: tree_sitter.Node) -> Iterator[tree_sitter.Node]:
    """Pre-order traversal of all named descendants (including ``node``)."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.named_children))
