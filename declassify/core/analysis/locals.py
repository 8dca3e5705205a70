"""Collision-free local names for the rewritten function.

The taken set covers everything a new local could shadow or be shadowed
by: reserved words, bindings visible at the class, names the class
references from outside, and bindings declared inside members that move
into the function (render, the constructor and destructured aliases
excluded; render collisions are resolved by renaming instead).
"""

import logging
import re
from typing import Iterable, Optional, Set

import tree_sitter

from ..ast_parser.nodes import is_within, same_node
from .models import AnalysisContext, ComponentHead, LibRefKind

logger = logging.getLogger(__name__)

RESERVED_WORDS = frozenset({
    "arguments", "await", "break", "case", "catch", "class", "const", "continue",
    "debugger", "default", "delete", "do", "else", "enum", "eval", "export",
    "extends", "false", "finally", "for", "function", "if", "implements", "import",
    "in", "instanceof", "interface", "let", "new", "null", "package", "private",
    "protected", "public", "return", "static", "super", "switch", "this", "throw",
    "true", "try", "typeof", "undefined", "var", "void", "while", "with", "yield",
    "NaN", "Infinity",
})

# Imported on demand for named-import components
HOOK_NAMES = ("useState", "useRef", "FC")

_TRAILING_DIGITS = re.compile(r"\d+$")


class LocalManager:
    """Hands out unique local names.

    Usage:
        manager = LocalManager(taken)
        name = manager.new_local("count")  # "count", or "count2" if taken
    """

    def __init__(self, taken: Iterable[str] = ()):
        self.taken: Set[str] = set(taken) | RESERVED_WORDS
        self.allocated: Set[str] = set()

    def new_local(self, base: str, extra_avoid: Iterable[str] = ()) -> str:
        avoid = set(extra_avoid)
        name = sanitize_identifier(base)
        if self._is_free(name, avoid):
            return self._take(name)

        stem = _TRAILING_DIGITS.sub("", name) or name
        i = 2
        while not self._is_free(f"{stem}{i}", avoid):
            i += 1
        return self._take(f"{stem}{i}")

    def _is_free(self, name: str, avoid: Set[str]) -> bool:
        return name not in self.taken and name not in avoid

    def _take(self, name: str) -> str:
        self.taken.add(name)
        self.allocated.add(name)
        return name


def sanitize_identifier(name: str) -> str:
    """Drop characters no identifier may hold; prefix `_` for a bad start or a reserved word.

    Follows Unicode identifier rules, plus `$` anywhere.
    """
    cleaned = "".join(c for c in name if c == "$" or f"_{c}".isidentifier())
    if not cleaned or not (cleaned[0] == "$" or cleaned[0].isidentifier()) or cleaned in RESERVED_WORDS:
        cleaned = f"_{cleaned}"
    return cleaned


def capitalize(name: str) -> str:
    return name[:1].upper() + name[1:]


def collect_taken_names(
    head: ComponentHead,
    render: tree_sitter.Node,
    constructor: Optional[tree_sitter.Node],
    alias_bindings: Set[int],
    ctx: AnalysisContext,
) -> Set[str]:
    """Names a new local in the rewritten function must avoid.

    Args:
        head: Component head
        render: render() method node
        constructor: constructor node, if any
        alias_bindings: ids of destructured alias bindings (renamed away)
        ctx: Per-file analysis context
    """
    class_node = head.class_node
    scopes = ctx.scopes
    taken: Set[str] = set()

    class_scope = scopes.scope_of(class_node)
    outer = class_scope.parent if class_scope is not None else scopes.scope_at(class_node)
    if outer is not None:
        for scope in outer.ancestors():
            taken.update(scope.bindings)

    taken.update(outside_references(class_node, ctx))

    for binding in scopes.bindings_within(class_node):
        if id(binding) in alias_bindings:
            continue
        scope_node = binding.scope.node
        if is_within(scope_node, render):
            continue
        if constructor is not None and same_node(scope_node, constructor):
            continue
        taken.add(binding.name)

    if head.super_class_ref.kind is LibRefKind.NAMED:
        taken.update(HOOK_NAMES)
    return taken


def outside_references(
    node: tree_sitter.Node, ctx: AnalysisContext, exclude: Optional[tree_sitter.Node] = None
) -> Set[str]:
    """Names referenced inside ``node`` that resolve outside it (or are global)."""
    names: Set[str] = set()
    for ref, binding in ctx.scopes.references_within(node):
        if exclude is not None and is_within(ref, exclude):
            continue
        if binding is None or not is_within(binding.scope.node, node):
            names.add(ctx.text(ref))
    return names
