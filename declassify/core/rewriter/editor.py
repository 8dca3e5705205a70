"""Byte-range edit buffer over an immutable source.

tree-sitter trees are read-only, so rewrites are recorded as edits against
byte ranges of the original source. An edit's replacement is a list of
fragments: literal text or a ``Span`` of original source. Spans are
rendered lazily when the buffer is applied, which means edits recorded
inside a span (renames inside a moved method body, for example) show up
wherever that span is re-emitted, at any nesting depth.

Moving a span to a different indentation level shifts every line after its
first one by ``delta`` columns of the file's own indent character. Newlines
inside string and template literals are protected from that shift.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple, Union

import tree_sitter

logger = logging.getLogger(__name__)

# Private-use character standing in for protected newlines while rendering
NEWLINE_SENTINEL = "\ue000"

_PROTECTED_TYPES = frozenset({"template_string", "string"})

_TAB_LINE = re.compile(rb"^\t", re.MULTILINE)
# Lines opening with spaces, leaving out block comment continuations (" * ...")
_SPACE_LINE = re.compile(rb"^ +[^\s*]", re.MULTILINE)


class EditConflict(Exception):
    """Two edits overlap without one containing the other."""


@dataclass(frozen=True)
class Span:
    """A byte range of the original source, re-indented by ``delta``."""

    start: int
    end: int
    delta: int = 0


Fragment = Union[str, Span]


@dataclass(eq=False)
class Edit:
    start: int
    end: int
    parts: List[Fragment]
    seq: int = 0

    @property
    def is_insert(self) -> bool:
        return self.start == self.end


def span_of(node: tree_sitter.Node, delta: int = 0) -> Span:
    return Span(node.start_byte, node.end_byte, delta)


def reindent(text: str, delta: int, indent: str = " ") -> str:
    """Shift every line after the first by ``delta`` columns.

    Positive deltas add ``indent`` characters. Blank lines never receive
    indentation; negative deltas only remove leading spaces and tabs.
    """
    if delta == 0 or "\n" not in text:
        return text
    first, *rest = text.split("\n")
    shifted = []
    for line in rest:
        if delta > 0:
            shifted.append(indent * delta + line if line.strip() else line)
        else:
            strip = 0
            while strip < -delta and strip < len(line) and line[strip] in " \t":
                strip += 1
            shifted.append(line[strip:])
    return "\n".join([first] + shifted)


class EditBuffer:
    """All committed edits for one source file.

    Usage:
        buffer = EditBuffer(source, tree)
        session = buffer.session()
        session.replace(node, ["foo"])
        session.commit()
        new_text = buffer.apply()
    """

    def __init__(self, source: bytes, tree: Optional[tree_sitter.Tree] = None):
        self.source = source
        self.edits: List[Edit] = []
        self._seq = 0
        self._protected: List[Tuple[int, int]] = []
        self.newline = "\r\n" if b"\r\n" in source else "\n"
        tabs = len(_TAB_LINE.findall(source))
        self.indent_char = "\t" if tabs > len(_SPACE_LINE.findall(source)) else " "
        if tree is not None and NEWLINE_SENTINEL.encode("utf-8") not in source:
            self._protected = self._collect_protected(tree.root_node)

    @property
    def changed(self) -> bool:
        return bool(self.edits)

    def session(self) -> "EditSession":
        return EditSession(self)

    def add(self, start: int, end: int, parts: Sequence[Fragment]) -> Edit:
        if start > end:
            raise ValueError(f"Invalid edit range {start}..{end}")
        self._seq += 1
        edit = Edit(start, end, list(parts), self._seq)
        self.edits.append(edit)
        return edit

    def line_indent(self, offset: int) -> int:
        """Indentation width of the line containing ``offset``."""
        line_start = self.source.rfind(b"\n", 0, offset) + 1
        width = 0
        while line_start + width < len(self.source) and self.source[line_start + width] in b" \t":
            width += 1
        return width

    def indent_of(self, offset: int) -> str:
        """Leading whitespace of the line containing ``offset``."""
        line_start = self.source.rfind(b"\n", 0, offset) + 1
        return self.source[line_start:line_start + self.line_indent(offset)].decode("utf-8")

    def render(self, span: Span) -> str:
        """Render a span with every edit inside it applied."""
        return self._render(span, frozenset()).replace(NEWLINE_SENTINEL, "\n")

    def apply(self) -> str:
        """Render the whole file."""
        text = self._render(Span(0, len(self.source)), frozenset())
        logger.debug(f"Applied {len(self.edits)} edit(s)")
        return text.replace(NEWLINE_SENTINEL, "\n")

    # =========================================================================
    # Rendering
    # =========================================================================

    def _render(self, span: Span, expanding: FrozenSet[int]) -> str:
        out: List[str] = []
        cursor = span.start
        outer: Optional[Edit] = None
        for edit in self._edits_within(span, expanding):
            if outer is not None and edit.start < outer.end:
                if edit.end > outer.end:
                    raise EditConflict(
                        f"Edit {edit.start}..{edit.end} overlaps edit {outer.start}..{outer.end}"
                    )
                # Nested: rendered through the outer edit's spans, if at all
                continue
            out.append(self._slice(cursor, edit.start))
            out.append(self._render_parts(edit, expanding))
            cursor = edit.end
            if not edit.is_insert:
                outer = edit
        out.append(self._slice(cursor, span.end))
        return reindent("".join(out), span.delta, self.indent_char)

    def _render_parts(self, edit: Edit, expanding: FrozenSet[int]) -> str:
        inner = expanding | {edit.seq}
        rendered = []
        for part in edit.parts:
            if isinstance(part, Span):
                rendered.append(self._render(part, inner))
            else:
                rendered.append(part)
        return "".join(rendered)

    def _edits_within(self, span: Span, expanding: FrozenSet[int]) -> List[Edit]:
        selected = [
            edit
            for edit in self.edits
            if edit.seq not in expanding and span.start <= edit.start and edit.end <= span.end
        ]
        # Inserts precede replacements at the same offset; among replacements
        # the widest, then the most recent, is outermost
        selected.sort(
            key=lambda e: (e.start, 0, 0, e.seq) if e.is_insert else (e.start, 1, -e.end, -e.seq)
        )
        return selected

    def _slice(self, start: int, end: int) -> str:
        if start >= end:
            return ""
        pieces: List[bytes] = []
        cursor = start
        for p_start, p_end in self._protected:
            if p_end <= cursor:
                continue
            if p_start >= end:
                break
            lo = max(p_start, cursor)
            hi = min(p_end, end)
            pieces.append(self.source[cursor:lo])
            pieces.append(self.source[lo:hi].replace(b"\n", NEWLINE_SENTINEL.encode("utf-8")))
            cursor = hi
        pieces.append(self.source[cursor:end])
        return b"".join(pieces).decode("utf-8", errors="replace")

    @staticmethod
    def _collect_protected(root: tree_sitter.Node) -> List[Tuple[int, int]]:
        ranges: List[Tuple[int, int]] = []
        stack = [root]
        while stack:
            node = stack.pop()
            if node.type in _PROTECTED_TYPES:
                ranges.append((node.start_byte, node.end_byte))
                continue
            stack.extend(node.children)
        ranges.sort()
        return ranges


@dataclass(eq=False)
class EditSession:
    """Edits checked out for one component; nothing reaches the buffer until commit()."""

    buffer: EditBuffer
    pending: List[Tuple[int, int, List[Fragment]]] = field(default_factory=list)
    committed: bool = False

    def replace(self, node: tree_sitter.Node, parts: Union[str, Sequence[Fragment]]) -> None:
        self.replace_range(node.start_byte, node.end_byte, parts)

    def replace_range(self, start: int, end: int, parts: Union[str, Sequence[Fragment]]) -> None:
        if isinstance(parts, str):
            parts = [parts]
        self.pending.append((start, end, list(parts)))

    def insert(self, offset: int, parts: Union[str, Sequence[Fragment]]) -> None:
        self.replace_range(offset, offset, parts)

    def insert_before(self, node: tree_sitter.Node, parts: Union[str, Sequence[Fragment]]) -> None:
        self.insert(node.start_byte, parts)

    def insert_after(self, node: tree_sitter.Node, parts: Union[str, Sequence[Fragment]]) -> None:
        self.insert(node.end_byte, parts)

    def remove_statement(self, node: tree_sitter.Node) -> None:
        """Remove a statement, taking its whole line when nothing else is on it.

        Otherwise the blank gap after it (or before it, at the end of a line)
        goes too, so `{ a(); b(); }` loses `a(); ` and not just `a();`.
        """
        source = self.buffer.source
        start, end = node.start_byte, node.end_byte
        line_start = source.rfind(b"\n", 0, start) + 1
        line_end = source.find(b"\n", end)
        if line_end == -1:
            line_end = len(source)
        before, after = source[line_start:start], source[end:line_end]
        if not before.strip() and not after.strip():
            start = line_start
            end = min(line_end + 1, len(source))
        elif after.strip():
            # Gaps touching the enclosing braces stay put
            if not after.lstrip().startswith(b"}"):
                end += len(after) - len(after.lstrip(b" \t"))
        elif not before.rstrip().endswith(b"{"):
            start -= len(before) - len(before.rstrip(b" \t"))
        self.replace_range(start, end, "")

    def remove_declarators(self, declarators: Sequence[tree_sitter.Node]) -> None:
        """Remove variable declarators, grouped by their declaration.

        A declaration losing every declarator is removed as a statement;
        otherwise each declarator goes together with one adjacent comma.
        """
        groups: Dict[Tuple[int, int], List[tree_sitter.Node]] = {}
        parents: Dict[Tuple[int, int], tree_sitter.Node] = {}
        for declarator in declarators:
            declaration = declarator.parent
            if declaration is None:
                self.replace(declarator, "")
                continue
            key = (declaration.start_byte, declaration.end_byte)
            parents[key] = declaration
            group = groups.setdefault(key, [])
            if all(d.start_byte != declarator.start_byte for d in group):
                group.append(declarator)

        for key, removed in groups.items():
            declaration = parents[key]
            siblings = [c for c in declaration.named_children if c.type == "variable_declarator"]
            removed_starts = {d.start_byte for d in removed}
            kept = [i for i, d in enumerate(siblings) if d.start_byte not in removed_starts]
            if not kept:
                self.remove_statement(declaration)
                continue
            last_kept = kept[-1]
            for i, declarator in enumerate(siblings):
                if declarator.start_byte in removed_starts and i < last_kept:
                    self.replace_range(declarator.start_byte, siblings[i + 1].start_byte, "")
            if last_kept < len(siblings) - 1:
                # Trailing declarators go with the comma after the last kept one
                self.replace_range(siblings[last_kept].end_byte, siblings[-1].end_byte, "")

    def commit(self) -> None:
        if self.committed:
            raise RuntimeError("Edit session already committed")
        for start, end, parts in self.pending:
            self.buffer.add(start, end, parts)
        self.committed = True

    def discard(self) -> None:
        self.pending.clear()
