"""Import/binding resolver for hook and type names.

Refers to a framework export the same way the component's superclass
does: ``React.useState`` for global and namespace references, or a bare
local for named imports. A named import that does not exist yet is
appended to the existing import statement once per name, under a
collision-free local name.
"""

import logging
from typing import Dict, List, Tuple

import tree_sitter

from ..analysis.models import LibRef, LibRefKind
from ..ast_parser.nodes import NodeKey, has_token, named_children, node_key, node_text, static_key
from ..scope import ScopeInfo
from .editor import EditBuffer

logger = logging.getLogger(__name__)


class ImportResolver:
    """File-level resolver; added specifiers are written by flush().

    Usage:
        resolver = ImportResolver(scopes, source)
        hook = resolver.resolve("useState", head.super_class_ref)
        ...
        resolver.flush(buffer)
    """

    def __init__(self, scopes: ScopeInfo, source: bytes):
        self._scopes = scopes
        self._source = source
        self._statements: Dict[NodeKey, tree_sitter.Node] = {}
        # statement key → [(imported name, local name)] in insertion order
        self._added: Dict[NodeKey, List[Tuple[str, str]]] = {}

    def resolve(self, name: str, ref: LibRef) -> str:
        """Expression text referring to framework export ``name``."""
        if ref.kind in (LibRefKind.GLOBAL, LibRefKind.NAMESPACE):
            return f"{ref.local_name}.{name}"

        statement = ref.import_statement
        key = node_key(statement)
        existing = self._existing_local(statement, name)
        if existing is not None:
            return existing
        for imported, local in self._added.get(key, []):
            if imported == name:
                return local

        local = self._scopes.generate_uid(name) if self._scopes.is_name_used(name) else name
        self._statements[key] = statement
        self._added.setdefault(key, []).append((name, local))
        logger.debug(f"Adding import {name} as {local}")
        return local

    def flush(self, buffer: EditBuffer) -> int:
        """Append every added specifier to its import statement.

        Returns:
            Number of specifiers added
        """
        session = buffer.session()
        count = 0
        for key, additions in self._added.items():
            statement = self._statements[key]
            anchor = self._last_specifier(statement)
            if anchor is None:
                continue
            text = "".join(
                f", {imported}" if imported == local else f", {imported} as {local}"
                for imported, local in additions
            )
            session.insert_after(anchor, text)
            count += len(additions)
        session.commit()
        self._added.clear()
        return count

    def _specifiers(self, statement: tree_sitter.Node) -> List[tree_sitter.Node]:
        clause = next((c for c in statement.named_children if c.type == "import_clause"), None)
        if clause is None:
            return []
        named = next((c for c in clause.named_children if c.type == "named_imports"), None)
        if named is None:
            return []
        return [s for s in named_children(named) if s.type == "import_specifier"]

    def _existing_local(self, statement: tree_sitter.Node, name: str):
        for spec in self._specifiers(statement):
            if has_token(spec, "type"):
                continue
            imported = spec.child_by_field_name("name")
            alias = spec.child_by_field_name("alias")
            if imported is None or static_key(imported, self._source) != name:
                continue
            local = alias if alias is not None else imported
            return node_text(local, self._source)
        return None

    def _last_specifier(self, statement: tree_sitter.Node):
        specifiers = self._specifiers(statement)
        return specifiers[-1] if specifiers else None
