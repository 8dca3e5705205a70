"""JavaScript AST parser using tree-sitter.

The JavaScript grammar accepts JSX, so it serves ``.js``, ``.jsx``,
``.mjs`` and ``.cjs`` files alike. Sources parsed with it never receive
type annotations in the rewritten output.
"""

import logging

import tree_sitter
import tree_sitter_javascript

from .base import BaseLanguageParser

logger = logging.getLogger(__name__)

_JS_LANGUAGE = tree_sitter.Language(tree_sitter_javascript.language())


class JavaScriptParser(BaseLanguageParser):
    """tree-sitter based JavaScript parser."""

    def get_language(self) -> str:
        return "javascript"

    def get_tree_sitter_language(self) -> tree_sitter.Language:
        return _JS_LANGUAGE
