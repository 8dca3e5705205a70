"""Structural diagnostics raised by the component analyzers."""

from typing import Optional

import tree_sitter


class AnalysisError(Exception):
    """A construct that cannot be proven mechanically translatable.

    Recovered only at the per-class boundary; the class is left as written
    and receives a disable comment carrying ``message``.
    """

    def __init__(self, message: str, node: Optional[tree_sitter.Node] = None):
        super().__init__(message)
        self.message = message
        self.node = node

    @property
    def line(self) -> Optional[int]:
        return self.node.start_point.row + 1 if self.node is not None else None
