"""Function-shape normalizer.

Converts any function-like node (declaration, expression, arrow, method)
into fragments for a function declaration, a function expression or an
arrow function. The async/generator flags, type parameters, parameters
and return type are carried over. Function forms always get a block
body; an expression-bodied source becomes ``{ return expr; }``.
"""

from typing import List, Optional

import tree_sitter

from ..ast_parser.nodes import has_token
from .editor import Fragment, span_of


def function_declaration_from(node: tree_sitter.Node, name: str, delta: int = 0) -> List[Fragment]:
    """``[async] function[*] name<T>(params): R { ... }``"""
    return _function_parts(node, name, delta)


def function_expression_from(
    node: tree_sitter.Node, name: Optional[str] = None, delta: int = 0, source: Optional[bytes] = None
) -> List[Fragment]:
    """``[async] function[*] [name]<T>(params): R { ... }``

    Keeps the node's own name when ``name`` is not given.
    """
    if name is None and source is not None:
        own = node.child_by_field_name("name")
        if own is not None:
            name = source[own.start_byte:own.end_byte].decode("utf-8")
    return _function_parts(node, name, delta)


def arrow_function_from(node: tree_sitter.Node, delta: int = 0) -> List[Fragment]:
    """``[async] <T>(params): R => body``; expression bodies stay expressions."""
    parts: List[Fragment] = []
    if has_token(node, "async"):
        parts.append("async ")
    parts.extend(_signature(node, delta))
    parts.append(" => ")
    body = node.child_by_field_name("body")
    if body is not None:
        parts.append(span_of(body, delta))
    return parts


def _function_parts(node: tree_sitter.Node, name: Optional[str], delta: int) -> List[Fragment]:
    parts: List[Fragment] = []
    if has_token(node, "async"):
        parts.append("async ")
    parts.append("function*" if has_token(node, "*") else "function")
    if name:
        parts.append(f" {name}")
    parts.extend(_signature(node, delta))
    parts.append(" ")
    parts.extend(_block_body(node, delta))
    return parts


def _signature(node: tree_sitter.Node, delta: int) -> List[Fragment]:
    parts: List[Fragment] = []
    type_params = node.child_by_field_name("type_parameters")
    if type_params is not None:
        parts.append(span_of(type_params, delta))

    params = node.child_by_field_name("parameters")
    single = node.child_by_field_name("parameter")
    if params is not None:
        parts.append(span_of(params, delta))
    elif single is not None:
        parts.extend(["(", span_of(single, delta), ")"])
    else:
        parts.append("()")

    return_type = node.child_by_field_name("return_type")
    if return_type is not None:
        parts.append(span_of(return_type, delta))
    return parts


def _block_body(node: tree_sitter.Node, delta: int) -> List[Fragment]:
    body = node.child_by_field_name("body")
    if body is None:
        return ["{}"]
    if body.type == "statement_block":
        return [span_of(body, delta)]
    return ["{ return ", span_of(body, delta), "; }"]
