from typing import Any, Sequence

from bindquery.abstract_syntax_tree.models import ArgumentNode, ListNode, ScalarNode, coerce_argument
from bindquery.compiler.compiled_query import CompiledQuery
from bindquery.compiler.errors import ArityMismatchError, EmptyListError
from bindquery.compiler.scanner import PLACEHOLDER, placeholder_positions
from bindquery.traversal.visitor_pattern import Visitor

# ==================================================
# Dynamic Statement Builder
# ==================================================

LIST_SEPARATOR = ","


class ArgumentExpander(Visitor):
    """
    Renders each argument node as a placeholder fragment plus the values it binds.
    """

    def __init__(self) -> None:
        self._position = 0

    def render(self, node: ArgumentNode, position: int) -> tuple[str, list[Any]]:
        self._position = position
        return self.visit(node)

    def visit_ScalarNode(self, node: ScalarNode) -> tuple[str, list[Any]]:
        return PLACEHOLDER, [node.value]

    def visit_ListNode(self, node: ListNode) -> tuple[str, list[Any]]:
        if not node.values:
            raise EmptyListError(self._position)
        return LIST_SEPARATOR.join([PLACEHOLDER] * len(node.values)), list(node.values)


def expand(template: str, args: Sequence[Any], *, backslash_escapes: bool = False) -> CompiledQuery:
    """
    Expands list arguments into one placeholder per element and flattens the
    arguments so that params[i] binds to the i-th placeholder of the result.

    Raw values are coerced to argument nodes first; lists, tuples, sets and
    objects with ``bind_values()`` expand, everything else binds as a scalar.
    Set backslash_escapes for MySQL templates that escape quotes with a backslash.
    """
    nodes = [coerce_argument(arg) for arg in args]
    positions = placeholder_positions(template, backslash_escapes)
    if len(positions) != len(nodes):
        raise ArityMismatchError(expected=len(positions), given=len(nodes))

    expander = ArgumentExpander()
    parts: list[str] = []
    params: list[Any] = []
    cursor = 0
    for index, (offset, node) in enumerate(zip(positions, nodes)):
        fragment, values = expander.render(node, index)
        parts.append(template[cursor:offset])
        parts.append(fragment)
        params.extend(values)
        cursor = offset + len(PLACEHOLDER)
    parts.append(template[cursor:])

    return CompiledQuery(sql="".join(parts), params=params)
