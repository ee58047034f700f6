from abc import ABC
from dataclasses import dataclass, field
from typing import Any, Mapping

# ==================================================
# Base classes
# ==================================================
@dataclass
class ASTNode(ABC):
    """
    A generic AST node. All specific node types inherit from this base class.
    """
    pass

@dataclass
class ArgumentNode(ASTNode):
    """
    A base class for bind arguments paired with template placeholders.
    """
    pass

# ==================================================
# Argument nodes
# ==================================================

@dataclass
class ScalarNode(ArgumentNode):
    """
    A single bound value. Keeps its placeholder as-is during expansion.
    """
    value: Any

@dataclass
class ListNode(ArgumentNode):
    """
    An expandable list of bound values, e.g. the contents of an IN (...) clause.
    Expands into one placeholder per element.
    """
    values: tuple[Any, ...]

    def __post_init__(self) -> None:
        self.values = tuple(self.values)

# ==================================================
# Statement nodes
# ==================================================

@dataclass
class StatementNode(ASTNode):
    """
    A SQL template with generic '?' placeholders and its positional arguments.
    """
    template: str
    args: list[ArgumentNode] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.args = [coerce_argument(arg) for arg in self.args]

@dataclass
class NamedStatementNode(ASTNode):
    """
    A SQL template with ':name' parameters bound from a mapping or a record.
    """
    template: str
    source: Mapping[str, Any] | Any = None

# ==================================================
# Boundary coercion
# ==================================================

_LIST_TYPES = (list, tuple, set, frozenset, range)


def coerce_argument(value: Any) -> ArgumentNode:
    """
    Wraps a raw Python value in the matching argument node.

    Objects exposing a callable ``bind_values()`` expand into their values,
    so a record passed as a single argument fills a ``(?)`` row group.
    Strings and bytes are always scalars.
    """
    if isinstance(value, ArgumentNode):
        return value
    bind_values = getattr(value, "bind_values", None)
    if callable(bind_values):
        return ListNode(values=tuple(bind_values()))
    if isinstance(value, _LIST_TYPES):
        return ListNode(values=tuple(value))
    return ScalarNode(value=value)
