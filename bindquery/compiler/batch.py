from typing import Any, Sequence

from bindquery.abstract_syntax_tree.models import ListNode, ScalarNode
from bindquery.compiler.compiled_query import CompiledQuery
from bindquery.compiler.errors import ArityMismatchError, EmptyListError
from bindquery.compiler.expansion import expand

# ==================================================
# Batch Statement Helpers
# ==================================================


def build_batch_insert(table: str, columns: Sequence[str], rows: Sequence[Sequence[Any]]) -> CompiledQuery:
    """
    Builds a single multi-row INSERT with one '(?,...)' group per row.
    Params are flattened row-major.
    """
    if not rows:
        raise EmptyListError(0)
    width = len(columns)
    for row in rows:
        if len(row) != width:
            raise ArityMismatchError(expected=width, given=len(row))

    groups = ", ".join(["(?)"] * len(rows))
    template = f"INSERT INTO {table} ({', '.join(columns)}) VALUES {groups}"
    return expand(template, [ListNode(values=tuple(row)) for row in rows])


# --------------------------------------------------
# Batch Fetch By Ids
# --------------------------------------------------

def order_by_ids_expression(dialect: str, column: str) -> str:
    """
    Returns an ordinal lookup expression with one '?' that takes the
    comma-joined id list, so the engine sorts rows into the input id order.
    """
    name = dialect.strip().lower()
    if name in {"mysql", "mariadb"}:
        return f"FIND_IN_SET({column}, ?)"
    if name == "sqlite":
        return f"instr(',' || ? || ',', ',' || {column} || ',')"
    if name in {"postgres", "postgresql"}:
        return f"array_position(string_to_array(?, ','), {column}::text)"
    raise ValueError(f"Order-preserving fetch is not supported for dialect {dialect!r}.")


def build_in_query(select_sql: str, column: str, ids: Sequence[Any]) -> CompiledQuery:
    return expand(f"{select_sql} WHERE {column} IN (?)", [ListNode(values=tuple(ids))])


def build_ordered_in_query(select_sql: str, column: str, ids: Sequence[Any], dialect: str) -> CompiledQuery:
    """
    Like build_in_query, but orders the result to match the order of ids.
    The comma-joined id string binds to the ordering expression as a second argument.
    """
    joined = ",".join(str(value) for value in ids)
    template = f"{select_sql} WHERE {column} IN (?) ORDER BY {order_by_ids_expression(dialect, column)}"
    return expand(template, [ListNode(values=tuple(ids)), ScalarNode(value=joined)])
