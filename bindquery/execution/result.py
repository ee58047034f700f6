from dataclasses import dataclass
from typing import Any, Sequence

# ==================================================
# Execution Result
# ==================================================

@dataclass(frozen=True)
class ExecResult:
    """
    Outcome of a single statement.

    last_insert_id is None when the driver does not report one (e.g. psycopg).
    rows_affected is -1 when the driver cannot tell.
    rows holds the result set for statements that produced one.
    """
    last_insert_id: int | None = None
    rows_affected: int = -1
    rows: Sequence[Sequence[Any]] | None = None


def result_from_cursor(cursor: Any) -> ExecResult:
    rows = cursor.fetchall() if cursor.description else None
    last_insert_id = getattr(cursor, "lastrowid", None)
    if not isinstance(last_insert_id, int) or last_insert_id <= 0:
        last_insert_id = None
    rowcount = getattr(cursor, "rowcount", -1)
    return ExecResult(
        last_insert_id=last_insert_id,
        rows_affected=rowcount if isinstance(rowcount, int) else -1,
        rows=rows,
    )
