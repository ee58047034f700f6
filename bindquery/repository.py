from dataclasses import dataclass, replace
from typing import Any, Mapping, Sequence

from bindquery.abstract_syntax_tree.models import NamedStatementNode, StatementNode
from bindquery.compiler.batch import build_batch_insert, build_in_query, build_ordered_in_query
from bindquery.compiler.compiled_query import CompiledQuery
from bindquery.compiler.errors import EmptyListError
from bindquery.compiler.expansion import expand
from bindquery.compiler.named import bind_named_batch
from bindquery.execution.base import Executor

# ==================================================
# User Records
# ==================================================


@dataclass
class UserRecord:
    """
    One row of the users table. id is assigned by the database on insert.
    """

    id: int | None = None
    name: str = ""
    age: int = 0

    def bind_values(self) -> tuple[str, int]:
        """
        Values bound when the record itself is passed as an argument: (name, age).
        """
        return (self.name, self.age)


class UnexpectedRowCountError(Exception):
    def __init__(self, statement: str, expected: int, actual: int) -> None:
        self.statement = statement
        self.expected = expected
        self.actual = actual
        super().__init__(f"{statement}: expected {expected} affected row(s), got {actual}")


_CREATE_TABLE = {
    "sqlite": "CREATE TABLE IF NOT EXISTS {table} (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL, age INTEGER NOT NULL)",
    "mysql": "CREATE TABLE IF NOT EXISTS {table} (id BIGINT AUTO_INCREMENT PRIMARY KEY, name VARCHAR(64) NOT NULL, age INT NOT NULL)",
    "postgres": "CREATE TABLE IF NOT EXISTS {table} (id BIGSERIAL PRIMARY KEY, name TEXT NOT NULL, age INTEGER NOT NULL)",
}


# ==================================================
# User Repository
# ==================================================


class UserRepository:
    """
    Query, insert, update, delete, named-parameter, transaction and batch
    patterns for the users table, run through an explicitly owned executor.
    """

    def __init__(self, executor: Executor, table: str = "users") -> None:
        self.executor = executor
        self.table = table

    @property
    def dialect(self) -> str:
        return self.executor.dialect

    def _finalize(self, compiled: CompiledQuery) -> CompiledQuery:
        return self.executor.compiler.finalize(compiled)

    def _insert_returning_id(self, query: StatementNode | NamedStatementNode) -> int | None:
        if self.dialect == "postgres":
            result = self.executor.execute(replace(query, template=f"{query.template} RETURNING id"))
            return result.rows[0][0] if result.rows else None
        return self.executor.execute(query).last_insert_id

    def create_table(self) -> None:
        self.executor.execute_raw(_CREATE_TABLE[self.dialect].format(table=self.table))

    # --------------------------------------------------
    # Single Statements
    # --------------------------------------------------

    def get(self, user_id: int) -> UserRecord:
        """
        Raises NoRowsError when no user has this id.
        """
        return self.executor.get(
            StatementNode(f"SELECT id, name, age FROM {self.table} WHERE id = ?", [user_id]),
            UserRecord,
        )

    def list_after(self, min_id: int) -> list[UserRecord]:
        return self.executor.select(
            StatementNode(f"SELECT id, name, age FROM {self.table} WHERE id > ? ORDER BY id", [min_id]),
            UserRecord,
        )

    def insert(self, name: str, age: int) -> int | None:
        return self._insert_returning_id(
            StatementNode(f"INSERT INTO {self.table} (name, age) VALUES (?, ?)", [name, age])
        )

    def update_age(self, user_id: int, age: int) -> int:
        result = self.executor.execute(
            StatementNode(f"UPDATE {self.table} SET age = ? WHERE id = ?", [age, user_id])
        )
        return result.rows_affected

    def delete(self, user_id: int) -> int:
        result = self.executor.execute(StatementNode(f"DELETE FROM {self.table} WHERE id = ?", [user_id]))
        return result.rows_affected

    # --------------------------------------------------
    # Named Parameters
    # --------------------------------------------------

    def insert_named(self, source: UserRecord | Mapping[str, Any]) -> int | None:
        return self._insert_returning_id(
            NamedStatementNode(f"INSERT INTO {self.table} (name, age) VALUES (:name, :age)", source)
        )

    def find_by_name(self, name: str) -> list[UserRecord]:
        return self.executor.select(
            NamedStatementNode(f"SELECT id, name, age FROM {self.table} WHERE name = :name ORDER BY id", {"name": name}),
            UserRecord,
        )

    def find_matching(self, example: UserRecord) -> list[UserRecord]:
        """
        Named query bound from the attributes of a record.
        """
        return self.executor.select(
            NamedStatementNode(f"SELECT id, name, age FROM {self.table} WHERE name = :name ORDER BY id", example),
            UserRecord,
        )

    # --------------------------------------------------
    # Transactions
    # --------------------------------------------------

    def set_ages_atomically(self, user_ids: Sequence[int], age: int) -> None:
        """
        Sets the age of every listed user in one transaction. Each update must hit
        exactly one row; otherwise nothing is applied and UnexpectedRowCountError is raised.
        """
        with self.executor.transaction():
            for user_id in user_ids:
                result = self.executor.execute(
                    StatementNode(f"UPDATE {self.table} SET age = ? WHERE id = ?", [age, user_id])
                )
                if result.rows_affected != 1:
                    raise UnexpectedRowCountError(f"update id={user_id}", 1, result.rows_affected)

    # --------------------------------------------------
    # Batch Insert
    # --------------------------------------------------

    def batch_insert(self, users: Sequence[UserRecord]) -> int:
        """
        One multi-row INSERT assembled from explicit (?, ?) groups.
        """
        compiled = build_batch_insert(self.table, ["name", "age"], [(user.name, user.age) for user in users])
        return self.executor.execute(self._finalize(compiled)).rows_affected

    def batch_insert_records(self, users: Sequence[UserRecord]) -> int:
        """
        One '(?)' group per record; each record expands into its bind_values().
        """
        if not users:
            raise EmptyListError(0)
        groups = ", ".join(["(?)"] * len(users))
        compiled = expand(f"INSERT INTO {self.table} (name, age) VALUES {groups}", list(users))
        return self.executor.execute(self._finalize(compiled)).rows_affected

    def batch_insert_named(self, users: Sequence[UserRecord | Mapping[str, Any]]) -> int:
        compiled = bind_named_batch(f"INSERT INTO {self.table} (name, age) VALUES (:name, :age)", users)
        return self.executor.execute(self._finalize(compiled)).rows_affected

    # --------------------------------------------------
    # Batch Fetch
    # --------------------------------------------------

    def query_by_ids(self, ids: Sequence[int]) -> list[UserRecord]:
        """
        Users whose id is in ids, in whatever order the engine returns them.
        """
        compiled = build_in_query(f"SELECT id, name, age FROM {self.table}", "id", ids)
        return self.executor.select(self._finalize(compiled), UserRecord)

    def query_and_order_by_ids(self, ids: Sequence[int]) -> list[UserRecord]:
        """
        Users whose id is in ids, ordered by the database to follow ids exactly.
        """
        compiled = build_ordered_in_query(f"SELECT id, name, age FROM {self.table}", "id", ids, self.dialect)
        return self.executor.select(self._finalize(compiled), UserRecord)
