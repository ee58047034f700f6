from typing import Any

from bindquery.execution.dbapi import DbApiExecutor

# ==================================================
# SQLite Executor
# ==================================================


class SqliteExecutor(DbApiExecutor):
    """
    An executor for SQLite using the standard library 'sqlite3' module.
    connection_info is a database file path.
    """

    dialect = "sqlite"
    _ISOLATION_LEVELS = frozenset({"DEFERRED", "IMMEDIATE", "EXCLUSIVE"})

    _sqlite3: Any = None

    def _get_sqlite3(self) -> Any:
        if self._sqlite3 is None:
            import sqlite3

            self._sqlite3 = sqlite3
        return self._sqlite3

    def _connect(self) -> Any:
        sqlite3 = self._get_sqlite3()
        timeout = self.connection_settings.connect_timeout_seconds
        if timeout is None:
            return sqlite3.connect(self.connection_info)
        return sqlite3.connect(self.connection_info, timeout=timeout)

    def begin(self, isolation_level: str | None = None) -> None:
        if isolation_level and isolation_level.strip().upper() not in self._ISOLATION_LEVELS:
            raise ValueError("SQLite isolation_level must be one of: DEFERRED, IMMEDIATE, EXCLUSIVE.")
        super().begin(isolation_level)

    def _begin_transaction(self, conn: Any, isolation_level: str | None) -> None:
        if isolation_level:
            self._run_statement(conn, f"BEGIN {isolation_level.strip().upper()}")
            return
        self._run_statement(conn, "BEGIN")
