from typing import Any

from bindquery.execution.dbapi import DbApiExecutor

# ==================================================
# PostgreSQL Executor
# ==================================================

class PostgresExecutor(DbApiExecutor):
    """
    An executor for PostgreSQL using the 'psycopg' library.
    connection_info is a libpq connection string or URL.
    """

    dialect = "postgres"

    _psycopg: Any = None

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._previous_autocommit: bool | None = None

    def _get_psycopg(self) -> Any:
        """
        Lazily imports psycopg and returns the module.
        """
        if self._psycopg is None:
            try:
                import psycopg
                self._psycopg = psycopg
            except ImportError:
                raise ImportError(
                    "The 'psycopg' library is required for PostgresExecutor. "
                    "Install it with 'pip install bindquery[postgres]'."
                )
        return self._psycopg

    def _connect(self) -> Any:
        psycopg = self._get_psycopg()
        timeout = self.connection_settings.connect_timeout_seconds
        if timeout is None:
            return psycopg.connect(self.connection_info)
        return psycopg.connect(self.connection_info, connect_timeout=int(timeout))

    def _begin_transaction(self, conn: Any, isolation_level: str | None) -> None:
        # psycopg opens the transaction implicitly on the first statement once autocommit is off.
        if hasattr(conn, "autocommit"):
            self._previous_autocommit = conn.autocommit
            conn.autocommit = False
        else:
            self._previous_autocommit = None
        if isolation_level:
            self._run_statement(conn, f"SET TRANSACTION ISOLATION LEVEL {isolation_level}")

    def _end_transaction(self, conn: Any) -> None:
        previous = self._previous_autocommit
        self._previous_autocommit = None
        if previous is not None and hasattr(conn, "autocommit"):
            conn.autocommit = previous
