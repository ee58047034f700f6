import time
from typing import Any, Callable, Sequence, TypeVar, cast
from uuid import uuid4

from bindquery.compiler.compiled_query import CompiledQuery
from bindquery.compiler.statement_compiler import StatementCompiler
from bindquery.execution.base import Executor, Query
from bindquery.execution.connection import ConnectionAcquireHook, ConnectionReleaseHook, ConnectionSettings
from bindquery.execution.observability import ObservabilitySettings
from bindquery.execution.result import ExecResult, result_from_cursor
from bindquery.mapping import column_names

T = TypeVar("T")

# ==================================================
# DB-API Executor
# ==================================================


def _execute_on(cursor: Any, sql: str, params: Sequence[Any] | None) -> None:
    # Drivers parse '%' only when parameters are passed.
    if params:
        cursor.execute(sql, params)
    else:
        cursor.execute(sql)


class DbApiExecutor(Executor):
    """
    Shared executor for PEP 249 drivers.

    Connections come from, in order: the active transaction, a fixed connection
    passed by the caller, the acquire/release hooks, or a fresh connection per
    statement. Only the last two are committed and released after each statement.
    """

    def __init__(
        self,
        connection_info: Any | None = None,
        connection: Any | None = None,
        compiler: StatementCompiler | None = None,
        connect_timeout_seconds: float | None = None,
        acquire_connection: ConnectionAcquireHook | None = None,
        release_connection: ConnectionReleaseHook | None = None,
        observability_settings: ObservabilitySettings | None = None,
    ) -> None:
        if connection_info is None and connection is None and acquire_connection is None:
            raise ValueError("Provide connection_info, connection, or acquire_connection.")

        self.connection_info = connection_info
        self.connection = connection
        self.compiler = compiler or StatementCompiler.for_dialect(self.dialect)
        self.connection_settings = ConnectionSettings(
            connect_timeout_seconds=connect_timeout_seconds,
            acquire_connection=acquire_connection,
            release_connection=release_connection,
        )
        self.observability_settings = observability_settings or ObservabilitySettings()
        self._closed = False
        self._transaction_connection: Any | None = None
        self._transaction_release_mode: str | None = None
        self._transaction_id: str | None = None
        self._transaction_started_at: float | None = None

    # --------------------------------------------------
    # Driver Hooks
    # --------------------------------------------------

    def _connect(self) -> Any:
        raise NotImplementedError(f"{self.__class__.__name__} cannot open connections on its own.")

    def _begin_transaction(self, conn: Any, isolation_level: str | None) -> None:
        self._run_statement(conn, "BEGIN")

    def _end_transaction(self, conn: Any) -> None:
        """
        Called after commit or rollback, before the connection is released.
        """
        return None

    # --------------------------------------------------
    # Connection Handling
    # --------------------------------------------------

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("Executor is closed.")

    def _has_active_transaction(self) -> bool:
        return self._transaction_connection is not None

    def _open_connection(self) -> tuple[Any, str]:
        self._emit_event("connection.acquire.start", success=True)
        started = time.perf_counter()
        if self.connection_settings.uses_pool:
            conn = self.connection_settings.acquire_connection()
            mode = "release"
        else:
            conn = self._connect()
            mode = "close"
        self._emit_event(
            "connection.acquire.end",
            success=True,
            connection_id=str(id(conn)),
            duration_ms=(time.perf_counter() - started) * 1000,
        )
        return conn, mode

    def _get_connection_for_query(self) -> tuple[Any, str | None]:
        self._ensure_open()
        if self._transaction_connection is not None:
            return self._transaction_connection, None
        if self.connection is not None:
            return self.connection, None
        return self._open_connection()

    def _release_connection(self, conn: Any, mode: str | None) -> None:
        if mode is None:
            return
        if mode == "release":
            self._emit_event("connection.release", success=True, connection_id=str(id(conn)))
            if self.connection_settings.release_connection is not None:
                self.connection_settings.release_connection(conn)
                return
            conn.close()
            return
        if mode == "close":
            self._emit_event("connection.close", success=True, connection_id=str(id(conn)))
            conn.close()

    def _require_active_transaction_connection(self) -> Any:
        self._ensure_open()
        if self._transaction_connection is None:
            raise RuntimeError("No active transaction. Call begin() first.")
        return self._transaction_connection

    def _run_statement(self, conn: Any, sql: str) -> None:
        cursor = conn.cursor()
        try:
            cursor.execute(sql)
        finally:
            cursor.close()

    def _with_cursor(self, run: Callable[[Any], T], *, commit: bool) -> T:
        conn, release_mode = self._get_connection_for_query()
        try:
            cursor = conn.cursor()
            try:
                result = run(cursor)
                if commit and release_mode is not None:
                    conn.commit()
                return result
            finally:
                cursor.close()
        finally:
            self._release_connection(conn, release_mode)

    # --------------------------------------------------
    # Statements
    # --------------------------------------------------

    def execute(self, query: Query) -> ExecResult:
        compiled_query = self._compile_if_needed(query)
        return self._observe_query(
            operation="execute",
            sql=compiled_query.sql,
            params=compiled_query.params,
            run=lambda: self._with_cursor(
                lambda cursor: self._execute_cursor(cursor, compiled_query),
                commit=True,
            ),
        )

    def _execute_cursor(self, cursor: Any, compiled_query: CompiledQuery) -> ExecResult:
        _execute_on(cursor, compiled_query.sql, compiled_query.params)
        return result_from_cursor(cursor)

    def fetch_all(self, query: Query) -> Sequence[Sequence[Any]]:
        compiled_query = self._compile_if_needed(query)
        return self._observe_query(
            operation="fetch_all",
            sql=compiled_query.sql,
            params=compiled_query.params,
            run=lambda: self._with_cursor(
                lambda cursor: self._fetch_cursor(cursor, compiled_query)[1],
                commit=False,
            ),
        )

    def fetch_all_with_columns(self, query: Query) -> tuple[list[str], Sequence[Sequence[Any]]]:
        compiled_query = self._compile_if_needed(query)
        return self._observe_query(
            operation="select",
            sql=compiled_query.sql,
            params=compiled_query.params,
            run=lambda: self._with_cursor(
                lambda cursor: self._fetch_cursor(cursor, compiled_query),
                commit=False,
            ),
        )

    def _fetch_cursor(self, cursor: Any, compiled_query: CompiledQuery) -> tuple[list[str], Sequence[Sequence[Any]]]:
        _execute_on(cursor, compiled_query.sql, compiled_query.params)
        rows = cast(Sequence[Sequence[Any]], cursor.fetchall())
        return column_names(cursor.description), rows

    def fetch_one(self, query: Query) -> Sequence[Any] | None:
        compiled_query = self._compile_if_needed(query)
        return self._observe_query(
            operation="fetch_one",
            sql=compiled_query.sql,
            params=compiled_query.params,
            run=lambda: self._with_cursor(
                lambda cursor: self._fetch_one_cursor(cursor, compiled_query),
                commit=False,
            ),
        )

    def _fetch_one_cursor(self, cursor: Any, compiled_query: CompiledQuery) -> Sequence[Any] | None:
        _execute_on(cursor, compiled_query.sql, compiled_query.params)
        return cast(Sequence[Any] | None, cursor.fetchone())

    def execute_many(self, sql: str, param_sets: Sequence[Sequence[Any]]) -> None:
        if not param_sets:
            return
        self._observe_query(
            operation="execute_many",
            sql=sql,
            params=param_sets[0],
            run=lambda: self._with_cursor(lambda cursor: cursor.executemany(sql, param_sets), commit=True),
        )

    def execute_raw(self, sql: str, params: Sequence[Any] | None = None) -> None:
        """
        Executes SQL in the driver's own placeholder syntax, without expansion.
        """
        self._observe_query(
            operation="execute_raw",
            sql=sql,
            params=params,
            run=lambda: self._with_cursor(lambda cursor: _execute_on(cursor, sql, params), commit=True),
        )

    # --------------------------------------------------
    # Transactions
    # --------------------------------------------------

    def begin(self, isolation_level: str | None = None) -> None:
        self._ensure_open()
        if self._has_active_transaction():
            raise RuntimeError("Transaction already active.")

        if self.connection is not None:
            conn, mode = self.connection, None
        else:
            conn, mode = self._open_connection()

        try:
            self._begin_transaction(conn, isolation_level)
        except Exception:
            self._release_connection(conn, mode)
            raise

        self._transaction_connection = conn
        self._transaction_release_mode = mode
        self._transaction_id = uuid4().hex
        self._transaction_started_at = time.perf_counter()
        self._emit_event("txn.begin", success=True, transaction_id=self._transaction_id)

    def _finalize_transaction(self) -> None:
        conn = self._transaction_connection
        mode = self._transaction_release_mode
        if conn is None:
            return
        self._transaction_connection = None
        self._transaction_release_mode = None
        self._transaction_id = None
        self._transaction_started_at = None
        try:
            self._end_transaction(conn)
        finally:
            self._release_connection(conn, mode)

    def _transaction_duration_ms(self) -> float | None:
        started_at = self._transaction_started_at
        return None if started_at is None else (time.perf_counter() - started_at) * 1000

    def commit(self) -> None:
        conn = self._require_active_transaction_connection()
        tx_id = self._transaction_id
        try:
            conn.commit()
            self._emit_event(
                "txn.commit",
                success=True,
                transaction_id=tx_id,
                duration_ms=self._transaction_duration_ms(),
            )
        finally:
            self._finalize_transaction()

    def rollback(self) -> None:
        conn = self._require_active_transaction_connection()
        tx_id = self._transaction_id
        try:
            conn.rollback()
            self._emit_event(
                "txn.rollback",
                success=True,
                transaction_id=tx_id,
                duration_ms=self._transaction_duration_ms(),
            )
        finally:
            self._finalize_transaction()

    def savepoint(self, name: str) -> None:
        conn = self._require_active_transaction_connection()
        self._run_statement(conn, f"SAVEPOINT {name}")
        self._emit_event("txn.savepoint.create", success=True, transaction_id=self._transaction_id, savepoint_name=name)

    def rollback_to_savepoint(self, name: str) -> None:
        conn = self._require_active_transaction_connection()
        self._run_statement(conn, f"ROLLBACK TO SAVEPOINT {name}")
        self._emit_event("txn.savepoint.rollback", success=True, transaction_id=self._transaction_id, savepoint_name=name)

    def release_savepoint(self, name: str) -> None:
        conn = self._require_active_transaction_connection()
        self._run_statement(conn, f"RELEASE SAVEPOINT {name}")
        self._emit_event("txn.savepoint.release", success=True, transaction_id=self._transaction_id, savepoint_name=name)

    def close(self) -> None:
        """
        Rolls back any open transaction and refuses further work.
        """
        if self._closed:
            return
        if self._transaction_connection is not None:
            try:
                self.rollback()
            except Exception as exc:
                self._emit_event(
                    "txn.rollback",
                    success=False,
                    error_type=type(exc).__name__,
                    error_message=str(exc),
                )
        self._closed = True
