from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
import time
from typing import Any, Callable, Iterator, Mapping, Sequence, TypeVar
from uuid import uuid4

from bindquery.abstract_syntax_tree.models import ASTNode
from bindquery.compiler.compiled_query import CompiledQuery
from bindquery.execution.errors import ExecutionError, TransientExecutionError, normalize_execution_error
from bindquery.execution.observability import ExecutionEvent, ObservabilitySettings, QueryObservation
from bindquery.execution.result import ExecResult
from bindquery.execution.retry import RetryPolicy, run_with_retry
from bindquery.mapping import NoRowsError, map_row, map_rows

T = TypeVar("T")

Query = CompiledQuery | ASTNode

# ==================================================
# Base Executor
# ==================================================

class Executor(ABC):
    """
    Abstract base class for executing statements against a database.

    Every query method accepts either a CompiledQuery, used as-is, or a statement
    node, which is compiled with the executor's compiler before any connection
    is acquired.
    """

    dialect: str = "unknown"
    compiler: Any = None

    # Errors raised by the executor itself rather than by the driver.
    _PASSTHROUGH_ERRORS: tuple[type[BaseException], ...] = (ExecutionError, RuntimeError, ImportError)

    @abstractmethod
    def execute(self, query: Query) -> ExecResult:
        """
        Executes a single statement and reports its outcome.
        """
        pass

    @abstractmethod
    def fetch_all(self, query: Query) -> Sequence[Sequence[Any]]:
        """
        Executes a query and returns all resulting rows.
        """
        pass

    @abstractmethod
    def fetch_one(self, query: Query) -> Sequence[Any] | None:
        """
        Executes a query and returns a single resulting row.
        """
        pass

    @abstractmethod
    def fetch_all_with_columns(self, query: Query) -> tuple[list[str], Sequence[Sequence[Any]]]:
        """
        Executes a query and returns its column names alongside all rows.
        """
        pass

    @abstractmethod
    def execute_many(self, sql: str, param_sets: Sequence[Sequence[Any]]) -> None:
        """
        Executes a SQL statement against multiple parameter sets.
        """
        pass

    @abstractmethod
    def begin(self, isolation_level: str | None = None) -> None:
        """
        Begins an explicit transaction.
        """
        pass

    @abstractmethod
    def commit(self) -> None:
        """
        Commits the active explicit transaction.
        """
        pass

    @abstractmethod
    def rollback(self) -> None:
        """
        Rolls back the active explicit transaction.
        """
        pass

    @abstractmethod
    def savepoint(self, name: str) -> None:
        """
        Creates a savepoint in the active explicit transaction.
        """
        pass

    @abstractmethod
    def rollback_to_savepoint(self, name: str) -> None:
        """
        Rolls back to a savepoint in the active explicit transaction.
        """
        pass

    @abstractmethod
    def release_savepoint(self, name: str) -> None:
        """
        Releases a savepoint in the active explicit transaction.
        """
        pass

    # ==================================================
    # Record Mapping
    # ==================================================

    def select(self, query: Query, record_type: type[T]) -> list[T]:
        """
        Runs a query and maps every row onto record_type by column name.
        """
        columns, rows = self.fetch_all_with_columns(query)
        return map_rows(columns, rows, record_type)

    def get(self, query: Query, record_type: type[T]) -> T:
        """
        Runs a query and maps its first row onto record_type.
        Raises NoRowsError when the query returns nothing.
        """
        columns, rows = self.fetch_all_with_columns(query)
        if not rows:
            raise NoRowsError("no rows in result set")
        return map_row(columns, rows[0], record_type)

    # ==================================================
    # Transactions
    # ==================================================

    @contextmanager
    def transaction(self, isolation_level: str | None = None) -> Iterator["Executor"]:
        """
        Commits when the block finishes, rolls back and re-raises when it fails.
        """
        self.begin(isolation_level)
        try:
            yield self
        except BaseException:
            self.rollback()
            raise
        self.commit()

    # ==================================================
    # Compilation, Events and Normalized Errors
    # ==================================================

    def _compile_if_needed(self, query: Query) -> CompiledQuery:
        if isinstance(query, ASTNode):
            return self.compiler.compile(query)
        return query

    def _next_query_id(self) -> str:
        return uuid4().hex

    def _metadata(self, override: Mapping[str, Any] | None = None) -> dict[str, Any]:
        settings = getattr(self, "observability_settings", None)
        base = dict(settings.metadata) if isinstance(settings, ObservabilitySettings) else {}
        if override:
            base.update(override)
        return base

    def _emit_event(self, event: str, *, success: bool, **kwargs: Any) -> None:
        settings = getattr(self, "observability_settings", None)
        if not isinstance(settings, ObservabilitySettings) or settings.event_observer is None:
            return

        payload = ExecutionEvent(
            timestamp=datetime.now(timezone.utc).isoformat(),
            event=event,
            dialect=self._dialect_name(),
            executor=self.__class__.__name__,
            success=success,
            metadata=self._metadata(),
            **kwargs,
        )
        settings.event_observer(payload)

    def _dialect_name(self) -> str:
        if self.dialect != "unknown":
            return self.dialect
        name = self.__class__.__name__.lower().replace("executor", "")
        return name or "unknown"

    def _normalize_execution_error(self, *, operation: str, exc: Exception) -> ExecutionError:
        return normalize_execution_error(
            dialect=self._dialect_name(),
            operation=operation,
            exc=exc,
        )

    def _run_normalized(self, operation: str, run: Callable[[], T]) -> T:
        try:
            return run()
        except self._PASSTHROUGH_ERRORS:
            raise
        except Exception as exc:
            raise self._normalize_execution_error(operation=operation, exc=exc) from exc

    def _observe_query(
        self,
        *,
        operation: str,
        sql: str,
        params: Sequence[Any] | None,
        run: Callable[[], T],
    ) -> T:
        settings = getattr(self, "observability_settings", None)
        if not isinstance(settings, ObservabilitySettings):
            return self._run_normalized(operation, run)

        query_id = self._next_query_id()
        self._emit_event(
            "query.start",
            success=True,
            operation=operation,
            query_id=query_id,
        )

        started = time.perf_counter()
        error: Exception | None = None
        result: Any = None
        try:
            result = self._run_normalized(operation, run)
            return result
        except Exception as exc:
            error = exc
            raise
        finally:
            duration_ms = (time.perf_counter() - started) * 1000
            has_active = getattr(self, "_has_active_transaction", None)
            in_transaction = bool(has_active()) if callable(has_active) else False

            if settings.query_observer is not None:
                settings.query_observer(
                    QueryObservation(
                        dialect=self._dialect_name(),
                        operation=operation,
                        sql=sql,
                        param_count=len(params) if params is not None else 0,
                        duration_ms=duration_ms,
                        succeeded=error is None,
                        in_transaction=in_transaction,
                        metadata=self._metadata(),
                        rows_affected=result.rows_affected if isinstance(result, ExecResult) else None,
                        error_type=type(error).__name__ if error is not None else None,
                        error_message=str(error) if error is not None else None,
                    )
                )
            self._emit_event(
                "query.end",
                success=error is None,
                operation=operation,
                query_id=query_id,
                duration_ms=duration_ms,
                error_type=type(error).__name__ if error is not None else None,
                error_message=str(error) if error is not None else None,
            )

    # ==================================================
    # Opt-in Retry
    # ==================================================

    def _run_with_retry(self, operation: str, run: Callable[[], T], retry_policy: RetryPolicy | None) -> T:
        policy = retry_policy or RetryPolicy()
        return run_with_retry(
            operation=run,
            normalize_error=lambda exc: self._normalize_execution_error(operation=operation, exc=exc),
            policy=policy,
            on_retry=lambda normalized, attempt, delay: self._emit_event(
                "retry.scheduled",
                success=False,
                operation=operation,
                retry_attempt=attempt,
                max_attempts=policy.max_attempts,
                backoff_ms=delay * 1000,
                error_type=type(normalized).__name__,
                retryable=True,
            ),
            on_giveup=lambda normalized, attempt: self._emit_event(
                "retry.giveup",
                success=False,
                operation=operation,
                retry_attempt=attempt,
                max_attempts=policy.max_attempts,
                error_type=type(normalized).__name__,
                retryable=isinstance(normalized, TransientExecutionError),
            ),
        )

    def execute_with_retry(self, query: Query, retry_policy: RetryPolicy | None = None) -> ExecResult:
        return self._run_with_retry("execute", lambda: self.execute(query), retry_policy)

    def fetch_all_with_retry(
        self,
        query: Query,
        retry_policy: RetryPolicy | None = None,
    ) -> Sequence[Sequence[Any]]:
        return self._run_with_retry("fetch_all", lambda: self.fetch_all(query), retry_policy)

    def fetch_one_with_retry(
        self,
        query: Query,
        retry_policy: RetryPolicy | None = None,
    ) -> Sequence[Any] | None:
        return self._run_with_retry("fetch_one", lambda: self.fetch_one(query), retry_policy)

    def execute_many_with_retry(
        self,
        sql: str,
        param_sets: Sequence[Sequence[Any]],
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self._run_with_retry("execute_many", lambda: self.execute_many(sql, param_sets), retry_policy)

    # ==================================================
    # Lifecycle Controls
    # ==================================================

    def close(self) -> None:
        """
        Releases executor-owned resources.
        Subclasses should override when they hold lifecycle state.
        """
        return None

    def __enter__(self) -> "Executor":
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        _ = exc_type
        _ = exc
        _ = tb
        self.close()
