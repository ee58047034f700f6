from typing import Any, Sequence

import pytest

from bindquery.abstract_syntax_tree.models import StatementNode
from bindquery.compiler.compiled_query import CompiledQuery
from bindquery.compiler.errors import EmptyListError
from bindquery.compiler.statement_compiler import StatementCompiler
from bindquery.execution.base import Executor
from bindquery.execution.errors import DeadlockError, IntegrityConstraintError
from bindquery.execution.result import ExecResult
from bindquery.execution.retry import RetryPolicy, run_with_retry


class _FakeExecutor(Executor):
    dialect = "sqlite"

    def __init__(self) -> None:
        self.compiler = StatementCompiler()
        self.execute_calls = 0
        self.fetch_all_calls = 0
        self.fetch_one_calls = 0
        self.execute_many_calls = 0
        self.execute_failures: list[Exception] = []
        self.fetch_all_failures: list[Exception] = []
        self.fetch_one_failures: list[Exception] = []
        self.execute_many_failures: list[Exception] = []

    def execute(self, query: Any) -> ExecResult:
        compiled_query = self._compile_if_needed(query)
        self.execute_calls += 1
        if self.execute_failures:
            raise self.execute_failures.pop(0)
        return ExecResult(rows_affected=len(compiled_query.params))

    def fetch_all(self, query: Any) -> Sequence[Sequence[Any]]:
        compiled_query = self._compile_if_needed(query)
        self.fetch_all_calls += 1
        if self.fetch_all_failures:
            raise self.fetch_all_failures.pop(0)
        return [("all", compiled_query.sql)]

    def fetch_one(self, query: Any) -> Sequence[Any] | None:
        compiled_query = self._compile_if_needed(query)
        self.fetch_one_calls += 1
        if self.fetch_one_failures:
            raise self.fetch_one_failures.pop(0)
        return ("one", compiled_query.sql)

    def fetch_all_with_columns(self, query: Any) -> tuple[list[str], Sequence[Sequence[Any]]]:
        return ["kind", "sql"], self.fetch_all(query)

    def execute_many(self, sql: str, param_sets: Sequence[Sequence[Any]]) -> None:
        self.execute_many_calls += 1
        if self.execute_many_failures:
            raise self.execute_many_failures.pop(0)

    def begin(self, isolation_level: str | None = None) -> None:
        _ = isolation_level

    def commit(self) -> None:
        return None

    def rollback(self) -> None:
        return None

    def savepoint(self, name: str) -> None:
        _ = name

    def rollback_to_savepoint(self, name: str) -> None:
        _ = name

    def release_savepoint(self, name: str) -> None:
        _ = name


class _SqlStateError(Exception):
    def __init__(self, message: str, sqlstate: str) -> None:
        super().__init__(message)
        self.sqlstate = sqlstate


def test_execute_with_retry_retries_transient_and_succeeds() -> None:
    executor = _FakeExecutor()
    executor.execute_failures = [_SqlStateError("database is locked", "55P03")]
    query = StatementNode("UPDATE t SET a = ? WHERE id IN (?)", [1, [2, 3]])
    policy = RetryPolicy(max_attempts=2, base_delay_seconds=0.0)

    result = executor.execute_with_retry(query, retry_policy=policy)

    assert result.rows_affected == 3
    assert executor.execute_calls == 2


def test_execute_with_retry_does_not_retry_nontransient() -> None:
    executor = _FakeExecutor()
    executor.execute_failures = [_SqlStateError("duplicate key", "23000")]
    query = CompiledQuery(sql="INSERT", params=[])
    policy = RetryPolicy(max_attempts=3, base_delay_seconds=0.0)

    with pytest.raises(IntegrityConstraintError) as excinfo:
        executor.execute_with_retry(query, retry_policy=policy)

    assert isinstance(excinfo.value.__cause__, _SqlStateError)
    assert executor.execute_calls == 1


def test_execute_with_retry_never_retries_build_errors() -> None:
    executor = _FakeExecutor()
    policy = RetryPolicy(max_attempts=3, base_delay_seconds=0.0)

    with pytest.raises(EmptyListError):
        executor.execute_with_retry(StatementNode("DELETE FROM t WHERE id IN (?)", [[]]), retry_policy=policy)

    assert executor.execute_calls == 0


def test_fetch_all_with_retry_exhausts_and_raises_transient() -> None:
    executor = _FakeExecutor()
    executor.fetch_all_failures = [
        _SqlStateError("deadlock detected", "40P01"),
        _SqlStateError("deadlock detected", "40P01"),
    ]
    query = CompiledQuery(sql="SELECT 1", params=[])
    policy = RetryPolicy(max_attempts=2, base_delay_seconds=0.0)

    with pytest.raises(DeadlockError):
        executor.fetch_all_with_retry(query, retry_policy=policy)

    assert executor.fetch_all_calls == 2


def test_fetch_one_with_retry_success_after_retry() -> None:
    executor = _FakeExecutor()
    executor.fetch_one_failures = [_SqlStateError("lock timeout", "55P03")]
    query = CompiledQuery(sql="SELECT 1", params=[])
    policy = RetryPolicy(max_attempts=2, base_delay_seconds=0.0)

    row = executor.fetch_one_with_retry(query, retry_policy=policy)

    assert row == ("one", "SELECT 1")
    assert executor.fetch_one_calls == 2


def test_execute_many_with_retry_success_after_retry() -> None:
    executor = _FakeExecutor()
    executor.execute_many_failures = [_SqlStateError("serialization failure", "40001")]
    policy = RetryPolicy(max_attempts=2, base_delay_seconds=0.0)

    executor.execute_many_with_retry(
        "INSERT INTO t(a) VALUES (?)",
        [[1], [2]],
        retry_policy=policy,
    )

    assert executor.execute_many_calls == 2


def test_run_with_retry_sleeps_with_backoff() -> None:
    failures = [_SqlStateError("deadlock detected", "40P01")] * 3
    sleeps: list[float] = []
    retries: list[int] = []

    def operation() -> str:
        if failures:
            raise failures.pop()
        return "done"

    result = run_with_retry(
        operation=operation,
        normalize_error=lambda exc: _FakeExecutor()._normalize_execution_error(operation="execute", exc=exc),
        policy=RetryPolicy(max_attempts=4, base_delay_seconds=0.1, max_delay_seconds=0.3),
        sleep_fn=sleeps.append,
        on_retry=lambda normalized, attempt, delay: retries.append(attempt),
    )

    assert result == "done"
    assert sleeps == pytest.approx([0.1, 0.2, 0.3])
    assert retries == [1, 2, 3]


def test_retry_policy_validation() -> None:
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)
    with pytest.raises(ValueError):
        RetryPolicy(backoff_multiplier=0.5)
    assert RetryPolicy(base_delay_seconds=0.5, max_delay_seconds=0.75).delay_for(3) == 0.75
