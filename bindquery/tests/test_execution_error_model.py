from bindquery.execution.errors import (
    ConnectionTimeoutError,
    DeadlockError,
    ExecutionError,
    IntegrityConstraintError,
    LockTimeoutError,
    ProgrammingExecutionError,
    SerializationError,
    TransientExecutionError,
    normalize_execution_error,
)


class _FakeDriverError(Exception):
    def __init__(self, message: str, sqlstate: str | None = None) -> None:
        super().__init__(message)
        self.sqlstate = sqlstate


class _ErrnoError(Exception):
    def __init__(self, message: str, errno: int) -> None:
        super().__init__(message)
        self.errno = errno


class IntegrityError(Exception):
    pass


def test_normalize_deadlock_by_sqlstate() -> None:
    err = normalize_execution_error(
        dialect="postgres",
        operation="execute",
        exc=_FakeDriverError("deadlock detected", "40P01"),
    )
    assert isinstance(err, DeadlockError)
    assert isinstance(err, TransientExecutionError)
    assert err.details.dialect == "postgres"
    assert err.details.operation == "execute"
    assert err.details.driver_error == "_FakeDriverError"


def test_normalize_serialization_by_sqlstate() -> None:
    err = normalize_execution_error(
        dialect="postgres",
        operation="execute",
        exc=_FakeDriverError("retry transaction", "40001"),
    )
    assert isinstance(err, SerializationError)


def test_normalize_mysql_errno() -> None:
    deadlock = normalize_execution_error(dialect="mysql", operation="execute", exc=_ErrnoError("try restarting", 1213))
    lock_wait = normalize_execution_error(dialect="mysql", operation="execute", exc=_ErrnoError("exceeded", 1205))
    missing = normalize_execution_error(dialect="mysql", operation="select", exc=_ErrnoError("doesn't exist", 1146))

    assert isinstance(deadlock, DeadlockError)
    assert isinstance(lock_wait, LockTimeoutError)
    assert isinstance(missing, ProgrammingExecutionError)
    assert missing.details.sqlstate == "1146"


def test_normalize_lock_timeout_by_message() -> None:
    err = normalize_execution_error(
        dialect="sqlite",
        operation="execute",
        exc=_FakeDriverError("database is locked"),
    )
    assert isinstance(err, LockTimeoutError)


def test_normalize_connection_timeout_by_message() -> None:
    err = normalize_execution_error(
        dialect="postgres",
        operation="fetch_all",
        exc=_FakeDriverError("connection timed out"),
    )
    assert isinstance(err, ConnectionTimeoutError)


def test_normalize_integrity_error_by_sqlstate_class() -> None:
    err = normalize_execution_error(
        dialect="mysql",
        operation="execute",
        exc=_FakeDriverError("duplicate key", "23000"),
    )
    assert isinstance(err, IntegrityConstraintError)
    assert not isinstance(err, TransientExecutionError)


def test_normalize_integrity_error_by_driver_class_name() -> None:
    err = normalize_execution_error(
        dialect="sqlite",
        operation="execute",
        exc=IntegrityError("NOT NULL failed: users.name"),
    )
    assert isinstance(err, IntegrityConstraintError)


def test_normalize_programming_error_by_sqlstate_class() -> None:
    err = normalize_execution_error(
        dialect="postgres",
        operation="execute",
        exc=_FakeDriverError("syntax error", "42601"),
    )
    assert isinstance(err, ProgrammingExecutionError)


def test_normalize_keeps_original_exception() -> None:
    original = _FakeDriverError("no such column: agee")
    err = normalize_execution_error(dialect="sqlite", operation="select", exc=original)

    assert isinstance(err, ProgrammingExecutionError)
    assert err.original_exception is original
    assert err.details.original_message == "no such column: agee"
    assert str(err) == "[sqlite:select] ProgrammingExecutionError: no such column: agee"


def test_normalize_passes_through_normalized_errors() -> None:
    err = normalize_execution_error(dialect="sqlite", operation="execute", exc=_FakeDriverError("database is locked"))

    assert normalize_execution_error(dialect="mysql", operation="select", exc=err) is err


def test_normalize_generic_execution_error_fallback() -> None:
    err = normalize_execution_error(
        dialect="postgres",
        operation="execute",
        exc=_FakeDriverError("unknown failure"),
    )
    assert isinstance(err, ExecutionError)
    assert type(err) is ExecutionError
