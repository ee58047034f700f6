from bindquery.execution.base import Executor
from bindquery.execution.dbapi import DbApiExecutor
from bindquery.execution.postgres import PostgresExecutor
from bindquery.execution.sqlite import SqliteExecutor
from bindquery.execution.mysql import MySqlExecutor
from bindquery.execution.result import ExecResult
from bindquery.execution.retry import RetryPolicy
from bindquery.execution.connection import ConnectionSettings
from bindquery.execution.observability import (
    ExecutionEvent,
    ObservabilitySettings,
    QueryObservation,
    compose_event_observers,
    execution_event_to_dict,
    make_json_event_logger,
)
from bindquery.execution.errors import (
    ExecutionError,
    TransientExecutionError,
    DeadlockError,
    SerializationError,
    LockTimeoutError,
    ConnectionTimeoutError,
    IntegrityConstraintError,
    ProgrammingExecutionError,
)

__all__ = [
    "Executor",
    "DbApiExecutor",
    "PostgresExecutor",
    "SqliteExecutor",
    "MySqlExecutor",
    "ExecResult",
    "RetryPolicy",
    "ConnectionSettings",
    "ObservabilitySettings",
    "QueryObservation",
    "ExecutionEvent",
    "compose_event_observers",
    "execution_event_to_dict",
    "make_json_event_logger",
    "ExecutionError",
    "TransientExecutionError",
    "DeadlockError",
    "SerializationError",
    "LockTimeoutError",
    "ConnectionTimeoutError",
    "IntegrityConstraintError",
    "ProgrammingExecutionError",
]
