from bindquery.abstract_syntax_tree.models import (
    ListNode,
    NamedStatementNode,
    ScalarNode,
    StatementNode,
    coerce_argument,
)
from bindquery.compiler import (
    ArityMismatchError,
    BindStyle,
    CompiledQuery,
    EmptyListError,
    MalformedTemplateError,
    NamedParameterError,
    StatementBuildError,
    StatementCompiler,
    bind_named,
    expand,
    rebind,
)
from bindquery.execution import (
    ConnectionSettings,
    ExecResult,
    ExecutionError,
    MySqlExecutor,
    ObservabilitySettings,
    PostgresExecutor,
    RetryPolicy,
    SqliteExecutor,
    make_json_event_logger,
)
from bindquery.config import DatabaseSettings, load_settings, open_executor
from bindquery.mapping import ColumnMappingError, NoRowsError
from bindquery.repository import UnexpectedRowCountError, UserRecord, UserRepository

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ListNode",
    "NamedStatementNode",
    "ScalarNode",
    "StatementNode",
    "coerce_argument",
    "ArityMismatchError",
    "BindStyle",
    "CompiledQuery",
    "EmptyListError",
    "MalformedTemplateError",
    "NamedParameterError",
    "StatementBuildError",
    "StatementCompiler",
    "bind_named",
    "expand",
    "rebind",
    "ConnectionSettings",
    "ExecResult",
    "ExecutionError",
    "MySqlExecutor",
    "ObservabilitySettings",
    "PostgresExecutor",
    "RetryPolicy",
    "SqliteExecutor",
    "make_json_event_logger",
    "DatabaseSettings",
    "load_settings",
    "open_executor",
    "ColumnMappingError",
    "NoRowsError",
    "UnexpectedRowCountError",
    "UserRecord",
    "UserRepository",
]
