from bindquery import (
    __version__,
    BindStyle,
    CompiledQuery,
    ConnectionSettings,
    EmptyListError,
    ListNode,
    ObservabilitySettings,
    PostgresExecutor,
    RetryPolicy,
    StatementBuildError,
    UserRepository,
    expand,
    load_settings,
    rebind,
)
from bindquery.compiler import CompiledQuery as CompiledQueryFromCompiler
from bindquery.compiler import build_ordered_in_query
from bindquery.execution import ExecResult, IntegrityConstraintError


def test_root_public_api_exports_are_importable() -> None:
    assert __version__
    assert PostgresExecutor is not None
    assert RetryPolicy is not None
    assert ConnectionSettings is not None
    assert ObservabilitySettings is not None
    assert UserRepository is not None
    assert load_settings is not None
    assert CompiledQuery is not None


def test_compiler_exports_include_compiled_query() -> None:
    assert CompiledQueryFromCompiler is CompiledQuery
    assert build_ordered_in_query is not None


def test_build_errors_share_a_base() -> None:
    assert issubclass(EmptyListError, StatementBuildError)
    assert issubclass(StatementBuildError, ValueError)


def test_root_exports_compose() -> None:
    compiled = expand("select * from t where id in (?)", [ListNode(values=(1, 2))])

    assert rebind(compiled.sql, BindStyle.DOLLAR) == "select * from t where id in ($1,$2)"


def test_execution_exports() -> None:
    assert ExecResult().rows_affected == -1
    assert IntegrityConstraintError is not None
