from bindquery.compiler.compiled_query import CompiledQuery
from bindquery.compiler.expansion import expand
from bindquery.compiler.rebind import BindStyle, bind_style_for, rebind
from bindquery.compiler.named import bind_named, bind_named_batch, compile_named
from bindquery.compiler.batch import (
    build_batch_insert,
    build_in_query,
    build_ordered_in_query,
    order_by_ids_expression,
)
from bindquery.compiler.statement_compiler import StatementCompiler
from bindquery.compiler.errors import (
    StatementBuildError,
    EmptyListError,
    ArityMismatchError,
    MalformedTemplateError,
    NamedParameterError,
)

__all__ = [
    "CompiledQuery",
    "expand",
    "BindStyle",
    "bind_style_for",
    "rebind",
    "bind_named",
    "bind_named_batch",
    "compile_named",
    "build_batch_insert",
    "build_in_query",
    "build_ordered_in_query",
    "order_by_ids_expression",
    "StatementCompiler",
    "StatementBuildError",
    "EmptyListError",
    "ArityMismatchError",
    "MalformedTemplateError",
    "NamedParameterError",
]
