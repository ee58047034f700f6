from __future__ import annotations

from dataclasses import dataclass


# ==================================================
# Normalized Execution Errors
# ==================================================


@dataclass(slots=True)
class ExecutionErrorDetails:
    """
    Structured metadata for normalized execution errors.
    """

    dialect: str
    operation: str
    sqlstate: str | None
    original_message: str
    driver_error: str | None = None


class ExecutionError(Exception):
    """
    Base normalized execution error type. Wraps whatever the driver raised;
    the original is kept on ``original_exception`` and as ``__cause__``.
    """

    def __init__(self, details: ExecutionErrorDetails, original_exception: Exception) -> None:
        self.details = details
        self.original_exception = original_exception
        super().__init__(
            f"[{details.dialect}:{details.operation}] {self.__class__.__name__}: {details.original_message}"
        )


class TransientExecutionError(ExecutionError):
    """
    Base type for errors that are typically retryable.
    """


class DeadlockError(TransientExecutionError):
    pass


class SerializationError(TransientExecutionError):
    pass


class LockTimeoutError(TransientExecutionError):
    pass


class ConnectionTimeoutError(TransientExecutionError):
    pass


class IntegrityConstraintError(ExecutionError):
    pass


class ProgrammingExecutionError(ExecutionError):
    pass


# --------------------------------------------------
# Classification
# --------------------------------------------------

@dataclass(frozen=True)
class _Rule:
    error_type: type[ExecutionError]
    sqlstates: frozenset[str] = frozenset()
    sqlstate_prefixes: frozenset[str] = frozenset()
    driver_errors: frozenset[str] = frozenset()
    fragments: tuple[str, ...] = ()


# First match wins; transient classes are checked before the permanent ones.
_RULES: tuple[_Rule, ...] = (
    _Rule(DeadlockError, sqlstates=frozenset({"40P01", "1213"}), fragments=("deadlock",)),
    _Rule(
        SerializationError,
        sqlstates=frozenset({"40001"}),
        fragments=("serialization failure", "could not serialize"),
    ),
    _Rule(
        LockTimeoutError,
        sqlstates=frozenset({"55P03", "57014", "1205"}),
        fragments=("lock wait timeout", "database is locked", "lock timeout"),
    ),
    _Rule(
        ConnectionTimeoutError,
        fragments=("connection timed out", "timed out", "could not connect", "connection refused"),
    ),
    _Rule(
        IntegrityConstraintError,
        sqlstates=frozenset({"1062", "1451", "1452"}),
        sqlstate_prefixes=frozenset({"23"}),
        driver_errors=frozenset({"IntegrityError"}),
        fragments=("unique constraint", "foreign key constraint", "duplicate key", "duplicate entry"),
    ),
    _Rule(
        ProgrammingExecutionError,
        sqlstates=frozenset({"1064", "1146", "1054"}),
        sqlstate_prefixes=frozenset({"42"}),
        driver_errors=frozenset({"ProgrammingError"}),
        fragments=("syntax error", "no such table", "no such column", "unknown column"),
    ),
)


def _extract_sqlstate(exc: Exception) -> str | None:
    for attribute in ("sqlstate", "pgcode"):
        value = getattr(exc, attribute, None)
        if isinstance(value, str) and value:
            return value.upper()

    errno = getattr(exc, "errno", None)
    if isinstance(errno, int) and errno > 0:
        return str(errno)

    code = getattr(exc, "code", None)
    if isinstance(code, str) and len(code) == 5:
        return code.upper()

    return None


def _matches(rule: _Rule, sqlstate: str | None, driver_error: str, message: str) -> bool:
    if sqlstate is not None:
        if sqlstate in rule.sqlstates or sqlstate[:2] in rule.sqlstate_prefixes:
            return True
    if driver_error in rule.driver_errors:
        return True
    return any(fragment in message for fragment in rule.fragments)


def normalize_execution_error(
    *,
    dialect: str,
    operation: str,
    exc: Exception,
) -> ExecutionError:
    """
    Maps driver exceptions to the normalized execution error taxonomy.
    Already-normalized errors pass through unchanged.
    """
    if isinstance(exc, ExecutionError):
        return exc

    sqlstate = _extract_sqlstate(exc)
    driver_error = type(exc).__name__
    message = str(exc).lower()
    details = ExecutionErrorDetails(
        dialect=dialect,
        operation=operation,
        sqlstate=sqlstate,
        original_message=str(exc),
        driver_error=driver_error,
    )

    for rule in _RULES:
        if _matches(rule, sqlstate, driver_error, message):
            return rule.error_type(details, exc)
    return ExecutionError(details, exc)
