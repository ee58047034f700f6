from dataclasses import asdict, dataclass, field
import json
import logging
from typing import Any, Callable, Mapping

# ==================================================
# Observability Types
# ==================================================

QueryObserveHook = Callable[["QueryObservation"], None]
EventObserveHook = Callable[["ExecutionEvent"], None]


@dataclass(frozen=True)
class ObservabilitySettings:
    """
    Execution observability hooks shared by every executor.
    """

    query_observer: QueryObserveHook | None = None
    event_observer: EventObserveHook | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class QueryObservation:
    """
    One finished statement: what ran, how long it took, and how it ended.
    """

    dialect: str
    operation: str
    sql: str
    param_count: int
    duration_ms: float
    succeeded: bool
    in_transaction: bool
    metadata: Mapping[str, Any] = field(default_factory=dict)
    rows_affected: int | None = None
    error_type: str | None = None
    error_message: str | None = None


@dataclass(frozen=True)
class ExecutionEvent:
    """
    Structured executor lifecycle event payload.
    """

    timestamp: str
    event: str
    dialect: str
    executor: str
    success: bool
    metadata: Mapping[str, Any] = field(default_factory=dict)
    operation: str | None = None
    query_id: str | None = None
    transaction_id: str | None = None
    savepoint_name: str | None = None
    connection_id: str | None = None
    duration_ms: float | None = None
    retry_attempt: int | None = None
    max_attempts: int | None = None
    backoff_ms: float | None = None
    error_type: str | None = None
    error_message: str | None = None
    retryable: bool | None = None


def execution_event_to_dict(event: ExecutionEvent) -> dict[str, Any]:
    """
    Converts an ExecutionEvent into a JSON-safe dictionary.
    """
    payload = asdict(event)
    payload["metadata"] = dict(event.metadata)
    return payload


def make_json_event_logger(
    *,
    logger: logging.Logger,
    level: int = logging.INFO,
) -> EventObserveHook:
    """
    Builds an EventObserveHook that emits one JSON log line per ExecutionEvent.
    Failed events are logged at WARNING or above.
    """

    def _log_event(event: ExecutionEvent) -> None:
        payload = execution_event_to_dict(event)
        event_level = level if event.success else max(level, logging.WARNING)
        logger.log(event_level, json.dumps(payload, separators=(",", ":"), sort_keys=True, default=str))

    return _log_event


def compose_event_observers(*observers: EventObserveHook) -> EventObserveHook:
    """
    Composes multiple event observers into a single observer.
    """

    def _composed(event: ExecutionEvent) -> None:
        for observer in observers:
            observer(event)

    return _composed
