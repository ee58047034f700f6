import logging

from bindquery.abstract_syntax_tree.models import StatementNode
from bindquery.execution.observability import (
    ObservabilitySettings,
    QueryObservation,
    make_json_event_logger,
)
from bindquery.execution.sqlite import SqliteExecutor


def log_query(event: QueryObservation) -> None:
    print(
        f"[{event.dialect}] op={event.operation} success={event.succeeded} "
        f"duration_ms={event.duration_ms:.2f} params={event.param_count} rows={event.rows_affected}"
    )


logging.basicConfig(level=logging.INFO)

with SqliteExecutor(
    connection_info="bindquery-sample.sqlite",
    observability_settings=ObservabilitySettings(
        query_observer=log_query,
        event_observer=make_json_event_logger(logger=logging.getLogger("bindquery.events")),
        metadata={"service": "bindquery-sample"},
    ),
) as executor:
    executor.execute_raw("CREATE TABLE IF NOT EXISTS users (id INTEGER PRIMARY KEY, name TEXT)")
    executor.execute(StatementNode("INSERT OR REPLACE INTO users (id, name) VALUES (?, ?)", [1, "Alice"]))
    print(executor.fetch_all(StatementNode("SELECT id, name FROM users WHERE id IN (?)", [[1, 2, 3]])))
