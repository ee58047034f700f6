"""
Walks through every query pattern of the user repository against the database
named by BINDQUERY_DATABASE_URL (a local SQLite file by default).

Run:
    poetry run python examples/main.py
"""

import logging

from bindquery.config import load_settings, open_executor
from bindquery.execution.observability import ObservabilitySettings, make_json_event_logger
from bindquery.mapping import NoRowsError
from bindquery.repository import UnexpectedRowCountError, UserRecord, UserRepository


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    logger = logging.getLogger("bindquery.examples")
    settings = load_settings()

    with open_executor(
        settings,
        observability_settings=ObservabilitySettings(
            event_observer=make_json_event_logger(logger=logging.getLogger("bindquery.events"), level=logging.DEBUG),
        ),
    ) as executor:
        users = UserRepository(executor, table=settings.table)
        users.create_table()

        # Single statements
        first_id = users.insert("Alice", 19)
        second_id = users.insert_named({"name": "Bob", "age": 28})
        third_id = users.insert_named(UserRecord(name="Carol", age=31))
        logger.info("inserted ids %s, %s, %s", first_id, second_id, third_id)

        logger.info("get: %s", users.get(first_id))
        logger.info("after 0: %s", users.list_after(0))
        logger.info("updated rows: %d", users.update_age(first_id, 29))
        logger.info("named query: %s", users.find_by_name("Bob"))
        logger.info("record query: %s", users.find_matching(UserRecord(name="Carol")))

        # Transaction: both updates apply or neither does
        users.set_ages_atomically([first_id, second_id], 2)
        try:
            users.set_ages_atomically([first_id, -1], 99)
        except UnexpectedRowCountError as exc:
            logger.warning("rolled back: %s", exc)

        # Batch inserts
        users.batch_insert([UserRecord(name="xx", age=20), UserRecord(name="xxx", age=20)])
        users.batch_insert_records([UserRecord(name="in1", age=21), UserRecord(name="in2", age=21)])
        users.batch_insert_named([UserRecord(name="named1", age=22), {"name": "named2", "age": 22}])

        # Batch fetch
        ids = [record.id for record in users.list_after(0)][::-1]
        logger.info("by ids: %s", users.query_by_ids(ids))
        logger.info("ordered by ids %s: %s", ids, users.query_and_order_by_ids(ids))

        logger.info("deleted rows: %d", users.delete(third_id))
        try:
            users.get(third_id)
        except NoRowsError:
            logger.info("user %s is gone", third_id)


if __name__ == "__main__":
    main()
