from typing import Any
from urllib.parse import unquote, urlparse

from bindquery.execution.dbapi import DbApiExecutor

# ==================================================
# MySQL Executor
# ==================================================


class MySqlExecutor(DbApiExecutor):
    """
    An executor for MySQL using the 'mysql-connector-python' library.
    connection_info is a mysql:// URL or a dict of connect() keyword arguments.
    """

    dialect = "mysql"

    _mysql_connector: Any = None

    def _get_mysql_connector(self) -> Any:
        if self._mysql_connector is None:
            try:
                import importlib

                self._mysql_connector = importlib.import_module("mysql.connector")
            except ImportError:
                raise ImportError(
                    "The 'mysql-connector-python' library is required for MySqlExecutor. "
                    "Install it with 'pip install bindquery[mysql]'."
                )
        return self._mysql_connector

    def _parse_connection_info(self) -> dict[str, Any]:
        if isinstance(self.connection_info, dict):
            return dict(self.connection_info)
        if not isinstance(self.connection_info, str):
            raise ValueError("connection_info must be a connection string or a dict.")

        parsed = urlparse(self.connection_info)
        if parsed.scheme not in {"mysql", "mariadb"}:
            raise ValueError("MySQL connection string must start with mysql://")

        config = {
            "user": unquote(parsed.username) if parsed.username else None,
            "password": unquote(parsed.password) if parsed.password else None,
            "host": parsed.hostname or "127.0.0.1",
            "port": parsed.port or 3306,
            "database": parsed.path.lstrip("/") if parsed.path else None,
            "charset": "utf8mb4",
        }
        return {key: value for key, value in config.items() if value is not None}

    def _connect(self) -> Any:
        mysql_connector = self._get_mysql_connector()
        kwargs = self._parse_connection_info()
        timeout = self.connection_settings.connect_timeout_seconds
        if timeout is not None:
            kwargs["connection_timeout"] = timeout
        return mysql_connector.connect(**kwargs)

    def _begin_transaction(self, conn: Any, isolation_level: str | None) -> None:
        if isolation_level:
            self._run_statement(conn, f"SET TRANSACTION ISOLATION LEVEL {isolation_level}")
        if hasattr(conn, "start_transaction"):
            conn.start_transaction()
            return
        self._run_statement(conn, "START TRANSACTION")
