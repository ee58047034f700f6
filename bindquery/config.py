import os
from dataclasses import dataclass
from typing import Any
from urllib.parse import unquote, urlparse

from dotenv import load_dotenv

from bindquery.execution.base import Executor
from bindquery.execution.mysql import MySqlExecutor
from bindquery.execution.postgres import PostgresExecutor
from bindquery.execution.sqlite import SqliteExecutor

# ==================================================
# Config
# ==================================================

DEFAULT_DATABASE_URL = "sqlite:///bindquery.sqlite"
DEFAULT_USERS_TABLE = "users"


@dataclass(frozen=True)
class DatabaseSettings:
    """
    Where to connect and which table the user repository works on.
    """

    url: str = DEFAULT_DATABASE_URL
    connect_timeout_seconds: float | None = None
    table: str = DEFAULT_USERS_TABLE


def load_settings(env_file: str | None = None) -> DatabaseSettings:
    """
    Reads settings from the environment, after loading a .env file if one exists.
    Variables already set in the environment win over the file.
    """
    load_dotenv(env_file)
    timeout = os.getenv("BINDQUERY_CONNECT_TIMEOUT")
    return DatabaseSettings(
        url=os.getenv("BINDQUERY_DATABASE_URL", DEFAULT_DATABASE_URL),
        connect_timeout_seconds=float(timeout) if timeout else None,
        table=os.getenv("BINDQUERY_USERS_TABLE", DEFAULT_USERS_TABLE),
    )


def sqlite_path_from_url(url: str) -> str:
    """
    sqlite:///relative.db -> relative.db, sqlite:////abs/path.db -> /abs/path.db

    In-memory databases are rejected: the executor opens a connection per
    statement, so each one would see an empty database. Pass a fixed
    connection= to SqliteExecutor for those instead.
    """
    parsed = urlparse(url)
    if parsed.scheme != "sqlite":
        raise ValueError("SQLite connection string must start with sqlite://")
    path = unquote(parsed.path)
    if path.startswith("//"):
        return path[1:]
    path = path.lstrip("/")
    if path in ("", ":memory:"):
        raise ValueError("SQLite connection string must name a database file, e.g. sqlite:///app.db")
    return path


def open_executor(settings: DatabaseSettings, **kwargs: Any) -> Executor:
    """
    Builds the executor matching the URL scheme. Extra keyword arguments
    (e.g. observability_settings) are passed through to the executor.
    """
    scheme = urlparse(settings.url).scheme.lower()
    timeout = settings.connect_timeout_seconds
    if scheme == "sqlite":
        return SqliteExecutor(
            connection_info=sqlite_path_from_url(settings.url),
            connect_timeout_seconds=timeout,
            **kwargs,
        )
    if scheme in {"mysql", "mariadb"}:
        return MySqlExecutor(connection_info=settings.url, connect_timeout_seconds=timeout, **kwargs)
    if scheme in {"postgres", "postgresql"}:
        return PostgresExecutor(connection_info=settings.url, connect_timeout_seconds=timeout, **kwargs)
    raise ValueError(f"Unsupported database URL scheme {scheme!r}.")
