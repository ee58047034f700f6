from dataclasses import fields, is_dataclass
from typing import Any, Sequence, TypeVar

T = TypeVar("T")

# ==================================================
# Row Mapping
# ==================================================


class NoRowsError(LookupError):
    """
    A single-row query returned no rows.
    """


class ColumnMappingError(Exception):
    """
    A result column has no matching field on the target record type.
    """

    def __init__(self, column: str, record_type: type) -> None:
        self.column = column
        self.record_type = record_type
        super().__init__(f"missing destination name {column!r} in {record_type.__name__}")


def column_names(description: Sequence[Sequence[Any]] | None) -> list[str]:
    """
    Column names from a DB-API cursor description, lower-cased.
    """
    if not description:
        return []
    return [str(column[0]).lower() for column in description]


def map_row(columns: Sequence[str], row: Sequence[Any], record_type: type[T]) -> T:
    """
    Builds one record from a row, matching columns to dataclass fields by name.
    Columns must all map to a field; fields absent from the result keep their defaults.
    """
    if not is_dataclass(record_type):
        raise TypeError(f"{record_type.__name__} is not a dataclass.")
    known = {field.name for field in fields(record_type)}
    values: dict[str, Any] = {}
    for column, value in zip(columns, row):
        if column not in known:
            raise ColumnMappingError(column, record_type)
        values[column] = value
    return record_type(**values)


def map_rows(columns: Sequence[str], rows: Sequence[Sequence[Any]], record_type: type[T]) -> list[T]:
    return [map_row(columns, row, record_type) for row in rows]
