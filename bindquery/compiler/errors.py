from __future__ import annotations


# ==================================================
# Statement Build Errors
# ==================================================


class StatementBuildError(ValueError):
    """
    Base type for errors raised while building a statement.
    Raised before any connection is touched; the caller must fix the template or arguments.
    """


class EmptyListError(StatementBuildError):
    """
    A list argument had no elements and would render as ``IN ()``.
    """

    def __init__(self, position: int) -> None:
        self.position = position
        super().__init__(f"empty list passed for placeholder {position}")


class ArityMismatchError(StatementBuildError):
    """
    The template's placeholder count differs from the number of arguments.
    """

    def __init__(self, expected: int, given: int) -> None:
        self.expected = expected
        self.given = given
        super().__init__(f"template expects {expected} arguments, {given} given")


class MalformedTemplateError(StatementBuildError):
    pass


class NamedParameterError(StatementBuildError):
    """
    A named parameter could not be resolved from the bind source.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"could not find name {name!r} in bind source")
