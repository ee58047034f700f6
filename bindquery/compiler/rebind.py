from enum import Enum

from bindquery.compiler.scanner import PLACEHOLDER, placeholder_positions

# ==================================================
# Placeholder Rebinding
# ==================================================


class BindStyle(str, Enum):
    """
    Placeholder syntax expected by a driver.
    """

    QMARK = "qmark"
    FORMAT = "format"
    DOLLAR = "dollar"
    NUMERIC = "numeric"
    AT = "at"


_DIALECT_STYLES: dict[str, BindStyle] = {
    "sqlite": BindStyle.QMARK,
    "mysql": BindStyle.FORMAT,
    "mariadb": BindStyle.FORMAT,
    "postgres": BindStyle.FORMAT,
    "postgresql": BindStyle.FORMAT,
    "oracle": BindStyle.NUMERIC,
    "mssql": BindStyle.AT,
    "sqlserver": BindStyle.AT,
}


def bind_style_for(dialect: str) -> BindStyle:
    try:
        return _DIALECT_STYLES[dialect.strip().lower()]
    except KeyError:
        raise ValueError(f"No bind style registered for dialect {dialect!r}.") from None


def _render(style: BindStyle, ordinal: int) -> str:
    if style is BindStyle.QMARK:
        return PLACEHOLDER
    if style is BindStyle.FORMAT:
        return "%s"
    if style is BindStyle.DOLLAR:
        return f"${ordinal}"
    if style is BindStyle.NUMERIC:
        return f":{ordinal}"
    return f"@p{ordinal}"


def _literal(text: str, escape_percent: bool) -> str:
    return text.replace("%", "%%") if escape_percent else text


def rebind(
    sql: str,
    style: BindStyle,
    *,
    escape_percent: bool | None = None,
    backslash_escapes: bool = False,
) -> str:
    """
    Rewrites every generic '?' placeholder outside quoted sections and comments
    into the given style, numbering from 1 in left-to-right order.

    Input is generic SQL, where '%' is always a literal. For FORMAT every '%'
    around the placeholders is doubled, so 'A%' and 'a % 2' reach a printf-style
    driver (psycopg) as 'A%%' and 'a %% 2'. escape_percent overrides that
    default for drivers that only substitute '%s' tokens.

    A string with no generic placeholders left is returned unchanged: it is
    executed without parameters, so the driver never parses its '%'. Rebinding
    an already rebound statement is therefore a no-op in every style.
    """
    style = BindStyle(style)
    positions = placeholder_positions(sql, backslash_escapes)
    if style is BindStyle.QMARK or not positions:
        return sql
    if escape_percent is None:
        escape_percent = style is BindStyle.FORMAT

    parts: list[str] = []
    cursor = 0
    for ordinal, offset in enumerate(positions, start=1):
        parts.append(_literal(sql[cursor:offset], escape_percent))
        parts.append(_render(style, ordinal))
        cursor = offset + len(PLACEHOLDER)
    parts.append(_literal(sql[cursor:], escape_percent))
    return "".join(parts)
