import re
from collections.abc import Mapping
from typing import Any, Sequence

from bindquery.compiler.compiled_query import CompiledQuery
from bindquery.compiler.errors import EmptyListError, MalformedTemplateError, NamedParameterError
from bindquery.compiler.expansion import expand
from bindquery.compiler.scanner import PLACEHOLDER, count_placeholders, quoted_mask

# ==================================================
# Named Parameters
# ==================================================

_VALUES_KEYWORD = re.compile(r"\bVALUES\b", re.IGNORECASE)


def _is_name_start(char: str) -> bool:
    return char.isalpha() or char == "_"


def _is_name_char(char: str) -> bool:
    return char.isalnum() or char in "_."


def compile_named(template: str, *, backslash_escapes: bool = False) -> tuple[str, list[str]]:
    """
    Replaces ':name' parameters with generic '?' placeholders.

    Returns the rewritten SQL and the parameter names in placeholder order.
    '::' (PostgreSQL casts) and ':=' are left untouched, as is anything quoted
    or commented out.
    """
    mask = quoted_mask(template, backslash_escapes)
    out: list[str] = []
    names: list[str] = []
    i = 0
    length = len(template)
    while i < length:
        char = template[i]
        if mask[i] or char != ":":
            out.append(char)
            i += 1
            continue

        following = template[i + 1] if i + 1 < length else ""
        if following == ":":
            out.append("::")
            i += 2
            continue
        if not _is_name_start(following):
            out.append(char)
            i += 1
            continue

        end = i + 1
        while end < length and _is_name_char(template[end]) and not mask[end]:
            end += 1
        name = template[i + 1:end].rstrip(".")
        end = i + 1 + len(name)
        names.append(name)
        out.append(PLACEHOLDER)
        i = end

    return "".join(out), names


def _resolve(source: Any, name: str) -> Any:
    current = source
    for part in name.split("."):
        if isinstance(current, Mapping):
            if part not in current:
                raise NamedParameterError(name)
            current = current[part]
            continue
        if not hasattr(current, part):
            raise NamedParameterError(name)
        current = getattr(current, part)
    return current


def bind_named(
    template: str,
    source: Mapping[str, Any] | Any,
    *,
    backslash_escapes: bool = False,
) -> CompiledQuery:
    """
    Binds ':name' parameters from a mapping or from the attributes of a record.
    List values expand like positional list arguments, so ':ids' can fill IN (...).
    """
    sql, names = compile_named(template, backslash_escapes=backslash_escapes)
    values = [_resolve(source, name) for name in names]
    return expand(sql, values, backslash_escapes=backslash_escapes)


def _values_group(sql: str, mask: list[bool]) -> tuple[int, int] | None:
    """
    Span of the parenthesized group after the last unquoted VALUES keyword, provided
    only whitespace, comments or a ';' follow it.
    """
    keywords = [match for match in _VALUES_KEYWORD.finditer(sql) if not mask[match.start()]]
    if not keywords:
        return None

    start = keywords[-1].end()
    while start < len(sql) and sql[start].isspace():
        start += 1
    if start >= len(sql) or sql[start] != "(":
        return None

    depth = 0
    for i in range(start, len(sql)):
        if mask[i]:
            continue
        if sql[i] == "(":
            depth += 1
        elif sql[i] == ")":
            depth -= 1
            if depth == 0:
                rest = "".join(char for offset, char in enumerate(sql[i + 1:], i + 1) if not mask[offset])
                return (start, i + 1) if rest.strip() in ("", ";") else None
    return None


def bind_named_batch(
    template: str,
    sources: Sequence[Mapping[str, Any] | Any],
    *,
    backslash_escapes: bool = False,
) -> CompiledQuery:
    """
    Repeats the trailing VALUES (...) group of an insert template once per source.
    """
    if not sources:
        raise EmptyListError(0)

    sql, names = compile_named(template, backslash_escapes=backslash_escapes)
    span = _values_group(sql, quoted_mask(sql, backslash_escapes))
    if span is None:
        raise MalformedTemplateError("batch template must end with a VALUES (...) group")

    start, end = span
    prefix, group, suffix = sql[:start], sql[start:end], sql[end:]
    if count_placeholders(prefix, backslash_escapes) or count_placeholders(suffix, backslash_escapes):
        raise MalformedTemplateError("named parameters are only allowed inside the VALUES group")

    expanded_sql = prefix + ", ".join([group] * len(sources)) + suffix
    args = [_resolve(source, name) for source in sources for name in names]
    return expand(expanded_sql, args, backslash_escapes=backslash_escapes)
