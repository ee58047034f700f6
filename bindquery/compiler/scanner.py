from bindquery.compiler.errors import MalformedTemplateError

# ==================================================
# Template Scanner
# ==================================================

PLACEHOLDER = "?"
QUOTE_CHARS = ("'", '"', "`")
LINE_COMMENT = "--"
BLOCK_COMMENT_OPEN = "/*"
BLOCK_COMMENT_CLOSE = "*/"


def _quoted_end(template: str, start: int, backslash_escapes: bool) -> int:
    quote = template[start]
    i = start + 1
    while i < len(template):
        char = template[i]
        if backslash_escapes and char == "\\" and quote != "`":
            i += 2
            continue
        if char == quote:
            if i + 1 < len(template) and template[i + 1] == quote:
                i += 2
                continue
            return i + 1
        i += 1
    raise MalformedTemplateError(f"unterminated {quote} quote starting at offset {start}")


def quoted_mask(template: str, backslash_escapes: bool = False) -> list[bool]:
    """
    Returns one flag per character of the template, True for characters that sit
    inside a quoted section or a comment (delimiters included).

    A doubled quote inside a section is an escaped quote and does not close it.
    '-- ...' runs to the end of the line and '/* ... */' to its closing marker.
    With backslash_escapes (MySQL string syntax) a backslash inside '...' or
    "..." escapes the character after it.
    """
    mask = [False] * len(template)
    i = 0
    while i < len(template):
        if template[i] in QUOTE_CHARS:
            end = _quoted_end(template, i, backslash_escapes)
        elif template.startswith(LINE_COMMENT, i):
            newline = template.find("\n", i)
            end = len(template) if newline == -1 else newline
        elif template.startswith(BLOCK_COMMENT_OPEN, i):
            close = template.find(BLOCK_COMMENT_CLOSE, i + len(BLOCK_COMMENT_OPEN))
            if close == -1:
                raise MalformedTemplateError(f"unterminated comment starting at offset {i}")
            end = close + len(BLOCK_COMMENT_CLOSE)
        else:
            i += 1
            continue
        mask[i:end] = [True] * (end - i)
        i = end
    return mask


def placeholder_positions(template: str, backslash_escapes: bool = False) -> list[int]:
    """
    Offsets of the generic '?' placeholders, skipping quoted sections and comments.
    """
    mask = quoted_mask(template, backslash_escapes)
    return [i for i, char in enumerate(template) if char == PLACEHOLDER and not mask[i]]


def count_placeholders(template: str, backslash_escapes: bool = False) -> int:
    return len(placeholder_positions(template, backslash_escapes))
