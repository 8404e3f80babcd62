"""
Atomic string transforms used by the sanitization pipeline.

Every transform is total: it accepts any value, returns non-string values
unchanged, and never raises. Each one targets a single downstream context
(HTML, SQL string literals, file paths, HTTP headers, shell arguments).

Regular expressions in this module run against attacker-controlled input, so
each is written to keep backtracking bounded. Where a pattern could otherwise
rescan the tail of the string from every candidate start (an opening ``<``
with no closing ``>``), the substitution is confined to the prefix ending at
the last closing token.
"""

import re
from typing import Any, Callable, Dict, NamedTuple

HTML_ESCAPE_TABLE = str.maketrans({
    '&': '&amp;',
    '<': '&lt;',
    '>': '&gt;',
    '"': '&quot;',
    "'": '&#x27;',
    '/': '&#x2F;',
})

# MySQL-style string literal escaping.
SQL_ESCAPE_TABLE = str.maketrans({
    '\0': '\\0',
    '\n': '\\n',
    '\r': '\\r',
    '\x1a': '\\Z',
    '\\': '\\\\',
    "'": "\\'",
    '"': '\\"',
})

SHELL_METACHARS = re.compile(r'[;&|$`\\<>()!#*?\[\]{}~\n\r]')

CRLF_PATTERN = re.compile(r'\r\n|\n\r|\r|\n')

TAG_PATTERN = re.compile(r'<[^>]*>')

SCRIPT_BLOCK_PATTERN = re.compile(
    r'<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>',
    re.IGNORECASE
)
SCRIPT_CLOSE_PATTERN = re.compile(r'</script>', re.IGNORECASE)

# Anchored at the start of a whitespace run and at a word boundary so that a
# long run of spaces or a long word is scanned once, not once per character.
QUOTED_EVENT_HANDLER_PATTERN = re.compile(
    r'(?<!\s)\s*\bon\w+\s*=\s*["\'][^"\']*["\']',
    re.IGNORECASE
)
UNQUOTED_EVENT_HANDLER_PATTERN = re.compile(
    r'(?<!\s)\s*\bon\w+\s*=\s*[^\s>]*',
    re.IGNORECASE
)

DOTDOT_SLASH_PATTERN = re.compile(r'\.\./+')
SLASH_DOTDOT_PATTERN = re.compile(r'/+\.\.(/|$)')
LEADING_DOTDOT_PATTERN = re.compile(r'^\.\./?')

# Applied once, in this order. Backslashes are already normalized to '/', so
# '%2e%2e/' also covers the '%2e%2e\' spelling.
ENCODED_TRAVERSAL_PATTERNS = (
    re.compile(r'%2e%2e%2f', re.IGNORECASE),
    re.compile(r'%2e%2e/', re.IGNORECASE),
    re.compile(r'\.\.%2f', re.IGNORECASE),
    re.compile(r'%2e%2e%5c', re.IGNORECASE),
)


def trim(value: Any) -> Any:
    """Remove leading and trailing whitespace."""
    if not isinstance(value, str):
        return value
    return value.strip()


def remove_crlf(value: Any) -> Any:
    """
    Remove CR/LF sequences to prevent HTTP header and log line injection.

    The result never contains '\\r' or '\\n'.
    """
    if not isinstance(value, str):
        return value
    return CRLF_PATTERN.sub('', value)


def block_path_traversal(value: Any) -> Any:
    """
    Strip file path traversal sequences.

    Backslashes are normalized to forward slashes, literal '../' sequences are
    removed from the start, middle and end of the string until none remain,
    then a single case-insensitive pass removes the common percent-encoded
    traversal tokens.

    Only single-encoded tokens are caught. A double-encoded sequence such as
    '%252e%252e%252f', or tokens that overlap so that removing one assembles
    another ('a..%2..%2ff' becomes 'a..%2f'), survive the single pass. Callers
    that decode their input more than once must reapply this transform after
    each decode.
    """
    if not isinstance(value, str):
        return value

    result = value.replace('\\', '/')

    previous = None
    while result != previous:
        previous = result
        result = DOTDOT_SLASH_PATTERN.sub('', result)
        result = SLASH_DOTDOT_PATTERN.sub(r'\1', result)
        result = LEADING_DOTDOT_PATTERN.sub('', result)

    for pattern in ENCODED_TRAVERSAL_PATTERNS:
        result = pattern.sub('', result)

    return result


def remove_dangerous_patterns(value: Any) -> Any:
    """
    Remove script blocks and inline event handler attributes.

    Script blocks are matched case-insensitively up to the first closing tag.
    Event handlers (onclick=, onerror=, ...) are removed with quoted values
    first, then with unquoted values. A handler name must start a word: text
    glued to a preceding letter, digit or underscore (``x_onclick=1``,
    ``noonx=1``) is not an event handler and is kept.
    """
    if not isinstance(value, str):
        return value

    last_close = None
    for last_close in SCRIPT_CLOSE_PATTERN.finditer(value):
        pass
    if last_close is not None:
        end = last_close.end()
        value = SCRIPT_BLOCK_PATTERN.sub('', value[:end]) + value[end:]

    value = QUOTED_EVENT_HANDLER_PATTERN.sub('', value)
    return UNQUOTED_EVENT_HANDLER_PATTERN.sub('', value)


def strip_html_tags(value: Any) -> Any:
    """Remove anything that looks like a tag. Malformed markup is not parsed."""
    if not isinstance(value, str):
        return value
    end = value.rfind('>')
    if end == -1:
        return value
    return TAG_PATTERN.sub('', value[:end + 1]) + value[end + 1:]


def escape_sql(value: Any) -> Any:
    """
    Backslash-escape characters that are special inside SQL string literals.

    Parameterized queries remain the primary defense; this is for the rare
    dynamic value that has to be embedded in a literal.
    """
    if not isinstance(value, str):
        return value
    return value.translate(SQL_ESCAPE_TABLE)


def escape_shell(value: Any) -> Any:
    """Backslash-escape shell metacharacters."""
    if not isinstance(value, str):
        return value
    return SHELL_METACHARS.sub(lambda match: '\\' + match.group(0), value)


def escape_html(value: Any) -> Any:
    """
    Replace HTML special characters with entities.

    Not idempotent: escaping already escaped text encodes the ampersands
    again ('&' -> '&amp;' -> '&amp;amp;').
    """
    if not isinstance(value, str):
        return value
    return value.translate(HTML_ESCAPE_TABLE)


class TransformStep(NamedTuple):
    """A named, pure string transform."""

    name: str
    func: Callable[[Any], Any]

    def __call__(self, value: Any) -> Any:
        return self.func(value)


TRANSFORMS: Dict[str, TransformStep] = {
    step.name: step
    for step in (
        TransformStep('trim', trim),
        TransformStep('remove_crlf', remove_crlf),
        TransformStep('block_path_traversal', block_path_traversal),
        TransformStep('remove_dangerous', remove_dangerous_patterns),
        TransformStep('strip_tags', strip_html_tags),
        TransformStep('escape_sql', escape_sql),
        TransformStep('escape_shell', escape_shell),
        TransformStep('escape_html', escape_html),
    )
}
