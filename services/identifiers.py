"""Turns user supplied table and column names into safe SQL identifiers.

This is the only way a name from the request path, query string or body
reaches the text of a statement. Values never do; they are always bound.
"""

import re

from errors import InvalidIdentifier

_DISALLOWED = re.compile(r"[^A-Za-z0-9_]")


def sanitize_identifier(raw: str) -> str:
    """Strip everything outside ``[A-Za-z0-9_]`` and reject what is left if unusable."""
    if not raw or not isinstance(raw, str):
        raise InvalidIdentifier(details="Identifier must be a non-empty string")

    sanitized = _DISALLOWED.sub("", raw)
    if not sanitized or sanitized[0].isdigit():
        raise InvalidIdentifier(details="Identifier must start with a letter or underscore")
    return sanitized


def quote_table(raw: str) -> str:
    """Sanitize a table name and wrap it in backticks so reserved words still work."""
    return f"`{sanitize_identifier(raw)}`"
