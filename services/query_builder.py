"""Parameterized statement builders for the generic table API.

Identifiers go through ``sanitize_identifier`` into the statement text; values
only ever land in the bound parameter list.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from errors import InvalidPayload
from services.identifiers import quote_table, sanitize_identifier

RESERVED_PARAMS = frozenset({"sort_by", "order", "limit", "offset"})

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


@dataclass
class Statement:
    sql: str
    params: List[Any] = field(default_factory=list)


@dataclass
class ReadRequest:
    """Parsed description of a GET against a table."""
    table: str
    record_id: Optional[str] = None
    filters: List[Tuple[str, str]] = field(default_factory=list)
    sort_by: Optional[str] = None
    descending: bool = False
    limit: Optional[int] = None
    offset: Optional[int] = None


def parse_int(name: str, value: str) -> int:
    match = _LEADING_INT.match(value)
    if not match:
        raise InvalidPayload(f"Invalid value for '{name}': expected an integer")
    return int(match.group(1))


def parse_read_request(
    table: str,
    record_id: Optional[str],
    query_items: Iterable[Tuple[str, str]],
) -> ReadRequest:
    """Split query-string pairs into equality filters and sort/page directives.

    The first occurrence of a directive wins and empty directives are ignored.
    Every occurrence of any other key becomes its own filter, in order.
    """
    request = ReadRequest(table=table, record_id=record_id)
    directives: dict = {}
    for key, value in query_items:
        if key in RESERVED_PARAMS:
            directives.setdefault(key, value)
            continue
        request.filters.append((key, value))

    if directives.get("sort_by"):
        request.sort_by = directives["sort_by"]
        request.descending = directives.get("order", "").upper() == "DESC"

    if directives.get("limit"):
        request.limit = parse_int("limit", directives["limit"])
        # offset is only honored alongside limit.
        if directives.get("offset"):
            request.offset = parse_int("offset", directives["offset"])

    return request


class SelectQuery:
    """Accumulates conditions, sort and paging for a single SELECT."""

    def __init__(self, table: str):
        self.table = quote_table(table)
        self._conditions: List[str] = []
        self._params: List[Any] = []
        self._order_by: Optional[str] = None
        self._limit: Optional[int] = None
        self._offset: Optional[int] = None

    def add_condition(self, column: str, value: Any) -> "SelectQuery":
        self._conditions.append(f"{sanitize_identifier(column)} = ?")
        self._params.append(value)
        return self

    def set_sort(self, column: str, descending: bool = False) -> "SelectQuery":
        direction = "DESC" if descending else "ASC"
        self._order_by = f"{sanitize_identifier(column)} {direction}"
        return self

    def set_page(self, limit: Optional[int], offset: Optional[int] = None) -> "SelectQuery":
        self._limit = limit
        self._offset = offset if limit is not None else None
        return self

    def build(self) -> Statement:
        sql = f"SELECT * FROM {self.table}"
        params = list(self._params)

        if self._conditions:
            sql += f" WHERE {' AND '.join(self._conditions)}"
        if self._order_by:
            sql += f" ORDER BY {self._order_by}"
        if self._limit is not None:
            sql += " LIMIT ?"
            params.append(self._limit)
            if self._offset is not None:
                sql += " OFFSET ?"
                params.append(self._offset)

        return Statement(sql, params)


def build_select(request: ReadRequest) -> Statement:
    query = SelectQuery(request.table)
    if request.record_id:
        query.add_condition("id", request.record_id)
    for column, value in request.filters:
        query.add_condition(column, value)
    if request.sort_by:
        query.set_sort(request.sort_by, request.descending)
    query.set_page(request.limit, request.offset)
    return query.build()


def build_insert(table: str, data: Mapping[str, Any]) -> Statement:
    columns = [sanitize_identifier(key) for key in data]
    placeholders = ", ".join("?" for _ in columns)
    sql = f"INSERT INTO {quote_table(table)} ({', '.join(columns)}) VALUES ({placeholders})"
    return Statement(sql, list(data.values()))


def build_update(table: str, data: Mapping[str, Any], record_id: str) -> Statement:
    assignments = ", ".join(f"{sanitize_identifier(key)} = ?" for key in data)
    sql = f"UPDATE {quote_table(table)} SET {assignments} WHERE id = ?"
    return Statement(sql, [*data.values(), record_id])


def build_delete(table: str, record_id: str) -> Statement:
    return Statement(f"DELETE FROM {quote_table(table)} WHERE id = ?", [record_id])
