from typing import Any, Awaitable, Callable, Iterable, Optional, Tuple

import structlog

from errors import (
    ForbiddenFieldUpdate,
    InvalidPath,
    InvalidPayload,
    MethodNotAllowed,
    MissingId,
    NotFound,
    QueryExecutionError,
)
from repositories.raw_sql import RawSqlRepository, StatementFailed
from schemas import (
    CreatedMeta,
    CreatedResponse,
    DeletedMeta,
    DeletedResponse,
    QueryResult,
    UpdatedMeta,
    UpdatedResponse,
)
from services.identifiers import sanitize_identifier
from services.query_builder import (
    Statement,
    build_delete,
    build_insert,
    build_select,
    build_update,
    parse_read_request,
)

logger = structlog.get_logger(__name__)

BodyLoader = Callable[[], Awaitable[Any]]


def split_path(path: str) -> Tuple[str, Optional[str]]:
    """Return (table, id) from a ``/{prefix}/{table}/{id?}`` path."""
    parts = [part for part in path.split("/") if part]
    if len(parts) < 2:
        raise InvalidPath()
    record_id = parts[2] if len(parts) > 2 else None
    return parts[1], record_id


def require_object(data: Any, empty_message: str) -> dict:
    if not isinstance(data, dict):
        raise InvalidPayload("Invalid data format: Expected object")
    if len(data) == 0:
        raise InvalidPayload(empty_message)
    return data


class RestService:
    """Maps a REST verb on ``/{prefix}/{table}/{id?}`` to a single SQL statement."""

    def __init__(self, repository: RawSqlRepository):
        self.repository = repository

    async def handle(
        self,
        method: str,
        path: str,
        query_items: Iterable[Tuple[str, str]],
        load_body: BodyLoader,
    ):
        table, record_id = split_path(path)
        method = method.upper()

        if method == "GET":
            return await self.read(table, record_id, query_items)
        if method == "POST":
            return await self.create(table, await load_body())
        if method in ("PUT", "PATCH"):
            if not record_id:
                raise MissingId("ID is required for updates")
            return await self.update(table, record_id, load_body)
        if method == "DELETE":
            if not record_id:
                raise MissingId("ID is required for deletion")
            return await self.delete(table, record_id)
        raise MethodNotAllowed()

    async def read(
        self,
        table: str,
        record_id: Optional[str],
        query_items: Iterable[Tuple[str, str]],
    ) -> QueryResult:
        request = parse_read_request(table, record_id, query_items)
        statement = build_select(request)
        return await self._execute(statement, "Failed to fetch records")

    async def create(self, table: str, data: Any) -> CreatedResponse:
        data = require_object(data, "No data provided")
        statement = build_insert(table, data)
        result = await self._execute(statement, "Failed to create record")
        return CreatedResponse(data=data, meta=CreatedMeta(success=result.success))

    async def update(self, table: str, record_id: str, load_body: BodyLoader) -> UpdatedResponse:
        data = require_object(await load_body(), "No data provided for update")
        # The primary key is immutable through this route. Keys are compared after
        # sanitizing, and case-insensitively since SQL column names are.
        if any(sanitize_identifier(key).lower() == "id" for key in data):
            raise ForbiddenFieldUpdate()
        statement = build_update(table, data, record_id)
        result = await self._execute(statement, "Failed to update record")
        return UpdatedResponse(
            data=data,
            meta=UpdatedMeta(success=result.success, changes=result.meta.changes),
        )

    async def delete(self, table: str, record_id: str) -> DeletedResponse:
        statement = build_delete(table, record_id)
        result = await self._execute(statement, "Failed to delete record")
        if result.meta.changes == 0:
            raise NotFound()
        return DeletedResponse(meta=DeletedMeta(changes=result.meta.changes))

    async def _execute(self, statement: Statement, failure_message: str) -> QueryResult:
        try:
            return await self.repository.execute(statement.sql, statement.params)
        except StatementFailed as exc:
            logger.warning("rest.query_failed", sql=statement.sql, error=exc.message)
            raise QueryExecutionError(failure_message, details=exc.message)
