import re
from typing import Any

import structlog
from pydantic import ValidationError

from errors import DangerousOperation, InternalError, InvalidPayload, MultiStatementRejected
from repositories.raw_sql import RawSqlRepository, StatementFailed
from schemas import QueryResult, RawQueryRequest

logger = structlog.get_logger(__name__)

# Best-effort denylist, not a parser. It misses plenty of destructive forms
# (DELETE without WHERE, DROP INDEX, ...); pair it with a restricted database role.
DANGEROUS_PATTERNS = [
    re.compile(r"\bdrop\s+table\b", re.IGNORECASE),
    re.compile(r"\bdrop\s+database\b", re.IGNORECASE),
    re.compile(r"\btruncate\b", re.IGNORECASE),
    re.compile(r"\balter\s+table\b", re.IGNORECASE),
]


class QueryService:
    """Gateway for caller supplied SQL on POST /query."""

    def __init__(self, repository: RawSqlRepository):
        self.repository = repository

    def parse(self, body: Any) -> RawQueryRequest:
        if not isinstance(body, dict):
            raise InvalidPayload("Valid query string is required")
        try:
            return RawQueryRequest.model_validate(body)
        except ValidationError as exc:
            fields = {str(err["loc"][0]) for err in exc.errors() if err["loc"]}
            if "query" in fields:
                raise InvalidPayload("Valid query string is required")
            raise InvalidPayload("Parameters must be an array")

    def validate(self, sql: str) -> str:
        if any(pattern.search(sql) for pattern in DANGEROUS_PATTERNS):
            raise DangerousOperation()

        # Textual check only: a semicolon inside a string literal counts too.
        statements = [part for part in sql.split(";") if part.strip()]
        if len(statements) > 1:
            raise MultiStatementRejected()

        return sql

    async def run(self, body: Any) -> QueryResult:
        request = self.parse(body)
        try:
            sql = self.validate(request.query)
        except (MultiStatementRejected, DangerousOperation) as exc:
            logger.warning("raw_query.rejected", reason=exc.error)
            raise

        try:
            return await self.repository.execute(sql, request.params or [])
        except StatementFailed:
            # Arbitrary SQL: keep schema details in the log, out of the response.
            logger.exception("raw_query.failed")
            raise InternalError("Internal server error processing query")
