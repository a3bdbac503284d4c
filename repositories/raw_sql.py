import time
from typing import Any, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from schemas import QueryMeta, QueryResult


class StatementFailed(Exception):
    """Any failure while running a statement, carrying the driver's message."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class RawSqlRepository:
    """Executes positional-parameter SQL straight through the DB-API driver."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def execute(self, sql: str, params: Sequence[Any] | None = None) -> QueryResult:
        started = time.perf_counter()
        try:
            conn = await self.session.connection()
            # exec_driver_sql skips SQLAlchemy's bind processing, so `?` reaches the driver as-is.
            result = await conn.exec_driver_sql(sql, tuple(params) if params else None)
            if result.returns_rows:
                rows = [dict(row) for row in result.mappings().all()]
                changes = 0
                last_row_id = None
            else:
                rows = []
                changes = max(result.rowcount, 0)
                last_row_id = result.lastrowid
            await self.session.commit()
        except Exception as exc:
            await self.session.rollback()
            # Drivers raise unwrapped errors too (sqlite's OverflowError for out-of-range ints).
            # SQLAlchemy's own wrapper embeds bound values, so keep only the driver message.
            raise StatementFailed(str(getattr(exc, "orig", None) or exc)) from exc

        return QueryResult(
            results=rows,
            success=True,
            meta=QueryMeta(
                changes=changes,
                last_row_id=last_row_id,
                rows_read=len(rows),
                duration=round((time.perf_counter() - started) * 1000, 3),
            ),
        )
