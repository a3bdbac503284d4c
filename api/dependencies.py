from typing import Any, Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from errors import InvalidPayload, RateLimited
from repositories.raw_sql import RawSqlRepository
from services.auth import AuthGate
from services.rate_limit import FixedWindowRateLimiter, client_key


def get_raw_sql_repository(session: AsyncSession = Depends(get_db)) -> RawSqlRepository:
    return RawSqlRepository(session)


def get_rate_limiter(request: Request) -> FixedWindowRateLimiter:
    return request.app.state.rate_limiter


def get_auth_gate(request: Request) -> AuthGate:
    return request.app.state.auth_gate


async def enforce_rate_limit(
    request: Request,
    limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
) -> None:
    status = limiter.hit(client_key(request.headers))
    if not status.allowed:
        raise RateLimited(retry_after=status.retry_after_seconds)


async def require_auth(
    authorization: Optional[str] = Header(default=None),
    gate: AuthGate = Depends(get_auth_gate),
) -> None:
    await gate.verify(authorization)


async def read_json_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        raise InvalidPayload("Invalid JSON body")
