from fastapi import APIRouter, Depends, Request

from api.dependencies import get_raw_sql_repository, read_json_body, require_auth
from repositories.raw_sql import RawSqlRepository
from schemas import ErrorResponse, QueryResult
from services.query import QueryService

router = APIRouter(
    tags=["Query"],
    dependencies=[Depends(require_auth)],
    responses={
        status: {"model": ErrorResponse}
        for status in (400, 401, 403, 429, 500)
    },
)


def get_query_service(repository: RawSqlRepository = Depends(get_raw_sql_repository)) -> QueryService:
    return QueryService(repository)


@router.post("/query", response_model=QueryResult)
async def run_query(
    request: Request,
    service: QueryService = Depends(get_query_service),
):
    """
    Execute a single caller supplied statement with positional parameters.
    """
    return await service.run(await read_json_body(request))
