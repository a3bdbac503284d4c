"""
Controller for the generic table routes.
Every table is reachable at /rest/{table}/{id?} without per-table code.
"""

from fastapi import APIRouter, Depends, Request, Response

from api.dependencies import get_raw_sql_repository, read_json_body, require_auth
from repositories.raw_sql import RawSqlRepository
from schemas import CreatedResponse, ErrorResponse
from services.rest import RestService

router = APIRouter(
    prefix="/rest",
    tags=["REST"],
    dependencies=[Depends(require_auth)],
    responses={
        status: {"model": ErrorResponse}
        for status in (400, 401, 404, 405, 429)
    },
)

# Every standard verb is routed here so auth and rate limiting run before the
# service answers the unsupported ones with 405.
REST_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS", "TRACE"]


def get_rest_service(repository: RawSqlRepository = Depends(get_raw_sql_repository)) -> RestService:
    return RestService(repository)


@router.api_route("", methods=REST_METHODS)
@router.api_route("/{path:path}", methods=REST_METHODS)
async def handle_rest(
    request: Request,
    response: Response,
    service: RestService = Depends(get_rest_service),
):
    result = await service.handle(
        request.method,
        request.url.path,
        request.query_params.multi_items(),
        lambda: read_json_body(request),
    )
    if isinstance(result, CreatedResponse):
        response.status_code = 201
    return result
