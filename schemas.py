from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, StrictStr


class QueryMeta(BaseModel):
    """Execution metadata reported by the database collaborator"""
    changes: int = 0
    last_row_id: Optional[int] = None
    rows_read: int = 0
    duration: float = 0.0


class QueryResult(BaseModel):
    results: List[Dict[str, Any]]
    success: bool
    meta: QueryMeta


class CreatedMeta(BaseModel):
    success: bool


class CreatedResponse(BaseModel):
    message: str = "Resource created successfully"
    data: Dict[str, Any]
    meta: CreatedMeta


class UpdatedMeta(BaseModel):
    success: bool
    changes: int


class UpdatedResponse(BaseModel):
    message: str = "Resource updated successfully"
    data: Dict[str, Any]
    meta: UpdatedMeta


class DeletedMeta(BaseModel):
    changes: int


class DeletedResponse(BaseModel):
    message: str = "Resource deleted successfully"
    meta: DeletedMeta


class RawQueryRequest(BaseModel):
    """Body accepted by POST /query"""
    model_config = ConfigDict(extra="ignore")

    query: StrictStr = Field(min_length=1)
    params: Optional[List[Any]] = None


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
