from typing import List, Generic, TypeVar, Dict
from pydantic import BaseModel

T = TypeVar("T")


# Paginated response wrapper: used by all list endpoints
class PaginatedResponse(BaseModel, Generic[T]):
    data: List[T]
    total: int
    page: int
    limit: int
    total_pages: int


# Bulk ticket operations: each id is processed on its own
class BulkOperationResult(BaseModel):
    succeeded: int
    skipped: int
    errors: Dict[str, str] = {}  # ticket id -> error code

