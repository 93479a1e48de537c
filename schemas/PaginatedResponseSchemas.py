from typing import List, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar('T')


class PaginatedResponse(BaseModel, Generic[T]):
    """List endpoints return one page in `data` and the unpaged row count in `total`."""
    data: List[T]
    total: int


class MessageResponse(BaseModel):
    message: str
