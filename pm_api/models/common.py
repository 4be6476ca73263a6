from typing import Any, Generic, List, Optional, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel):
    code: int = 200
    message: str = "Success"
    data: Optional[Any] = None


class PagedResponse(BaseModel, Generic[T]):
    items: List[T] = []
    page: int = 0
    size: int = 10
    total_elements: int = 0
    total_pages: int = 0


def success(data: Any = None, message: str = "Success", code: int = 200) -> ApiResponse:
    return ApiResponse(code=code, message=message, data=data)


def paged(items: List[Any], page: int, size: int, total: int) -> PagedResponse:
    pages = (total + size - 1) // size if size else 0
    return PagedResponse(items=items, page=page, size=size, total_elements=total, total_pages=pages)
