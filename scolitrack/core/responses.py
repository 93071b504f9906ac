from typing import Any, Dict, Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class PageMeta(BaseModel):
    total: int
    page: int
    limit: int
    pages: int


class ApiResponse(BaseModel, Generic[T]):
    """Response envelope shared by every endpoint"""
    success: bool = True
    feedback: Optional[str] = None
    data: Optional[T] = None
    meta: Optional[PageMeta] = None


def error_content(feedback: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    content: Dict[str, Any] = {"success": False, "feedback": feedback}
    if data is not None:
        content["data"] = data
    return content
