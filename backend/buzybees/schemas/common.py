"""
Common API response schemas
"""

from typing import Generic, TypeVar, Optional
from pydantic import BaseModel

T = TypeVar("T")


class ErrorDetail(BaseModel):
    """Error detail information"""
    code: str
    message: str
    details: Optional[dict] = None


class ErrorResponse(BaseModel):
    """Standard error response"""
    success: bool = False
    error: ErrorDetail


class MessageResponse(BaseModel):
    """Simple message response"""
    success: bool = True
    message: str


class SingleResponse(BaseModel, Generic[T]):
    """Single item response"""
    success: bool = True
    data: T


class ListResponse(BaseModel, Generic[T]):
    """Non-paginated list response"""
    success: bool = True
    data: list[T]
    count: int
