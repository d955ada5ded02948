"""Response envelopes shared by every router.

Success: ``{"success": true, "message": ..., "data": ...}``
Error:   ``{"success": false, "message": ..., "errors": [...]}``
"""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Standard success response."""

    success: bool = True
    message: str
    data: T | None = None


class ErrorResponse(BaseModel):
    """Standard error response schema.

    All API errors return this format for consistency.
    """

    success: bool = False
    message: str
    errors: list[dict[str, Any]] | None = None
