# app/schemas/common.py

from typing import Generic, Optional, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Envelope shared by every endpoint: {success, data?, message?, code?}."""
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None
    code: Optional[str] = None


def ok(data=None, message: Optional[str] = None) -> dict:
    return {"success": True, "data": data, "message": message}
