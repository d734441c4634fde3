"""
Response envelope shared by every endpoint: {"message": ..., "data": ...}.
"""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    message: str
    data: T
