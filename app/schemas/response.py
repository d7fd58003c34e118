from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")

class ResponseModel(BaseModel, Generic[T]):
    status: int = Field(200)
    message: str = Field("Success")
    data: Optional[T] = Field(None)

    @classmethod
    def success(cls, data: Optional[T], status: int = 200) -> "ResponseModel[T]":
        return cls(status=status, message="Success", data=data)
