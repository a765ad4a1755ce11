"""Shared Pydantic schemas: camelCase wire models and the response envelopes."""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class ApiResponse(CamelModel, Generic[T]):
    status_code: int = 200
    success: bool = True
    message: str = "Success"
    data: T | None = None

    @model_validator(mode="after")
    def _derive_success(self):
        self.success = self.status_code < 400
        return self


class ErrorResponse(CamelModel):
    status_code: int
    success: bool = False
    message: str
    errors: list[Any] = []
    data: None = None
