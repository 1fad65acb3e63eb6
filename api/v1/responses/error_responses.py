from typing import Optional
from fastapi import status
from pydantic import BaseModel


class FieldError(BaseModel):
    field: str
    message: str
    type: str


class ValidationErrorResponse(BaseModel):
    success: bool = False
    status_code: int = status.HTTP_422_UNPROCESSABLE_ENTITY
    message: str = "Validation error"
    errors: list[FieldError]


class ErrorResponse(BaseModel):
    success: bool = False
    status_code: int
    message: str
    errors: Optional[list[FieldError]] = None
