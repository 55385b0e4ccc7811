"""Request/response Pydantic models."""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    error: str
