from typing import Any

from pydantic import BaseModel, Field

from mathduel.core.error import DomainErrorCode


class BaseResponse(BaseModel):
    message: str
    data: Any | None = None


class ErrorResponse(BaseModel):
    detail: str
    code: DomainErrorCode
    error_details: dict[str, Any] = Field(default_factory=dict)
