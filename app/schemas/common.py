"""Response envelopes shared by all endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Body for endpoints without a payload."""

    status: int = Field(..., description="HTTP status code echoed in the body.")
    message: str = Field(..., description="Human-readable outcome.")


class ApiResponse(MessageResponse):
    """Body for endpoints that return data."""

    data: Any = Field(None, description="Endpoint payload.")
