# This project was developed with assistance from AI tools.
"""Problem Details (RFC 7807) body returned by every error handler."""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    type: str = "about:blank"
    title: str
    status: int
    detail: str = ""
    request_id: str = Field(default="", description="Correlation ID, from x-request-id when sent.")
    instance: str = ""
