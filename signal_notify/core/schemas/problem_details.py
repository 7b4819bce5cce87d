"""RFC 7807 Problem Details schema for error responses."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ValidationErrorDetail(BaseModel):
    """One failed field in a request validation problem."""

    field: str = Field(description="Dotted location of the invalid value")
    message: str = Field(description="Validation message")
    type: str = Field(description="pydantic error type")
    input: Any | None = Field(default=None, description="Rejected input value")


class ProblemDetails(BaseModel):
    """RFC 7807 Problem Details for HTTP APIs.

    See: https://datatracker.ietf.org/doc/html/rfc7807

    Extension members (``errors``, ``queue_id``, ...) are allowed and
    serialized alongside the standard ones.
    """

    type: str = Field(
        default="about:blank",
        min_length=1,
        max_length=200,
        description="URI reference identifying the problem type",
    )
    title: str = Field(
        min_length=1, max_length=200, description="Short, human-readable summary of the problem"
    )
    status: int = Field(ge=100, le=599, description="HTTP status code")
    detail: str | None = Field(
        default=None,
        max_length=2000,
        description="Human-readable explanation specific to this occurrence",
    )
    instance: str | None = Field(
        default=None,
        max_length=500,
        description="URI reference identifying the specific occurrence",
    )
    errors: list[ValidationErrorDetail] | None = Field(
        default=None,
        description="Field errors for request validation problems",
    )

    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={
            "example": {
                "type": "invalid-queue-state",
                "title": "Conflict",
                "status": 409,
                "detail": "Only failed notifications can be retried",
                "instance": "/api/v1/notifications/admin/queue/0190.../retry",
            }
        },
        str_strip_whitespace=True,
    )
