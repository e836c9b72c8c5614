"""
Uniform result envelope returned by every external operation.

Callers branch on ``status`` and, for errors, on ``code``; ``data`` carries the
operation's payload when it succeeded.
"""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.exceptions import DomainException


class ResultEnvelope(BaseModel):
    """Standard result for lifecycle and notification operations."""

    status: Literal["success", "error"] = Field(description="Outcome of the operation")
    message: str = Field(description="Human-readable message")
    code: Optional[str] = Field(default=None, description="Error code for programmatic handling")
    data: Optional[Dict[str, Any]] = Field(default=None, description="Operation payload")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "error",
                "message": "Booking not found or not in expected state",
                "code": "STATE_CONFLICT",
                "data": None,
            }
        }
    )

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @classmethod
    def success(cls, message: str, data: Optional[Dict[str, Any]] = None) -> "ResultEnvelope":
        return cls(status="success", message=message, data=data)

    @classmethod
    def from_exception(cls, exc: DomainException) -> "ResultEnvelope":
        return cls(
            status="error",
            message=exc.message,
            code=exc.code,
            data={"details": exc.details} if exc.details else None,
        )
