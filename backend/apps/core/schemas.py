"""
Core schemas - shared Pydantic models for API responses.
"""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    reason: str = Field(..., description="Stable machine-readable reason code")
    detail: str = Field(..., description="Human-readable error message")

    model_config = {
        "json_schema_extra": {
            "example": {
                "reason": "double_booking",
                "detail": "This time is already taken for the selected staff member.",
            }
        }
    }
