"""
Pydantic schemas for registration responses.
Field aliases keep the camelCase wire format the web client expects.
"""

from pydantic import BaseModel, ConfigDict, Field


class RegistrationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    unique_code: str = Field(..., alias="uniqueCode")
    events: list[str]
    amount: int
    has_submission_events: bool = Field(..., alias="hasSubmissionEvents")


class ErrorResponse(BaseModel):
    error: str


class DependencyErrorResponse(BaseModel):
    error: str = "Registration failed."
    detail: str
    reason: str
