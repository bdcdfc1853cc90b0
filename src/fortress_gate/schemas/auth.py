"""Authentication-related Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    """Operator login payload."""

    password: str = Field(..., strict=True, description="Operator password")

    model_config = ConfigDict(extra="ignore")


class LoginResponse(BaseModel):
    """Returned after a successful login or logout."""

    success: bool = Field(True, description="Always true; failures use an error payload")


class SessionStatus(BaseModel):
    """Result of probing the caller's session cookie."""

    authenticated: bool = Field(..., description="True if the session cookie verifies")


class ErrorResponse(BaseModel):
    """Error payload shared by every failing gateway route."""

    error: str = Field(..., description="Generic, human-readable error message")
    detail: str | None = Field(None, description="Transport failure reason (502 only)")
