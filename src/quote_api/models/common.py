"""Shared API request/response models."""

from pydantic import BaseModel, ConfigDict, Field

from quote_engine.models.errors import ErrorCode, ServiceError

__all__ = [
    "ErrorCode",
    "ServiceError",
    "SuccessMessage",
    "VersionedRequest",
]


class VersionedRequest(BaseModel):
    """Base for requests that modify a versioned document.

    expected_version is the version the caller last read. The write fails
    with VERSION_CONFLICT if the stored version has moved on.
    """

    expected_version: int = Field(
        ...,
        ge=1,
        description="Version the change was computed against",
        examples=[3],
    )


class SuccessMessage(BaseModel):
    """Generic success response for operations without data payload."""

    model_config = ConfigDict(strict=True)

    success: bool = True
    message: str = Field(
        default="Operation completed successfully",
        description="Human-readable success message",
    )
