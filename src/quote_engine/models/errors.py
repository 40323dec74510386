"""Standard error codes for the pricing and quote-versioning engine.

All services raise QuoteEngineError with one of these codes. The HTTP
layer converts it to a ServiceError so callers always receive a typed
result with a stable code, never a raw exception.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationError


class ErrorCode(str, Enum):
    """Stable error codes returned to callers."""

    # Pricing resolution (ERR_PRICE_001-ERR_PRICE_005)
    INVALID_DURATION = "ERR_PRICE_001"
    GROUP_SIZE_OUT_OF_RANGE = "ERR_PRICE_002"
    NO_PRICING_FOR_PERIOD = "ERR_PRICE_003"
    NO_PRICING_FOR_COMBINATION = "ERR_PRICE_004"
    PRICE_ON_REQUEST = "ERR_PRICE_005"

    # Packages (ERR_PKG_001-ERR_PKG_002)
    PACKAGE_NOT_FOUND = "ERR_PKG_001"
    PACKAGE_INACTIVE = "ERR_PKG_002"

    # Quotes (ERR_QUOTE_001-ERR_QUOTE_003)
    QUOTE_NOT_FOUND = "ERR_QUOTE_001"
    NO_LINKED_PACKAGE = "ERR_QUOTE_002"
    INVALID_STATUS_TRANSITION = "ERR_QUOTE_003"

    # Versioning (ERR_VERSION_001-ERR_VERSION_002)
    VERSION_CONFLICT = "ERR_VERSION_001"
    VERSION_NOT_FOUND = "ERR_VERSION_002"

    # Access and input
    UNAUTHORIZED = "ERR_AUTH_001"
    VALIDATION_ERROR = "ERR_VALIDATION"

    INTERNAL_ERROR = "ERR_INTERNAL"


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INVALID_DURATION: "The requested number of nights is not offered by this package",
    ErrorCode.GROUP_SIZE_OUT_OF_RANGE: "No group size tier covers the requested number of people",
    ErrorCode.NO_PRICING_FOR_PERIOD: "No pricing period covers the arrival date",
    ErrorCode.NO_PRICING_FOR_COMBINATION: "No price is published for this tier and duration",
    ErrorCode.PRICE_ON_REQUEST: "Pricing for these parameters is only available on request",
    ErrorCode.PACKAGE_NOT_FOUND: "Package not found",
    ErrorCode.PACKAGE_INACTIVE: "Package is not active",
    ErrorCode.QUOTE_NOT_FOUND: "Quote not found",
    ErrorCode.NO_LINKED_PACKAGE: "This quote is not linked to a package",
    ErrorCode.INVALID_STATUS_TRANSITION: "The quote cannot move to the requested status",
    ErrorCode.VERSION_CONFLICT: "The record was modified by someone else",
    ErrorCode.VERSION_NOT_FOUND: "The requested version does not exist",
    ErrorCode.UNAUTHORIZED: "Administrator access is required for this action",
    ErrorCode.VALIDATION_ERROR: "The request data is invalid",
    ErrorCode.INTERNAL_ERROR: "An unexpected error occurred",
}

# Recovery suggestions for callers
ERROR_RECOVERY: dict[ErrorCode, str] = {
    ErrorCode.INVALID_DURATION: "Choose one of the package's duration options",
    ErrorCode.GROUP_SIZE_OUT_OF_RANGE: "Adjust the group size or price the quote manually",
    ErrorCode.NO_PRICING_FOR_PERIOD: "Choose another arrival date or price the quote manually",
    ErrorCode.NO_PRICING_FOR_COMBINATION: "Price the quote manually or complete the pricing matrix",
    ErrorCode.PRICE_ON_REQUEST: "Collect pricing from the supplier and enter it manually",
    ErrorCode.PACKAGE_NOT_FOUND: "Verify the package ID or unlink the package",
    ErrorCode.PACKAGE_INACTIVE: "Reactivate the package or choose another one",
    ErrorCode.QUOTE_NOT_FOUND: "Verify the quote ID",
    ErrorCode.NO_LINKED_PACKAGE: "Link a package before recalculating",
    ErrorCode.INVALID_STATUS_TRANSITION: "Check the quote's current status",
    ErrorCode.VERSION_CONFLICT: "Reload the latest version and try again",
    ErrorCode.VERSION_NOT_FOUND: "List the version history to find valid versions",
    ErrorCode.UNAUTHORIZED: "Sign in with an administrator account",
    ErrorCode.VALIDATION_ERROR: "Check the request data and try again",
    ErrorCode.INTERNAL_ERROR: "Please try again later or contact support",
}

# Codes a caller may resolve by re-fetching and retrying
RETRYABLE_ERRORS: set[ErrorCode] = {ErrorCode.VERSION_CONFLICT}


def is_retryable(code: ErrorCode) -> bool:
    """Check whether an error is recoverable by re-fetching and retrying."""
    return code in RETRYABLE_ERRORS


class ServiceError(BaseModel):
    """Standard error result returned to callers.

    Mirrors QuoteEngineError in a serializable shape so the API
    boundary can return it as JSON.
    """

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: ErrorCode
    message: str
    recovery: str
    retryable: bool = False
    details: Optional[dict[str, Any]] = None

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        details: Optional[dict[str, Any]] = None,
    ) -> "ServiceError":
        """Create a ServiceError from an error code.

        Args:
            code: The error code
            details: Optional additional context about the error

        Returns:
            A ServiceError with the message and recovery hint for the code.
        """
        return cls(
            error_code=code,
            message=ERROR_MESSAGES[code],
            recovery=ERROR_RECOVERY[code],
            retryable=is_retryable(code),
            details=details,
        )


class QuoteEngineError(Exception):
    """Exception raised by pricing, linking and versioning operations.

    Can be caught and converted to a ServiceError for responses.
    """

    def __init__(
        self,
        code: ErrorCode,
        details: Optional[dict[str, Any]] = None,
    ):
        self.code = code
        self.message = ERROR_MESSAGES[code]
        self.recovery = ERROR_RECOVERY[code]
        self.details = details
        super().__init__(self.message)

    @classmethod
    def from_validation_error(cls, exc: ValidationError) -> "QuoteEngineError":
        """Wrap a pydantic ValidationError as VALIDATION_ERROR."""
        errors = [
            {
                "loc": ".".join(str(part) for part in error["loc"]),
                "msg": error["msg"],
            }
            for error in exc.errors()
        ]
        return cls(ErrorCode.VALIDATION_ERROR, {"errors": errors})

    @property
    def retryable(self) -> bool:
        return is_retryable(self.code)

    def to_service_error(self) -> ServiceError:
        """Convert this exception to a ServiceError for responses."""
        return ServiceError.from_code(self.code, self.details)
