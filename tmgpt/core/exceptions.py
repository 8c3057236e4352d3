"""Exception hierarchy for threat-model-gpt.

All errors raised by the program inherit from BaseError and carry a stable
error code, a category, and a details dict suitable for structured logging.
"""

from enum import Enum
from typing import Any, Optional


class ErrorCategory(str, Enum):
    """Error categories for classification and logging."""

    CONFIGURATION = "configuration"
    EXTERNAL_SERVICE = "external_service"


class BaseError(Exception):
    """Base exception for all threat-model-gpt errors.

    Attributes:
        message: Human-readable error message
        error_code: Application-specific error code
        category: Error category for classification
        details: Additional context (dict)
        retryable: Whether the operation can be retried
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        category: ErrorCategory,
        details: Optional[dict[str, Any]] = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.category = category
        self.details = details or {}
        self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        """Convert to a flat dict for logs and printed reports."""
        return {
            "code": self.error_code,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
            "details": self.details,
        }


class ConfigurationError(BaseError):
    """Required settings are missing or invalid."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            category=ErrorCategory.CONFIGURATION,
            **kwargs,
        )


class ExternalServiceError(BaseError):
    """A remote service (vision, completion, repository) failed.

    Args:
        service_name: Name of the external service ("OCR", "LLM", "REPO")
        error_type: Type of error ("timeout", "unavailable", "http_error",
            "bad_response", "job_failed")
        details: Additional error context
    """

    def __init__(
        self,
        service_name: str,
        error_type: str,
        message: Optional[str] = None,
        **kwargs,
    ):
        additional_details = kwargs.pop("details", {})
        additional_details.update(
            {
                "service": service_name,
                "error_type": error_type,
            }
        )
        super().__init__(
            message=message or f"{service_name} service {error_type}",
            error_code=f"{service_name.upper()}_{error_type.upper()}",
            category=ErrorCategory.EXTERNAL_SERVICE,
            retryable=kwargs.pop("retryable", error_type in {"timeout", "unavailable"}),
            details=additional_details,
            **kwargs,
        )


class OcrJobFailedError(ExternalServiceError):
    """The OCR job reached the ``failed`` state."""

    def __init__(self, operation_id: str, details: Optional[dict[str, Any]] = None):
        extra = dict(details or {})
        extra["operation_id"] = operation_id
        super().__init__(
            service_name="OCR",
            error_type="job_failed",
            message=f"OCR job {operation_id} failed",
            details=extra,
        )


class OcrTimeoutError(ExternalServiceError):
    """The OCR job did not finish within the configured poll budget."""

    def __init__(self, operation_id: str, polls: int, last_status: str):
        super().__init__(
            service_name="OCR",
            error_type="timeout",
            message=(
                f"OCR job {operation_id} still '{last_status}' after {polls} status checks"
            ),
            details={
                "operation_id": operation_id,
                "polls": polls,
                "last_status": last_status,
            },
        )
