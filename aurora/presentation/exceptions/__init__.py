"""Presentation layer exceptions"""

from .api_errors import (
    API_VERSION,
    APIError,
    ErrorBody,
    ErrorResponse,
    code_for_status,
    domain_error_to_api_error,
    status_for,
)

__all__ = [
    "API_VERSION",
    "APIError",
    "ErrorBody",
    "ErrorResponse",
    "code_for_status",
    "domain_error_to_api_error",
    "status_for",
]
