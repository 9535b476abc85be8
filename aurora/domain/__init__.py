"""Domain layer - Business rules and entities"""

from .exceptions.base import (
    BadRequestError,
    DomainError,
    ErrorCode,
    ImportFailedError,
    InvalidLocaleError,
    MissingFieldsError,
    NotConfiguredError,
    NotFoundError,
    UnauthorizedError,
    UpstreamError,
    ValidationError,
)

__all__ = [
    "ErrorCode",
    "DomainError",
    "BadRequestError",
    "MissingFieldsError",
    "ValidationError",
    "ImportFailedError",
    "InvalidLocaleError",
    "UnauthorizedError",
    "NotFoundError",
    "NotConfiguredError",
    "UpstreamError",
]
