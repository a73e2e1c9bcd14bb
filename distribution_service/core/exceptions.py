"""
Custom exceptions for the distribution service.
"""
from typing import Optional


class DistributionException(Exception):
    """Base exception for every error raised by the service."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None,
        original_error: Optional[Exception] = None
    ):
        self.message = message
        self.details = details or {}
        self.original_error = original_error
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class ValidationError(DistributionException):
    """Malformed input (missing organization, negative amount, ...)."""
    pass


class NotFoundError(DistributionException):
    """Resource not found."""

    def __init__(
        self,
        resource: str,
        identifier: Optional[str] = None
    ):
        message = f"{resource} not found"
        details = {}
        if identifier:
            details["id"] = identifier
        self.resource = resource
        self.identifier = identifier
        super().__init__(message, details)


class DuplicateCodeError(DistributionException):
    """Generated fare code already exists in the store."""

    def __init__(self, code: str):
        self.code = code
        super().__init__(
            "Fare code already exists",
            {"fare_code": code},
        )


class CodeSequenceExhaustedError(DistributionException):
    """The fixed-width fare code sequence has no free values left."""
    pass


class StoreError(DistributionException):
    """Persistence layer failure (Supabase unavailable, bad response)."""
    pass


class EnrichmentError(DistributionException):
    """External directory lookup failed. Never reaches API callers."""

    def __init__(
        self,
        message: str,
        service: str,
        details: Optional[dict] = None,
        original_error: Optional[Exception] = None
    ):
        self.service = service
        super().__init__(message, details, original_error)


class ConfigurationError(DistributionException):
    """Invalid or missing configuration."""
    pass
