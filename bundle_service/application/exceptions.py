"""
Core business exceptions for the bundle service.

This module defines a hierarchy of custom exceptions to allow for granular
error handling and clear separation of failure domains. Every error carries
a `status_category` that the HTTP boundary maps to a response status.
"""


class BundleServiceError(Exception):
    """Base exception for all component-specific errors."""

    status_category = "internal"

    @property
    def message(self) -> str:
        return str(self)


# --- Configuration Errors ---

class ConfigurationError(BundleServiceError):
    """Raised for errors related to application configuration."""
    pass


# --- Input Errors ---

class InputError(BundleServiceError):
    """Base class for rejected user input. Never retried."""

    status_category = "bad_request"


class MissingFileError(InputError):
    """Raised when an upload request carries no file part."""
    pass


class MissingFilenameError(InputError):
    """Raised when the uploaded part has no filename."""
    pass


class InvalidBundleNameError(InputError):
    """Raised when a caller-supplied name is unsafe to use as a path."""
    pass


class UnsupportedExtensionError(InputError):
    """Raised when the filename extension is not allowed."""

    status_category = "unsupported_media"


class UnsupportedContentTypeError(InputError):
    """Raised when the declared content type is not allowed."""

    status_category = "unsupported_media"


class BadSignatureError(InputError):
    """Raised when the leading bytes match none of the magic numbers."""

    status_category = "unsupported_media"


class PayloadTooLargeError(InputError):
    """Raised as soon as a stream exceeds the allowed size."""

    status_category = "payload_too_large"


# --- Infrastructure Errors ---

class InfrastructureError(BundleServiceError):
    """Base class for errors related to external systems (storage, cache)."""
    pass


class StorageError(InfrastructureError):
    """Raised when the object or relational store fails."""
    pass


class ObjectNotFoundError(StorageError):
    """Raised when a requested object does not exist in the object store."""

    status_category = "not_found"


class CacheError(InfrastructureError):
    """Raised when the key-value cache cannot be read or written."""
    pass


class StreamReadError(InfrastructureError):
    """Raised when an incoming upload stream fails mid-read."""
    pass


# --- Domain/Business Logic Errors ---

class DomainError(BundleServiceError):
    """Base class for errors related to business logic failures."""
    pass


class BundleNotFoundError(DomainError):
    """Raised when no archive exists for a bundle name in any format."""

    status_category = "not_found"


class ExtractionError(DomainError):
    """Raised when an archive cannot be opened or unpacked as a whole."""
    pass
