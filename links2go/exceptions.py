"""
Error taxonomy for the shortening service.

Each error carries the HTTP status the API layer answers with, so routes
never need to inspect messages to pick a status code.
"""


class ShortenerError(Exception):
    """Base class for all service errors"""

    status_code: int = 500

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__


class InvalidUrlError(ShortenerError):
    """URL is malformed or does not use http/https"""
    status_code = 400


class InvalidFormatError(ShortenerError):
    """Short code does not match the configured alphabet and length"""
    status_code = 400


class AlreadyExistsError(ShortenerError):
    """Short code is already in use"""
    status_code = 400


class InvalidExpiryError(ShortenerError):
    """Expiration must be a positive number of seconds within the supported date range"""
    status_code = 400


class GenerationExhaustedError(ShortenerError):
    """Could not generate a unique short code"""
    status_code = 503


class NotFoundError(ShortenerError):
    """URL not found or inactive"""
    status_code = 404


class ExpiredError(ShortenerError):
    """URL has expired"""
    status_code = 410


class InternalStorageError(ShortenerError):
    """Data store operation failed"""
    status_code = 500


class StoreUnavailableError(ShortenerError):
    """Data store is unreachable"""
    status_code = 503
