"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Caller supplied a missing or malformed value"""

    pass


class InvalidTransactionDataError(DomainException):
    """Transaction data is malformed or cannot be stored"""

    pass


class JobPayloadError(DomainException):
    """Job payload is missing a required field"""

    pass


class UnknownJobTypeError(DomainException):
    """No handler is registered for the job type"""

    pass


class FileStorageError(DomainException):
    """Source file could not be read from storage"""

    pass


class SourceFileNotFoundError(FileStorageError):
    """Source file does not exist at the given locator"""

    pass
