"""Custom exceptions for gym-records."""


class GymRecordsError(Exception):
    """Base class for all gym-records errors."""

    pass


class NotFoundError(GymRecordsError):
    """Raised when a requested resource is not found."""

    pass


class UnsupportedFormatError(GymRecordsError):
    """Raised when an export is requested in an unknown format."""

    pass


class UnsupportedImportFormatError(GymRecordsError):
    """Raised when an import file cannot be decoded (e.g. CSV)."""

    pass


class ValidationError(GymRecordsError):
    """Raised when an import payload fails structural validation.

    The individual defects are kept in ``errors`` so callers can surface
    them one by one.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Validation failed")


class ExportFailedError(GymRecordsError):
    """Raised when an export cannot be produced."""

    pass


class BackupNotFoundError(NotFoundError):
    """Raised when a restore targets a backup key that does not exist."""

    pass


class BackupFailedError(GymRecordsError):
    """Raised when a backup snapshot cannot be created or persisted."""

    pass


class StorageError(GymRecordsError):
    """Raised when the key-value store cannot be read or written."""

    pass
