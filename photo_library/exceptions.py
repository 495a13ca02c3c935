"""
Custom exception hierarchy for the photo library.

Per-file problems during a batch (CopyError, InvalidArgument on an
unsupported file) are collected into the batch result. Everything else
propagates to the caller.
"""


class PhotoLibraryError(Exception):
    """Base exception for all photo library errors."""
    pass


class CopyError(PhotoLibraryError):
    """Raised when a source file cannot be read or copied into the library."""
    pass


class NotFound(PhotoLibraryError):
    """Raised when a photo path or album id does not exist in the store."""
    pass


class InvalidArgument(PhotoLibraryError):
    """Raised for blank album names, empty path lists and similar bad input."""
    pass


class StoreUnavailable(PhotoLibraryError):
    """Raised when the database cannot be opened, locked or written."""
    pass


class ExtractionDegraded(UserWarning):
    """Warning category: no reliable capture time, wall-clock time was used."""
    pass
