"""Custom exceptions for the music library."""


class MusicLibraryError(Exception):
    """Base exception for music library errors."""
    pass


class MalformedIdentifierError(MusicLibraryError):
    """Raised when an entry identifier does not decode to a relative path."""
    pass


class PathEscapeError(MusicLibraryError):
    """Raised when a decoded path resolves outside the library root."""
    pass


class FileOperationError(MusicLibraryError):
    """Raised when file operations fail."""
    pass


class EntryNotFoundError(FileOperationError):
    """Raised when the file behind an identifier does not exist."""
    pass


class PermissionDeniedError(FileOperationError):
    """Raised when the filesystem refuses an operation on an entry."""
    pass


class WriteFailedError(MusicLibraryError):
    """Raised when tags cannot be written back to an audio file."""
    pass


class MetadataError(MusicLibraryError):
    """Raised when there's an error extracting or processing metadata."""
    pass


class ScanIOError(MusicLibraryError):
    """Raised when the library root cannot be scanned at all."""
    pass


class ConfigurationError(MusicLibraryError):
    """Raised when there's an error in configuration."""
    pass
