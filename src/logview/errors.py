"""Exception hierarchy shared by the retrieval pipeline and the web layer."""

from __future__ import annotations


class LogViewError(Exception):
    """Base class for every failure the application reports to callers."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(LogViewError):
    """A log record, extraction directory or file does not exist."""

    status_code = 404


class InvalidInputError(LogViewError):
    """Malformed identifier, missing field or a path escaping its root."""

    status_code = 400


class RemoteError(LogViewError):
    """The remote log service could not be reached or answered with an error."""

    status_code = 502


class RemoteNotFoundError(RemoteError):
    """The remote service has no archive for the identifier (or it expired)."""

    status_code = 404


class ArchiveInvalidError(LogViewError):
    status_code = 422


class ExtractError(LogViewError):
    """Extraction aborted; ``entry`` names the archive member that failed."""

    status_code = 500

    def __init__(self, message: str, *, entry: str | None = None) -> None:
        super().__init__(message)
        self.entry = entry


class ReadFailure(LogViewError):
    status_code = 422


class FileTooLargeError(ReadFailure):
    status_code = 413

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(
            f"File too large ({size / (1024 * 1024):.2f} MB), "
            f"exceeds limit ({limit / (1024 * 1024):.2f} MB)"
        )
        self.size = size
        self.limit = limit


class UnreadableFileError(ReadFailure):
    pass


class StorageError(LogViewError):
    """The record store failed; fatal for the request only."""

    status_code = 500
