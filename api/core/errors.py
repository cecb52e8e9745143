"""
Failure kinds raised by the storage layer and the song-info client.

Handlers catch `SongLibraryError` and translate it to an HTTP status; the
message is for logs only and is never sent to the caller.
"""

from __future__ import annotations


class SongLibraryError(RuntimeError):
    pass


class InvalidArgument(SongLibraryError):
    pass


class ValidationFailure(SongLibraryError):
    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


class QueryFailure(SongLibraryError):
    pass


class ScanFailure(SongLibraryError):
    pass


class DataIntegrityFailure(SongLibraryError):
    pass


class NotFound(SongLibraryError):
    pass


class TimeoutFailure(SongLibraryError):
    pass


# Song-info (enrichment) call failures.
class TransportFailure(SongLibraryError):
    pass


class RemoteFailure(SongLibraryError):
    def __init__(self, status_code: int, status: str) -> None:
        super().__init__(f"song info request failed: {status}")
        self.status_code = status_code
        self.status = status


class DecodeFailure(SongLibraryError):
    pass
