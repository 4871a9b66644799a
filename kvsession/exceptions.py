"""Exceptions raised by the session store and its collaborators."""

from typing import List


class ConfigurationError(RuntimeError):
    """Raised when a required parameter is missing or malformed."""


class SessionStoreError(RuntimeError):
    """Base class for codec and storage failures."""


class BackendConnectionError(SessionStoreError):
    """The key-value backend could not be reached."""


class CookieDecodeError(SessionStoreError):
    """A token is malformed, forged, expired, or bound to another name."""


class MultiDecodeError(CookieDecodeError):
    """None of the configured codecs could decode a token."""

    def __init__(self, message: str, errors: List[Exception]) -> None:
        """Keep the error raised by each codec, in codec order."""
        super(MultiDecodeError, self).__init__(message)
        self.errors = errors


class EncodingError(SessionStoreError):
    """A value could not be encoded."""


class StorageReadError(SessionStoreError):
    """Failed to read a record from the key-value backend."""


class RecordMissing(StorageReadError):
    """No record exists for the requested session ID."""


class StorageWriteError(SessionStoreError):
    """Failed to write (or delete) a record in the key-value backend."""
