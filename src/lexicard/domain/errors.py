"""Error taxonomy shared by every layer.

Persistence errors raised by the store backend are not wrapped; they
propagate unchanged.
"""


class LexicardError(Exception):
    """Base class for errors surfaced to the user verbatim."""


class NotFoundError(LexicardError):
    """A word id or a remote file does not exist."""


class ValidationError(LexicardError):
    """Input is missing required fields, duplicates an existing word, or is malformed."""


class ConflictError(LexicardError):
    """The remote store rejected a write (stale revision token, bad credentials...)."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class TransportError(LexicardError):
    """Network or HTTP failure talking to the remote store."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class ConcurrentSyncError(LexicardError):
    """A sync was requested while another one is still running."""

    def __init__(self, message: str = "Sync already in progress, please wait"):
        super().__init__(message)
