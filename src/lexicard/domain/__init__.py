# Domain Package
from .errors import (
    ConcurrentSyncError,
    ConflictError,
    LexicardError,
    NotFoundError,
    TransportError,
    ValidationError,
)
from .models import Dataset, ReviewEvent, ReviewResult, SessionEvent, Word
from .ports import RemoteContentStore, WordStore

__all__ = [
    "LexicardError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "TransportError",
    "ConcurrentSyncError",
    "Word",
    "ReviewResult",
    "ReviewEvent",
    "SessionEvent",
    "Dataset",
    "WordStore",
    "RemoteContentStore",
]
