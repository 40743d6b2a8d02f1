# Infrastructure Persistence Package
from .sqlite_store import SqliteWordStore

__all__ = ["SqliteWordStore"]
