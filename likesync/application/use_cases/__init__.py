"""Application use cases - orchestrate sync operations."""

from .archive_playlist import (
    ArchivePlaylistCommand,
    ArchivePlaylistResult,
    ArchivePlaylistUseCase,
)
from .sync_saved_songs import (
    SyncSavedSongsCommand,
    SyncSavedSongsResult,
    SyncSavedSongsUseCase,
)

__all__ = [
    "ArchivePlaylistCommand",
    "ArchivePlaylistResult",
    "ArchivePlaylistUseCase",
    "SyncSavedSongsCommand",
    "SyncSavedSongsResult",
    "SyncSavedSongsUseCase",
]
