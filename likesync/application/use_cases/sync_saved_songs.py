"""Mirror the user's liked songs into a playlist.

The library is the source of truth. Each run reads both collections in full,
diffs them by track id and applies the difference to the playlist, so a run
interrupted halfway is repaired by the next one.
"""

import asyncio

from attrs import define, field

from likesync.application.services import PlaylistMutationExecutor
from likesync.application.utilities import collect
from likesync.config import get_logger
from likesync.domain.entities import DiffResult, TrackCollection
from likesync.domain.interfaces import SyncLogAPI, TrackCollectionAPI
from likesync.domain.workflows import diff

logger = get_logger(__name__)


@define(frozen=True, slots=True)
class SyncSavedSongsCommand:
    """Command for syncing liked songs into a playlist."""

    playlist_id: str


@define(frozen=True, slots=True)
class SyncSavedSongsResult:
    """Outcome of one sync run."""

    library: TrackCollection
    playlist: TrackCollection
    changes: DiffResult

    @property
    def summary(self) -> str:
        return (
            f"{len(self.library)} liked song(s), "
            f"{len(self.changes.added)} added, {len(self.changes.removed)} removed"
        )


@define(slots=True)
class SyncSavedSongsUseCase:
    """Use case for the library -> playlist sync.

    The steps are public so the CLI can report progress between them;
    `execute` runs them in order.

    Attributes:
        collections: Paged read access to the library and playlists
        executor: Applies the diff to the playlist
        sync_log: Optional collaborator receiving the diff and final library
        page_item_delay: Throttle between paginated items, in seconds
    """

    collections: TrackCollectionAPI
    executor: PlaylistMutationExecutor
    sync_log: SyncLogAPI | None = None
    page_item_delay: float = field(default=0.0)

    async def execute(self, command: SyncSavedSongsCommand) -> SyncSavedSongsResult:
        library, playlist = await self.read_collections(command.playlist_id)
        changes = await self.reconcile(command.playlist_id, library, playlist)
        await self.record(library, changes)
        return SyncSavedSongsResult(library=library, playlist=playlist, changes=changes)

    async def read_collections(
        self, playlist_id: str
    ) -> tuple[TrackCollection, TrackCollection]:
        """Read the library and the playlist concurrently."""
        library, playlist = await asyncio.gather(
            self._read_library(), self._read_playlist(playlist_id)
        )
        logger.info(f"Read {len(library)} liked song(s) and {len(playlist)} playlist track(s)")
        return library, playlist

    async def reconcile(
        self,
        playlist_id: str,
        library: TrackCollection,
        playlist: TrackCollection,
    ) -> DiffResult:
        """Diff the collections and apply the result to the playlist."""
        changes = diff(library, playlist)
        if not changes.has_changes:
            logger.info("Playlist already mirrors the library")
            return changes

        await self.executor.apply(playlist_id, changes.added, changes.removed)
        return changes

    async def record(self, library: TrackCollection, changes: DiffResult) -> None:
        """Hand the outcome to the sync log, when one is configured."""
        if self.sync_log is None:
            return
        await self.sync_log.append_added(changes.added)
        await self.sync_log.append_removed(changes.removed)
        await self.sync_log.replace_current(library)

    async def _read_library(self) -> TrackCollection:
        first_page = await self.collections.get_saved_tracks_page()
        return await collect(
            first_page, self.collections.get_next_page, item_delay=self.page_item_delay
        )

    async def _read_playlist(self, playlist_id: str) -> TrackCollection:
        first_page = await self.collections.get_playlist_page(playlist_id)
        return await collect(
            first_page, self.collections.get_next_page, item_delay=self.page_item_delay
        )
