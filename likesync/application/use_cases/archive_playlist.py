"""Archive a generated playlist (Discover Weekly, Release Radar) into a backup."""

import asyncio

from attrs import define

from likesync.application.services import PlaylistMutationExecutor
from likesync.application.utilities import collect
from likesync.config import get_logger
from likesync.domain.entities import TrackCollection
from likesync.domain.interfaces import TrackCollectionAPI
from likesync.domain.workflows import missing_from

logger = get_logger(__name__)


@define(frozen=True, slots=True)
class ArchivePlaylistCommand:
    """Command for copying a playlist's new tracks into its backup."""

    source_id: str
    backup_id: str


@define(frozen=True, slots=True)
class ArchivePlaylistResult:
    source: TrackCollection
    copied: TrackCollection

    @property
    def summary(self) -> str:
        return f"{len(self.copied)} of {len(self.source)} track(s) archived"


@define(slots=True)
class ArchivePlaylistUseCase:
    """Appends source tracks missing from the backup. Never removes anything."""

    collections: TrackCollectionAPI
    executor: PlaylistMutationExecutor
    page_item_delay: float = 0.0

    async def execute(self, command: ArchivePlaylistCommand) -> ArchivePlaylistResult:
        source, backup = await asyncio.gather(
            self._read(command.source_id), self._read(command.backup_id)
        )
        missing = missing_from(source, backup)
        logger.info(f"{len(missing)} of {len(source)} source track(s) missing from backup")

        if missing:
            await self.executor.append(command.backup_id, missing)

        return ArchivePlaylistResult(source=source, copied=missing)

    async def _read(self, playlist_id: str) -> TrackCollection:
        first_page = await self.collections.get_playlist_page(playlist_id)
        return await collect(
            first_page, self.collections.get_next_page, item_delay=self.page_item_delay
        )
