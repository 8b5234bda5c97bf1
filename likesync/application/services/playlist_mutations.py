"""Batch mutation executor for playlist reconciliation.

Applies a DiffResult to the remote playlist with strictly sequential calls:
later head insertions depend on the side effects of earlier ones, so nothing
here runs concurrently.

Insertion strategy: one "insert at position 0" call per track, in the order
given. Fed with tracks sorted by ascending added-at, the playlist ends up
ordered most-recently-liked first. `append` implements the other strategy,
chunked URI lists appended to the end, which keeps each chunk's order as a
contiguous group; archive copies use it.
"""

import asyncio
from collections.abc import Awaitable, Sequence
import math

from attrs import define, field, validators

from likesync.application.utilities import chunked
from likesync.config import SPOTIFY_MAX_BATCH_SIZE, get_logger
from likesync.domain.entities import Track
from likesync.domain.exceptions import PartialApplicationError, TransportError
from likesync.domain.interfaces import PlaylistMutationAPI

logger = get_logger(__name__)

HEAD_POSITION = 0


@define(slots=True)
class _Progress:
    """Counts completed calls so a failure can report what was applied."""

    total: int
    applied: int = 0

    async def run(self, call: Awaitable[None], description: str) -> None:
        try:
            await call
        except TransportError as e:
            if self.applied == 0:
                raise
            raise PartialApplicationError(
                f"{description} failed: {e.message}",
                applied=self.applied,
                total=self.total,
                http_status=e.http_status,
            ) from e
        self.applied += 1


@define(slots=True)
class PlaylistMutationExecutor:
    """Applies insertions and removals to a remote playlist.

    Attributes:
        api: Playlist mutation collaborator
        insert_delay: Minimum spacing in seconds between insertion calls
        batch_size: URIs per removal or append call (API ceiling is 100)
    """

    api: PlaylistMutationAPI
    insert_delay: float = field(default=1.0, validator=validators.ge(0))
    batch_size: int = field(
        default=SPOTIFY_MAX_BATCH_SIZE,
        validator=[validators.ge(1), validators.le(SPOTIFY_MAX_BATCH_SIZE)],
    )

    async def apply(
        self, playlist_id: str, added: Sequence[Track], removed: Sequence[Track]
    ) -> None:
        """Insert `added` at the head one by one, then remove `removed` in chunks.

        A failed call is not retried and aborts every remaining call.

        Raises:
            TransportError: The first call failed; nothing was applied
            PartialApplicationError: A call failed after others succeeded
        """
        removal_calls = math.ceil(len(removed) / self.batch_size)
        progress = _Progress(total=len(added) + removal_calls)

        logger.info(
            f"Applying {len(added)} insertion(s) and {len(removed)} removal(s) "
            f"to playlist {playlist_id}"
        )

        for index, track in enumerate(added):
            await progress.run(
                self._paced(self.api.insert_tracks(playlist_id, [track.uri], HEAD_POSITION)),
                f"Inserting {track.uri}",
            )
            logger.debug(f"Inserted {index + 1}/{len(added)}: {track.uri}")

        for chunk in chunked(list(removed), self.batch_size):
            uris = [track.uri for track in chunk]
            await progress.run(
                self.api.remove_tracks(playlist_id, uris),
                f"Removing {len(uris)} track(s)",
            )
            logger.debug(f"Removed chunk of {len(uris)} track(s)")

        logger.info(f"Playlist {playlist_id} updated with {progress.applied} call(s)")

    async def append(self, playlist_id: str, tracks: Sequence[Track]) -> None:
        """Append tracks to the end of the playlist in chunked calls.

        Raises:
            TransportError: The first call failed; nothing was applied
            PartialApplicationError: A call failed after others succeeded
        """
        progress = _Progress(total=math.ceil(len(tracks) / self.batch_size))

        for chunk in chunked(list(tracks), self.batch_size):
            uris = [track.uri for track in chunk]
            await progress.run(
                self._paced(self.api.insert_tracks(playlist_id, uris, None)),
                f"Appending {len(uris)} track(s)",
            )

        logger.info(f"Appended {len(tracks)} track(s) to playlist {playlist_id}")

    async def _paced(self, call: Awaitable[None]) -> None:
        # The delay runs alongside the call, so it bounds call spacing
        # rather than adding to it
        if not self.insert_delay:
            await call
            return
        pacing = asyncio.ensure_future(asyncio.sleep(self.insert_delay))
        try:
            await call
        except BaseException:
            pacing.cancel()
            raise
        await pacing
