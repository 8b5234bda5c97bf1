"""Collaborator interfaces the sync core depends on.

The application layer talks to remote services only through these
protocols; infrastructure connectors implement them.
"""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from likesync.domain.entities import Page, RecipientKey, SecretPayload, Track


@runtime_checkable
class TrackCollectionAPI(Protocol):
    """Cursor-based access to the library and to playlists."""

    async def get_saved_tracks_page(self) -> Page:
        """First page of the user's liked songs."""
        ...

    async def get_playlist_page(self, playlist_id: str) -> Page:
        """First page of a playlist's items."""
        ...

    async def get_next_page(self, page: Page) -> Page | None:
        """Page following `page`, or None when the collection is exhausted."""
        ...


@runtime_checkable
class PlaylistMutationAPI(Protocol):
    """Playlist mutation calls. Each call accepts at most 100 URIs."""

    async def insert_tracks(
        self, playlist_id: str, uris: Sequence[str], position: int | None = None
    ) -> None:
        """Insert URIs at `position`, or append them when position is None."""
        ...

    async def remove_tracks(self, playlist_id: str, uris: Sequence[str]) -> None:
        """Remove every occurrence of the URIs from the playlist."""
        ...


@runtime_checkable
class SecretStoreAPI(Protocol):
    """Encrypted secret store with a key-exchange endpoint."""

    async def get_public_key(self, repository: str) -> RecipientKey:
        """Public key secrets for `repository` must be sealed with."""
        ...

    async def put_secret(
        self, repository: str, secret_name: str, payload: SecretPayload
    ) -> None:
        """Create or replace the secret `secret_name`."""
        ...


@runtime_checkable
class SyncLogAPI(Protocol):
    """Durable log of sync outcomes kept outside the core."""

    async def append_added(self, tracks: Sequence[Track]) -> None: ...

    async def append_removed(self, tracks: Sequence[Track]) -> None: ...

    async def replace_current(self, library: Sequence[Track]) -> None: ...
