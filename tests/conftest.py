"""Shared fixtures: track factories and in-memory fakes of the remote APIs."""

from collections.abc import Sequence
from datetime import UTC, datetime, timedelta

import pytest

from likesync.domain.entities import Page, Track
from likesync.domain.exceptions import TransportError

BASE_TIME = datetime(2024, 1, 1, tzinfo=UTC)


def make_track(track_id: str, minutes: int | None = None, **kwargs) -> Track:
    """Track whose added-at is `minutes` after BASE_TIME (None for no timestamp)."""
    added_at = BASE_TIME + timedelta(minutes=minutes) if minutes is not None else None
    kwargs.setdefault("name", f"Song {track_id}")
    return Track(id=track_id, uri=f"spotify:track:{track_id}", added_at=added_at, **kwargs)


class FakeCollectionAPI:
    """Serves pre-built pages for the library and for playlists by id."""

    def __init__(
        self,
        library_pages: Sequence[Sequence[Track]] = (),
        playlist_pages: dict[str, Sequence[Sequence[Track]]] | None = None,
    ):
        self.library_pages = [list(page) for page in library_pages]
        self.playlist_pages = {
            key: [list(page) for page in pages] for key, pages in (playlist_pages or {}).items()
        }
        self.requested: list[tuple[str, int]] = []

    def _pages(self, key: str) -> list[list[Track]]:
        return self.library_pages if key == "saved" else self.playlist_pages.get(key, [])

    def _page(self, key: str, index: int) -> Page:
        self.requested.append((key, index))
        pages = self._pages(key)
        items = pages[index] if pages else []
        return Page(items=list(items), cursor=(key, index), has_next=index + 1 < len(pages))

    async def get_saved_tracks_page(self) -> Page:
        return self._page("saved", 0)

    async def get_playlist_page(self, playlist_id: str) -> Page:
        return self._page(playlist_id, 0)

    async def get_next_page(self, page: Page) -> Page | None:
        if not page.has_next:
            return None
        key, index = page.cursor
        return self._page(key, index + 1)


class FakeMutationAPI:
    """Records mutation calls and simulates the resulting playlist order.

    `fail_at` makes the call with that zero-based index raise `error`.
    """

    def __init__(
        self,
        playlist: Sequence[str] = (),
        fail_at: int | None = None,
        error: Exception | None = None,
    ):
        self.playlist = list(playlist)
        self.calls: list[tuple] = []
        self.fail_at = fail_at
        self.error = error or TransportError("Spotify API error: boom", http_status=500)
        self._attempts = 0

    def _attempt(self) -> None:
        attempt = self._attempts
        self._attempts += 1
        if attempt == self.fail_at:
            raise self.error

    async def insert_tracks(self, playlist_id, uris, position=None) -> None:
        self._attempt()
        self.calls.append(("insert", playlist_id, list(uris), position))
        if position is None:
            self.playlist.extend(uris)
        else:
            self.playlist[position:position] = list(uris)

    async def remove_tracks(self, playlist_id, uris) -> None:
        self._attempt()
        self.calls.append(("remove", playlist_id, list(uris)))
        doomed = set(uris)
        self.playlist = [uri for uri in self.playlist if uri not in doomed]


@pytest.fixture
def track_factory():
    """Factory for Track records with relative added-at timestamps."""
    return make_track


@pytest.fixture
def collection_api_factory():
    return FakeCollectionAPI


@pytest.fixture
def mutation_api_factory():
    return FakeMutationAPI
