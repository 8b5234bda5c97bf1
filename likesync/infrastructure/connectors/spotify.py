"""Spotify service connector with domain model conversion.

This module provides a connector for the Spotify Web API using the spotipy
library (https://spotipy.readthedocs.io/). spotipy is synchronous, so every
call runs in a worker thread via `asyncio.to_thread`.

Key components:
- SpotifyConnector: paging over liked songs and playlists, playlist mutations
- convert_spotify_track: raw API track object -> Track
- create_spotify_connector: wiring of auth manager and client

Error handling: spotipy's own urllib3 retries are disabled and replaced by a
single bounded retry (backoff) for throttling, server errors and dropped
connections. Whatever still fails is translated into the domain taxonomy
(AuthenticationError, TransportError).
"""

import asyncio
from collections.abc import Callable, Sequence
from typing import Any

from attrs import define, field
import backoff
import requests
import spotipy
from spotipy.oauth2 import SpotifyOauthError

from likesync.config import SpotifyConfig, get_logger, resilient_operation
from likesync.domain.entities import Page, Track, parse_spotify_timestamp
from likesync.domain.exceptions import AuthenticationError, TransportError
from likesync.infrastructure.connectors.spotify_auth import (
    RotatingTokenCacheHandler,
    create_auth_manager,
)

logger = get_logger(__name__).bind(service="spotify")

SAVED_TRACKS_PAGE_SIZE = 50  # API maximum for /me/tracks
PLAYLIST_PAGE_SIZE = 100  # API maximum for /playlists/{id}/tracks
RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})
AUTH_STATUSES = frozenset({401, 403})
REQUEST_TIMEOUT = 15


def _is_permanent(error: Exception) -> bool:
    """Give up immediately on errors another attempt cannot fix."""
    if isinstance(error, spotipy.SpotifyException):
        return error.http_status not in RETRYABLE_STATUSES
    return False


def _largest_image_url(images: list[dict[str, Any]] | None) -> str | None:
    if not images:
        return None
    largest = max(images, key=lambda image: image.get("height") or 0)
    return largest.get("url")


def convert_spotify_track(
    spotify_track: dict[str, Any], added_at: str | None = None
) -> Track:
    """Convert a Spotify track object to a Track domain record.

    Args:
        spotify_track: Raw track object from the API
        added_at: Library timestamp; pass only for liked-songs items
    """
    album = spotify_track.get("album") or {}
    return Track(
        id=spotify_track["id"],
        uri=spotify_track.get("uri") or f"spotify:track:{spotify_track['id']}",
        name=spotify_track.get("name", ""),
        artists=[artist["name"] for artist in spotify_track.get("artists", [])],
        album=album.get("name"),
        image_url=_largest_image_url(album.get("images")),
        added_at=parse_spotify_timestamp(added_at),
    )


def _parse_saved_items(raw: dict[str, Any]) -> list[Track]:
    return [
        convert_spotify_track(item["track"], added_at=item.get("added_at"))
        for item in raw.get("items", [])
        if item and item.get("track") and item["track"].get("id")
    ]


def _parse_playlist_items(raw: dict[str, Any]) -> list[Track]:
    tracks = []
    for item in raw.get("items", []):
        track = (item or {}).get("track")
        # Local files, episodes and unavailable tracks carry no catalog id
        if not track or not track.get("id") or track.get("type", "track") != "track":
            logger.debug("Skipping playlist item without catalog track id")
            continue
        tracks.append(convert_spotify_track(track))
    return tracks


_PARSERS: dict[str, Callable[[dict[str, Any]], list[Track]]] = {
    "saved": _parse_saved_items,
    "playlist": _parse_playlist_items,
}


@define(slots=True)
class SpotifyConnector:
    """Thin async wrapper around spotipy implementing the collection and mutation APIs.

    Pages carry the raw paging object and the parser kind as their cursor,
    so `get_next_page` can follow the API's `next` link for either
    collection.
    """

    client: spotipy.Spotify = field(repr=False)

    async def _call(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return await self._call_with_retry(func, *args, **kwargs)
        except SpotifyOauthError as e:
            raise AuthenticationError(f"Spotify token refresh rejected: {e!s}") from e
        except spotipy.SpotifyException as e:
            if e.http_status in AUTH_STATUSES:
                raise AuthenticationError(f"Spotify rejected credentials: {e.msg}") from e
            raise TransportError(f"Spotify API error: {e.msg}", http_status=e.http_status) from e
        except requests.RequestException as e:
            raise TransportError(f"Spotify connection error: {e!s}") from e

    @backoff.on_exception(
        backoff.expo,
        (spotipy.SpotifyException, requests.ConnectionError, requests.Timeout),
        max_tries=2,
        giveup=_is_permanent,
    )
    async def _call_with_retry(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        return await asyncio.to_thread(func, *args, **kwargs)

    def _page(self, raw: dict[str, Any] | None, kind: str) -> Page:
        if not isinstance(raw, dict):
            raise TransportError(f"Invalid {kind} page response from Spotify")
        return Page(
            items=_PARSERS[kind](raw),
            cursor=(raw, kind),
            has_next=bool(raw.get("next")),
        )

    @resilient_operation("spotify_verify_user")
    async def verify_user(self) -> str:
        """Authenticate and return the current user's id.

        Raises:
            AuthenticationError: If Spotify returns no user profile
        """
        profile = await self._call(self.client.current_user)
        user_id = (profile or {}).get("id")
        if not user_id:
            raise AuthenticationError("Authorization with Spotify failed.")
        logger.debug(f"Authenticated as Spotify user {user_id}")
        return user_id

    @resilient_operation("spotify_get_saved_tracks")
    async def get_saved_tracks_page(self) -> Page:
        """First page of the user's liked songs, with library timestamps."""
        raw = await self._call(
            self.client.current_user_saved_tracks, limit=SAVED_TRACKS_PAGE_SIZE
        )
        return self._page(raw, "saved")

    @resilient_operation("spotify_get_playlist")
    async def get_playlist_page(self, playlist_id: str) -> Page:
        """First page of a playlist's track items."""
        raw = await self._call(
            self.client.playlist_items,
            playlist_id,
            limit=PLAYLIST_PAGE_SIZE,
            additional_types=("track",),
        )
        return self._page(raw, "playlist")

    @resilient_operation("spotify_get_next_page")
    async def get_next_page(self, page: Page) -> Page | None:
        """Follow the `next` link of a page, or return None on the last page."""
        if not page.has_next:
            return None
        raw, kind = page.cursor
        return self._page(await self._call(self.client.next, raw), kind)

    @resilient_operation("spotify_insert_tracks")
    async def insert_tracks(
        self, playlist_id: str, uris: Sequence[str], position: int | None = None
    ) -> None:
        """Insert URIs at `position` (append when None). At most 100 URIs."""
        await self._call(
            self.client.playlist_add_items, playlist_id, list(uris), position=position
        )

    @resilient_operation("spotify_remove_tracks")
    async def remove_tracks(self, playlist_id: str, uris: Sequence[str]) -> None:
        """Remove every occurrence of the URIs. At most 100 URIs."""
        await self._call(
            self.client.playlist_remove_all_occurrences_of_items, playlist_id, list(uris)
        )


def create_spotify_connector(
    config: SpotifyConfig, cache_handler: RotatingTokenCacheHandler
) -> SpotifyConnector:
    """Wire auth manager and spotipy client into a connector."""
    client = spotipy.Spotify(
        auth_manager=create_auth_manager(config, cache_handler),
        requests_timeout=REQUEST_TIMEOUT,
        retries=0,
        status_retries=0,
    )
    return SpotifyConnector(client=client)
