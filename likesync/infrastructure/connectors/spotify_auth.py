"""Spotify authentication with in-memory, observable token storage.

The stored token comes from configuration (a refresh token or a full token
record) and never touches disk. Whenever spotipy refreshes it, the cache
handler notifies its listeners with the new record; the credential rotation
channel is the listener that persists it back to the secret store.
"""

from collections.abc import Callable
import json
import threading
from typing import Any

import spotipy
from spotipy.oauth2 import SpotifyOAuth, SpotifyPKCE

from likesync.config import SpotifyConfig, get_logger, require
from likesync.domain.entities import Credential
from likesync.domain.exceptions import ConfigurationError

logger = get_logger(__name__).bind(service="spotify")

DEFAULT_SCOPE = " ".join([
    "user-library-read",
    "playlist-read-private",
    "playlist-modify-private",
    "playlist-modify-public",
])

TokenListener = Callable[[Credential], None]


class RotatingTokenCacheHandler(spotipy.CacheHandler):
    """spotipy cache handler that keeps the token in memory and announces refreshes.

    spotipy calls `save_token_to_cache` after every token exchange, possibly
    from a worker thread, so listeners must be thread-safe.
    """

    def __init__(self, token_info: dict[str, Any]) -> None:
        self._token_info = dict(token_info)
        self._listeners: list[TokenListener] = []
        self._lock = threading.Lock()

    def add_listener(self, listener: TokenListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def get_cached_token(self) -> dict[str, Any]:
        with self._lock:
            return dict(self._token_info)

    def save_token_to_cache(self, token_info: dict[str, Any]) -> None:
        with self._lock:
            self._token_info = dict(token_info)
            listeners = list(self._listeners)

        logger.info("Spotify token refreshed")
        credential = Credential(token=token_info)
        for listener in listeners:
            listener(credential)


def stored_token(config: SpotifyConfig) -> dict[str, Any]:
    """Build the starting token record from configuration.

    A full token record (SPOTIFY_TOKEN) wins over a bare refresh token
    (SPOTIFY_REFRESH_TOKEN). A bare refresh token is marked expired so the
    first API call exchanges it.

    Raises:
        ConfigurationError: If neither is set, or the record is malformed
    """
    if config.token:
        try:
            token_info = json.loads(config.token)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"SPOTIFY_TOKEN is not valid JSON: {e.msg}") from e
        if not isinstance(token_info, dict) or not token_info.get("refresh_token"):
            raise ConfigurationError("SPOTIFY_TOKEN must be a token record with a refresh_token")
        token_info.setdefault("scope", DEFAULT_SCOPE)
        token_info.setdefault("expires_at", 0)
        return token_info

    refresh_token = require(config.refresh_token, "SPOTIFY_REFRESH_TOKEN")
    return {
        "access_token": "",
        "token_type": "Bearer",
        "expires_in": 0,
        "expires_at": 0,
        "scope": DEFAULT_SCOPE,
        "refresh_token": refresh_token,
    }


def create_auth_manager(
    config: SpotifyConfig, cache_handler: RotatingTokenCacheHandler
) -> SpotifyOAuth | SpotifyPKCE:
    """Create the spotipy auth manager for the configured flow.

    With a client secret the refresh-token flow (SpotifyOAuth) is used;
    without one, the PKCE flow. Neither opens a browser: a missing or
    revoked token fails the run instead of waiting for a login.
    """
    client_id = require(config.client_id, "SPOTIFY_CLIENT_ID")
    scope = cache_handler.get_cached_token().get("scope") or DEFAULT_SCOPE

    if config.uses_pkce:
        logger.debug("Using Spotify PKCE flow")
        return SpotifyPKCE(
            client_id=client_id,
            redirect_uri=config.redirect_uri,
            scope=scope,
            cache_handler=cache_handler,
            open_browser=False,
        )

    logger.debug("Using Spotify refresh-token flow")
    return SpotifyOAuth(
        client_id=client_id,
        client_secret=config.client_secret,
        redirect_uri=config.redirect_uri,
        scope=scope,
        cache_handler=cache_handler,
        open_browser=False,
    )
