"""Tests for the in-memory token cache and auth manager selection."""

import json
import threading

import pytest
from spotipy.oauth2 import SpotifyOAuth, SpotifyPKCE

from likesync.config import SpotifyConfig
from likesync.domain.entities import Credential
from likesync.domain.exceptions import ConfigurationError
from likesync.infrastructure.connectors.spotify_auth import (
    DEFAULT_SCOPE,
    RotatingTokenCacheHandler,
    create_auth_manager,
    stored_token,
)

TOKEN_RECORD = {
    "access_token": "old-access",
    "token_type": "Bearer",
    "expires_in": 3600,
    "expires_at": 1700000000,
    "scope": "user-library-read playlist-modify-private",
    "refresh_token": "stored-refresh",
}


class TestStoredToken:
    def test_refresh_token_seed_is_expired(self):
        token = stored_token(SpotifyConfig(refresh_token="refresh"))

        assert token["refresh_token"] == "refresh"
        assert token["expires_at"] == 0
        assert token["scope"] == DEFAULT_SCOPE

    def test_token_record_wins_over_refresh_token(self):
        config = SpotifyConfig(refresh_token="ignored", token=json.dumps(TOKEN_RECORD))

        token = stored_token(config)

        assert token == TOKEN_RECORD

    def test_token_record_defaults(self):
        token = stored_token(SpotifyConfig(token=json.dumps({"refresh_token": "r"})))

        assert token["expires_at"] == 0
        assert token["scope"] == DEFAULT_SCOPE

    def test_invalid_json(self):
        with pytest.raises(ConfigurationError, match="not valid JSON"):
            stored_token(SpotifyConfig(token="{not json"))

    def test_record_without_refresh_token(self):
        with pytest.raises(ConfigurationError, match="refresh_token"):
            stored_token(SpotifyConfig(token=json.dumps({"access_token": "a"})))

    def test_nothing_configured(self):
        with pytest.raises(ConfigurationError, match="SPOTIFY_REFRESH_TOKEN"):
            stored_token(SpotifyConfig())


class TestRotatingTokenCacheHandler:
    def test_returns_copy_of_cached_token(self):
        handler = RotatingTokenCacheHandler(TOKEN_RECORD)

        cached = handler.get_cached_token()
        cached["access_token"] = "tampered"

        assert handler.get_cached_token()["access_token"] == "old-access"

    def test_save_notifies_listeners(self):
        handler = RotatingTokenCacheHandler(TOKEN_RECORD)
        received: list[Credential] = []
        handler.add_listener(received.append)

        refreshed = {**TOKEN_RECORD, "access_token": "new-access"}
        handler.save_token_to_cache(refreshed)

        assert handler.get_cached_token()["access_token"] == "new-access"
        assert [c.token["access_token"] for c in received] == ["new-access"]

    def test_save_from_worker_thread(self):
        handler = RotatingTokenCacheHandler(TOKEN_RECORD)
        received: list[Credential] = []
        handler.add_listener(received.append)

        worker = threading.Thread(
            target=handler.save_token_to_cache, args=({**TOKEN_RECORD, "access_token": "t"},)
        )
        worker.start()
        worker.join()

        assert len(received) == 1


class TestCreateAuthManager:
    def test_refresh_token_flow_with_client_secret(self):
        handler = RotatingTokenCacheHandler(TOKEN_RECORD)
        config = SpotifyConfig(client_id="client", client_secret="secret")

        manager = create_auth_manager(config, handler)

        assert isinstance(manager, SpotifyOAuth)
        assert manager.cache_handler is handler
        assert set(manager.scope.split()) == set(TOKEN_RECORD["scope"].split())

    def test_pkce_flow_without_client_secret(self):
        handler = RotatingTokenCacheHandler(TOKEN_RECORD)

        manager = create_auth_manager(SpotifyConfig(client_id="client"), handler)

        assert isinstance(manager, SpotifyPKCE)
        assert manager.cache_handler is handler

    def test_client_id_required(self):
        with pytest.raises(ConfigurationError, match="SPOTIFY_CLIENT_ID"):
            create_auth_manager(SpotifyConfig(), RotatingTokenCacheHandler(TOKEN_RECORD))
