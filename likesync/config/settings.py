"""Configuration management using Pydantic Settings.

Settings are built once at process start by `load_settings()` and handed to
every component explicitly. No component reads the environment on its own.

The configuration is organized into logical groups:
- SpotifyConfig: client credentials, stored token, playlist IDs
- GitHubConfig: secret store used for credential rotation
- GoogleConfig: spreadsheet used as sync log
- SyncConfig: pacing delays and batch ceilings
- LoggingConfig: logging levels and log file
"""

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from likesync.domain.exceptions import ConfigurationError

# Spotify Web API ceiling for track URIs per playlist mutation call
SPOTIFY_MAX_BATCH_SIZE = 100


class SpotifyConfig(BaseModel):
    """Spotify application credentials and playlist identifiers."""

    client_id: str = ""
    client_secret: str = ""
    refresh_token: str = ""
    token: str = ""  # JSON token record, used by the PKCE flow
    redirect_uri: str = "http://127.0.0.1:8888/callback"

    playlist_id: str = ""
    discover_weekly_id: str = ""
    discover_weekly_backup_id: str = ""
    release_radar_id: str = ""
    release_radar_backup_id: str = ""

    @property
    def uses_pkce(self) -> bool:
        """PKCE flow is selected when no client secret is configured."""
        return not self.client_secret


class GitHubConfig(BaseModel):
    """GitHub Actions secret store used to persist the rotated token."""

    token: str = ""
    repository: str = ""  # "owner/name"
    secret_name: str = "SPOTIFY_TOKEN"
    api_url: str = "https://api.github.com"

    @property
    def enabled(self) -> bool:
        return bool(self.token and self.repository)


class GoogleConfig(BaseModel):
    """Google Sheets sync log."""

    token: str = ""  # service account JSON
    sheet_id: str = ""

    @property
    def enabled(self) -> bool:
        return bool(self.token and self.sheet_id)


class SyncConfig(BaseModel):
    """Pacing and batching for Spotify calls."""

    page_item_delay: float = Field(default=0.01, ge=0)
    insert_delay: float = Field(default=1.0, ge=0)
    removal_batch_size: int = Field(default=SPOTIFY_MAX_BATCH_SIZE, ge=1, le=SPOTIFY_MAX_BATCH_SIZE)


class LoggingConfig(BaseModel):
    """Logging configuration for console and file output."""

    console_level: str = "INFO"
    file_level: str = "DEBUG"
    log_file: Path = Path("logs/likesync.log")


# Flat environment names kept from the original deployment, mapped onto the
# nested groups (group, field)
_FLAT_ENV_MAP = {
    "spotify_client_id": ("spotify", "client_id"),
    "spotify_client_secret": ("spotify", "client_secret"),
    "spotify_refresh_token": ("spotify", "refresh_token"),
    "spotify_token": ("spotify", "token"),
    "spotify_redirect_uri": ("spotify", "redirect_uri"),
    "spotify_playlist_id": ("spotify", "playlist_id"),
    "spotify_discover_weekly_id": ("spotify", "discover_weekly_id"),
    "spotify_discover_weekly_backup_id": ("spotify", "discover_weekly_backup_id"),
    "spotify_release_radar_id": ("spotify", "release_radar_id"),
    "spotify_release_radar_backup_id": ("spotify", "release_radar_backup_id"),
    "github_token": ("github", "token"),
    "github_repository": ("github", "repository"),
    "github_secret_name": ("github", "secret_name"),
    "github_api_url": ("github", "api_url"),
    "google_token": ("google", "token"),
    "google_sheet_id": ("google", "sheet_id"),
    "sync_page_item_delay": ("sync", "page_item_delay"),
    "sync_insert_delay": ("sync", "insert_delay"),
    "sync_removal_batch_size": ("sync", "removal_batch_size"),
    "console_log_level": ("logging", "console_level"),
    "file_log_level": ("logging", "file_level"),
    "log_file": ("logging", "log_file"),
}


class Settings(BaseSettings):
    """Main application settings with environment variable support.

    Environment variables can be set using flat naming or nested naming:
    - Flat: SPOTIFY_CLIENT_ID, GITHUB_REPOSITORY, SYNC_INSERT_DELAY
    - Nested: SPOTIFY__CLIENT_ID, GITHUB__REPOSITORY, SYNC__INSERT_DELAY
    """

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    spotify: SpotifyConfig = SpotifyConfig()
    github: GitHubConfig = GitHubConfig()
    google: GoogleConfig = GoogleConfig()
    sync: SyncConfig = SyncConfig()
    logging: LoggingConfig = LoggingConfig()

    @model_validator(mode="before")
    @classmethod
    def transform_flat_env_vars(cls, data: Any) -> Any:
        """Map flat environment names onto the nested groups.

        Flat keys passed explicitly win over the process environment, and
        nested values (``SPOTIFY__CLIENT_ID``) win over both.
        """
        if not isinstance(data, dict):
            return data

        environ = {key.lower(): value for key, value in os.environ.items()}
        transformed: dict[str, dict[str, Any]] = {}

        for flat_key, (group, field_key) in _FLAT_ENV_MAP.items():
            if flat_key in data:
                value = data.pop(flat_key)
            elif flat_key in environ:
                value = environ[flat_key]
            else:
                continue
            transformed.setdefault(group, {})[field_key] = value

        for group, values in transformed.items():
            nested = data.get(group)
            if isinstance(nested, BaseModel):
                nested = nested.model_dump()
            data[group] = {**values, **(nested or {})}

        return data


def load_settings(env_file: str | Path | None = ".env") -> Settings:
    """Build the settings record for this process.

    Args:
        env_file: Optional dotenv file loaded into the environment first

    Returns:
        Validated Settings instance

    Raises:
        ConfigurationError: If a value fails validation
    """
    if env_file is not None and Path(env_file).is_file():
        load_dotenv(env_file, override=False)

    try:
        return Settings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def require(value: str, env_name: str) -> str:
    """Return a mandatory configuration value or fail the run.

    Raises:
        ConfigurationError: If the value is empty or whitespace
    """
    if not value or not value.strip():
        raise ConfigurationError(f'Environment variable "{env_name}" is not set.')
    return value
