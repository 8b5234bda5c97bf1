"""Configuration module for likesync.

Public API:
----------
Settings / load_settings(env_file=".env") -> Settings
    Pydantic settings record, built once per process and passed explicitly

require(value, env_name) -> str
    Fail the run with ConfigurationError when a mandatory value is missing

get_logger(name: str) -> Logger
    Get a context-aware logger for your module

setup_loguru_logger(config, verbose=False) -> None
    Configure Loguru logger for the application

resilient_operation(operation_name: str)
    Decorator for logging errors in external API calls

Usage:
------
```python
from likesync.config import get_logger, load_settings

settings = load_settings()
logger = get_logger(__name__)
logger.info("Starting sync", playlist_id=settings.spotify.playlist_id)
```
"""

from .logging import get_logger, resilient_operation, setup_loguru_logger
from .settings import (
    SPOTIFY_MAX_BATCH_SIZE,
    GitHubConfig,
    GoogleConfig,
    LoggingConfig,
    Settings,
    SpotifyConfig,
    SyncConfig,
    load_settings,
    require,
)

__all__ = [
    "SPOTIFY_MAX_BATCH_SIZE",
    "GitHubConfig",
    "GoogleConfig",
    "LoggingConfig",
    "Settings",
    "SpotifyConfig",
    "SyncConfig",
    "get_logger",
    "load_settings",
    "require",
    "resilient_operation",
    "setup_loguru_logger",
]
