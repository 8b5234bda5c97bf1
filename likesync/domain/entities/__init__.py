"""Core domain entities representing sync concepts."""

from .credential import Credential, RecipientKey, SecretPayload
from .shared import ensure_utc, parse_spotify_timestamp
from .track import DiffResult, Page, Track, TrackCollection

__all__ = [
    # Track entities
    "DiffResult",
    "Page",
    "Track",
    "TrackCollection",
    # Credential entities
    "Credential",
    "RecipientKey",
    "SecretPayload",
    # Shared utilities
    "ensure_utc",
    "parse_spotify_timestamp",
]
