"""Track-related domain entities.

Pure track representations with zero external service dependencies.
"""

from datetime import datetime
from typing import Any

from attrs import define, field, validators

from .shared import ensure_utc


@define(frozen=True, slots=True)
class Track:
    """Immutable track record fetched fresh from the catalog each run.

    Identity is the catalog `id` alone; two records with the same id are the
    same track for sync purposes even when their metadata differs.
    """

    id: str = field(validator=validators.instance_of(str))
    uri: str = field(validator=validators.instance_of(str))
    name: str = ""
    artists: tuple[str, ...] = field(default=(), converter=tuple)
    album: str | None = None
    image_url: str | None = None
    # Only present on library-sourced tracks
    added_at: datetime | None = field(default=None, converter=ensure_utc)

    @property
    def first_artist(self) -> str:
        return self.artists[0] if self.artists else ""

    @property
    def link(self) -> str:
        return f"https://open.spotify.com/track/{self.id}"


@define(frozen=True, slots=True)
class Page:
    """One page of a cursor-paginated remote collection.

    `cursor` is whatever the collection API needs to request the next page;
    the reader treats it as opaque.
    """

    items: list[Track] = field(factory=list)
    cursor: Any = field(default=None, repr=False)
    has_next: bool = False


@define(frozen=True, slots=True)
class DiffResult:
    """Tracks to add to and remove from the target collection.

    `added` is ordered by ascending added-at; `removed` has no meaningful
    order. No identifier appears in both.
    """

    added: list[Track] = field(factory=list)
    removed: list[Track] = field(factory=list)

    @property
    def has_changes(self) -> bool:
        """Check if any mutation is needed."""
        return bool(self.added or self.removed)


# Ordered sequence of tracks produced by pagination
TrackCollection = list[Track]
