"""Pure domain logic for reconciling a playlist with a reference collection.

These functions contain only business logic with no external dependencies,
making them easy to unit test without mocking.
"""

from collections.abc import Iterable
from datetime import datetime

from likesync.domain.entities import DiffResult, Track


def index_by_id(tracks: Iterable[Track]) -> dict[str, Track]:
    """Map identifiers to records, keeping the first occurrence of duplicates.

    Dict insertion order preserves collection order.
    """
    indexed: dict[str, Track] = {}
    for track in tracks:
        indexed.setdefault(track.id, track)
    return indexed


def _added_at_key(track: Track) -> tuple[bool, datetime | None]:
    # Tracks without a timestamp sort before timestamped ones
    return (track.added_at is not None, track.added_at)


def diff(reference: Iterable[Track], target: Iterable[Track]) -> DiffResult:
    """Compute which tracks make `target` mirror `reference`.

    Identity is the track id alone. Duplicate ids within one collection count
    once. `added` holds reference records missing from the target, sorted by
    ascending added-at with ties kept in reference order. `removed` holds
    target records missing from the reference.

    Args:
        reference: Authoritative collection (the library)
        target: Collection being reconciled (the playlist)

    Returns:
        DiffResult with disjoint `added` and `removed`
    """
    reference_by_id = index_by_id(reference)
    target_by_id = index_by_id(target)

    added_ids = reference_by_id.keys() - target_by_id.keys()
    removed_ids = target_by_id.keys() - reference_by_id.keys()

    added = sorted(
        (track for track_id, track in reference_by_id.items() if track_id in added_ids),
        key=_added_at_key,
    )
    removed = [
        track for track_id, track in target_by_id.items() if track_id in removed_ids
    ]

    return DiffResult(added=added, removed=removed)


def missing_from(source: Iterable[Track], target: Iterable[Track]) -> list[Track]:
    """Source tracks absent from target, in source order.

    Used for archive copies, where the source carries no library timestamps
    and its own order is the one worth keeping.
    """
    target_ids = index_by_id(target).keys()
    return [
        track for track_id, track in index_by_id(source).items() if track_id not in target_ids
    ]
