"""Batch splitting for calls bounded by an API ceiling."""

from collections.abc import Iterator, Sequence
from typing import TypeVar

T = TypeVar("T")


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Split `items` into consecutive chunks of at most `size` elements.

    Raises:
        ValueError: If size is not positive
    """
    if size < 1:
        raise ValueError(f"Chunk size must be positive, got {size}")
    for start in range(0, len(items), size):
        yield items[start : start + size]
