"""Application utilities shared by services and use cases."""

from .batching import chunked
from .pagination import collect, paginate

__all__ = ["chunked", "collect", "paginate"]
