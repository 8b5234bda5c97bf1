"""Pure domain workflows."""

from .library_diff import diff, index_by_id, missing_from

__all__ = ["diff", "index_by_id", "missing_from"]
