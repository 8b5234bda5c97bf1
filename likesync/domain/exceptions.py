"""Domain exceptions.

Every failure the sync run can surface maps onto one of these types, so the
CLI can turn any of them into a non-zero exit with a readable message.
"""

from typing import Any


class LikeSyncError(Exception):
    """Base exception for all likesync failures."""

    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class ConfigurationError(LikeSyncError):
    """Required input is missing or invalid. Fatal, never retried."""


class AuthenticationError(LikeSyncError):
    """A remote service rejected the credentials. Fatal."""


class TransportError(LikeSyncError):
    """Network or HTTP failure while paging or mutating.

    Not retried by the core; the Spotify connector layers at most one retry
    underneath.
    """

    def __init__(self, message: str, http_status: int | None = None) -> None:
        super().__init__(message)
        self.http_status = http_status


class PartialApplicationError(TransportError):
    """A mutation call failed after earlier calls of the same run succeeded.

    The playlist is left as the last successful call left it. The library is
    the source of truth, so the next run repairs the difference.
    """

    def __init__(self, message: str, applied: int, total: int, http_status: int | None = None) -> None:
        super().__init__(f"{message} ({applied}/{total} calls applied)", http_status)
        self.applied = applied
        self.total = total


class CredentialPublishError(LikeSyncError):
    """One or more refreshed credentials could not be written to the secret store."""

    def __init__(self, failures: list[BaseException]) -> None:
        super().__init__(
            f"{len(failures)} credential publish(es) failed, last error: {failures[-1]!s}"
        )
        self.failures = failures
