"""Application services orchestrating remote mutations and credential rotation."""

from .credential_rotation import (
    CredentialRotationChannel,
    CredentialRotationPublisher,
    PublisherState,
    seal_credential,
)
from .playlist_mutations import HEAD_POSITION, PlaylistMutationExecutor

__all__ = [
    "HEAD_POSITION",
    "CredentialRotationChannel",
    "CredentialRotationPublisher",
    "PlaylistMutationExecutor",
    "PublisherState",
    "seal_credential",
]
