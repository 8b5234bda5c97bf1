"""Credential rotation entities.

The credential itself is treated as an opaque blob: the only thing the core
does with it is serialize it whole.
"""

import json
from typing import Any

from attrs import define, field, validators


def _copy_token(token: dict[str, Any]) -> dict[str, Any]:
    return dict(token)


@define(frozen=True, slots=True)
class Credential:
    """OAuth token record issued by the auth layer on refresh."""

    token: dict[str, Any] = field(converter=_copy_token, repr=False)

    @token.validator
    def _check_access_token(self, _attribute, value: dict[str, Any]) -> None:
        if not value.get("access_token"):
            raise ValueError("Credential requires an access_token")

    def to_bytes(self) -> bytes:
        """Serialize deterministically: sorted keys, compact separators, UTF-8."""
        return json.dumps(
            self.token, sort_keys=True, separators=(",", ":"), ensure_ascii=False
        ).encode("utf-8")


@define(frozen=True, slots=True)
class RecipientKey:
    """Public key of the secret store, fetched once per process."""

    key_id: str = field(validator=validators.instance_of(str))
    key: str = field(validator=validators.instance_of(str), repr=False)  # base64


@define(frozen=True, slots=True)
class SecretPayload:
    """Wire record pushed to the secret store."""

    encrypted_value: str  # base64 sealed box
    key_id: str

    def to_json(self) -> dict[str, str]:
        return {"encrypted_value": self.encrypted_value, "key_id": self.key_id}
