"""GitHub Actions secrets connector.

Implements the secret store interface over the GitHub REST API:

- GET /repos/{owner}/{repo}/actions/secrets/public-key
- PUT /repos/{owner}/{repo}/actions/secrets/{secret_name}

Requests go through a shared httpx.AsyncClient owned by the connector; use it
as an async context manager so the connection pool is closed on exit.
"""

from typing import Any

from attrs import define, field
import httpx

from likesync.config import GitHubConfig, get_logger, require, resilient_operation
from likesync.domain.entities import RecipientKey, SecretPayload
from likesync.domain.exceptions import AuthenticationError, TransportError

logger = get_logger(__name__).bind(service="github")

API_VERSION = "2022-11-28"
DEFAULT_TIMEOUT = 30.0


def _raise_for_response(response: httpx.Response, action: str) -> None:
    if response.is_success:
        return
    if response.status_code in (401, 403):
        raise AuthenticationError(
            f"GitHub rejected credentials while trying to {action} (HTTP {response.status_code})"
        )
    raise TransportError(
        f"GitHub API error while trying to {action}: HTTP {response.status_code}",
        http_status=response.status_code,
    )


@define(slots=True)
class GitHubSecretsConnector:
    """Secret store backed by GitHub Actions repository secrets."""

    client: httpx.AsyncClient = field(repr=False)

    @classmethod
    def from_config(cls, config: GitHubConfig, **client_kwargs: Any) -> "GitHubSecretsConnector":
        """Build a connector with an authenticated client for the configured API."""
        token = require(config.token, "GITHUB_TOKEN")
        client = httpx.AsyncClient(
            base_url=config.api_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": API_VERSION,
            },
            timeout=httpx.Timeout(DEFAULT_TIMEOUT),
            **client_kwargs,
        )
        return cls(client=client)

    async def __aenter__(self) -> "GitHubSecretsConnector":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.client.aclose()

    async def _request(self, method: str, url: str, action: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(f"GitHub connection error while trying to {action}: {e!s}") from e
        _raise_for_response(response, action)
        return response

    @resilient_operation("github_get_public_key")
    async def get_public_key(self, repository: str) -> RecipientKey:
        """Fetch the repository's public key for sealing secrets.

        Args:
            repository: "owner/name"
        """
        response = await self._request(
            "GET",
            f"/repos/{repository}/actions/secrets/public-key",
            "fetch the secrets public key",
        )
        body = response.json()
        try:
            return RecipientKey(key_id=str(body["key_id"]), key=body["key"])
        except (KeyError, TypeError) as e:
            raise TransportError("GitHub returned a malformed public key response") from e

    @resilient_operation("github_put_secret")
    async def put_secret(
        self, repository: str, secret_name: str, payload: SecretPayload
    ) -> None:
        """Create or replace a repository secret with an already sealed value."""
        response = await self._request(
            "PUT",
            f"/repos/{repository}/actions/secrets/{secret_name}",
            f"update secret {secret_name}",
            json=payload.to_json(),
        )
        logger.debug(f"Secret {secret_name} stored (HTTP {response.status_code})")
