"""
GitHub App installation authentication.

Exchanges a short-lived app JWT for an installation access token.
"""

import base64
import binascii
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import httpx
import jwt
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from issuebot.core.config import GitHubSettings
from issuebot.core.constants import GITHUB_API_VERSION
from issuebot.core.exceptions import ConfigurationError, InstallationAuthError
from issuebot.core.logging import get_logger

logger = get_logger(__name__)

# GitHub rejects app JWTs valid for more than ten minutes
_JWT_LIFETIME_SECONDS = 540
_CLOCK_SKEW_SECONDS = 60


@dataclass(frozen=True)
class InstallationToken:
    """A short-lived installation credential. Never persisted or logged."""

    token: str = field(repr=False)
    installation_id: int
    expires_at: Optional[datetime] = None


def load_private_key(raw: str) -> str:
    """
    Accept the App private key either as PEM text or base64-encoded PEM.

    Raises:
        ConfigurationError: If the value is neither
    """
    value = raw.strip()
    if value.startswith("-----BEGIN"):
        return value
    try:
        decoded = base64.b64decode(value, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise ConfigurationError("GITHUB_APP_PRIVATE_KEY is not valid base64 or PEM") from e
    if "-----BEGIN" not in decoded:
        raise ConfigurationError("GITHUB_APP_PRIVATE_KEY does not contain a PEM key")
    return decoded


class InstallationAuthenticator:
    """
    Converts an installation ID into a fresh access token.

    No token caching: every call performs a new exchange, so each workflow
    run owns its own credential.
    """

    def __init__(
        self,
        settings: GitHubSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the authenticator.

        Args:
            settings: GitHub App settings
            transport: Optional httpx transport (tests)
        """
        self.app_id = settings.app_id
        self.api_url = settings.api_url.rstrip("/")
        self.timeout = settings.timeout
        self._private_key = load_private_key(settings.app_private_key)
        self._transport = transport

    def create_app_jwt(self, now: Optional[int] = None) -> str:
        """Sign an RS256 JWT identifying the App itself."""
        issued = int(now if now is not None else time.time())
        payload = {
            "iat": issued - _CLOCK_SKEW_SECONDS,
            "exp": issued + _JWT_LIFETIME_SECONDS,
            "iss": str(self.app_id),
        }
        return jwt.encode(payload, self._private_key, algorithm="RS256")

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def _exchange(self, installation_id: int) -> httpx.Response:
        async with httpx.AsyncClient(
            base_url=self.api_url,
            timeout=httpx.Timeout(self.timeout),
            transport=self._transport,
        ) as client:
            return await client.post(
                f"/app/installations/{installation_id}/access_tokens",
                headers={
                    "Authorization": f"Bearer {self.create_app_jwt()}",
                    "Accept": "application/vnd.github+json",
                    "X-GitHub-Api-Version": GITHUB_API_VERSION,
                },
            )

    async def token_for(self, installation_id: int) -> InstallationToken:
        """
        Get a new installation access token.

        Raises:
            InstallationAuthError: If GitHub refuses or cannot be reached
        """
        try:
            response = await self._exchange(installation_id)
        except httpx.HTTPError as e:
            logger.error("Installation token request failed", installation_id=installation_id, error=str(e))
            raise InstallationAuthError(installation_id, f"Request failed: {e}") from e

        if response.status_code != 201:
            logger.error(
                "Installation token refused",
                installation_id=installation_id,
                status_code=response.status_code,
            )
            raise InstallationAuthError(
                installation_id, f"HTTP {response.status_code}: {response.text}"
            )

        data = response.json()
        expires_at = data.get("expires_at")
        logger.debug("Obtained installation token", installation_id=installation_id)
        return InstallationToken(
            token=data["token"],
            installation_id=installation_id,
            expires_at=datetime.fromisoformat(expires_at.replace("Z", "+00:00")) if expires_at else None,
        )
