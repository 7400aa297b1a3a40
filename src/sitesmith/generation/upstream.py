"""HTTP client for the upstream generative text service."""

from __future__ import annotations

import logging
import secrets
import string
from typing import Any

import httpx

from sitesmith.generation.normalizer import UnrecognizedPayloadError
from sitesmith.settings import Settings

logger = logging.getLogger("sitesmith.generation.upstream")

_SESSION_ALPHABET = string.ascii_lowercase + string.digits
_SESSION_SUFFIX_LENGTH = 11
_ERROR_BODY_PREVIEW = 500


class MissingCredentialError(Exception):
    """Raised when the upstream API credential is not configured."""

    def __init__(self) -> None:
        super().__init__("Upstream API key is not configured (set UPSTREAM_API_KEY)")


class UpstreamStatusError(Exception):
    """Raised when the upstream service answers with a non-success status."""

    def __init__(self, status_code: int, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"Upstream service responded with status {status_code}")


def new_session_id(agent_id: str) -> str:
    """Fresh conversation id of the form ``<agent_id>-<11 random chars>``."""
    suffix = "".join(secrets.choice(_SESSION_ALPHABET) for _ in range(_SESSION_SUFFIX_LENGTH))
    return f"{agent_id}-{suffix}"


class UpstreamClient:
    """Posts one chat message to the upstream agent and returns its parsed JSON.

    Holds a single :class:`httpx.AsyncClient`, which is safe to share between
    concurrent generations.  Call :meth:`aclose` on shutdown.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = settings.upstream_url
        self._agent_id = settings.upstream_agent_id
        self._user_id = settings.upstream_user_id
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.upstream_timeout_seconds),
            transport=transport,
        )

    async def complete(self, message: str, *, api_key: str) -> Any:
        """Send *message* and return the decoded response body.

        Raises:
            httpx.TransportError: the service could not be reached (including
                httpx's own timeouts).
            UpstreamStatusError: the service answered with a non-2xx status.
            UnrecognizedPayloadError: the body is not JSON.
        """
        body = {
            "agent_id": self._agent_id,
            "session_id": new_session_id(self._agent_id),
            "user_id": self._user_id,
            "message": message,
        }
        response = await self._client.post(
            self._url,
            json=body,
            headers={"x-api-key": api_key},
        )
        if not response.is_success:
            raise UpstreamStatusError(response.status_code, response.text[:_ERROR_BODY_PREVIEW])
        try:
            return response.json()
        except ValueError as exc:
            raise UnrecognizedPayloadError(
                "response body is not JSON", shape=response.headers.get("content-type", "")
            ) from exc

    async def aclose(self) -> None:
        await self._client.aclose()
