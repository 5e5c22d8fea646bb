"""HTTP client that forwards narration and session completion to a platform bridge."""

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)


class WebhookActivityClient:
    """Posts activities to ``{base_url}/activities`` and completions to
    ``{base_url}/sessions/{context_id}/complete``.

    Implements both ActivityLogger and PlatformSession. Errors are raised
    to the caller; the supervisor decides what to swallow.
    """

    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def _post_activity(self, context_id: str, kind: str, body: str) -> None:
        resp = await self._client.post(
            "/activities",
            json={"context_id": context_id, "type": kind, "body": body},
        )
        resp.raise_for_status()
        logger.debug("Posted %s activity for %s", kind, context_id)

    async def thought(self, context_id: str, text: str) -> None:
        await self._post_activity(context_id, "thought", text)

    async def response(self, context_id: str, text: str) -> None:
        await self._post_activity(context_id, "response", text)

    async def complete(self, context_id: str) -> None:
        resp = await self._client.post(f"/sessions/{context_id}/complete")
        resp.raise_for_status()
        logger.info("Marked platform session complete for %s", context_id)

    async def close(self) -> None:
        await self._client.aclose()
