"""HTTP client for the host's setup endpoint."""

from __future__ import annotations

from typing import Any

import httpx
import orjson
import structlog

from Questporter.config import Settings

log = structlog.get_logger()


class HttpWorldClient:
    """Posts world edits to the host setup route."""

    def __init__(
        self,
        setup_url: str,
        *,
        timeout: float = 30.0,
        admin_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.setup_url = setup_url
        headers = {"Content-Type": "application/json"}
        if admin_key:
            headers["Authorization"] = f"Bearer {admin_key}"
        self._client = httpx.AsyncClient(timeout=timeout, headers=headers, transport=transport)

    @classmethod
    def from_settings(cls, settings: Settings) -> HttpWorldClient:
        if not settings.setup_url:
            raise ValueError("setup_url is not configured")
        key = settings.setup_admin_key.get_secret_value() if settings.setup_admin_key else None
        return cls(settings.setup_url, timeout=settings.world_request_timeout_seconds, admin_key=key)

    async def edit_world(self, data: dict[str, Any]) -> None:
        try:
            resp = await self._client.post(self.setup_url, content=orjson.dumps(data))
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            log.error("world.edit_rejected", url=self.setup_url, status=e.response.status_code)
            raise
        except httpx.RequestError as e:
            log.error("world.edit_request_failed", url=str(e.request.url), error=str(e))
            raise
        log.info("world.edited", world_id=data.get("id"))

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> HttpWorldClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
