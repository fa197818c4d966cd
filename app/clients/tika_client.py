from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from app.core.config import Settings, settings as default_settings
from app.core.exceptions import ExtractionError, MetadataError

logger = logging.getLogger(__name__)

HEALTH_TIMEOUT_SEC = 5.0


class TikaClient:
    """Thin async client for the Apache Tika server REST API.

    Both extraction calls send the whole payload in a single PUT. There is no
    retry; a non-2xx answer is a hard failure for that call.
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        config = config or default_settings
        self._base_url = (config.tika_url or "").strip().rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=config.tika_timeout_sec)

    @property
    def base_url(self) -> str:
        return self._base_url

    async def close(self) -> None:
        await self._client.aclose()

    async def extract_text(self, content: bytes, mime_type: str) -> str:
        try:
            response = await self._client.put(
                f"{self._base_url}/tika",
                content=content,
                headers={"Content-Type": mime_type, "Accept": "text/plain"},
            )
        except httpx.HTTPError as exc:
            raise ExtractionError(f"Failed to extract text: {exc}") from exc

        if not response.is_success:
            logger.warning("Tika text extraction returned %s for %s", response.status_code, mime_type)
            raise ExtractionError(f"Failed to extract text: {response.reason_phrase}")
        return response.text

    async def extract_metadata(self, content: bytes, mime_type: str) -> Dict[str, Any]:
        try:
            response = await self._client.put(
                f"{self._base_url}/meta",
                content=content,
                headers={"Content-Type": mime_type, "Accept": "application/json"},
            )
        except httpx.HTTPError as exc:
            raise MetadataError(f"Failed to get metadata: {exc}") from exc

        if not response.is_success:
            logger.warning("Tika metadata extraction returned %s for %s", response.status_code, mime_type)
            raise MetadataError(f"Failed to get metadata: {response.reason_phrase}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise MetadataError(f"Failed to get metadata: invalid JSON response ({exc})") from exc
        if not isinstance(payload, dict):
            raise MetadataError(f"Failed to get metadata: expected a JSON object, got {type(payload).__name__}")
        return payload

    async def health(self) -> str:
        try:
            r = await self._client.get(f"{self._base_url}/tika", timeout=HEALTH_TIMEOUT_SEC)
            return "up" if r.status_code == 200 else "degraded"
        except Exception as exc:
            logger.debug("Tika health failed: %s", exc)
            return "down"
