"""Gallabox WhatsApp API client.

One ``httpx.AsyncClient`` per process, created in the application lifespan
and closed on shutdown. No retries: a failed call is reported to the caller
straight away as an UpstreamProviderError.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from crm.core.config import Settings
from crm.core.errors import ConfigurationError, UpstreamProviderError

logger = logging.getLogger(__name__)

TEXT_MESSAGE_PATH = "/v1/api/messages/whatsapp/text"
TEMPLATE_MESSAGE_PATH = "/v1/api/messages/whatsapp/template"
CAMPAIGN_PATH = "/v1/api/campaigns/whatsapp"


class GallaboxClient:
    """Thin wrapper over the Gallabox REST endpoints the CRM uses."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not api_key:
            raise ConfigurationError("GALLABOX_API_KEY is not set")
        if not base_url:
            raise ConfigurationError("GALLABOX_BASE_URL is not set")
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={
                "x-api-key": api_key,
                "Content-Type": "application/json",
            },
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "GallaboxClient":
        return cls(
            base_url=settings.GALLABOX_BASE_URL,
            api_key=settings.GALLABOX_API_KEY,
            timeout=settings.GALLABOX_TIMEOUT_SECONDS,
        )

    async def send_message(
        self,
        to: str,
        message: Optional[str] = None,
        template: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Send a template message when ``template`` is given, a text message otherwise."""
        if template:
            return await self._post(TEMPLATE_MESSAGE_PATH, {"to": to, "template": template})
        return await self._post(TEXT_MESSAGE_PATH, {"to": to, "message": message or ""})

    async def create_campaign(
        self,
        name: str,
        filters: Dict[str, Any],
        template: Optional[Dict[str, Any]] = None,
    ) -> Any:
        return await self._post(CAMPAIGN_PATH, {"name": name, "filters": filters, "template": template})

    async def _post(self, path: str, payload: Dict[str, Any]) -> Any:
        try:
            resp = await self._client.post(path, json=payload)
        except httpx.HTTPError as e:
            logger.error("Gallabox request to %s failed: %s", path, e)
            raise UpstreamProviderError(f"Gallabox request failed: {e}") from e

        try:
            body = resp.json()
        except ValueError:
            body = resp.text or None
            if resp.is_success:
                logger.error("Gallabox %s returned a non-JSON body (status %d)", path, resp.status_code)
                raise UpstreamProviderError(
                    "Gallabox returned an unreadable response",
                    provider_status=resp.status_code,
                    provider_body=body,
                )

        if not resp.is_success:
            logger.error("Gallabox %s returned %d: %s", path, resp.status_code, str(body)[:300])
            raise UpstreamProviderError(
                f"Gallabox returned HTTP {resp.status_code}",
                provider_status=resp.status_code,
                provider_body=body,
            )

        logger.info("Gallabox %s succeeded (status %d)", path, resp.status_code)
        return body

    async def aclose(self) -> None:
        await self._client.aclose()
