"""HTTP client for the n8n workflow webhooks."""

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from smmadmin.exceptions import WebhookError
from smmadmin.utils.network import NetworkConfig


class WebhookClient:
    """Posts multipart forms and JSON documents to n8n webhooks.

    No request timeout is applied unless one is configured: publishing and
    document ingestion upload whole media files and may run for a long time.
    """

    def __init__(self, network_config: Optional[NetworkConfig] = None):
        """Initialize the client.

        Args:
            network_config: Optional network configuration for timeouts
        """
        self.network_config = network_config

    def _timeout(self) -> aiohttp.ClientTimeout:
        if self.network_config:
            return self.network_config.get_webhook_timeout()
        return aiohttp.ClientTimeout(total=None)

    async def post_form(self, url: Optional[str], form: aiohttp.FormData) -> bytes:
        """POST a multipart form.

        Args:
            url: Webhook URL
            form: Form fields and file parts

        Returns:
            Raw response body

        Raises:
            WebhookError: If the URL is missing or the call fails
        """
        return await self._post(url, data=form)

    async def post_json(self, url: Optional[str], payload: Dict[str, Any]) -> bytes:
        """POST a JSON document.

        Raises:
            WebhookError: If the URL is missing or the call fails
        """
        return await self._post(url, json=payload)

    async def _post(self, url: Optional[str], **kwargs) -> bytes:
        if not url:
            raise WebhookError("Webhook URL is not configured")

        try:
            async with aiohttp.ClientSession(timeout=self._timeout()) as session:
                async with session.post(url, **kwargs) as response:
                    body = await response.read()
                    if response.status >= 400:
                        text = body.decode("utf-8", errors="replace")[:500]
                        raise WebhookError(
                            f"Webhook responded with status {response.status}: {text}"
                        )
                    logging.debug(f"📤 Webhook call succeeded ({response.status}): {url}")
                    return body
        except asyncio.TimeoutError:
            raise WebhookError(f"Webhook call timed out: {url}")
        except aiohttp.ClientError as e:
            raise WebhookError(f"Webhook request failed: {e}")
