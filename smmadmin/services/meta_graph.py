"""Meta Graph API client for long-lived token exchange."""

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from smmadmin.config import DEFAULT_GRAPH_API_URL
from smmadmin.exceptions import TokenExchangeError
from smmadmin.models import AppCredentials
from smmadmin.utils.network import NetworkConfig


class MetaGraphClient:
    """Exchanges a Meta access token for a fresh long-lived one."""

    def __init__(
        self,
        graph_api_url: str = DEFAULT_GRAPH_API_URL,
        network_config: Optional[NetworkConfig] = None,
    ):
        """Initialize the client.

        Args:
            graph_api_url: Versioned Graph API base URL
            network_config: Optional network configuration for timeouts
        """
        self.graph_api_url = graph_api_url.rstrip("/")
        self.network_config = network_config

    @property
    def exchange_url(self) -> str:
        return f"{self.graph_api_url}/oauth/access_token"

    def _timeout(self) -> aiohttp.ClientTimeout:
        if self.network_config:
            return self.network_config.get_exchange_timeout()
        return aiohttp.ClientTimeout(total=10)

    async def exchange_token(self, app: AppCredentials, current_token: str) -> Dict[str, Any]:
        """Call the fb_exchange_token grant.

        Args:
            app: App identity used as client_id / client_secret
            current_token: Token to exchange

        Returns:
            Response JSON; may contain ``access_token`` and ``expires_in``

        Raises:
            TokenExchangeError: On network errors, timeouts, HTTP errors or
                an ``error`` object in the response
        """
        params = {
            "grant_type": "fb_exchange_token",
            "client_id": app.app_id,
            "client_secret": app.app_secret,
            "fb_exchange_token": current_token,
        }
        timeout = self._timeout()

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(self.exchange_url, params=params) as response:
                    try:
                        data = await response.json(content_type=None)
                    except ValueError:
                        data = None

                    if response.status != 200 or not isinstance(data, dict) or "error" in data:
                        error = "Unknown error"
                        details = data.get("error") if isinstance(data, dict) else None
                        if isinstance(details, dict):
                            error = details.get("message", error)
                        elif details:
                            error = str(details)
                        raise TokenExchangeError(
                            f"Graph API token exchange failed ({response.status}): {error}"
                        )

                    logging.debug(f"🔑 Graph API token exchange succeeded for app {app.app_id}")
                    return data
        except asyncio.TimeoutError:
            raise TokenExchangeError(
                f"Graph API token exchange timed out after {timeout.total}s"
            )
        except aiohttp.ClientError as e:
            raise TokenExchangeError(f"Graph API token exchange request failed: {e}")
