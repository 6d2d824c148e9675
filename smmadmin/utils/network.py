"""Network utilities for smmadmin.

This module provides a centralized configuration for HTTP timeouts used by
the Graph API and webhook clients.
"""

import logging
from typing import Optional

import aiohttp

DEFAULT_EXCHANGE_TIMEOUT = 10.0


class NetworkConfig:
    """Centralized configuration for network operations."""

    def __init__(self, config):
        """Initialize network configuration.

        Args:
            config: Config instance
        """
        self.config = config
        self._load_config()

    def _load_config(self):
        """Load network configuration settings."""
        # Token exchange must not hang the delivery path
        self.exchange_timeout = self.config.getfloat(
            "meta", "exchange_timeout", fallback=DEFAULT_EXCHANGE_TIMEOUT
        )
        if not self.exchange_timeout > 0:
            logging.warning(
                f"⚠️ Invalid exchange_timeout {self.exchange_timeout}, "
                f"using {DEFAULT_EXCHANGE_TIMEOUT:g}s"
            )
            self.exchange_timeout = DEFAULT_EXCHANGE_TIMEOUT

        # 0 means no timeout; publishing large media can take a long time
        self.webhook_timeout = self.config.getfloat(
            "webhooks", "timeout", fallback=0.0
        )

    def update_from_config(self):
        """Update settings from configuration."""
        self._load_config()
        logging.debug("🔄 Network configuration updated")

    def get_exchange_timeout(self) -> aiohttp.ClientTimeout:
        """Timeout for Graph API token exchange requests."""
        return aiohttp.ClientTimeout(total=self.exchange_timeout)

    def get_webhook_timeout(self) -> aiohttp.ClientTimeout:
        """Timeout for webhook requests (unbounded unless configured)."""
        total: Optional[float] = self.webhook_timeout or None
        return aiohttp.ClientTimeout(total=total)
