"""Per-brand Meta token refresh coordination."""

import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from smmadmin.models import AppCredentials, Brand, INSTAGRAM, META_PROVIDERS
from smmadmin.managers.refresh_locks import RefreshLockRegistry
from smmadmin.managers.token_store import GlobalTokenStore
from smmadmin.services.meta_graph import MetaGraphClient
from smmadmin.utils.credentials import normalize_app_credentials
from smmadmin.utils.dates import utcnow


class TokenRefreshCoordinator:
    """Produces up-to-date Meta credentials for a brand and provider.

    Concurrent refreshes for the same (brand, provider) collapse into a
    single Graph API exchange: the first caller performs it, the others wait
    and pick up whatever global token it left behind. Exchange failures are
    logged and never raised; the caller always gets usable, possibly stale,
    credentials.
    """

    def __init__(
        self,
        token_store: GlobalTokenStore,
        graph_client: MetaGraphClient,
        locks: Optional[RefreshLockRegistry] = None,
    ):
        """Initialize the coordinator.

        Args:
            token_store: Global token store read and updated by refreshes
            graph_client: Client performing the token exchange
            locks: Registry of in-flight refreshes (a private one by default)
        """
        self.token_store = token_store
        self.graph_client = graph_client
        self.locks = locks if locks is not None else RefreshLockRegistry()

    async def refresh_token(
        self, brand: Brand, provider: str = INSTAGRAM
    ) -> Optional[Dict[str, Any]]:
        """Refresh the brand's credentials for a Meta provider.

        Args:
            brand: Brand whose credentials are refreshed
            provider: "instagram" or "facebook"

        Returns:
            Updated copy of the provider credentials, or None when the brand
            has no credentials for the provider
        """
        if provider not in META_PROVIDERS:
            raise ValueError(f"Unsupported provider: {provider}")

        stored = brand.credentials_for(provider)
        if not stored:
            return None

        credentials = dict(stored)
        app = normalize_app_credentials(credentials)
        if not app:
            logging.warning(f"⚠️ {provider} credentials incomplete for brand {brand.id}")
            return credentials

        key = (brand.id, provider)
        if key in self.locks:
            logging.debug(f"⏳ Waiting for in-flight {provider} refresh for brand {brand.id}")
            await self.locks.wait(key)
            return await self._apply_global_token(credentials)

        async with self.locks.hold(key):
            return await self._exchange(brand, provider, app, credentials)

    async def _exchange(
        self,
        brand: Brand,
        provider: str,
        app: AppCredentials,
        credentials: Dict[str, Any],
    ) -> Dict[str, Any]:
        try:
            global_token = await self.token_store.get_global_token()
            if not global_token:
                logging.warning(f"⚠️ No global token for brand {brand.id} ({provider})")
                return credentials

            data = await self.graph_client.exchange_token(app, global_token)

            new_token = data.get("access_token")
            if not new_token:
                logging.warning(f"⚠️ No access_token in Graph API response: {data}")
                return credentials

            await self.token_store.set_global_token(new_token)
            logging.info(
                f"✅ Global token updated from Graph API response for brand {brand.id} provider={provider}"
            )

            credentials["access_token"] = new_token
            expires_in = data.get("expires_in")
            if expires_in:
                try:
                    expires_at = utcnow() + timedelta(seconds=float(expires_in))
                    credentials["expires_at"] = expires_at.isoformat()
                except (TypeError, ValueError, OverflowError):
                    logging.warning(f"⚠️ Ignoring invalid expires_in value: {expires_in}")

            return credentials
        except Exception as e:
            logging.error(f"❌ Error refreshing {provider} token for brand {brand.id}: {e}")
            return await self._apply_global_token(credentials)

    async def _apply_global_token(self, credentials: Dict[str, Any]) -> Dict[str, Any]:
        """Stamp the current global token (if any) into a fresh copy."""
        result = dict(credentials)
        token = await self.token_store.get_global_token()
        if token:
            result["access_token"] = token
        return result
