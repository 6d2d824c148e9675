"""Post delivery to the n8n publishing webhook."""

import json
import logging
from typing import Any, Dict, Optional

import aiohttp

from smmadmin.models import Brand, Post, DELIVERABLE_STATUSES, FACEBOOK, INSTAGRAM, PostStatus
from smmadmin.exceptions import DatabaseError, DeliveryError, ValidationError
from smmadmin.managers.database import DatabaseManager
from smmadmin.managers.token_refresh import TokenRefreshCoordinator
from smmadmin.managers.token_store import GlobalTokenStore
from smmadmin.services.webhooks import WebhookClient
from smmadmin.utils.strings import join_hashtags


class PostDelivery:
    """Hands approved and due posts to the publishing workflow."""

    def __init__(
        self,
        db_manager: DatabaseManager,
        token_store: GlobalTokenStore,
        refresh_coordinator: TokenRefreshCoordinator,
        webhook_client: WebhookClient,
        publish_url: Optional[str],
    ):
        """Initialize post delivery.

        Args:
            db_manager: DatabaseManager instance for posts and brands
            token_store: Global Meta token store
            refresh_coordinator: Coordinator refreshing Meta credentials
            webhook_client: Client for the n8n webhooks
            publish_url: Publishing webhook URL
        """
        self.db = db_manager
        self.token_store = token_store
        self.refresh_coordinator = refresh_coordinator
        self.webhook_client = webhook_client
        self.publish_url = publish_url

    async def send_to_webhook(self, post_id: int) -> bool:
        """Publish one post through the n8n workflow.

        Meta credentials are refreshed just before sending. The post ends up
        ``sent`` on success and ``failed`` (with ``last_error``) otherwise.

        Args:
            post_id: Post to publish

        Returns:
            True if the post was sent, False if its status does not allow sending

        Raises:
            ValidationError: If the post or its brand does not exist
            DeliveryError: If the publishing webhook call failed
        """
        post = self.db.get_post(post_id)
        if not post:
            raise ValidationError(f"Post {post_id} not found")

        if post.status not in DELIVERABLE_STATUSES:
            logging.info(f"⛔️ Post {post_id} is {post.status.value}, skipping delivery")
            return False

        brand = self.db.get_brand(post.brand_id)
        if not brand:
            raise ValidationError(f"Brand {post.brand_id} for post {post_id} not found")

        instagram = await self._refreshed_credentials(brand, INSTAGRAM)
        facebook = await self._refreshed_credentials(brand, FACEBOOK)
        global_token = await self.token_store.get_global_token()

        form = self.build_form(post, brand, instagram, facebook, global_token)

        sent = False
        try:
            await self.webhook_client.post_form(self.publish_url, form)
            sent = True
            self.db.update_post(post_id, status=PostStatus.SENT, last_error=None)
        except Exception as e:
            if sent:
                logging.error(f"❌ Post {post_id} reached n8n but could not be marked sent: {e}")
            else:
                logging.error(f"❌ Error sending post {post_id} to n8n: {e}")
            try:
                self.db.update_post(post_id, status=PostStatus.FAILED, last_error=str(e))
            except DatabaseError as db_error:
                logging.error(
                    f"💥 Could not mark post {post_id} failed, it may be published again: {db_error}"
                )
            raise DeliveryError(f"Failed to deliver post {post_id}: {e}") from e

        logging.info(f"✅ Post {post_id} sent to n8n")
        return True

    async def _refreshed_credentials(self, brand: Brand, provider: str) -> Dict[str, Any]:
        """Refresh one provider's credentials, falling back to the stored copy."""
        stored = brand.credentials_for(provider)
        credentials = dict(stored) if stored else {}
        if not stored:
            return credentials

        try:
            refreshed = await self.refresh_coordinator.refresh_token(brand, provider)
            if refreshed:
                credentials = refreshed
        except Exception as e:
            logging.error(f"💥 Failed to refresh {provider} token for brand {brand.id}: {e}")
        return credentials

    def build_form(
        self,
        post: Post,
        brand: Brand,
        instagram: Dict[str, Any],
        facebook: Dict[str, Any],
        global_token: Optional[str],
    ) -> aiohttp.FormData:
        """Assemble the multipart payload expected by the publishing workflow."""
        form = aiohttp.FormData()
        fields = [
            ("brand_id", str(brand.id)),
            ("brand_name", brand.name),
            ("brand_description", brand.description or ""),
            ("platform", post.platform or ""),
            ("language", post.language or ""),
            ("post_id", str(post.id)),
            ("title", post.title or ""),
            ("short_text", post.short_text or ""),
            ("long_text", post.long_text or ""),
            ("caption", post.caption or ""),
            ("hashtags", join_hashtags(post.hashtags)),
            ("body", post.body or ""),
            ("telegram", brand.telegram_channel or "null"),
            ("wordpress", json.dumps(brand.wordpress_credentials or {})),
            ("linkedin", json.dumps(brand.linkedin_credentials or {})),
            ("tiktok", brand.tiktok_credentials or "null"),
            ("image_base64", post.image_path or ""),
            ("instagram", json.dumps(instagram or {})),
            ("facebook", json.dumps(facebook or {})),
            ("instagramFacebook_token", global_token or "null"),
        ]
        for name, value in fields:
            form.add_field(name, value)
        return form
