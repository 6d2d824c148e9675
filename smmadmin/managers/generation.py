"""AI content generation through the n8n generation webhook."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiohttp

from smmadmin.exceptions import ValidationError
from smmadmin.managers.database import DatabaseManager
from smmadmin.services.webhooks import WebhookClient
from smmadmin.utils.decode import decode_webhook_payload


def _coerce_hashtags(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return value.split()
    return [str(tag) for tag in value]


class ContentGenerator:
    """Asks the generation workflow to write post copy and stores the result."""

    def __init__(
        self,
        db_manager: DatabaseManager,
        webhook_client: WebhookClient,
        generate_url: Optional[str],
        upload_directory: Path,
    ):
        """Initialize the generator.

        Args:
            db_manager: DatabaseManager instance for posts and brands
            webhook_client: Client for the n8n webhooks
            generate_url: Generation webhook URL
            upload_directory: Directory holding uploaded media
        """
        self.db = db_manager
        self.webhook_client = webhook_client
        self.generate_url = generate_url
        self.upload_directory = upload_directory

    async def generate_post_preview(self, post_id: int) -> Dict[str, Any]:
        """Generate content for a draft post and write it back to the post.

        Args:
            post_id: Post to generate content for

        Returns:
            The preview object returned by the workflow

        Raises:
            ValidationError: If the post or brand does not exist
            WebhookError: If the generation webhook call fails
        """
        post = self.db.get_post(post_id)
        if not post:
            raise ValidationError(f"Post {post_id} not found")
        brand = self.db.get_brand(post.brand_id)
        if not brand:
            raise ValidationError(f"Brand {post.brand_id} for post {post_id} not found")

        form = aiohttp.FormData()
        form.add_field("brandId", str(brand.id))
        form.add_field("brand_name", brand.name)
        form.add_field("brand_description", brand.description or "")
        form.add_field("title", post.title or "")
        form.add_field("body", post.body or "")
        form.add_field("platform", post.platform or "")
        form.add_field("language", post.language or "")

        media_path = self.upload_directory / post.image_path if post.image_path else None
        if media_path and media_path.exists():
            content_type = "video/mp4" if post.platform == "tiktok" else "image/png"
            with open(media_path, "rb") as media:
                form.add_field("data", media, filename="data", content_type=content_type)
                body = await self.webhook_client.post_form(self.generate_url, form)
        else:
            body = await self.webhook_client.post_form(self.generate_url, form)

        preview = decode_webhook_payload(body)

        self.db.update_post(
            post_id,
            title=preview.get("title") or post.title,
            short_text=preview.get("short_text") or None,
            long_text=preview.get("long_text") or None,
            caption=preview.get("caption") or None,
            hashtags=_coerce_hashtags(preview.get("hashtags")),
            image_path=preview.get("image") or post.image_path,
        )
        logging.info(f"🤖 Generated content for post {post_id}")
        return preview

    async def run_generation(self, post_id: int) -> None:
        """Background wrapper: generate, then always clear ``is_generating``."""
        try:
            await self.generate_post_preview(post_id)
        except Exception as e:
            logging.error(f"💥 Async generation failed for post {post_id}: {e}")
        finally:
            self.db.update_post(post_id, is_generating=False)
