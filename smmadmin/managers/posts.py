"""Post lifecycle management for smmadmin."""

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Tuple, Union

from smmadmin.models import Post, PostStatus
from smmadmin.exceptions import ValidationError
from smmadmin.managers.background import BackgroundTaskRunner
from smmadmin.managers.database import DatabaseManager
from smmadmin.managers.delivery import PostDelivery
from smmadmin.managers.generation import ContentGenerator
from smmadmin.utils.dates import parse_timestamp, utcnow
from smmadmin.utils.strings import sanitize_html


class PostManager:
    """Creates posts, runs generation and approval.

    Generation and approval-triggered publishing run in the background; the
    caller only gets an acknowledgment and follows progress through the
    post's ``is_generating``, ``status`` and ``last_error`` fields.
    """

    def __init__(
        self,
        db_manager: DatabaseManager,
        delivery: PostDelivery,
        generator: ContentGenerator,
        tasks: BackgroundTaskRunner,
    ):
        """Initialize the post manager.

        Args:
            db_manager: DatabaseManager instance for data persistence
            delivery: PostDelivery used when a post is approved
            generator: ContentGenerator used for generated posts
            tasks: Runner for detached work
        """
        self.db = db_manager
        self.delivery = delivery
        self.generator = generator
        self.tasks = tasks

    def _require_brand(self, brand_id: int) -> None:
        if not self.db.get_brand(brand_id):
            raise ValidationError("Brand not found")

    def _require_post(self, post_id: int) -> Post:
        post = self.db.get_post(post_id)
        if not post:
            raise ValidationError("Post not found")
        return post

    def create_post(
        self,
        brand_id: int,
        title: Optional[str] = None,
        body: Optional[str] = None,
        schedule_at: Union[str, datetime, None] = None,
        platform: Optional[str] = None,
        language: Optional[str] = None,
        image_path: Optional[str] = None,
        created_by_id: Optional[int] = None,
    ) -> Post:
        """Create a post; it is ``scheduled`` when a schedule time is given.

        Raises:
            ValidationError: If the brand does not exist
        """
        self._require_brand(brand_id)
        schedule = parse_timestamp(schedule_at)
        status = PostStatus.SCHEDULED if schedule else PostStatus.DRAFT

        post = self.db.create_post(
            brand_id,
            title=title or None,
            body=sanitize_html(body) or None,
            image_path=image_path,
            platform=platform,
            language=language,
            schedule_at=schedule,
            status=status,
            created_by_id=created_by_id,
        )
        logging.info(f"📝 Post {post.id} created ({status.value}) for brand {brand_id}")
        return post

    def create_generated_post(
        self,
        brand_id: int,
        title: Optional[str] = None,
        body: Optional[str] = None,
        platform: Optional[str] = None,
        language: Optional[str] = None,
        schedule_at: Union[str, datetime, None] = None,
        image_path: Optional[str] = None,
        video_path: Optional[str] = None,
        created_by_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Post:
        """Create a draft and start content generation in the background.

        The post is ``scheduled`` only if its schedule time lies in the future.
        TikTok posts carry their video as the post media.

        Raises:
            ValidationError: If the brand does not exist
        """
        self._require_brand(brand_id)
        schedule = parse_timestamp(schedule_at)
        reference = now or utcnow()
        status = PostStatus.SCHEDULED if schedule and schedule > reference else PostStatus.DRAFT
        media = video_path if platform == "tiktok" else image_path

        post = self.db.create_post(
            brand_id,
            title=title,
            body=body or "",
            platform=platform,
            language=language,
            status=status,
            schedule_at=schedule,
            created_by_id=created_by_id,
            image_path=media,
            is_generating=True,
        )

        self.tasks.spawn(self.generator.run_generation(post.id), name=f"generate-post-{post.id}")
        return post

    def generation_ready(self, post_id: int) -> bool:
        """True once background generation for the post has finished."""
        return not self._require_post(post_id).is_generating

    def get_preview(self, post_id: int) -> Dict[str, Any]:
        """Generated content of a post, as shown in the preview."""
        post = self._require_post(post_id)
        return {
            "title": post.title,
            "body": post.long_text or post.body,
            "short_text": post.short_text,
            "long_text": post.long_text,
            "caption": post.caption,
            "hashtags": post.hashtags,
            "image": post.image_path,
            "video": post.video_path,
            "platform": post.platform,
            "ready": not post.is_generating,
        }

    def approve_post(
        self, post_id: int, now: Optional[datetime] = None
    ) -> Tuple[PostStatus, str]:
        """Approve a post for publishing.

        A post scheduled in the future becomes ``scheduled`` and waits for the
        dispatcher; anything else becomes ``approved`` and is published in
        the background right away.

        Returns:
            Tuple of (new status, message for the user)

        Raises:
            ValidationError: If the post does not exist
        """
        post = self._require_post(post_id)
        reference = now or utcnow()

        if post.schedule_at and post.schedule_at > reference:
            status = PostStatus.SCHEDULED
            message = f"Post scheduled for {post.schedule_at.isoformat()}"
        else:
            status = PostStatus.APPROVED
            message = "Post sent for publishing"

        self.db.update_post(post_id, status=status)
        logging.info(f"👍 Post {post_id} approved ({status.value})")

        if status == PostStatus.APPROVED:
            self.tasks.spawn(
                self.delivery.send_to_webhook(post_id), name=f"deliver-post-{post_id}"
            )

        return status, message
