"""Tests for post creation, generation and approval."""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from smmadmin.exceptions import DeliveryError, ValidationError
from smmadmin.managers.background import BackgroundTaskRunner
from smmadmin.managers.posts import PostManager
from smmadmin.models import PostStatus
from smmadmin.utils.dates import utcnow


@pytest.fixture
def delivery():
    mock = MagicMock()
    mock.send_to_webhook = AsyncMock(return_value=True)
    return mock


@pytest.fixture
def generator(db):
    mock = MagicMock()

    async def run_generation(post_id):
        db.update_post(post_id, short_text="generated", is_generating=False)

    mock.run_generation = AsyncMock(side_effect=run_generation)
    return mock


@pytest.fixture
def tasks():
    return BackgroundTaskRunner()


@pytest.fixture
def posts(db, delivery, generator, tasks):
    return PostManager(db, delivery, generator, tasks)


class TestCreatePost:
    def test_without_schedule_is_draft(self, posts, make_brand):
        post = posts.create_post(make_brand().id, title="Hello", body="<p>Hi</p>")
        assert post.status == PostStatus.DRAFT
        assert post.schedule_at is None

    def test_with_schedule_is_scheduled(self, posts, make_brand):
        post = posts.create_post(make_brand().id, title="Hello", schedule_at="2030-01-01T09:00:00Z")
        assert post.status == PostStatus.SCHEDULED
        assert post.schedule_at.isoformat() == "2030-01-01T09:00:00+00:00"

    def test_body_is_sanitized(self, posts, make_brand):
        post = posts.create_post(
            make_brand().id,
            body='<p onclick="x()">Hi<script>alert(1)</script></p>',
        )
        assert post.body == "<p>Hi</p>"

    def test_unknown_brand_is_rejected(self, posts):
        with pytest.raises(ValidationError):
            posts.create_post(404, title="Nope")


@pytest.mark.asyncio
class TestGeneratedPost:
    async def test_generation_runs_in_background(self, posts, generator, tasks, make_brand):
        post = posts.create_generated_post(make_brand().id, title="Idea", platform="instagram")

        assert post.is_generating
        assert not posts.generation_ready(post.id)

        await tasks.drain()

        generator.run_generation.assert_awaited_once_with(post.id)
        assert posts.generation_ready(post.id)
        assert posts.get_preview(post.id)["short_text"] == "generated"

    async def test_past_schedule_stays_draft(self, posts, tasks, make_brand):
        now = utcnow()
        post = posts.create_generated_post(
            make_brand().id, schedule_at=now - timedelta(hours=1), now=now
        )
        await tasks.drain()
        assert post.status == PostStatus.DRAFT

    async def test_future_schedule_is_scheduled(self, posts, tasks, make_brand):
        now = utcnow()
        post = posts.create_generated_post(
            make_brand().id, schedule_at=now + timedelta(hours=1), now=now
        )
        await tasks.drain()
        assert post.status == PostStatus.SCHEDULED

    async def test_tiktok_uses_video_as_media(self, posts, tasks, make_brand):
        post = posts.create_generated_post(
            make_brand().id, platform="tiktok", image_path="cover.png", video_path="clip.mp4"
        )
        await tasks.drain()
        assert post.image_path == "clip.mp4"


@pytest.mark.asyncio
class TestApprovePost:
    async def test_future_post_waits_for_dispatch(self, db, posts, delivery, tasks, make_brand):
        now = utcnow()
        post = db.create_post(make_brand().id, schedule_at=now + timedelta(days=1))

        status, message = posts.approve_post(post.id, now=now)
        await tasks.drain()

        assert status == PostStatus.SCHEDULED
        assert message.startswith("Post scheduled for ")
        assert db.get_post(post.id).status == PostStatus.SCHEDULED
        delivery.send_to_webhook.assert_not_awaited()

    async def test_immediate_post_is_published_in_background(self, db, posts, delivery, tasks, make_brand):
        post = db.create_post(make_brand().id)

        status, message = posts.approve_post(post.id)

        assert status == PostStatus.APPROVED
        assert message == "Post sent for publishing"
        assert db.get_post(post.id).status == PostStatus.APPROVED
        assert tasks.pending == 1

        await tasks.drain()
        delivery.send_to_webhook.assert_awaited_once_with(post.id)

    async def test_failed_post_can_be_approved_again(self, db, posts, delivery, tasks, make_brand):
        post = db.create_post(make_brand().id, status=PostStatus.FAILED, last_error="n8n down")

        status, _ = posts.approve_post(post.id)
        await tasks.drain()

        assert status == PostStatus.APPROVED
        delivery.send_to_webhook.assert_awaited_once_with(post.id)

    async def test_background_delivery_failure_is_contained(self, db, posts, delivery, tasks, make_brand):
        delivery.send_to_webhook.side_effect = DeliveryError("n8n down")
        post = db.create_post(make_brand().id)

        posts.approve_post(post.id)
        await tasks.drain()

        assert tasks.pending == 0

    async def test_missing_post_is_rejected(self, posts):
        with pytest.raises(ValidationError):
            posts.approve_post(12345)
