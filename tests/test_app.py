"""Tests for application wiring and the admin CLI."""

import asyncio
import os
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from smmadmin import cli
from smmadmin.core import SmmAdmin
from smmadmin.models import PostStatus
from smmadmin.utils.dates import utcnow


@pytest.fixture
def app(config_file):
    return SmmAdmin(str(config_file), configure_logging=False)


class TestSmmAdmin:
    def test_components_follow_config(self, app, upload_dir):
        assert app.upload_directory == upload_dir
        assert app.delivery.publish_url == "http://n8n.test/publish"
        assert app.generator.generate_url == "http://n8n.test/generate"
        assert app.documents.delete_rag_url == "http://n8n.test/rag-delete"
        assert app.dispatcher.interval == 60
        assert app.refresh_coordinator.locks is app.refresh_locks

    def test_reloaded_settings_are_applied(self, app, config_file):
        config_file.write_text(
            config_file.read_text()
            .replace("http://n8n.test/publish", "http://n8n.test/v2/publish")
            + "\n[scheduler]\nenabled = true\ninterval = 30\n"
        )
        stat = config_file.stat()
        os.utime(config_file, (stat.st_atime, stat.st_mtime + 5))

        assert app.config.reload_if_changed()
        app._apply_config_changes()

        assert app.delivery.publish_url == "http://n8n.test/v2/publish"
        assert app.dispatcher.interval == 30


@pytest.mark.asyncio
class TestRun:
    async def test_run_starts_dispatch_and_stops_cleanly(self, app):
        app.dispatcher.interval = 0.01
        app.dispatcher.run_tick = AsyncMock(return_value=0)

        task = asyncio.create_task(app.run())
        await asyncio.sleep(0.05)
        task.cancel()
        await task

        assert app.dispatcher.run_tick.await_count >= 1
        assert app.tasks.pending == 0


class TestAdminCLI:
    def test_token_set_and_status(self, config_file):
        assert cli.main(["-c", str(config_file), "token", "status"]) == 1
        assert cli.main(["-c", str(config_file), "token", "set", "EAAB-long-lived-token"]) == 0
        assert cli.main(["-c", str(config_file), "token", "status"]) == 0

    def test_no_command(self, config_file):
        assert cli.main(["-c", str(config_file)]) == 1

    def test_brands_and_posts(self, app, config_file):
        brand = app.db.create_brand(name="Acme")
        app.db.create_post(brand.id, title="Hello")

        assert cli.main(["-c", str(config_file), "brands"]) == 0
        assert cli.main(["-c", str(config_file), "posts", str(brand.id)]) == 0
        assert cli.main(["-c", str(config_file), "posts", "999"]) == 1

    def test_refresh_unknown_brand(self, config_file):
        assert cli.main(["-c", str(config_file), "refresh", "999"]) == 1

    def test_dispatch_without_due_posts(self, app, config_file):
        brand = app.db.create_brand(name="Acme")
        app.db.create_post(
            brand.id, status=PostStatus.SCHEDULED, schedule_at=utcnow() + timedelta(days=1)
        )

        assert cli.main(["-c", str(config_file), "dispatch"]) == 0
