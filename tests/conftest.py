"""Shared fixtures for the smmadmin test suite."""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

import pytest

from smmadmin.managers.database import DatabaseManager
from smmadmin.managers.token_store import GlobalTokenStore
from smmadmin.models import AppCredentials
from smmadmin.exceptions import WebhookError


CONFIG_TEMPLATE = """
[general]
log_level = DEBUG
log_file =
upload_directory = {upload_dir}

[database]
path = {db_path}

[meta]
exchange_timeout = 5

[webhooks]
post_url = http://n8n.test/publish
generate_url = http://n8n.test/generate
upload_rag_url = http://n8n.test/rag-upload
delete_rag_url = http://n8n.test/rag-delete
"""


class FakeGraphClient:
    """Stand-in for MetaGraphClient that records exchange calls.

    When ``gated`` is set, every exchange blocks until ``release`` is set.
    """

    def __init__(self, response: Optional[Dict[str, Any]] = None):
        self.response = response if response is not None else {
            "access_token": "global-new",
            "expires_in": 3600,
        }
        self.error: Optional[Exception] = None
        self.gated = False
        self.release = asyncio.Event()
        self.calls: List[Tuple[AppCredentials, str]] = []
        self.active = 0
        self.max_active = 0

    async def exchange_token(self, app: AppCredentials, current_token: str) -> Dict[str, Any]:
        self.calls.append((app, current_token))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.gated:
                await self.release.wait()
            else:
                await asyncio.sleep(0)
            if self.error:
                raise self.error
            return dict(self.response)
        finally:
            self.active -= 1


class FakeWebhookClient:
    """Stand-in for WebhookClient that records calls instead of sending them."""

    def __init__(self, response: bytes = b"{}"):
        self.response = response
        self.error: Optional[Exception] = None
        self.forms: List[Tuple[str, Dict[str, Any]]] = []
        self.json_calls: List[Tuple[str, Dict[str, Any]]] = []

    async def post_form(self, url, form) -> bytes:
        self.forms.append((url, form_fields(form)))
        if self.error:
            raise self.error
        if not url:
            raise WebhookError("Webhook URL is not configured")
        return self.response

    async def post_json(self, url, payload) -> bytes:
        self.json_calls.append((url, payload))
        if self.error:
            raise self.error
        if not url:
            raise WebhookError("Webhook URL is not configured")
        return self.response


def form_fields(form) -> Dict[str, Any]:
    """Map field name to value for an aiohttp.FormData."""
    fields = {}
    for type_options, _headers, value in form._fields:
        name = type_options["name"]
        if "filename" in type_options:
            fields[name] = {"filename": type_options["filename"], "content": _read(value)}
        else:
            fields[name] = value
    return fields


def _read(value):
    if hasattr(value, "read"):
        position = value.tell()
        content = value.read()
        value.seek(position)
        return content
    return value


async def settle(rounds: int = 5) -> None:
    """Let every ready task run until it blocks."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def db(tmp_path):
    return DatabaseManager(str(tmp_path / "smmadmin.db"))


@pytest.fixture
def token_store(db):
    return GlobalTokenStore(db)


@pytest.fixture
def graph_client():
    return FakeGraphClient()


@pytest.fixture
def webhooks():
    return FakeWebhookClient()


@pytest.fixture
def upload_dir(tmp_path):
    directory = tmp_path / "uploads"
    directory.mkdir()
    return directory


@pytest.fixture
def config_file(tmp_path, upload_dir):
    path = tmp_path / "config.ini"
    path.write_text(
        CONFIG_TEMPLATE.format(upload_dir=upload_dir, db_path=tmp_path / "app.db")
    )
    return path


@pytest.fixture
def make_brand(db):
    """Create a brand with Instagram credentials by default."""

    def _make_brand(**fields):
        values = {
            "name": "Acme",
            "description": "Acme brand",
            "instagram_credentials": {"client_id": "1", "client_secret": "s", "access_token": "old"},
        }
        values.update(fields)
        return db.create_brand(**values)

    return _make_brand
