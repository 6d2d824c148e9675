"""Tests for per-brand Meta token refresh coordination."""

import asyncio
from datetime import timedelta

import pytest

from smmadmin.exceptions import DatabaseError, TokenExchangeError
from smmadmin.managers.refresh_locks import RefreshLockRegistry
from smmadmin.managers.token_refresh import TokenRefreshCoordinator
from smmadmin.models import AppCredentials, FACEBOOK, INSTAGRAM
from smmadmin.utils.dates import parse_timestamp, utcnow

from conftest import FakeGraphClient, settle


@pytest.fixture
def locks():
    return RefreshLockRegistry()


@pytest.fixture
def coordinator(token_store, graph_client, locks):
    return TokenRefreshCoordinator(token_store, graph_client, locks)


@pytest.mark.asyncio
class TestRefreshToken:
    async def test_exchange_success_replaces_token(self, coordinator, token_store, graph_client, make_brand):
        brand = make_brand()
        await token_store.set_global_token("global-old")

        result = await coordinator.refresh_token(brand, INSTAGRAM)

        assert await token_store.get_global_token() == "global-new"
        assert result["access_token"] == "global-new"
        assert result["client_id"] == "1"
        expires_at = parse_timestamp(result["expires_at"])
        expected = utcnow() + timedelta(hours=1)
        assert abs((expires_at - expected).total_seconds()) < 60

        app, current = graph_client.calls[0]
        assert app == AppCredentials(app_id="1", app_secret="s")
        assert current == "global-old"

    async def test_stored_credentials_are_not_mutated(self, coordinator, token_store, make_brand):
        brand = make_brand()
        await token_store.set_global_token("global-old")

        await coordinator.refresh_token(brand, INSTAGRAM)

        assert brand.instagram_credentials["access_token"] == "old"
        assert "expires_at" not in brand.instagram_credentials

    async def test_concurrent_calls_share_one_exchange(self, coordinator, token_store, graph_client, locks, make_brand):
        brand = make_brand()
        await token_store.set_global_token("global-old")
        graph_client.gated = True

        tasks = [asyncio.create_task(coordinator.refresh_token(brand, INSTAGRAM)) for _ in range(5)]
        await settle()
        assert len(graph_client.calls) == 1
        assert (brand.id, INSTAGRAM) in locks

        graph_client.release.set()
        results = await asyncio.gather(*tasks)

        assert len(graph_client.calls) == 1
        assert {r["access_token"] for r in results} == {"global-new"}
        assert (brand.id, INSTAGRAM) not in locks

    async def test_two_simultaneous_calls_return_same_token(self, coordinator, token_store, graph_client, make_brand):
        brand = make_brand()
        await token_store.set_global_token("global-old")

        first, second = await asyncio.gather(
            coordinator.refresh_token(brand, INSTAGRAM),
            coordinator.refresh_token(brand, INSTAGRAM),
        )

        assert len(graph_client.calls) == 1
        assert first["access_token"] == second["access_token"] == "global-new"

    async def test_different_keys_do_not_block_each_other(self, coordinator, token_store, graph_client, make_brand):
        creds = {"app_id": "2", "app_secret": "t"}
        brand = make_brand(facebook_credentials=creds)
        other = make_brand(name="Other")
        await token_store.set_global_token("global-old")
        graph_client.gated = True

        tasks = [
            asyncio.create_task(coordinator.refresh_token(brand, INSTAGRAM)),
            asyncio.create_task(coordinator.refresh_token(brand, FACEBOOK)),
            asyncio.create_task(coordinator.refresh_token(other, INSTAGRAM)),
        ]
        await settle()

        assert len(graph_client.calls) == 3
        assert graph_client.max_active == 3

        graph_client.release.set()
        await asyncio.gather(*tasks)

    async def test_exchange_failure_falls_back_to_previous_token(self, coordinator, token_store, graph_client, locks, make_brand):
        brand = make_brand()
        await token_store.set_global_token("global-old")
        graph_client.error = TokenExchangeError("Graph API token exchange failed (400): expired")

        result = await coordinator.refresh_token(brand, INSTAGRAM)

        assert result["access_token"] == "global-old"
        assert await token_store.get_global_token() == "global-old"
        assert (brand.id, INSTAGRAM) not in locks

    async def test_store_failure_after_exchange_falls_back(self, token_store, graph_client, locks, make_brand):
        brand = make_brand()
        await token_store.set_global_token("global-old")

        async def broken_set(token):
            raise DatabaseError("database is locked")

        token_store.set_global_token = broken_set
        coordinator = TokenRefreshCoordinator(token_store, graph_client, locks)

        result = await coordinator.refresh_token(brand, INSTAGRAM)

        assert result["access_token"] == "global-old"
        assert len(locks) == 0

    async def test_missing_global_token_skips_exchange(self, coordinator, graph_client, locks, make_brand):
        brand = make_brand()

        result = await coordinator.refresh_token(brand, INSTAGRAM)

        assert graph_client.calls == []
        assert result["access_token"] == "old"
        assert len(locks) == 0

    async def test_response_without_token_keeps_credentials(self, token_store, locks, make_brand):
        brand = make_brand()
        await token_store.set_global_token("global-old")
        graph = FakeGraphClient(response={"token_type": "bearer"})
        coordinator = TokenRefreshCoordinator(token_store, graph, locks)

        result = await coordinator.refresh_token(brand, INSTAGRAM)

        assert result["access_token"] == "old"
        assert await token_store.get_global_token() == "global-old"
        assert len(locks) == 0

    async def test_out_of_range_expires_in_keeps_new_token(self, token_store, locks, make_brand):
        brand = make_brand()
        await token_store.set_global_token("global-old")
        graph = FakeGraphClient(response={"access_token": "global-new", "expires_in": 10**20})
        coordinator = TokenRefreshCoordinator(token_store, graph, locks)

        result = await coordinator.refresh_token(brand, INSTAGRAM)

        assert result["access_token"] == "global-new"
        assert "expires_at" not in result
        assert await token_store.get_global_token() == "global-new"
        assert len(locks) == 0

    async def test_brand_without_credentials_returns_none(self, coordinator, graph_client, make_brand):
        brand = make_brand(instagram_credentials=None)

        assert await coordinator.refresh_token(brand, INSTAGRAM) is None
        assert await coordinator.refresh_token(brand, FACEBOOK) is None
        assert graph_client.calls == []

    async def test_incomplete_app_credentials_skip_exchange(self, coordinator, token_store, graph_client, make_brand):
        brand = make_brand(instagram_credentials={"client_id": "1", "access_token": "old"})
        await token_store.set_global_token("global-old")

        result = await coordinator.refresh_token(brand, INSTAGRAM)

        assert result == {"client_id": "1", "access_token": "old"}
        assert graph_client.calls == []

    async def test_aliases_are_normalized(self, coordinator, token_store, graph_client, make_brand):
        brand = make_brand(instagram_credentials={"appId": "42", "clientSecret": "shh"})
        await token_store.set_global_token("global-old")

        await coordinator.refresh_token(brand, INSTAGRAM)

        assert graph_client.calls[0][0] == AppCredentials(app_id="42", app_secret="shh")

    async def test_unknown_provider_is_rejected(self, coordinator, make_brand):
        with pytest.raises(ValueError):
            await coordinator.refresh_token(make_brand(), "tiktok")

    async def test_waiter_after_failed_refresh_gets_current_token(self, coordinator, token_store, graph_client, make_brand):
        brand = make_brand()
        await token_store.set_global_token("global-old")
        graph_client.gated = True
        graph_client.error = TokenExchangeError("boom")

        owner = asyncio.create_task(coordinator.refresh_token(brand, INSTAGRAM))
        await settle()
        waiter = asyncio.create_task(coordinator.refresh_token(brand, INSTAGRAM))
        await settle()
        graph_client.release.set()

        assert (await owner)["access_token"] == "global-old"
        assert (await waiter)["access_token"] == "global-old"
        assert len(graph_client.calls) == 1

    async def test_next_call_after_completion_exchanges_again(self, coordinator, token_store, graph_client, make_brand):
        brand = make_brand()
        await token_store.set_global_token("global-old")

        await coordinator.refresh_token(brand, INSTAGRAM)
        await coordinator.refresh_token(brand, INSTAGRAM)

        assert len(graph_client.calls) == 2
        assert graph_client.calls[1][1] == "global-new"
