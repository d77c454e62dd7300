"""Tests for MongoDB handles, shard routing and index setup"""
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from job_manager.core.errors import ErrorResponse
from job_manager.db.mongodb import (
    COMPANIES,
    COMPANY_ACCOUNTS,
    SESSION_INVALIDATIONS,
    SUBSCRIPTIONS,
    UNDELIVERED_EVENTS,
    MongoDatabase,
    ShardRouter,
    ensure_indexes,
)
from job_manager.models.country import ALL_SHARDS


class FakeDatabase:
    """Hands out one recording collection per name"""

    def __init__(self, collection_factory):
        self._factory = collection_factory
        self.collections = {}

    def collection(self, name):
        if name not in self.collections:
            self.collections[name] = self._factory(name)
        return self.collections[name]


class FakeShardRouter:

    def __init__(self, collection_factory):
        self.shard_collections = {shard: collection_factory(COMPANY_ACCOUNTS) for shard in ALL_SHARDS}

    def collections(self, name=COMPANY_ACCOUNTS):
        return self.shard_collections


class TestEnsureIndexes:

    @pytest.mark.asyncio
    async def test_company_indexes(self, collection_factory):
        database = FakeDatabase(collection_factory)

        await ensure_indexes("company", database)

        assert [keys for keys, _ in database.collections[COMPANIES].indexes] == ["countryCode", "createdAt"]
        assert database.collections[UNDELIVERED_EVENTS].indexes

    @pytest.mark.asyncio
    async def test_subscription_indexes(self, collection_factory):
        database = FakeDatabase(collection_factory)

        await ensure_indexes("subscription", database)

        keys = [keys for keys, _ in database.collections[SUBSCRIPTIONS].indexes]
        assert [("companyId", 1), ("createdAt", -1)] in keys

    @pytest.mark.asyncio
    async def test_auth_indexes_cover_every_shard(self, collection_factory):
        database = FakeDatabase(collection_factory)
        shard_router = FakeShardRouter(collection_factory)

        await ensure_indexes("auth", database, shard_router)

        for collection in shard_router.shard_collections.values():
            assert "email" in collection.unique_fields
        ttl_index = database.collections[SESSION_INVALIDATIONS].indexes[0]
        assert ttl_index[1]["expireAfterSeconds"] == 7 * 24 * 3600


class TestShardRouter:

    def test_shards_share_a_client_per_uri(self):
        with patch("job_manager.db.mongodb.create_client", side_effect=lambda uri: MagicMock(name=uri)) as create:
            router = ShardRouter("mongodb://main:27017", {"auth_shard_vn": "mongodb://vn:27017"})

        assert create.call_count == 2
        assert set(router.collections()) == set(ALL_SHARDS)
        assert router.database("auth_shard_vn").client is not router.database("auth_shard_sg").client

    def test_unknown_shard_key_rejected(self):
        with patch("job_manager.db.mongodb.create_client"):
            with pytest.raises(ValueError):
                ShardRouter("mongodb://main:27017", {"auth_shard_mars": "mongodb://mars:27017"})

    @pytest.mark.asyncio
    async def test_ping_reports_each_shard(self):
        clients = {}

        def create(uri):
            client = MagicMock(name=uri)
            client.admin.command = AsyncMock(
                side_effect=ConnectionError("down") if "vn" in uri else None
            )
            # shard databases point back at their client like motor's do
            client.__getitem__.side_effect = lambda name: MagicMock(client=client)
            clients[uri] = client
            return client

        with patch("job_manager.db.mongodb.create_client", side_effect=create):
            router = ShardRouter("mongodb://main:27017", {"auth_shard_vn": "mongodb://vn:27017"})

        results = await router.ping()

        assert results["auth_shard_vn"] is False
        assert results["auth_shard_sg"] is True


class TestMongoDatabase:

    @pytest.mark.asyncio
    async def test_ping_failure_is_503(self):
        client = MagicMock()
        client.admin.command = AsyncMock(side_effect=ConnectionError("refused"))
        database = MongoDatabase("mongodb://main:27017", "job_manager", client=client)

        with pytest.raises(ErrorResponse) as exc_info:
            await database.ping()

        assert exc_info.value.status_code == 503
