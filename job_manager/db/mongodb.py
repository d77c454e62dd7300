"""
MongoDB connection handles.

MongoDatabase wraps the service's own database. ShardRouter owns one client
per distinct URI and exposes the auth shard databases, one database per
shard key. Both are created once per process and passed down explicitly.
"""

from typing import Dict, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase

from job_manager.core.errors import ErrorResponse
from job_manager.core.logger import logger
from job_manager.models.country import ALL_SHARDS

COMPANIES = "companies"
COMPANY_ACCOUNTS = "company_accounts"
SUBSCRIPTIONS = "subscriptions"
UNDELIVERED_EVENTS = "undelivered_events"
SESSION_INVALIDATIONS = "session_invalidations"


def create_client(uri: str) -> AsyncIOMotorClient:
    # tz_aware so datetimes read back compare against timezone-aware "now"
    return AsyncIOMotorClient(uri, tz_aware=True)


class MongoDatabase:
    """The service's own database"""

    def __init__(self, uri: str, database_name: str, client: Optional[AsyncIOMotorClient] = None):
        self.uri = uri
        self.database_name = database_name
        self.client = client or create_client(uri)
        self.db: AsyncIOMotorDatabase = self.client[database_name]

    def collection(self, name: str) -> AsyncIOMotorCollection:
        return self.db[name]

    async def ping(self) -> None:
        try:
            await self.client.admin.command("ping")
        except Exception as e:
            logger.error(
                f"MongoDB database '{self.database_name}' is not accessible",
                error=e,
                metadata={"event": "mongodb_ping_failed", "database": self.database_name}
            )
            raise ErrorResponse(
                f"MongoDB database '{self.database_name}' is not accessible: {e}",
                status_code=503
            )

    def close(self) -> None:
        self.client.close()


class ShardRouter:
    """
    Resolves auth shard keys to databases.

    Every shard defaults to default_uri; overrides map a shard key to its own
    URI. Clients are shared between shards that use the same URI.
    """

    def __init__(self, default_uri: str, overrides: Optional[Dict[str, str]] = None):
        overrides = overrides or {}
        unknown = set(overrides) - set(ALL_SHARDS)
        if unknown:
            raise ValueError(f"Unknown shard keys in AUTH_SHARD_URIS: {sorted(unknown)}")

        self._clients: Dict[str, AsyncIOMotorClient] = {}
        self._databases: Dict[str, AsyncIOMotorDatabase] = {}
        for shard in ALL_SHARDS:
            uri = overrides.get(shard, default_uri)
            if uri not in self._clients:
                self._clients[uri] = create_client(uri)
            self._databases[shard] = self._clients[uri][shard]

        logger.info(
            "Shard router initialized",
            metadata={"shards": ALL_SHARDS, "distinctClients": len(self._clients)}
        )

    def database(self, shard: str) -> AsyncIOMotorDatabase:
        return self._databases[shard]

    def collections(self, name: str = COMPANY_ACCOUNTS) -> Dict[str, AsyncIOMotorCollection]:
        """One collection handle per shard, keyed by shard key"""
        return {shard: database[name] for shard, database in self._databases.items()}

    async def ping(self) -> Dict[str, bool]:
        results = {}
        for uri, client in self._clients.items():
            try:
                await client.admin.command("ping")
                healthy = True
            except Exception as e:
                logger.warning("Shard MongoDB ping failed", error=e)
                healthy = False
            for shard, database in self._databases.items():
                if database.client is client:
                    results[shard] = healthy
        return results

    def close(self) -> None:
        for client in self._clients.values():
            client.close()


async def ensure_indexes(service_name: str, database: MongoDatabase,
                         shard_router: Optional[ShardRouter] = None) -> None:
    """Create the indexes each service's queries rely on. Idempotent."""
    if service_name == "company":
        companies = database.collection(COMPANIES)
        await companies.create_index("countryCode")
        await companies.create_index("createdAt")
    elif service_name == "subscription":
        subscriptions = database.collection(SUBSCRIPTIONS)
        await subscriptions.create_index([("companyId", 1), ("createdAt", -1)])
        await subscriptions.create_index([("status", 1), ("endAt", 1)])
    elif service_name == "auth":
        await database.collection(SESSION_INVALIDATIONS).create_index(
            "createdAt", expireAfterSeconds=7 * 24 * 3600
        )
        if shard_router is not None:
            for collection in shard_router.collections(COMPANY_ACCOUNTS).values():
                await collection.create_index("email", unique=True)
                await collection.create_index("activationToken", sparse=True)

    await database.collection(UNDELIVERED_EVENTS).create_index("createdAt")
    logger.info("MongoDB indexes ensured", metadata={"service": service_name})
