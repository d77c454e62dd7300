"""
Explicit wiring of the per-process handles.

Built once by the API lifespan or the consumer entry point and passed down;
there are no module-level clients.
"""

from dataclasses import dataclass
from typing import Optional

from job_manager.clients.subscription_client import SubscriptionServiceClient
from job_manager.core.config import Config
from job_manager.db.mongodb import (
    COMPANIES,
    SESSION_INVALIDATIONS,
    SUBSCRIPTIONS,
    UNDELIVERED_EVENTS,
    MongoDatabase,
    ShardRouter,
)
from job_manager.messaging.i_message_broker import IMessagePublisher
from job_manager.messaging.message_broker_factory import MessageBrokerFactory
from job_manager.repositories.account_repository import CompanyAccountRepository
from job_manager.repositories.company_repository import CompanyRepository
from job_manager.repositories.session_invalidation_repository import SessionInvalidationRepository
from job_manager.repositories.subscription_repository import SubscriptionRepository
from job_manager.repositories.undelivered_event_repository import UndeliveredEventRepository
from job_manager.services.auth_service import AuthService
from job_manager.services.company_service import CompanyService
from job_manager.services.event_publisher import EventPublisher
from job_manager.services.shard_migration_service import ShardMigrationService
from job_manager.services.subscription_service import SubscriptionService


@dataclass
class ServiceContainer:
    config: Config
    database: MongoDatabase
    shard_router: Optional[ShardRouter] = None
    publisher: Optional[IMessagePublisher] = None
    event_publisher: Optional[EventPublisher] = None
    auth_service: Optional[AuthService] = None
    shard_migration_service: Optional[ShardMigrationService] = None
    company_service: Optional[CompanyService] = None
    subscription_service: Optional[SubscriptionService] = None
    subscription_client: Optional[SubscriptionServiceClient] = None

    async def close(self) -> None:
        if self.publisher is not None:
            await self.publisher.stop()
        if self.subscription_client is not None:
            await self.subscription_client.close()
        if self.shard_router is not None:
            self.shard_router.close()
        self.database.close()


def build_container(config: Config) -> ServiceContainer:
    """Construct the handles the configured service needs. Nothing is connected yet."""
    database = MongoDatabase(config.mongodb_uri, config.database_name)
    container = ServiceContainer(config=config, database=database)

    if config.service_name in ("auth", "company"):
        container.publisher = MessageBrokerFactory.create_publisher(config)
        container.event_publisher = EventPublisher(
            container.publisher,
            UndeliveredEventRepository(database.collection(UNDELIVERED_EVENTS)),
            source=config.source_name,
        )

    if config.service_name == "auth":
        container.shard_router = ShardRouter(config.mongodb_uri, config.shard_uri_overrides())
        container.subscription_client = SubscriptionServiceClient(
            config.subscription_service_url, timeout=config.http_client_timeout_seconds
        )
        accounts = CompanyAccountRepository(container.shard_router.collections())
        sessions = SessionInvalidationRepository(database.collection(SESSION_INVALIDATIONS))
        container.auth_service = AuthService(
            accounts,
            sessions,
            container.event_publisher,
            activation_token_ttl_hours=config.activation_token_ttl_hours,
            subscription_client=container.subscription_client,
        )
        container.shard_migration_service = ShardMigrationService(accounts, sessions)

    elif config.service_name == "company":
        container.company_service = CompanyService(
            CompanyRepository(database.collection(COMPANIES)),
            container.event_publisher,
        )

    elif config.service_name == "subscription":
        container.subscription_service = SubscriptionService(
            SubscriptionRepository(database.collection(SUBSCRIPTIONS))
        )

    return container
