"""
Core configuration and settings for the Job Manager services.

One settings object covers the auth, company and subscription services;
SERVICE_NAME selects which routers, handlers and collections are wired.
"""

import json
from typing import Dict, List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

SUPPORTED_SERVICES = ("auth", "company", "subscription")


class Config(BaseSettings):
    """Application configuration with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Service information
    service_name: str = Field(default="company")
    service_version: str = Field(default="1.0.0")
    environment: str = Field(default="development")

    # Server configuration
    port: int = Field(default=8000)
    host: str = Field(default="0.0.0.0")  # nosec B104

    # Database configuration
    mongodb_uri: str = Field(default="mongodb://localhost:27017")
    database_name: str = Field(default="job_manager")
    # JSON object mapping shard key -> MongoDB URI, e.g. {"auth_shard_vn": "mongodb://vn:27017"}
    auth_shard_uris: Optional[str] = Field(default=None)

    # Kafka configuration
    kafka_bootstrap_servers: str = Field(default="localhost:9092")
    kafka_group_id: Optional[str] = Field(default=None)
    kafka_send_timeout_seconds: float = Field(default=10.0)

    # Producer retry budget
    publish_max_attempts: int = Field(default=5)
    publish_initial_backoff_seconds: float = Field(default=0.5)
    publish_max_backoff_seconds: float = Field(default=8.0)

    # Consumer retry budget for transient failures
    consumer_max_attempts: int = Field(default=5)
    consumer_initial_backoff_seconds: float = Field(default=1.0)
    consumer_max_backoff_seconds: float = Field(default=30.0)

    # Auth
    activation_token_ttl_hours: int = Field(default=24)

    # Downstream services
    subscription_service_url: str = Field(default="http://localhost:8086")
    http_client_timeout_seconds: float = Field(default=5.0)

    @property
    def source_name(self) -> str:
        """Name stamped into the `source` field of produced events"""
        return f"job-manager-{self.service_name}"

    @property
    def consumer_group_id(self) -> str:
        return self.kafka_group_id or self.source_name

    @property
    def bootstrap_servers(self) -> List[str]:
        return [server.strip() for server in self.kafka_bootstrap_servers.split(",") if server.strip()]

    def shard_uri_overrides(self) -> Dict[str, str]:
        """Parse AUTH_SHARD_URIS; shards not listed use MONGODB_URI"""
        if not self.auth_shard_uris:
            return {}
        overrides = json.loads(self.auth_shard_uris)
        if not isinstance(overrides, dict):
            raise ValueError("AUTH_SHARD_URIS must be a JSON object")
        return {str(key): str(value) for key, value in overrides.items()}


def get_config() -> Config:
    """Build a fresh configuration from the current environment"""
    return Config()
