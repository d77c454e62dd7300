"""
Message Broker Factory
Creates the consumer and publisher instances from configuration
"""

from typing import List

from job_manager.core.config import Config
from job_manager.core.logger import logger
from job_manager.messaging.i_message_broker import IMessageBroker, IMessagePublisher
from job_manager.messaging.kafka_broker import KafkaBroker
from job_manager.messaging.kafka_publisher import KafkaPublisher


class MessageBrokerFactory:
    """Factory for creating message broker instances"""

    @staticmethod
    def create_consumer(config: Config, topics: List[str]) -> IMessageBroker:
        logger.info(
            "Creating Kafka consumer",
            metadata={"topics": topics, "groupId": config.consumer_group_id}
        )
        return KafkaBroker(config.bootstrap_servers, topics, config.consumer_group_id)

    @staticmethod
    def create_publisher(config: Config) -> IMessagePublisher:
        return KafkaPublisher(
            brokers=config.bootstrap_servers,
            client_id=config.source_name,
            send_timeout_seconds=config.kafka_send_timeout_seconds,
            max_attempts=config.publish_max_attempts,
            initial_backoff_seconds=config.publish_initial_backoff_seconds,
            max_backoff_seconds=config.publish_max_backoff_seconds,
        )
