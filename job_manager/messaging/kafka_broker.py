"""
Kafka Broker Implementation
Implements the IMessageBroker interface on top of aiokafka.

Offsets are committed manually, one record at a time, after the handler
returned. A handler that raises stops consumption with the record
uncommitted so it is redelivered after restart.
"""

from typing import Any, Dict, List, Optional

from aiokafka import AIOKafkaConsumer

from job_manager.core.logger import logger
from job_manager.messaging.i_message_broker import IMessageBroker, RecordHandler


class KafkaBroker(IMessageBroker):
    """Kafka implementation of IMessageBroker"""

    def __init__(
        self,
        brokers: List[str],
        topics: List[str],
        group_id: str,
        poll_timeout_ms: int = 1000,
        max_poll_records: int = 100,
    ):
        """
        Args:
            brokers: List of Kafka broker addresses
            topics: List of topics to subscribe to
            group_id: Consumer group ID
        """
        self.brokers = brokers
        self.topics = topics
        self.group_id = group_id
        self.poll_timeout_ms = poll_timeout_ms
        self.max_poll_records = max_poll_records
        self.consumer: Optional[AIOKafkaConsumer] = None
        self._running = False
        self._committed = 0

    async def connect(self) -> None:
        logger.info(
            "Connecting to Kafka",
            metadata={"brokers": self.brokers, "topics": self.topics, "groupId": self.group_id}
        )

        self.consumer = AIOKafkaConsumer(
            *self.topics,
            bootstrap_servers=self.brokers,
            group_id=self.group_id,
            enable_auto_commit=False,
            auto_offset_reset="earliest",
            max_poll_records=self.max_poll_records,
        )
        try:
            await self.consumer.start()
        except Exception as e:
            logger.error("Failed to connect to Kafka", error=e, metadata={"brokers": self.brokers})
            self.consumer = None
            raise

        logger.info("Kafka consumer connected", metadata={"topics": self.topics})

    async def consume(self, handler: RecordHandler) -> None:
        if self.consumer is None:
            raise RuntimeError("Consumer not initialized. Call connect() first.")

        self._running = True
        logger.info("Message consumer started", metadata={"topics": self.topics})

        while self._running:
            batches = await self.consumer.getmany(timeout_ms=self.poll_timeout_ms)
            for tp, records in batches.items():
                for record in records:
                    if not self._running:
                        # remaining fetched records stay uncommitted
                        return
                    await handler(record)
                    await self.consumer.commit({tp: record.offset + 1})
                    self._committed += 1

    def stop(self) -> None:
        self._running = False

    async def disconnect(self) -> None:
        self._running = False
        if self.consumer is not None:
            await self.consumer.stop()
            self.consumer = None
        logger.info("Kafka consumer closed")

    def is_healthy(self) -> bool:
        return self.consumer is not None and self._running

    async def get_stats(self) -> Dict[str, Any]:
        assignment = []
        if self.consumer is not None:
            assignment = [
                {"topic": tp.topic, "partition": tp.partition}
                for tp in sorted(self.consumer.assignment(), key=lambda tp: (tp.topic, tp.partition))
            ]
        return {
            "broker": "kafka",
            "topics": self.topics,
            "group_id": self.group_id,
            "connected": self.consumer is not None,
            "running": self._running,
            "committed_records": self._committed,
            "assignment": assignment,
        }
