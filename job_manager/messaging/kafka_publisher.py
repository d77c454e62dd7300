"""
Kafka Publisher
Delivers records with acks from all in-sync replicas and an idempotent
producer. Each attempt is bounded by a timeout; failed attempts are retried
with exponential backoff and the last failure surfaces as EventPublishError.
"""

import asyncio
from typing import List, Optional

from aiokafka import AIOKafkaProducer
from aiokafka.errors import KafkaError

from job_manager.core.errors import EventPublishError
from job_manager.core.logger import logger
from job_manager.messaging.i_message_broker import Headers, IMessagePublisher
from job_manager.messaging.retry import compute_backoff


class KafkaPublisher(IMessagePublisher):

    def __init__(
        self,
        brokers: List[str],
        client_id: str,
        send_timeout_seconds: float = 10.0,
        max_attempts: int = 5,
        initial_backoff_seconds: float = 0.5,
        max_backoff_seconds: float = 8.0,
    ):
        self.brokers = brokers
        self.client_id = client_id
        self.send_timeout_seconds = send_timeout_seconds
        self.max_attempts = max_attempts
        self.initial_backoff_seconds = initial_backoff_seconds
        self.max_backoff_seconds = max_backoff_seconds
        self.producer: Optional[AIOKafkaProducer] = None

    def _create_producer(self) -> AIOKafkaProducer:
        return AIOKafkaProducer(
            bootstrap_servers=self.brokers,
            client_id=self.client_id,
            acks="all",
            enable_idempotence=True,
        )

    async def start(self) -> None:
        if self.producer is not None:
            return

        producer = self._create_producer()
        try:
            await producer.start()
        except KafkaError:
            await producer.stop()
            raise

        self.producer = producer
        logger.info("Kafka producer started", metadata={"brokers": self.brokers, "clientId": self.client_id})

    async def publish(
        self,
        topic: str,
        value: bytes,
        key: Optional[bytes] = None,
        headers: Optional[Headers] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                # A producer that failed to start at boot is started lazily here
                await self.start()
                await asyncio.wait_for(
                    self.producer.send_and_wait(topic, value=value, key=key, headers=headers or []),
                    timeout=self.send_timeout_seconds,
                )
                logger.debug(
                    f"Published record to {topic}",
                    correlation_id=correlation_id,
                    metadata={"topic": topic, "attempt": attempt}
                )
                return
            except (KafkaError, asyncio.TimeoutError) as e:
                last_error = e
                logger.warning(
                    f"Publish attempt {attempt}/{self.max_attempts} to {topic} failed",
                    correlation_id=correlation_id,
                    metadata={"topic": topic, "attempt": attempt, "error": repr(e)}
                )
                if attempt < self.max_attempts:
                    await asyncio.sleep(
                        compute_backoff(attempt, self.initial_backoff_seconds, self.max_backoff_seconds)
                    )

        raise EventPublishError(
            f"Failed to publish to {topic} after {self.max_attempts} attempts: {last_error!r}",
            topic=topic,
            attempts=self.max_attempts,
        )

    async def stop(self) -> None:
        if self.producer is not None:
            await self.producer.stop()
            self.producer = None
            logger.info("Kafka producer stopped")

    def is_healthy(self) -> bool:
        return self.producer is not None
