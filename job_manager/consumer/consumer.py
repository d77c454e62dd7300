"""
Event Consumer
Consumes the service's subscribed topics, applies each record through its
handler and maps the ApplyResult onto the offset:

    APPLIED / DUPLICATE   -> commit
    REJECTED / PERMANENT  -> publish to <topic>.DLT, then commit
    TRANSIENT             -> retry in place with backoff, dead-letter when exhausted

Undecodable records are counted as poison, logged and committed. If the
dead-letter publish fails the exception propagates, the offset stays
uncommitted and the consumer stops.

Run with: SERVICE_NAME=company python -m job_manager.consumer.consumer
"""

import asyncio
import signal
from collections import Counter
from typing import Any, Dict, List, Optional, Tuple

from dotenv import load_dotenv

from job_manager.consumer.handlers.handler_registry import Handler, get_handlers
from job_manager.consumer.results import ApplyOutcome, ApplyResult, classify_exception
from job_manager.core.logger import logger
from job_manager.events.contracts import EventDecodeError, EventEnvelope, EventModel, decode_envelope
from job_manager.events.topics import dead_letter_topic
from job_manager.messaging.i_message_broker import IMessageBroker, IMessagePublisher
from job_manager.messaging.retry import compute_backoff
from job_manager.utils.correlation_id import create_correlation_id, set_correlation_id


def _header(headers, name: str) -> Optional[str]:
    for key, value in headers or []:
        if key == name and value is not None:
            return value.decode("utf-8", errors="replace")
    return None


class EventConsumer:
    """Consumer process for consuming and applying events"""

    def __init__(
        self,
        broker: IMessageBroker,
        dead_letter_publisher: IMessagePublisher,
        handlers: Dict[str, Handler],
        services: Any,
        max_attempts: int = 5,
        initial_backoff_seconds: float = 1.0,
        max_backoff_seconds: float = 30.0,
    ):
        self.broker = broker
        self.dead_letter_publisher = dead_letter_publisher
        self.handlers = handlers
        self.services = services
        self.max_attempts = max_attempts
        self.initial_backoff_seconds = initial_backoff_seconds
        self.max_backoff_seconds = max_backoff_seconds
        self.poison_count = 0
        self.outcomes: Counter = Counter()

    async def process_record(self, record) -> Optional[ApplyResult]:
        """
        Apply one record. Returning means the offset may be committed.

        Returns:
            The final ApplyResult, or None for a poison or unhandled record
        """
        try:
            envelope, event = decode_envelope(record.value)
        except EventDecodeError as e:
            self.poison_count += 1
            logger.error(
                "Dropping undecodable record",
                correlation_id=_header(record.headers, "correlationId"),
                error=e,
                metadata={
                    "topic": record.topic,
                    "partition": record.partition,
                    "offset": record.offset,
                    "poisonCount": self.poison_count,
                }
            )
            return None

        correlation_id = envelope.correlation_id or create_correlation_id()
        set_correlation_id(correlation_id)

        handler = self.handlers.get(envelope.event_type)
        if handler is None:
            logger.warning(
                f"No handler registered for event type: {envelope.event_type}",
                correlation_id=correlation_id,
                metadata={"topic": record.topic, "eventId": str(envelope.event_id)}
            )
            return None

        result, attempts = await self._apply_with_retry(handler, event, envelope, correlation_id)

        if result.needs_dead_letter:
            await self._dead_letter(record, envelope, result, attempts, correlation_id)

        self.outcomes[result.outcome.value] += 1
        logger.info(
            f"Event {envelope.event_type} {result.outcome.value}",
            correlation_id=correlation_id,
            metadata={
                "eventId": str(envelope.event_id),
                "outcome": result.outcome.value,
                "reason": result.reason,
                "attempts": attempts,
                "partition": record.partition,
                "offset": record.offset,
            }
        )
        return result

    async def _apply_with_retry(
        self,
        handler: Handler,
        event: EventModel,
        envelope: EventEnvelope,
        correlation_id: str,
    ) -> Tuple[ApplyResult, int]:
        attempt = 1
        while True:
            try:
                result = await handler(event, envelope, self.services)
            except Exception as e:
                result = classify_exception(e)
                logger.warning(
                    f"Handler for {envelope.event_type} raised",
                    correlation_id=correlation_id,
                    error=e,
                    metadata={"outcome": result.outcome.value, "attempt": attempt}
                )

            if not result.is_retryable or attempt >= self.max_attempts:
                return result, attempt

            delay = compute_backoff(attempt, self.initial_backoff_seconds, self.max_backoff_seconds)
            logger.warning(
                f"Transient failure, retrying in {delay}s",
                correlation_id=correlation_id,
                metadata={"attempt": attempt, "maxAttempts": self.max_attempts, "reason": result.reason}
            )
            await asyncio.sleep(delay)
            attempt += 1

    async def _dead_letter(
        self,
        record,
        envelope: EventEnvelope,
        result: ApplyResult,
        attempts: int,
        correlation_id: str,
    ) -> None:
        topic = dead_letter_topic(record.topic)
        headers: List[Tuple[str, bytes]] = list(record.headers or [])
        headers.extend([
            ("dlt-outcome", result.outcome.value.encode("utf-8")),
            ("dlt-reason", result.reason.encode("utf-8")),
            ("dlt-attempts", str(attempts).encode("utf-8")),
            ("dlt-original-topic", record.topic.encode("utf-8")),
            ("dlt-original-partition", str(record.partition).encode("utf-8")),
            ("dlt-original-offset", str(record.offset).encode("utf-8")),
        ])

        # EventPublishError propagates: the record must not be committed
        await self.dead_letter_publisher.publish(
            topic,
            record.value,
            key=record.key,
            headers=headers,
            correlation_id=correlation_id,
        )

        log = logger.error if result.outcome == ApplyOutcome.PERMANENT else logger.warning
        log(
            f"Record dead-lettered to {topic}",
            correlation_id=correlation_id,
            metadata={"eventId": str(envelope.event_id), "outcome": result.outcome.value, "reason": result.reason}
        )

    def get_stats(self) -> Dict[str, Any]:
        return {"poison": self.poison_count, "outcomes": dict(self.outcomes)}

    async def start(self):
        """Connect and consume until stopped"""
        logger.info("Event consumer starting", metadata={"eventTypes": list(self.handlers)})
        await self.dead_letter_publisher.start()
        await self.broker.connect()
        await self.broker.consume(self.process_record)

    def request_stop(self):
        logger.info("Shutdown requested, finishing in-flight record")
        self.broker.stop()

    async def stop(self):
        """Gracefully stop the consumer"""
        await self.broker.disconnect()
        await self.dead_letter_publisher.stop()
        logger.info("Event consumer stopped", metadata=self.get_stats())


async def main():
    """Main entry point for the consumer"""
    load_dotenv()

    from job_manager.validators.config_validator import validate_config
    validate_config()

    from job_manager.container import build_container
    from job_manager.core.config import get_config
    from job_manager.messaging.message_broker_factory import MessageBrokerFactory

    config = get_config()
    handlers = get_handlers(config.service_name)
    if not handlers:
        logger.info(f"Service {config.service_name} consumes no events, exiting")
        return

    container = build_container(config)
    consumer = EventConsumer(
        broker=MessageBrokerFactory.create_consumer(config, list(handlers)),
        dead_letter_publisher=container.publisher,
        handlers=handlers,
        services=container,
        max_attempts=config.consumer_max_attempts,
        initial_backoff_seconds=config.consumer_initial_backoff_seconds,
        max_backoff_seconds=config.consumer_max_backoff_seconds,
    )

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, consumer.request_stop)

    try:
        await consumer.start()
    except Exception as e:
        logger.critical("Consumer stopped with an error; current record left uncommitted", error=e)
        raise
    finally:
        await consumer.stop()
        await container.close()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
