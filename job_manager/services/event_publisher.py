"""
Event Publisher Service
Wraps domain events in the versioned envelope and hands them to Kafka.

Callers invoke publish() only after their own write committed. When delivery
fails after every retry the event is logged at CRITICAL with the full
envelope and stored in undelivered_events; the caller's request still
succeeds because its state change is already durable.
"""

from typing import Optional

from pymongo.errors import PyMongoError

from job_manager.core.errors import EventPublishError
from job_manager.core.logger import logger
from job_manager.events.contracts import EventModel, build_envelope, encode_envelope, envelope_to_dict
from job_manager.messaging.i_message_broker import IMessagePublisher
from job_manager.repositories.undelivered_event_repository import UndeliveredEventRepository


class EventPublisher:
    """Publisher for sending domain events"""

    def __init__(
        self,
        publisher: IMessagePublisher,
        undelivered_events: UndeliveredEventRepository,
        source: str,
    ):
        self.publisher = publisher
        self.undelivered_events = undelivered_events
        self.source = source

    async def publish(
        self,
        event_type: str,
        event: EventModel,
        correlation_id: Optional[str] = None,
    ) -> bool:
        """
        Publish an event on the topic named by its event type.

        Returns:
            bool: True if delivered, False if it was parked as undelivered
        """
        envelope = build_envelope(event_type, event, self.source, correlation_id)
        key = event.partition_key()
        headers = [("eventType", event_type.encode("utf-8"))]
        if correlation_id:
            headers.append(("correlationId", correlation_id.encode("utf-8")))

        try:
            await self.publisher.publish(
                event_type,
                encode_envelope(envelope),
                key=key,
                headers=headers,
                correlation_id=correlation_id,
            )
        except EventPublishError as e:
            await self._park(event_type, envelope_to_dict(envelope), key.decode("utf-8"), e, correlation_id)
            return False

        logger.info(
            f"Published event: {event_type}",
            correlation_id=correlation_id,
            metadata={
                "eventId": str(envelope.event_id),
                "eventType": event_type,
                "key": key.decode("utf-8"),
                "source": self.source,
            }
        )
        return True

    async def _park(self, topic: str, envelope: dict, key: str, error: EventPublishError,
                    correlation_id: Optional[str]) -> None:
        logger.critical(
            f"Event delivery failed after {error.attempts} attempts, storing as undelivered",
            correlation_id=correlation_id,
            error=error,
            metadata={"topic": topic, "envelope": envelope}
        )
        try:
            await self.undelivered_events.record(topic, envelope, key, str(error), correlation_id=correlation_id)
        except PyMongoError as e:
            # the CRITICAL entry above still carries the full envelope
            logger.critical(
                "Failed to store undelivered event",
                correlation_id=correlation_id,
                error=e,
                metadata={"topic": topic, "eventId": envelope["eventId"]}
            )
