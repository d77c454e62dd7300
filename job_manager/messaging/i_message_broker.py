"""
Message Broker Interfaces
Contracts for the consuming and the publishing side of the event bus.
Business logic depends on these, never on aiokafka directly.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

Headers = List[Tuple[str, bytes]]
RecordHandler = Callable[[Any], Awaitable[Any]]


class IMessageBroker(ABC):
    """Consuming side of the event bus"""

    @abstractmethod
    async def connect(self) -> None:
        """
        Establish connection to the message broker
        """
        pass

    @abstractmethod
    async def consume(self, handler: RecordHandler) -> None:
        """
        Consume records until stopped.

        The handler is awaited once per record, strictly in order within a
        partition. The record's offset is committed only after the handler
        returns; if the handler raises, consumption stops without committing.

        Args:
            handler: Async callback receiving the raw record
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """
        Ask a running consume() to return after the in-flight record
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """
        Close connection to the message broker
        """
        pass

    @abstractmethod
    def is_healthy(self) -> bool:
        """
        Returns:
            True if connected and ready, False otherwise
        """
        pass

    @abstractmethod
    async def get_stats(self) -> Dict[str, Any]:
        """
        Get topic/consumer statistics for monitoring
        """
        pass


class IMessagePublisher(ABC):
    """Publishing side of the event bus"""

    @abstractmethod
    async def start(self) -> None:
        pass

    @abstractmethod
    async def publish(
        self,
        topic: str,
        value: bytes,
        key: Optional[bytes] = None,
        headers: Optional[Headers] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        """
        Deliver one record, retrying within the configured budget.

        Raises:
            EventPublishError: every attempt failed
        """
        pass

    @abstractmethod
    async def stop(self) -> None:
        pass

    @abstractmethod
    def is_healthy(self) -> bool:
        pass
