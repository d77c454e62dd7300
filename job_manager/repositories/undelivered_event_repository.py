"""
Events whose delivery exhausted the producer retry budget, kept for operators
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorCollection

from job_manager.repositories.base_repository import BaseRepository


class UndeliveredEventRepository(BaseRepository):

    def __init__(self, collection: AsyncIOMotorCollection):
        super().__init__(collection)

    async def record(
        self,
        topic: str,
        envelope: Dict[str, Any],
        key: Optional[str],
        error: str,
        correlation_id: Optional[str] = None
    ) -> str:
        document = {
            "_id": envelope["eventId"],
            "topic": topic,
            "key": key,
            "envelope": envelope,
            "error": error,
            "status": "PENDING",
            "createdAt": datetime.now(timezone.utc),
        }
        return await self.create(document, correlation_id=correlation_id)

    async def count_pending(self) -> int:
        return await self.count({"status": "PENDING"})
