"""
Session invalidation markers written after a shard migration.
A TTL index on createdAt removes markers after seven days.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from motor.motor_asyncio import AsyncIOMotorCollection

from job_manager.repositories.base_repository import BaseRepository


class SessionInvalidationRepository(BaseRepository):

    def __init__(self, collection: AsyncIOMotorCollection):
        super().__init__(collection)

    async def invalidate(
        self,
        company_id: str,
        reason: str,
    ) -> None:
        now = datetime.now(timezone.utc)
        await self.collection.update_one(
            {"_id": company_id},
            {"$set": {"reason": reason, "createdAt": now}},
            upsert=True,
        )

    async def find_marker(self, company_id: str) -> Optional[Dict[str, Any]]:
        return await self.find_by_id(company_id)

    async def clear(self, company_id: str, correlation_id: Optional[str] = None) -> bool:
        """Drop the marker once the company has signed in again"""
        return await self.delete({"_id": company_id}, correlation_id=correlation_id)
